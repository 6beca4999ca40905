"""elasticsink - Elasticsearch bulk 输出工具包.

把结构化事件流通过 _bulk API 写入 Elasticsearch，处理逐条寻址、
批次内部分失败和失败记录的重试路由。

主要功能:
    - RecordTransformer: 把事件转换为带写入坐标的 bulk 操作
    - BulkPayloadBuilder: 构建换行分隔的 bulk 请求体
    - BulkResponseClassifier: 把逐项响应分类为成功、可重试或丢弃
    - RetryRouter: 重新发射可重试记录，记录丢弃日志
    - ConnectionRetrySupervisor: 后端不可达时重连并退避重试
    - ElasticsearchOutput: 串联以上组件的输出

使用示例:
    from elasticsink import ClusterConfig, ElasticsearchOutput, Event, OutputConfig

    output = ElasticsearchOutput.from_config(
        OutputConfig(logstash_format=True),
        ClusterConfig(hosts=["http://localhost:9200"]),
    )
    result = output.write([Event("app.access", 1433113201.0, {"path": "/"})])
"""

__version__ = "0.1.0"

# 导出配置
from elasticsink.config import ConfigError, OutputConfig, WriteOperation

# 导出核心组件
from elasticsink.core import ErrorEvent, Event

# 导出异常
from elasticsink.exceptions import ElasticsinkError

# 导出各组件
from elasticsink.bulk import (
    BulkPayloadBuilder,
    BulkResponseClassifier,
    BulkWriteResult,
    Disposition,
)
from elasticsink.connection import (
    ClusterConfig,
    ConnectionConfig,
    ConnectionFailure,
    ConnectionRetrySupervisor,
    ConnectivityError,
    ElasticsearchTransport,
    ESClientFactory,
)
from elasticsink.output import ElasticsearchOutput
from elasticsink.routing import EventRouter, MemoryEventRouter, RetryRouter
from elasticsink.transformer import RecordTransformer

__all__ = [
    # 版本
    "__version__",
    # 配置
    "OutputConfig",
    "WriteOperation",
    # 事件
    "Event",
    "ErrorEvent",
    # 组件
    "RecordTransformer",
    "BulkPayloadBuilder",
    "BulkResponseClassifier",
    "RetryRouter",
    "EventRouter",
    "MemoryEventRouter",
    "ConnectionRetrySupervisor",
    "ElasticsearchTransport",
    "ESClientFactory",
    "ElasticsearchOutput",
    # 模型
    "ClusterConfig",
    "ConnectionConfig",
    "BulkWriteResult",
    "Disposition",
    # 异常
    "ElasticsinkError",
    "ConfigError",
    "ConnectivityError",
    "ConnectionFailure",
]
