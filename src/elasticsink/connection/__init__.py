"""连接模块 - Elasticsearch 客户端管理、bulk 传输与连接重试.

主要组件:
    - ESClientFactory: 客户端工厂，负责惰性创建、缓存和重置客户端
    - ClusterConfig / ConnectionConfig: 集群与客户端连接配置
    - BulkTransport / ElasticsearchTransport: bulk 传输接口与实现
    - ConnectionRetrySupervisor: 不可达时重置连接并退避重试

使用示例:
    from elasticsink.connection import (
        ClusterConfig,
        ConnectionRetrySupervisor,
        ElasticsearchTransport,
        ESClientFactory,
    )

    factory = ESClientFactory(ClusterConfig(hosts=["http://localhost:9200"]))
    supervisor = ConnectionRetrySupervisor(ElasticsearchTransport(factory))
    response = supervisor.submit(payload)
"""

from .exceptions import (
    ConnectionConfigError,
    ConnectionFailure,
    ConnectivityError,
    ESConnectionError,
)
from .models import BulkHttpResponse, ClusterConfig, ConnectionConfig
from .supervisor import ConnectionRetrySupervisor, SupervisorState
from .tool import ESClientFactory
from .transport import BulkTransport, ElasticsearchTransport

__all__ = [
    # 工厂与传输
    "ESClientFactory",
    "BulkTransport",
    "ElasticsearchTransport",
    "ConnectionRetrySupervisor",
    "SupervisorState",
    # 模型
    "ClusterConfig",
    "ConnectionConfig",
    "BulkHttpResponse",
    # 异常
    "ESConnectionError",
    "ConnectionConfigError",
    "ConnectivityError",
    "ConnectionFailure",
]
