"""
输出配置模块 - 定义 Elasticsearch 输出的全部行为开关.

主要组件:
    - OutputConfig: 不可变的输出配置模型
    - WriteOperation: 写操作类型枚举

使用示例:
    from elasticsink.config import OutputConfig, WriteOperation

    config = OutputConfig(write_operation=WriteOperation.UPSERT, id_key="request_id")
    config = OutputConfig.from_dict({"write_operation": "create", "id_key": "my_id"})
"""

from .exceptions import ConfigError
from .models import OutputConfig, WriteOperation

__all__ = [
    "OutputConfig",
    "WriteOperation",
    "ConfigError",
]
