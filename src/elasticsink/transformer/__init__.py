"""记录转换模块 - 把原始事件转换为带写入坐标的 bulk 操作.

主要组件:
    - RecordTransformer: 记录转换器
    - AddressSpec / AddressedAction / Excluded: 转换结果模型
    - TimeParser: 时间字段解析器

使用示例:
    from elasticsink.config import OutputConfig
    from elasticsink.core import Event
    from elasticsink.transformer import RecordTransformer

    transformer = RecordTransformer(OutputConfig(logstash_format=True))
    action = transformer.transform(Event("app.access", 1433113201.0, {"path": "/"}))
"""

from .exceptions import (
    InvalidRecordError,
    MissingIdFieldError,
    TimeParseError,
    TransformError,
)
from .models import (
    AddressedAction,
    AddressSpec,
    Excluded,
    ExclusionReason,
    TransformOutcome,
)
from .time_parser import TimeParser
from .tool import TIMESTAMP_FIELD, RecordTransformer

__all__ = [
    # 转换器
    "RecordTransformer",
    "TimeParser",
    "TIMESTAMP_FIELD",
    # 模型
    "AddressSpec",
    "AddressedAction",
    "Excluded",
    "ExclusionReason",
    "TransformOutcome",
    # 异常
    "TransformError",
    "MissingIdFieldError",
    "InvalidRecordError",
    "TimeParseError",
]
