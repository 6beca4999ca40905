"""elasticsink 类型定义模块."""

from typing import Any, Dict

# 原始记录类型
Record = Dict[str, Any]

# 事件时间类型（epoch 秒，允许小数部分）
EventTime = float

# bulk 元数据行类型
# 格式: {"_index": ..., "_type": ..., "_id": ...}
MetaDict = Dict[str, Any]

# bulk 响应体类型
BulkResponseDict = Dict[str, Any]
