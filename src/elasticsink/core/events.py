"""事件数据模型定义模块."""

from dataclasses import dataclass
from typing import Any

from elasticsink.typing import EventTime


@dataclass(frozen=True)
class Event:
    """宿主管道中的一条事件.

    Attributes:
        tag: 路由标签
        time: 事件发射时间（epoch 秒）
        record: 原始记录，通常为字典
    """

    tag: str
    time: EventTime
    record: Any


@dataclass(frozen=True)
class ErrorEvent:
    """发往宿主管道错误流的结构化错误事件.

    Attributes:
        tag: 错误事件标签
        time: 错误事件时间
        record: 关联的记录
        error: 错误原因
    """

    tag: str
    time: EventTime
    record: Any
    error: Exception
