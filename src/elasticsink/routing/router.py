"""宿主管道事件路由接口模块.

elasticsink 不依赖具体的宿主运行时，只通过 EventRouter 把记录送回管道：
- emit / emit_stream: 重新发射数据事件（重试）
- emit_error_event: 发射结构化错误事件（缺少 _id、时间解析失败等）
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from elasticsink.core.events import ErrorEvent, Event
from elasticsink.typing import EventTime

logger = logging.getLogger(__name__)


class EventRouter(ABC):
    """宿主管道事件路由器抽象基类."""

    @abstractmethod
    def emit(self, tag: str, time: EventTime, record: Any) -> None:
        """向宿主管道发射一条数据事件."""

    @abstractmethod
    def emit_error_event(
        self, tag: str, time: EventTime, record: Any, error: Exception
    ) -> None:
        """向宿主管道的错误流发射一条错误事件."""

    def emit_stream(self, tag: str, events: Iterable[Event]) -> None:
        """按顺序以同一标签发射一组事件.

        Args:
            tag: 发射使用的标签（覆盖事件自身的标签）
            events: 事件序列，使用其原始时间和原始记录
        """
        for event in events:
            self.emit(tag, event.time, event.record)


class MemoryEventRouter(EventRouter):
    """内存事件路由器.

    把发射的事件保存在列表中，适合嵌入式使用和测试。
    内部使用锁保护，多个批次可以并发共享同一个实例。

    Examples:
        >>> router = MemoryEventRouter()
        >>> router.emit("retry", 1.0, {"a": 1})
        >>> router.events[0].tag
        'retry'
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[Event] = []
        self._error_events: list[ErrorEvent] = []

    @property
    def events(self) -> list[Event]:
        """已发射的数据事件（副本）."""
        with self._lock:
            return list(self._events)

    @property
    def error_events(self) -> list[ErrorEvent]:
        """已发射的错误事件（副本）."""
        with self._lock:
            return list(self._error_events)

    def emit(self, tag: str, time: EventTime, record: Any) -> None:
        with self._lock:
            self._events.append(Event(tag=tag, time=time, record=record))

    def emit_error_event(
        self, tag: str, time: EventTime, record: Any, error: Exception
    ) -> None:
        logger.warning(f"错误事件: tag={tag!r}, error={error}")
        with self._lock:
            self._error_events.append(
                ErrorEvent(tag=tag, time=time, record=record, error=error)
            )

    def clear(self) -> None:
        """清空已保存的事件."""
        with self._lock:
            self._events.clear()
            self._error_events.clear()
