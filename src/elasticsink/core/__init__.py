"""elasticsink 核心模块：事件模型与记录字段工具函数."""

from .events import ErrorEvent, Event
from .utils import flatten_record, is_present, pop_path, resolve_path

__all__ = [
    "Event",
    "ErrorEvent",
    "flatten_record",
    "is_present",
    "pop_path",
    "resolve_path",
]
