"""事件路由模块 - 把失败记录送回宿主管道或写入丢弃日志.

主要组件:
    - EventRouter: 宿主管道事件路由接口
    - MemoryEventRouter: 内存实现，适合嵌入式使用和测试
    - RetryRouter: 根据分类结果重新发射、记录错误事件或丢弃
    - RoutingReport: 路由统计

使用示例:
    from elasticsink.routing import MemoryEventRouter, RetryRouter

    router = MemoryEventRouter()
    report = RetryRouter(config, router).route(outcomes, exclusions)
"""

from elasticsink.core.events import ErrorEvent, Event

from .models import RoutingReport
from .retry import DROP_LOGGER_NAME, RetryRouter
from .router import EventRouter, MemoryEventRouter

__all__ = [
    "Event",
    "ErrorEvent",
    "EventRouter",
    "MemoryEventRouter",
    "RetryRouter",
    "RoutingReport",
    "DROP_LOGGER_NAME",
]
