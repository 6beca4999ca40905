"""事件路由数据模型定义模块."""

from dataclasses import dataclass, field


@dataclass
class RoutingReport:
    """一次路由的统计结果.

    Attributes:
        accepted: 成功写入数
        retried: 重新发射数
        dropped: 丢弃并记录日志数
        error_events: 发射为错误事件数
        retry_tags: 各重试标签对应的重新发射数
    """

    accepted: int = 0
    retried: int = 0
    dropped: int = 0
    error_events: int = 0
    retry_tags: dict[str, int] = field(default_factory=dict)
