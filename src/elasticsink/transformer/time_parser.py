"""时间字段解析模块."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from elasticsink.typing import EventTime

from .exceptions import TimeParseError


class TimeParser:
    """记录时间字段解析器.

    - 配置了 time_format 时使用 strptime 解析
    - 未配置时：数值按 epoch 秒解析，字符串按 ISO 8601 解析
    - 解析结果统一为带时区的 datetime，不带时区的结果视为 UTC

    Args:
        time_format: strptime 格式，例如 "%Y-%m-%d %H:%M:%S.%f%z"

    示例:
        >>> parser = TimeParser("%Y-%m-%dT%H:%M:%S%z")
        >>> parser.parse("2001-02-03T04:05:06+02:00").isoformat()
        '2001-02-03T04:05:06+02:00'
    """

    def __init__(self, time_format: str | None = None) -> None:
        self.time_format = time_format

    def parse(self, value: Any) -> datetime:
        """解析时间值.

        Args:
            value: 记录中的时间值

        Returns:
            带时区的 datetime

        Raises:
            TimeParseError: 无法解析时抛出
        """
        try:
            if self.time_format is not None:
                dt = datetime.strptime(str(value), self.time_format)
            elif isinstance(value, (int, float)) and not isinstance(value, bool):
                return datetime.fromtimestamp(value, tz=UTC)
            elif isinstance(value, str):
                dt = datetime.fromisoformat(value.strip())
            else:
                raise TypeError(f"不支持的时间值类型: {type(value).__name__}")
        except (TypeError, ValueError, OverflowError) as e:
            raise TimeParseError(
                f"无法解析时间值 {value!r}（format={self.time_format!r}）: {e}"
            ) from e

        if dt.tzinfo is None:
            return dt.replace(tzinfo=UTC)
        return dt


def event_datetime(time: EventTime) -> datetime:
    """将事件时间转换为本地时区的 datetime."""
    return datetime.fromtimestamp(time).astimezone()
