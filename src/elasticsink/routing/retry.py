"""重试路由模块.

根据分类结果决定每条记录的去向：
- RETRYABLE: 以 retry_tag（未配置时使用原标签）重新发射原始记录
- DROPPED: 写入 elasticsink.dropped 日志后丢弃
- 被排除的记录: 按原因写入错误事件或丢弃日志
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from elasticsink.bulk.exceptions import UnexpectedBulkResponseError
from elasticsink.bulk.models import Disposition, DispositionReason, ItemOutcome
from elasticsink.config import OutputConfig
from elasticsink.core.events import Event
from elasticsink.transformer.models import Excluded, ExclusionReason

from .models import RoutingReport
from .router import EventRouter

logger = logging.getLogger(__name__)

DROP_LOGGER_NAME = "elasticsink.dropped"
drop_logger = logging.getLogger(DROP_LOGGER_NAME)


class RetryRouter:
    """重试路由器.

    Args:
        config: 输出配置（使用 retry_tag 与 emit_error_for_missing_id）
        router: 宿主管道事件路由器

    示例:
        >>> retry_router = RetryRouter(config, MemoryEventRouter())
        >>> report = retry_router.route(outcomes, exclusions)
        >>> report.retried
        2
    """

    def __init__(self, config: OutputConfig, router: EventRouter) -> None:
        self.config = config
        self.router = router

    def route(
        self,
        outcomes: Sequence[ItemOutcome],
        exclusions: Iterable[Excluded] = (),
    ) -> RoutingReport:
        """路由一批分类结果和被排除的记录.

        Args:
            outcomes: bulk 响应分类结果
            exclusions: 未进入 bulk 请求的记录

        Returns:
            RoutingReport 统计结果
        """
        report = RoutingReport()
        retry_streams: dict[str, list[Event]] = {}

        for outcome in outcomes:
            event = outcome.action.event
            if outcome.disposition is Disposition.ACCEPTED:
                report.accepted += 1
            elif outcome.disposition is Disposition.RETRYABLE:
                tag = self.config.retry_tag or event.tag
                retry_streams.setdefault(tag, []).append(event)
            else:
                self._drop_outcome(outcome, report)

        for tag, events in retry_streams.items():
            logger.info(f"重新发射 {len(events)} 条记录, tag={tag!r}")
            self.router.emit_stream(tag, events)
            report.retried += len(events)
            report.retry_tags[tag] = len(events)

        for excluded in exclusions:
            self._route_excluded(excluded, report)

        return report

    def _drop_outcome(self, outcome: ItemOutcome, report: RoutingReport) -> None:
        """丢弃不可重试的记录."""
        event = outcome.action.event
        address = outcome.action.address
        drop_logger.warning(
            f"Dropping record: {outcome.describe()}, index={address.index}, "
            f"id={address.id}, record={event.record!r}",
            extra={
                "tag": event.tag,
                "reason": outcome.reason.value,
                "index": address.index,
                "id": address.id,
            },
        )
        report.dropped += 1

        if outcome.reason is DispositionReason.UNEXPECTED_OPERATION:
            operation = outcome.item.operation if outcome.item is not None else None
            self._emit_error(
                event,
                UnexpectedBulkResponseError(
                    f"bulk 响应项包含未知的操作关键字: {operation!r}"
                ),
                report,
            )

    def _route_excluded(self, excluded: Excluded, report: RoutingReport) -> None:
        """处理被排除出 bulk 请求的记录."""
        event = excluded.event
        if excluded.reason is ExclusionReason.MISSING_ID:
            if self.config.emit_error_for_missing_id:
                self._emit_error(event, excluded.error, report)
                return
            drop_logger.warning(
                f"Dropping record because it is missing an '_id' field and "
                f"write_operation is {self.config.write_operation.value}: {event.record!r}",
                extra={"tag": event.tag, "reason": excluded.reason.value},
            )
            report.dropped += 1
        elif excluded.reason is ExclusionReason.INVALID_RECORD:
            drop_logger.warning(
                f"Dropping record: {excluded.error}: {event.record!r}",
                extra={"tag": event.tag, "reason": excluded.reason.value},
            )
            report.dropped += 1
        else:
            self._emit_error(event, excluded.error, report)

    def _emit_error(self, event: Event, error: Exception, report: RoutingReport) -> None:
        self.router.emit_error_event(event.tag, event.time, event.record, error)
        report.error_events += 1
