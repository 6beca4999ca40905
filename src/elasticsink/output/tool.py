"""Elasticsearch 输出核心工具类.

把一批事件依次交给记录转换、bulk 构建、连接重试监督、响应分类和重试路由，
返回整批的写入统计。
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

from elasticsink.bulk import (
    BulkPayloadBuilder,
    BulkRequestError,
    BulkResponseClassifier,
    BulkWriteResult,
    Disposition,
    DispositionReason,
    ItemOutcome,
    RecordResult,
)
from elasticsink.config import OutputConfig
from elasticsink.connection import (
    BulkTransport,
    ClusterConfig,
    ConnectionConfig,
    ConnectionRetrySupervisor,
    ElasticsearchTransport,
    ESClientFactory,
)
from elasticsink.core.events import Event
from elasticsink.routing import EventRouter, MemoryEventRouter, RetryRouter
from elasticsink.transformer import (
    AddressedAction,
    Excluded,
    ExclusionReason,
    RecordTransformer,
)

logger = logging.getLogger(__name__)

_EXCLUSION_REASONS = {
    ExclusionReason.MISSING_ID: DispositionReason.MISSING_ID,
    ExclusionReason.INVALID_RECORD: DispositionReason.INVALID_RECORD,
    ExclusionReason.SERIALIZATION_ERROR: DispositionReason.SERIALIZATION_ERROR,
}


class ElasticsearchOutput:
    """Elasticsearch bulk 输出.

    Args:
        config: 输出配置
        transport: bulk 传输实现
        router: 宿主管道事件路由器
        now_func: 获取当前时间（epoch 秒）的函数，用于错误事件时间
        max_attempts: 不可达时的最大尝试次数，默认 3
        retry_delay: 重连退避基数（秒），默认 2.0
        sleep: 等待函数，主要用于测试

    示例:
        >>> output = ElasticsearchOutput.from_config(
        ...     OutputConfig(logstash_format=True),
        ...     ClusterConfig(hosts=["http://localhost:9200"]),
        ... )
        >>> result = output.write([Event("app.access", 1433113201.0, {"path": "/"})])
        >>> result.is_success()
        True
    """

    def __init__(
        self,
        config: OutputConfig,
        transport: BulkTransport,
        router: EventRouter,
        now_func: Callable[[], float] | None = None,
        max_attempts: int = 3,
        retry_delay: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.transport = transport
        self.router = router
        self.transformer = RecordTransformer(config, now_func=now_func)
        self.builder = BulkPayloadBuilder(config.backend_major_version)
        self.classifier = BulkResponseClassifier()
        self.retry_router = RetryRouter(config, router)
        self.supervisor = ConnectionRetrySupervisor(
            transport,
            max_attempts=max_attempts,
            reconnect_on_error=config.reconnect_on_error,
            retry_delay=retry_delay,
            sleep=sleep,
        )
        logger.info(
            f"初始化 Elasticsearch 输出: write_operation={config.write_operation.value}, "
            f"content_type={self.builder.content_type}"
        )

    @classmethod
    def from_config(
        cls,
        config: OutputConfig,
        cluster: ClusterConfig,
        connection: ConnectionConfig | None = None,
        router: EventRouter | None = None,
        **kwargs: Any,
    ) -> ElasticsearchOutput:
        """使用 elasticsearch 客户端作为传输层创建输出.

        Args:
            config: 输出配置
            cluster: 集群配置
            connection: 客户端连接配置
            router: 事件路由器，默认使用 MemoryEventRouter
            **kwargs: 传给构造函数的其他参数

        Returns:
            ElasticsearchOutput 实例
        """
        transport = ElasticsearchTransport(ESClientFactory(cluster, connection))
        return cls(config, transport, router or MemoryEventRouter(), **kwargs)

    def write(self, events: Sequence[Event]) -> BulkWriteResult:
        """写入一批事件.

        Args:
            events: 按顺序排列的事件

        Returns:
            BulkWriteResult，dispositions 与输入顺序一致

        Raises:
            ConnectionFailure: 重试次数耗尽后仍无法连接
            BulkRequestError: bulk 请求整体返回非 2xx 状态码
            UnexpectedBulkResponseError: 响应结构无法识别
        """
        start_time = time.time()
        outcomes = self.transformer.transform_all(list(events))
        positions = {id(outcome): i for i, outcome in enumerate(outcomes)}

        actions: list[AddressedAction] = []
        exclusions: list[Excluded] = []
        for outcome in outcomes:
            for notice in outcome.error_events:
                self.router.emit_error_event(
                    notice.tag, notice.time, notice.record, notice.error
                )
            if isinstance(outcome, AddressedAction):
                actions.append(outcome)
            else:
                exclusions.append(outcome)

        payload = self.builder.build(actions)
        for action, error in payload.rejected:
            excluded = Excluded(
                action.event, reason=ExclusionReason.SERIALIZATION_ERROR, error=error
            )
            positions[id(excluded)] = positions[id(action)]
            exclusions.append(excluded)

        item_outcomes: list[ItemOutcome] = []
        if payload.actions:
            response = self.supervisor.submit(payload)
            if not response.ok:
                raise BulkRequestError(
                    f"bulk 请求失败: status={response.status}",
                    status=response.status,
                    body=response.body,
                )
            item_outcomes = self.classifier.classify(payload.actions, response.body)

        report = self.retry_router.route(item_outcomes, exclusions)

        result = BulkWriteResult(
            total=len(outcomes),
            accepted=report.accepted,
            retried=report.retried,
            excluded=len(exclusions),
        )
        dispositions: list[RecordResult | None] = [None] * len(outcomes)
        for item_outcome in item_outcomes:
            event = item_outcome.action.event
            dispositions[positions[id(item_outcome.action)]] = RecordResult(
                event.tag, event.time, item_outcome.disposition, item_outcome.reason
            )
            if item_outcome.disposition is not Disposition.ACCEPTED:
                result.errors.append(item_outcome.describe())
        for excluded in exclusions:
            reason = _EXCLUSION_REASONS[excluded.reason]
            dispositions[positions[id(excluded)]] = RecordResult(
                excluded.event.tag, excluded.event.time, Disposition.DROPPED, reason
            )
            result.errors.append(f"reason={reason.value}, error={excluded.error}")

        result.dispositions = [d for d in dispositions if d is not None]
        result.dropped = sum(
            1 for d in result.dispositions if d.disposition is Disposition.DROPPED
        )
        result.took = time.time() - start_time

        logger.info(
            f"bulk 写入完成: 总数={result.total}, 成功={result.accepted}, "
            f"重试={result.retried}, 丢弃={result.dropped}, 耗时={result.took:.2f}秒"
        )
        return result

    def close(self) -> None:
        """关闭底层连接."""
        self.transport.reset()
