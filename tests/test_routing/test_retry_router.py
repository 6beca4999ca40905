"""事件路由与重试路由单元测试."""

import logging
import unittest
from unittest.mock import MagicMock

from elasticsink.bulk import (
    BulkResponseItem,
    Disposition,
    DispositionReason,
    ItemOutcome,
    UnexpectedBulkResponseError,
)
from elasticsink.config import OutputConfig, WriteOperation
from elasticsink.core import Event
from elasticsink.routing import (
    DROP_LOGGER_NAME,
    EventRouter,
    MemoryEventRouter,
    RetryRouter,
)
from elasticsink.transformer import (
    AddressedAction,
    AddressSpec,
    Excluded,
    ExclusionReason,
    MissingIdFieldError,
)


def make_outcome(tag, n, disposition, reason, item=None):
    event = Event(tag, float(n), {"n": n})
    action = AddressedAction(
        event,
        operation=WriteOperation.INDEX,
        address=AddressSpec(index="idx", type="fluentd", id=str(n)),
        body={"n": n, "@timestamp": "injected"},
    )
    return ItemOutcome(action, disposition, reason, item)


class TestMemoryEventRouter(unittest.TestCase):
    """MemoryEventRouter 测试."""

    def test_emit_and_clear(self):
        router = MemoryEventRouter()
        router.emit("retry", 1.0, {"a": 1})
        router.emit_error_event("err", 2.0, {"b": 2}, ValueError("bad"))

        self.assertEqual(router.events, [Event("retry", 1.0, {"a": 1})])
        self.assertEqual(len(router.error_events), 1)
        self.assertEqual(router.error_events[0].tag, "err")

        router.clear()
        self.assertEqual(router.events, [])
        self.assertEqual(router.error_events, [])

    def test_emit_stream_uses_given_tag(self):
        router = MemoryEventRouter()
        router.emit_stream("retag", [Event("a", 1.0, {"x": 1}), Event("b", 2.0, {"x": 2})])
        self.assertEqual(
            router.events,
            [Event("retag", 1.0, {"x": 1}), Event("retag", 2.0, {"x": 2})],
        )


class TestRetryRouter(unittest.TestCase):
    """RetryRouter 测试."""

    def setUp(self):
        self.router = MemoryEventRouter()

    def test_accepted_emits_nothing(self):
        retry_router = RetryRouter(OutputConfig(), self.router)
        report = retry_router.route(
            [make_outcome("t", 1, Disposition.ACCEPTED, DispositionReason.ACCEPTED)]
        )
        self.assertEqual(report.accepted, 1)
        self.assertEqual(self.router.events, [])
        self.assertEqual(self.router.error_events, [])

    def test_retryable_reemitted_under_original_tag(self):
        retry_router = RetryRouter(OutputConfig(), self.router)
        report = retry_router.route(
            [
                make_outcome("a", 1, Disposition.RETRYABLE, DispositionReason.BACKEND_ERROR),
                make_outcome("b", 2, Disposition.ACCEPTED, DispositionReason.ACCEPTED),
                make_outcome("a", 3, Disposition.RETRYABLE, DispositionReason.BACKEND_ERROR),
            ]
        )
        self.assertEqual(report.retried, 2)
        self.assertEqual(report.retry_tags, {"a": 2})
        # 重新发射的是原始记录，不含转换时注入的字段
        self.assertEqual(
            self.router.events, [Event("a", 1.0, {"n": 1}), Event("a", 3.0, {"n": 3})]
        )

    def test_retryable_reemitted_under_retry_tag(self):
        retry_router = RetryRouter(OutputConfig(retry_tag="retry_es"), self.router)
        retry_router.route(
            [
                make_outcome("a", 1, Disposition.RETRYABLE, DispositionReason.BACKEND_ERROR),
                make_outcome("b", 2, Disposition.RETRYABLE, DispositionReason.NO_ERROR_TYPE),
            ]
        )
        self.assertEqual(
            self.router.events,
            [Event("retry_es", 1.0, {"n": 1}), Event("retry_es", 2.0, {"n": 2})],
        )

    def test_one_stream_per_tag(self):
        router = MagicMock(spec=EventRouter)
        RetryRouter(OutputConfig(), router).route(
            [
                make_outcome("a", 1, Disposition.RETRYABLE, DispositionReason.BACKEND_ERROR),
                make_outcome("b", 2, Disposition.RETRYABLE, DispositionReason.BACKEND_ERROR),
                make_outcome("a", 3, Disposition.RETRYABLE, DispositionReason.BACKEND_ERROR),
            ]
        )
        self.assertEqual(router.emit_stream.call_count, 2)
        tags = [c.args[0] for c in router.emit_stream.call_args_list]
        self.assertEqual(tags, ["a", "b"])

    def test_dropped_logged_not_reemitted(self):
        retry_router = RetryRouter(OutputConfig(), self.router)
        with self.assertLogs(DROP_LOGGER_NAME, level=logging.WARNING) as logs:
            report = retry_router.route(
                [make_outcome("t", 1, Disposition.DROPPED, DispositionReason.ALREADY_EXISTS)]
            )
        self.assertEqual(report.dropped, 1)
        self.assertEqual(self.router.events, [])
        self.assertEqual(self.router.error_events, [])
        self.assertIn("Dropping record", logs.output[0])
        record = logs.records[0]
        self.assertEqual(record.tag, "t")
        self.assertEqual(record.reason, "already_exists")
        self.assertEqual(record.index, "idx")
        self.assertEqual(record.id, "1")

    def test_unexpected_operation_surfaced_as_error_event(self):
        item = BulkResponseItem(operation="unknown", status=201)
        retry_router = RetryRouter(OutputConfig(), self.router)
        with self.assertLogs(DROP_LOGGER_NAME, level=logging.WARNING):
            report = retry_router.route(
                [
                    make_outcome(
                        "t",
                        1,
                        Disposition.DROPPED,
                        DispositionReason.UNEXPECTED_OPERATION,
                        item,
                    )
                ]
            )
        self.assertEqual(report.dropped, 1)
        self.assertEqual(report.error_events, 1)
        error_event = self.router.error_events[0]
        self.assertIsInstance(error_event.error, UnexpectedBulkResponseError)
        self.assertIn("unknown", str(error_event.error))
        self.assertEqual(error_event.record, {"n": 1})


class TestRetryRouterExclusions(unittest.TestCase):
    """被排除记录的路由测试."""

    def setUp(self):
        self.router = MemoryEventRouter()
        self.missing_id = Excluded(
            Event("t", 1.0, {"msg": "no id"}),
            reason=ExclusionReason.MISSING_ID,
            error=MissingIdFieldError("Missing '_id' field. Write operation is create"),
        )

    def test_missing_id_dropped_with_log(self):
        config = OutputConfig(write_operation=WriteOperation.CREATE, id_key="rid")
        with self.assertLogs(DROP_LOGGER_NAME, level=logging.WARNING) as logs:
            report = RetryRouter(config, self.router).route([], [self.missing_id])
        self.assertEqual(report.dropped, 1)
        self.assertEqual(self.router.error_events, [])
        self.assertIn(
            "Dropping record because it is missing an '_id' field and "
            "write_operation is create",
            logs.output[0],
        )

    def test_missing_id_emitted_as_error_event(self):
        config = OutputConfig(
            write_operation=WriteOperation.CREATE,
            id_key="rid",
            emit_error_for_missing_id=True,
        )
        report = RetryRouter(config, self.router).route([], [self.missing_id])
        self.assertEqual(report.error_events, 1)
        self.assertEqual(report.dropped, 0)
        error_event = self.router.error_events[0]
        self.assertEqual(error_event.tag, "t")
        self.assertEqual(
            str(error_event.error), "Missing '_id' field. Write operation is create"
        )

    def test_invalid_record_dropped(self):
        excluded = Excluded(
            Event("t", 1.0, "garbage"),
            reason=ExclusionReason.INVALID_RECORD,
            error=ValueError("not a mapping"),
        )
        with self.assertLogs(DROP_LOGGER_NAME, level=logging.WARNING):
            report = RetryRouter(OutputConfig(), self.router).route([], [excluded])
        self.assertEqual(report.dropped, 1)

    def test_serialization_error_emitted_as_error_event(self):
        excluded = Excluded(
            Event("t", 1.0, {"bad": "value"}),
            reason=ExclusionReason.SERIALIZATION_ERROR,
            error=ValueError("cannot serialize"),
        )
        report = RetryRouter(OutputConfig(), self.router).route([], [excluded])
        self.assertEqual(report.error_events, 1)
        self.assertEqual(self.router.error_events[0].record, {"bad": "value"})
