"""BulkPayloadBuilder 单元测试."""

import json
import unittest

from elasticsink.bulk import BulkPayloadBuilder, BulkSerializationError, content_type_for
from elasticsink.config import WriteOperation
from elasticsink.core import Event
from elasticsink.transformer import AddressedAction, AddressSpec


def make_action(body, operation=WriteOperation.INDEX, **address):
    """构造测试用的 AddressedAction."""
    address.setdefault("index", "fluentd")
    address.setdefault("type", "fluentd")
    return AddressedAction(
        Event("app.test", 0.0, body),
        operation=operation,
        address=AddressSpec(**address),
        body=body,
    )


class TestContentType(unittest.TestCase):
    """content_type_for 测试."""

    def test_ndjson_from_major_six(self):
        self.assertEqual(content_type_for(6), "application/x-ndjson")
        self.assertEqual(content_type_for(7), "application/x-ndjson")
        self.assertEqual(content_type_for(8), "application/x-ndjson")

    def test_json_before_major_six(self):
        self.assertEqual(content_type_for(5), "application/json")
        self.assertEqual(content_type_for(2), "application/json")


class TestBulkPayloadBuilder(unittest.TestCase):
    """BulkPayloadBuilder 测试."""

    def setUp(self):
        self.builder = BulkPayloadBuilder(backend_major_version=7)

    def test_two_lines_per_action_in_order(self):
        actions = [
            make_action({"n": 1}),
            make_action({"n": 2}, operation=WriteOperation.CREATE, id="b"),
            make_action({"n": 3}, operation=WriteOperation.UPSERT, id="c"),
        ]
        payload = self.builder.build(actions)

        self.assertEqual(len(payload), 3)
        self.assertEqual(payload.actions, actions)
        decoded = [json.loads(line) for line in payload.lines]
        self.assertEqual(
            decoded,
            [
                {"index": {"_index": "fluentd", "_type": "fluentd"}},
                {"n": 1},
                {"create": {"_index": "fluentd", "_type": "fluentd", "_id": "b"}},
                {"n": 2},
                {"update": {"_index": "fluentd", "_type": "fluentd", "_id": "c"}},
                {"n": 3},
            ],
        )

    def test_body_is_newline_terminated(self):
        payload = self.builder.build([make_action({"n": 1}), make_action({"n": 2})])
        body = payload.body
        self.assertTrue(body.endswith(b"\n"))
        self.assertEqual(body.count(b"\n"), 4)
        self.assertEqual(body.split(b"\n")[:-1], payload.lines)

    def test_empty_batch(self):
        payload = self.builder.build([])
        self.assertEqual(len(payload), 0)
        self.assertEqual(payload.body, b"")

    def test_content_type_follows_backend_version(self):
        self.assertEqual(
            BulkPayloadBuilder(backend_major_version=5).build([]).content_type,
            "application/json",
        )
        self.assertEqual(self.builder.build([]).content_type, "application/x-ndjson")

    def test_utf8_body(self):
        payload = self.builder.build([make_action({"msg": "日志"})])
        self.assertEqual(json.loads(payload.lines[1].decode("utf-8")), {"msg": "日志"})

    def test_unserializable_action_rejected(self):
        good = make_action({"n": 1})
        bad = make_action({"n": object()})
        also_good = make_action({"n": 3})

        payload = self.builder.build([good, bad, also_good])

        self.assertEqual(payload.actions, [good, also_good])
        self.assertEqual(len(payload.lines), 4)
        self.assertEqual(len(payload.rejected), 1)
        rejected_action, error = payload.rejected[0]
        self.assertIs(rejected_action, bad)
        self.assertIsInstance(error, BulkSerializationError)

    def test_invalid_utf8_action_rejected(self):
        good = make_action({"m": "ok"})
        bad = make_action({"m": "ok\udcad"})

        payload = self.builder.build([good, bad])

        self.assertEqual(payload.actions, [good])
        self.assertEqual(len(payload.rejected), 1)
        self.assertIs(payload.rejected[0][0], bad)
        self.assertIsInstance(payload.rejected[0][1], BulkSerializationError)
        payload.body.decode("utf-8")
