"""ElasticsearchTransport 单元测试."""

import unittest
from unittest.mock import MagicMock

from elasticsearch import ApiError, ConnectionTimeout, Elasticsearch
from elasticsearch import ConnectionError as ClientConnectionError

from elasticsink.connection import (
    ConnectivityError,
    ElasticsearchTransport,
    ESClientFactory,
)


class TestElasticsearchTransport(unittest.TestCase):
    """ElasticsearchTransport 测试."""

    def setUp(self):
        self.es_client = MagicMock(spec=Elasticsearch)
        self.factory = MagicMock(spec=ESClientFactory)
        self.factory.get_client.return_value = self.es_client
        self.transport = ElasticsearchTransport(self.factory)

    def test_ping(self):
        self.es_client.ping.return_value = True
        self.assertTrue(self.transport.ping())
        self.es_client.ping.return_value = False
        self.assertFalse(self.transport.ping())

    def test_ping_connection_error_translated(self):
        self.es_client.ping.side_effect = ClientConnectionError("refused")
        with self.assertRaises(ConnectivityError) as ctx:
            self.transport.ping()
        self.assertIsInstance(ctx.exception.__cause__, ClientConnectionError)

    def test_bulk_posts_exact_content_type(self):
        response = MagicMock()
        response.meta.status = 200
        response.body = {"errors": False, "items": []}
        self.es_client.perform_request.return_value = response

        result = self.transport.bulk(b'{"index":{}}\n{}\n', "application/x-ndjson")

        self.es_client.perform_request.assert_called_once_with(
            "POST",
            "/_bulk",
            headers={"content-type": "application/x-ndjson", "accept": "application/json"},
            body=b'{"index":{}}\n{}\n',
        )
        self.assertEqual(result.status, 200)
        self.assertEqual(result.body, {"errors": False, "items": []})

    def test_bulk_legacy_content_type(self):
        response = MagicMock()
        response.meta.status = 200
        response.body = {"errors": False}
        self.es_client.perform_request.return_value = response

        self.transport.bulk(b"", "application/json")

        headers = self.es_client.perform_request.call_args.kwargs["headers"]
        self.assertEqual(headers["content-type"], "application/json")

    def test_bulk_timeout_translated(self):
        self.es_client.perform_request.side_effect = ConnectionTimeout("timed out")
        with self.assertRaises(ConnectivityError):
            self.transport.bulk(b"", "application/x-ndjson")

    def test_bulk_connection_error_translated(self):
        self.es_client.perform_request.side_effect = ClientConnectionError("refused")
        with self.assertRaises(ConnectivityError):
            self.transport.bulk(b"", "application/x-ndjson")

    def test_bulk_api_error_propagates(self):
        error = ApiError("service unavailable", meta=MagicMock(status=503), body={})
        self.es_client.perform_request.side_effect = error
        with self.assertRaises(ApiError) as ctx:
            self.transport.bulk(b"", "application/x-ndjson")
        self.assertIs(ctx.exception, error)

    def test_reset_delegates_to_factory(self):
        self.transport.reset()
        self.factory.reset.assert_called_once()
