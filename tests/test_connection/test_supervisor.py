"""ConnectionRetrySupervisor 单元测试."""

import threading
import time
from unittest.mock import MagicMock

import pytest

from elasticsink.bulk import BulkPayload
from elasticsink.connection import (
    BulkHttpResponse,
    BulkTransport,
    ConnectionFailure,
    ConnectionRetrySupervisor,
    ConnectivityError,
    SupervisorState,
)

OK_RESPONSE = BulkHttpResponse(status=200, body={"errors": False})


@pytest.fixture
def payload() -> BulkPayload:
    return BulkPayload(lines=[b'{"index":{}}', b"{}"], content_type="application/x-ndjson")


@pytest.fixture
def transport() -> MagicMock:
    mock = MagicMock(spec=BulkTransport)
    mock.ping.return_value = True
    mock.bulk.return_value = OK_RESPONSE
    return mock


@pytest.fixture
def sleep() -> MagicMock:
    return MagicMock()


class TestSuccessfulSubmit:
    """正常提交."""

    def test_ping_then_bulk(self, transport, sleep, payload) -> None:
        supervisor = ConnectionRetrySupervisor(transport, sleep=sleep)
        assert supervisor.state is SupervisorState.IDLE

        response = supervisor.submit(payload)

        assert response is OK_RESPONSE
        transport.ping.assert_called_once()
        transport.bulk.assert_called_once_with(payload.body, "application/x-ndjson")
        assert supervisor.connected
        assert supervisor.state is SupervisorState.SUCCESS
        sleep.assert_not_called()

    def test_ping_only_once_while_connected(self, transport, sleep, payload) -> None:
        supervisor = ConnectionRetrySupervisor(transport, sleep=sleep)
        supervisor.submit(payload)
        supervisor.submit(payload)
        assert transport.ping.call_count == 1
        assert transport.bulk.call_count == 2


class TestConnectivityFailure:
    """后端不可达时的重试."""

    def test_three_pings_then_failure(self, transport, sleep, payload) -> None:
        transport.ping.side_effect = ConnectivityError("refused")
        supervisor = ConnectionRetrySupervisor(transport, sleep=sleep)

        with pytest.raises(ConnectionFailure) as exc_info:
            supervisor.submit(payload)

        assert transport.ping.call_count == 3
        assert transport.reset.call_count == 3
        transport.bulk.assert_not_called()
        assert [c.args[0] for c in sleep.call_args_list] == [2.0, 4.0]
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.__cause__, ConnectivityError)
        assert supervisor.state is SupervisorState.CONNECTIVITY_FAILURE
        assert not supervisor.connected

    def test_ping_false_is_connectivity_failure(self, transport, sleep, payload) -> None:
        transport.ping.return_value = False
        supervisor = ConnectionRetrySupervisor(transport, max_attempts=2, sleep=sleep)
        with pytest.raises(ConnectionFailure):
            supervisor.submit(payload)
        assert transport.ping.call_count == 2

    def test_recovers_after_transient_outage(self, transport, sleep, payload) -> None:
        transport.bulk.side_effect = [ConnectivityError("reset by peer"), OK_RESPONSE]
        supervisor = ConnectionRetrySupervisor(transport, retry_delay=0.5, sleep=sleep)

        assert supervisor.submit(payload) is OK_RESPONSE
        # 重置后重新 ping
        assert transport.ping.call_count == 2
        transport.reset.assert_called_once()
        sleep.assert_called_once_with(0.5)

    def test_custom_unreachable_exceptions(self, transport, sleep, payload) -> None:
        transport.bulk.side_effect = TimeoutError("slow")
        supervisor = ConnectionRetrySupervisor(
            transport, unreachable_exceptions=(TimeoutError,), sleep=sleep
        )
        with pytest.raises(ConnectionFailure):
            supervisor.submit(payload)
        assert transport.bulk.call_count == 3

    def test_invalid_max_attempts(self, transport) -> None:
        with pytest.raises(ValueError):
            ConnectionRetrySupervisor(transport, max_attempts=0)


class TestOtherFailure:
    """非连接类异常."""

    def test_propagates_without_retry(self, transport, sleep, payload) -> None:
        transport.bulk.side_effect = RuntimeError("mapping explosion")
        supervisor = ConnectionRetrySupervisor(transport, sleep=sleep)

        with pytest.raises(RuntimeError, match="mapping explosion"):
            supervisor.submit(payload)

        transport.bulk.assert_called_once()
        transport.reset.assert_not_called()
        sleep.assert_not_called()
        assert supervisor.state is SupervisorState.OTHER_FAILURE

    def test_without_reconnect_one_ping_over_two_calls(
        self, transport, sleep, payload
    ) -> None:
        transport.bulk.side_effect = RuntimeError("boom")
        supervisor = ConnectionRetrySupervisor(transport, sleep=sleep)
        for _ in range(2):
            with pytest.raises(RuntimeError):
                supervisor.submit(payload)
        assert transport.ping.call_count == 1

    def test_reconnect_on_error_pings_every_call(self, transport, sleep, payload) -> None:
        transport.bulk.side_effect = RuntimeError("boom")
        supervisor = ConnectionRetrySupervisor(
            transport, reconnect_on_error=True, sleep=sleep
        )
        for _ in range(2):
            with pytest.raises(RuntimeError):
                supervisor.submit(payload)
        assert transport.ping.call_count == 2
        assert transport.reset.call_count == 2


class TestConcurrentSubmit:
    """并发提交."""

    def test_concurrent_submits_share_one_ping(self, transport, sleep, payload) -> None:
        def slow_ping() -> bool:
            time.sleep(0.05)
            return True

        transport.ping.side_effect = slow_ping
        supervisor = ConnectionRetrySupervisor(transport, sleep=sleep)
        responses = []

        threads = [
            threading.Thread(target=lambda: responses.append(supervisor.submit(payload)))
            for _ in range(4)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert responses == [OK_RESPONSE] * 4
        assert transport.ping.call_count == 1
        assert transport.bulk.call_count == 4
        assert supervisor.state is SupervisorState.SUCCESS
