"""连接重试监督模块.

ConnectionRetrySupervisor 包裹一次 ping + bulk 提交：
后端不可达时重置连接并按指数退避重试，次数耗尽后抛出 ConnectionFailure；
其他异常原样抛出，开启 reconnect_on_error 时先重置连接。
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from .exceptions import ConnectionFailure, ConnectivityError
from .models import BulkHttpResponse
from .transport import BulkTransport

if TYPE_CHECKING:
    from elasticsink.bulk.models import BulkPayload

logger = logging.getLogger(__name__)


class SupervisorState(Enum):
    """一次提交所处的阶段."""

    IDLE = "idle"
    PINGING = "pinging"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    CONNECTIVITY_FAILURE = "connectivity_failure"
    OTHER_FAILURE = "other_failure"


class ConnectionRetrySupervisor:
    """连接重试监督器.

    未持有可用连接时（首次使用或每次重置之后）先 ping 再提交。
    连接状态由锁保护，并发的 submit 调用按顺序执行。

    Args:
        transport: bulk 传输实现
        max_attempts: 最大尝试次数（含首次），默认 3
        reconnect_on_error: 发生非连接类异常时是否也重置连接，默认 False
        retry_delay: 退避基数（秒），第 n 次失败后等待 retry_delay * 2 ** (n - 1)
        unreachable_exceptions: 视为后端不可达的异常类型
        sleep: 等待函数，主要用于测试

    示例:
        >>> supervisor = ConnectionRetrySupervisor(transport, max_attempts=3)
        >>> response = supervisor.submit(payload)
        >>> response.status
        200
    """

    def __init__(
        self,
        transport: BulkTransport,
        max_attempts: int = 3,
        reconnect_on_error: bool = False,
        retry_delay: float = 2.0,
        unreachable_exceptions: tuple[type[BaseException], ...] = (ConnectivityError,),
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts 必须 >= 1，当前值: {max_attempts}")
        self.transport = transport
        self.max_attempts = max_attempts
        self.reconnect_on_error = reconnect_on_error
        self.retry_delay = retry_delay
        # ping 返回 False 时抛出 ConnectivityError，始终视为不可达
        self.unreachable_exceptions = (ConnectivityError, *unreachable_exceptions)
        self._sleep = sleep
        self._lock = threading.Lock()
        self._connected = False
        self.state = SupervisorState.IDLE

    @property
    def connected(self) -> bool:
        """当前是否持有已验证的连接."""
        return self._connected

    def submit(self, payload: BulkPayload) -> BulkHttpResponse:
        """提交一次 bulk 请求.

        Args:
            payload: 已序列化的 bulk 请求

        Returns:
            后端返回的 HTTP 响应

        Raises:
            ConnectionFailure: 重试次数耗尽后仍无法连接
            Exception: 非连接类异常原样抛出
        """
        with self._lock:
            return self._submit(payload)

    def _submit(self, payload: BulkPayload) -> BulkHttpResponse:
        attempt = 0
        while True:
            attempt += 1
            try:
                return self._attempt(payload)
            except self.unreachable_exceptions as e:
                self.state = SupervisorState.CONNECTIVITY_FAILURE
                self._reset()
                if attempt >= self.max_attempts:
                    logger.error(f"无法连接 Elasticsearch，已尝试 {attempt} 次: {e}")
                    raise ConnectionFailure(
                        f"无法连接 Elasticsearch，已尝试 {attempt} 次: {e}",
                        attempts=attempt,
                    ) from e
                delay = self.retry_delay * 2 ** (attempt - 1)
                logger.warning(
                    f"Elasticsearch 不可达，{delay} 秒后第 {attempt} 次重试: {e}"
                )
                self._sleep(delay)
            except Exception:
                self.state = SupervisorState.OTHER_FAILURE
                if self.reconnect_on_error:
                    self._reset()
                raise

    def _attempt(self, payload: BulkPayload) -> BulkHttpResponse:
        if not self._connected:
            self.state = SupervisorState.PINGING
            if not self.transport.ping():
                raise ConnectivityError("ping 返回失败")
            self._connected = True

        self.state = SupervisorState.SUBMITTING
        response = self.transport.bulk(payload.body, payload.content_type)
        self.state = SupervisorState.SUCCESS
        return response

    def _reset(self) -> None:
        self._connected = False
        self.transport.reset()
