"""bulk 传输层模块.

BulkTransport 定义输出插件对后端的最小依赖：ping、bulk 和 reset。
ElasticsearchTransport 基于 elasticsearch 客户端实现该接口，
把客户端的连接类异常转换为 ConnectivityError，其他异常原样抛出。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from elasticsearch import ConnectionError as ClientConnectionError
from elasticsearch import ConnectionTimeout

from .exceptions import ConnectivityError
from .models import BulkHttpResponse
from .tool import ESClientFactory

logger = logging.getLogger(__name__)

BULK_PATH = "/_bulk"


class BulkTransport(ABC):
    """bulk 传输接口."""

    @abstractmethod
    def ping(self) -> bool:
        """探测后端是否可达."""

    @abstractmethod
    def bulk(self, body: bytes, content_type: str) -> BulkHttpResponse:
        """发送一次 bulk 请求.

        Raises:
            ConnectivityError: 后端不可达
        """

    @abstractmethod
    def reset(self) -> None:
        """丢弃当前连接，下次调用时重新建立."""


class ElasticsearchTransport(BulkTransport):
    """基于 elasticsearch 客户端的 bulk 传输实现.

    Args:
        factory: 客户端工厂

    示例:
        >>> transport = ElasticsearchTransport(ESClientFactory(cluster))
        >>> transport.ping()
        True
        >>> response = transport.bulk(payload.body, payload.content_type)
    """

    def __init__(self, factory: ESClientFactory) -> None:
        self.factory = factory

    def ping(self) -> bool:
        try:
            return bool(self.factory.get_client().ping())
        except (ClientConnectionError, ConnectionTimeout) as e:
            raise ConnectivityError(f"ping 失败: {e}") from e

    def bulk(self, body: bytes, content_type: str) -> BulkHttpResponse:
        headers = {"content-type": content_type, "accept": "application/json"}
        try:
            response = self.factory.get_client().perform_request(
                "POST", BULK_PATH, headers=headers, body=body
            )
        except (ClientConnectionError, ConnectionTimeout) as e:
            raise ConnectivityError(f"bulk 请求无法送达: {e}") from e

        logger.debug(f"bulk 请求完成: status={response.meta.status}")
        return BulkHttpResponse(status=response.meta.status, body=response.body)

    def reset(self) -> None:
        logger.info("重置 Elasticsearch 连接")
        self.factory.reset()
