"""ES 客户端工厂工具模块.

提供 ESClientFactory 类，负责 Elasticsearch 客户端的惰性创建、缓存和关闭。
重连时调用 reset() 关闭当前客户端，下次 get_client() 会重新创建。

使用示例:
    from elasticsink.connection import ESClientFactory, ClusterConfig

    with ESClientFactory(ClusterConfig(hosts=["http://localhost:9200"])) as factory:
        client = factory.get_client()
"""

from __future__ import annotations

import logging
from typing import Any

from elasticsearch import Elasticsearch

from .models import ClusterConfig, ConnectionConfig

logger = logging.getLogger(__name__)


class ESClientFactory:
    """Elasticsearch 客户端工厂.

    Attributes:
        cluster_config: 集群配置
        connection_config: 客户端连接配置

    Examples:
        >>> factory = ESClientFactory(ClusterConfig(hosts=["http://localhost:9200"]))
        >>> client = factory.get_client()
        >>> factory.reset()
    """

    def __init__(
        self,
        cluster_config: ClusterConfig,
        connection_config: ConnectionConfig | None = None,
    ) -> None:
        self.cluster_config = cluster_config
        self.connection_config = connection_config or ConnectionConfig()
        self._client: Elasticsearch | None = None

    def _create_client(self) -> Elasticsearch:
        """根据集群配置创建 Elasticsearch 客户端实例.

        Returns:
            Elasticsearch 客户端实例
        """
        cluster = self.cluster_config
        connection = self.connection_config
        kwargs: dict[str, Any] = {
            "hosts": list(cluster.hosts),
            "max_retries": connection.max_retries,
            "retry_on_timeout": connection.retry_on_timeout,
            "request_timeout": connection.request_timeout,
            "http_compress": connection.http_compress,
        }

        # Basic Auth 认证
        if cluster.username is not None and cluster.password is not None:
            kwargs["basic_auth"] = (cluster.username, cluster.password)

        # API Key 认证
        if cluster.api_key:
            kwargs["api_key"] = cluster.api_key

        # SSL/TLS 配置
        if cluster.ca_certs:
            kwargs["ca_certs"] = cluster.ca_certs
        kwargs["verify_certs"] = cluster.verify_certs

        logger.info(f"创建 Elasticsearch 客户端: hosts={cluster.hosts}")
        return Elasticsearch(**kwargs)

    def get_client(self) -> Elasticsearch:
        """获取客户端，首次调用时创建并缓存."""
        if self._client is None:
            self._client = self._create_client()
        return self._client

    @property
    def has_client(self) -> bool:
        """当前是否持有已创建的客户端."""
        return self._client is not None

    def reset(self) -> None:
        """关闭并丢弃当前客户端.

        关闭时的异常只记录日志，之后 get_client() 会创建新的客户端。
        """
        client, self._client = self._client, None
        if client is None:
            return
        try:
            client.close()
        except Exception as e:
            logger.warning(f"关闭 Elasticsearch 客户端失败: {e}")

    # ============================================================
    # 生命周期管理
    # ============================================================

    def __enter__(self) -> ESClientFactory:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """上下文管理器退出，自动关闭客户端."""
        self.reset()
