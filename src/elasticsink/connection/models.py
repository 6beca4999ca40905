"""连接数据模型定义模块.

提供客户端工厂与传输层相关的数据模型，包括：
- ClusterConfig: 集群配置
- ConnectionConfig: 客户端连接配置
- BulkHttpResponse: bulk 请求的 HTTP 响应
"""

from dataclasses import dataclass, field
from typing import Any

from .exceptions import ConnectionConfigError


@dataclass(frozen=True)
class ClusterConfig:
    """集群配置模型.

    定义 ES 集群的连接信息，认证信息原样传给 elasticsearch 客户端。

    Attributes:
        hosts: ES 节点地址列表（必需，不可为空）
        username: Basic Auth 用户名
        password: Basic Auth 密码
        api_key: API Key 认证（字符串或元组）
        ca_certs: CA 证书文件路径
        verify_certs: 是否验证 SSL 证书，默认 True

    Raises:
        ConnectionConfigError: 当 hosts 为空时抛出

    Examples:
        >>> config = ClusterConfig(
        ...     hosts=["http://localhost:9200"],
        ...     username="elastic",
        ...     password="changeme",
        ... )
    """

    hosts: list[str] = field(default_factory=list)
    username: str | None = None
    password: str | None = None
    api_key: str | tuple[str, str] | None = None
    ca_certs: str | None = None
    verify_certs: bool = True

    def __post_init__(self) -> None:
        """校验集群配置参数合法性."""
        if not self.hosts:
            raise ConnectionConfigError("hosts 不能为空，请提供至少一个 ES 节点地址")
        if (self.username is None) != (self.password is None):
            raise ConnectionConfigError("username 与 password 必须同时提供")


@dataclass(frozen=True)
class ConnectionConfig:
    """客户端连接配置模型.

    Attributes:
        request_timeout: 请求超时时间（秒），默认 5，必须 >= 0
        max_retries: elasticsearch 客户端内部的重试次数，默认 0
            （连接失败由 ConnectionRetrySupervisor 统一重试）
        retry_on_timeout: 超时是否由客户端内部重试，默认 False
        http_compress: 是否启用 HTTP 压缩，默认 False

    Raises:
        ConnectionConfigError: 当参数不合法时抛出

    Examples:
        >>> config = ConnectionConfig(request_timeout=30, http_compress=True)
    """

    request_timeout: float = 5
    max_retries: int = 0
    retry_on_timeout: bool = False
    http_compress: bool = False

    def __post_init__(self) -> None:
        """校验连接配置参数合法性."""
        if self.request_timeout < 0:
            raise ConnectionConfigError(
                f"request_timeout 必须 >= 0，当前值: {self.request_timeout}"
            )
        if self.max_retries < 0:
            raise ConnectionConfigError(
                f"max_retries 必须 >= 0，当前值: {self.max_retries}"
            )


@dataclass(frozen=True)
class BulkHttpResponse:
    """bulk 请求的 HTTP 响应.

    Attributes:
        status: HTTP 状态码
        body: 解析后的响应体
    """

    status: int
    body: Any

    @property
    def ok(self) -> bool:
        """状态码是否为 2xx."""
        return 200 <= self.status < 300
