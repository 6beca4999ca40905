"""连接与传输异常定义模块."""

from ..exceptions import ElasticsinkError


class ESConnectionError(ElasticsinkError):
    """连接相关基础异常类.

    所有连接、传输相关异常的基类，继承自 ElasticsinkError。
    """

    pass


class ConnectionConfigError(ESConnectionError):
    """连接配置校验异常.

    当连接配置参数不合法时抛出，例如 hosts 为空、request_timeout 小于 0 等。
    """

    pass


class ConnectivityError(ESConnectionError):
    """后端不可达.

    ping 失败、连接被拒绝或请求超时时由传输层抛出，会触发重连重试。
    """

    pass


class ConnectionFailure(ESConnectionError):
    """重连重试次数耗尽后仍无法连接后端.

    Attributes:
        attempts: 已尝试次数
    """

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts
