"""bulk 写入异常定义模块."""

from ..exceptions import ElasticsinkError


class BulkError(ElasticsinkError):
    """bulk 写入基础异常类."""

    pass


class BulkSerializationError(BulkError):
    """单条 bulk 操作无法序列化为 JSON."""

    pass


class UnexpectedBulkResponseError(BulkError):
    """bulk 响应结构无法识别（如未知的操作关键字、缺少 items）."""

    pass


class BulkRequestError(BulkError):
    """bulk 请求整体返回了非 2xx 状态码.

    Attributes:
        status: HTTP 状态码
        body: 响应体
    """

    def __init__(self, message: str, status: int, body: object = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body
