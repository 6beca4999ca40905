"""bulk 请求构建与响应分类模块.

该模块负责一次 bulk 提交的两端：
- 把 AddressedAction 序列化为换行分隔的 bulk 请求体
- 把后端的逐项响应分类为写入成功、可重试或丢弃

示例用法:
    >>> from elasticsink.bulk import BulkPayloadBuilder, BulkResponseClassifier
    >>> payload = BulkPayloadBuilder(backend_major_version=7).build(actions)
    >>> outcomes = BulkResponseClassifier().classify(payload.actions, response_body)
"""

from .builder import BulkPayloadBuilder, content_type_for
from .classifier import ERROR_TYPE_CATEGORIES, BulkResponseClassifier
from .exceptions import (
    BulkError,
    BulkRequestError,
    BulkSerializationError,
    UnexpectedBulkResponseError,
)
from .models import (
    BulkItemError,
    BulkPayload,
    BulkResponseItem,
    BulkWriteResult,
    Disposition,
    DispositionReason,
    ErrorCategory,
    ItemOutcome,
    RecordResult,
)

__all__ = [
    "BulkPayloadBuilder",
    "BulkResponseClassifier",
    "ERROR_TYPE_CATEGORIES",
    "content_type_for",
    "BulkItemError",
    "BulkPayload",
    "BulkResponseItem",
    "BulkWriteResult",
    "Disposition",
    "DispositionReason",
    "ErrorCategory",
    "ItemOutcome",
    "RecordResult",
    "BulkError",
    "BulkRequestError",
    "BulkSerializationError",
    "UnexpectedBulkResponseError",
]
