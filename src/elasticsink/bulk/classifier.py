"""bulk 响应分类模块.

把后端返回的 bulk 响应与请求中的操作按位置配对，判定每个操作的处置：
写入成功、可重试或丢弃。错误类型与处置的对应关系集中在 ERROR_TYPE_CATEGORIES 中。
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from elasticsink.transformer.models import AddressedAction
from elasticsink.typing import BulkResponseDict

from .exceptions import UnexpectedBulkResponseError
from .models import (
    BulkResponseItem,
    Disposition,
    DispositionReason,
    ErrorCategory,
    ItemOutcome,
)

logger = logging.getLogger(__name__)

# 响应中允许出现的操作关键字
KNOWN_OPERATIONS = frozenset({"index", "create", "update", "delete"})

# 错误类型分类表，未列出的类型按 TRANSIENT 处理
ERROR_TYPE_CATEGORIES: dict[str, ErrorCategory] = {
    "version_conflict_engine_exception": ErrorCategory.PERMANENT,
    "document_already_exists_exception": ErrorCategory.PERMANENT,
    "mapper_parsing_exception": ErrorCategory.TRANSIENT,
    "es_rejected_execution_exception": ErrorCategory.TRANSIENT,
    "out_of_memory_error": ErrorCategory.TRANSIENT,
    "circuit_breaking_exception": ErrorCategory.TRANSIENT,
}

HTTP_CONFLICT = 409


class BulkResponseClassifier:
    """bulk 响应分类器.

    Args:
        error_categories: 自定义错误类型分类表，默认使用 ERROR_TYPE_CATEGORIES

    示例:
        >>> classifier = BulkResponseClassifier()
        >>> outcomes = classifier.classify(payload.actions, response_body)
        >>> [o.disposition for o in outcomes]
        [<Disposition.ACCEPTED: 'accepted'>, <Disposition.RETRYABLE: 'retryable'>]
    """

    def __init__(
        self, error_categories: Mapping[str, ErrorCategory] | None = None
    ) -> None:
        self.error_categories = dict(
            ERROR_TYPE_CATEGORIES if error_categories is None else error_categories
        )

    def classify(
        self, actions: Sequence[AddressedAction], response: BulkResponseDict | Any
    ) -> list[ItemOutcome]:
        """对一次 bulk 提交的结果进行分类.

        Args:
            actions: 实际发送的操作，顺序与请求一致
            response: 后端返回的响应体

        Returns:
            与 actions 一一对应的 ItemOutcome 列表

        Raises:
            UnexpectedBulkResponseError: 响应不是字典，或 errors 为真却没有 items 列表
        """
        if not isinstance(response, Mapping):
            raise UnexpectedBulkResponseError(
                f"bulk 响应不是 JSON 对象: {type(response).__name__}"
            )

        if not response.get("errors"):
            return [
                ItemOutcome(action, Disposition.ACCEPTED, DispositionReason.ACCEPTED)
                for action in actions
            ]

        items = response.get("items")
        if not isinstance(items, list):
            raise UnexpectedBulkResponseError("bulk 响应 errors 为 true 但缺少 items 列表")

        if len(items) > len(actions):
            logger.warning(
                f"bulk 响应项数量 ({len(items)}) 多于请求操作数量 ({len(actions)})，"
                f"忽略多余的 {len(items) - len(actions)} 项"
            )

        outcomes = []
        for position, action in enumerate(actions):
            if position >= len(items):
                outcomes.append(
                    ItemOutcome(
                        action,
                        Disposition.RETRYABLE,
                        DispositionReason.MISSING_RESPONSE_ITEM,
                    )
                )
                continue
            outcomes.append(self.classify_item(action, items[position]))

        return outcomes

    def classify_item(self, action: AddressedAction, raw_item: Any) -> ItemOutcome:
        """对单个响应项进行分类."""
        if not isinstance(raw_item, Mapping) or len(raw_item) != 1:
            logger.error(f"无法识别的 bulk 响应项: {raw_item!r}")
            return ItemOutcome(
                action, Disposition.DROPPED, DispositionReason.UNEXPECTED_OPERATION
            )

        item = BulkResponseItem.from_dict(dict(raw_item))
        if item.operation not in KNOWN_OPERATIONS:
            logger.error(f"bulk 响应项包含未知的操作关键字: {item.operation!r}")
            return ItemOutcome(
                action,
                Disposition.DROPPED,
                DispositionReason.UNEXPECTED_OPERATION,
                item,
            )

        if item.error is not None:
            category = self.error_categories.get(item.error.type, ErrorCategory.TRANSIENT)
            if category is ErrorCategory.PERMANENT:
                return ItemOutcome(
                    action, Disposition.DROPPED, DispositionReason.ALREADY_EXISTS, item
                )
            return ItemOutcome(
                action, Disposition.RETRYABLE, DispositionReason.BACKEND_ERROR, item
            )

        if item.status is None or 200 <= item.status < 300:
            return ItemOutcome(
                action, Disposition.ACCEPTED, DispositionReason.ACCEPTED, item
            )
        if item.status == HTTP_CONFLICT:
            return ItemOutcome(
                action, Disposition.DROPPED, DispositionReason.ALREADY_EXISTS, item
            )
        return ItemOutcome(
            action, Disposition.RETRYABLE, DispositionReason.NO_ERROR_TYPE, item
        )
