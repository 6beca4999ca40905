"""bulk 写入数据模型定义模块."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from elasticsink.transformer.models import AddressedAction


class Disposition(Enum):
    """单条记录在一次 bulk 提交后的最终处置.

    Attributes:
        ACCEPTED: 写入成功
        RETRYABLE: 可重试，重新发射回管道
        DROPPED: 不可重试，记录日志后丢弃
    """

    ACCEPTED = "accepted"
    RETRYABLE = "retryable"
    DROPPED = "dropped"


class DispositionReason(Enum):
    """处置原因枚举."""

    ACCEPTED = "accepted"
    ALREADY_EXISTS = "already_exists"
    BACKEND_ERROR = "backend_error"
    NO_ERROR_TYPE = "no_error_type"
    MISSING_RESPONSE_ITEM = "missing_response_item"
    UNEXPECTED_OPERATION = "unexpected_operation"
    MISSING_ID = "missing_id"
    INVALID_RECORD = "invalid_record"
    SERIALIZATION_ERROR = "serialization_error"


class ErrorCategory(Enum):
    """后端错误类型分类.

    Attributes:
        PERMANENT: 永久性错误（文档已存在等版本语义冲突），不重试
        TRANSIENT: 临时性错误（解析、限流、内存不足等），重试
    """

    PERMANENT = "permanent"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class BulkItemError:
    """bulk 响应项中的错误描述.

    Attributes:
        type: 错误类型，例如 "mapper_parsing_exception"
        reason: 错误原因
        caused_by: 根本原因（"类型: 原因"）
    """

    type: str | None
    reason: str | None = None
    caused_by: str | None = None

    @classmethod
    def from_dict(cls, error: Any) -> BulkItemError:
        """从响应中的 error 字段构造."""
        if not isinstance(error, dict):
            return cls(type=None, reason=str(error))

        caused_by = None
        if isinstance(error.get("caused_by"), dict):
            caused_by_info = error["caused_by"]
            caused_by = f"{caused_by_info.get('type', '')}: {caused_by_info.get('reason', '')}"

        return cls(
            type=error.get("type"),
            reason=error.get("reason"),
            caused_by=caused_by,
        )


@dataclass(frozen=True)
class BulkResponseItem:
    """bulk 响应中的单个条目.

    Attributes:
        operation: 响应中回显的操作关键字
        index: 索引名
        type: 文档类型
        id: 文档ID
        status: HTTP 状态码，响应中缺失时为 None
        error: 错误描述
    """

    operation: str
    index: str | None = None
    type: str | None = None
    id: Any | None = None
    status: int | None = None
    error: BulkItemError | None = None

    @classmethod
    def from_dict(cls, item: dict[str, Any]) -> BulkResponseItem:
        """从 {"<op>": {...}} 结构构造."""
        operation, data = next(iter(item.items()))
        if not isinstance(data, dict):
            data = {}
        error = data.get("error")
        return cls(
            operation=operation,
            index=data.get("_index"),
            type=data.get("_type"),
            id=data.get("_id"),
            status=data.get("status"),
            error=BulkItemError.from_dict(error) if error else None,
        )


@dataclass
class ItemOutcome:
    """单个 bulk 操作的分类结果.

    Attributes:
        action: 原始的 AddressedAction
        disposition: 处置结果
        reason: 处置原因
        item: 配对的响应项（快速路径或缺失时为 None）
    """

    action: AddressedAction
    disposition: Disposition
    reason: DispositionReason
    item: BulkResponseItem | None = None

    def describe(self) -> str:
        """生成用于日志的简短描述."""
        parts = [f"reason={self.reason.value}"]
        if self.item is not None:
            parts.append(f"status={self.item.status}")
            if self.item.error is not None:
                parts.append(f"error_type={self.item.error.type}")
                parts.append(f"error_reason={self.item.error.reason}")
        return ", ".join(parts)


@dataclass
class BulkPayload:
    """序列化后的 bulk 请求.

    Attributes:
        actions: 成功序列化的操作（与 lines 中的行对一一对应，保持输入顺序）
        lines: 序列化后的行，元数据行与请求体行交替出现
        content_type: 请求使用的 Content-Type
        rejected: 无法序列化的操作及其异常
    """

    actions: list[AddressedAction] = field(default_factory=list)
    lines: list[bytes] = field(default_factory=list)
    content_type: str = "application/x-ndjson"
    rejected: list[tuple[AddressedAction, Exception]] = field(default_factory=list)

    @property
    def body(self) -> bytes:
        """换行分隔的请求体，末尾带换行."""
        return b"".join(line + b"\n" for line in self.lines)

    def __len__(self) -> int:
        return len(self.actions)


@dataclass
class RecordResult:
    """单条输入记录的最终处置.

    Attributes:
        tag: 原始标签
        time: 原始事件时间
        disposition: 处置结果
        reason: 处置原因
    """

    tag: str
    time: float
    disposition: Disposition
    reason: DispositionReason


@dataclass
class BulkWriteResult:
    """一次批量写入的结果数据类.

    Attributes:
        total: 输入记录数
        accepted: 写入成功数
        retried: 重新发射数
        dropped: 丢弃数（含被排除的记录）
        excluded: 未进入 bulk 请求的记录数
        dispositions: 按输入顺序排列的每条记录处置
        errors: 失败项的描述
        took: 总耗时（秒）
    """

    total: int = 0
    accepted: int = 0
    retried: int = 0
    dropped: int = 0
    excluded: int = 0
    dispositions: list[RecordResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    took: float = 0.0

    def is_success(self) -> bool:
        """判断是否全部写入成功."""
        return self.accepted == self.total

    def get_error_summary(self) -> str:
        """获取错误摘要."""
        if not self.errors:
            return "No errors"
        summary = f"Total errors: {len(self.errors)}\n"
        for i, error in enumerate(self.errors[:10], 1):  # 只显示前10个错误
            summary += f"{i}. {error}\n"
        if len(self.errors) > 10:
            summary += f"... and {len(self.errors) - 10} more errors\n"
        return summary
