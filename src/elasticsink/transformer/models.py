"""记录转换数据模型定义模块."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from elasticsink.config import WriteOperation
from elasticsink.core.events import ErrorEvent, Event
from elasticsink.typing import MetaDict


class ExclusionReason(Enum):
    """记录被排除出 bulk 请求的原因.

    Attributes:
        MISSING_ID: create/update/upsert 无法解析出 _id
        INVALID_RECORD: 记录不是字典
        SERIALIZATION_ERROR: 记录无法序列化为 JSON
    """

    MISSING_ID = "missing_id"
    INVALID_RECORD = "invalid_record"
    SERIALIZATION_ERROR = "serialization_error"


@dataclass(frozen=True)
class AddressSpec:
    """单条记录解析出的写入坐标.

    Attributes:
        index: 目标索引名（已转小写）
        type: 文档类型
        id: 文档ID
        routing: 路由值
        parent: 父文档ID
        pipeline: ingest pipeline 名称
    """

    index: str
    type: str
    id: Any | None = None
    routing: Any | None = None
    parent: Any | None = None
    pipeline: str | None = None

    def to_meta(self) -> MetaDict:
        """转换为 bulk 元数据行中操作关键字下的字典."""
        meta: MetaDict = {"_index": self.index, "_type": self.type}
        if self.pipeline is not None:
            meta["pipeline"] = self.pipeline
        if self.id is not None:
            meta["_id"] = self.id
        if self.parent is not None:
            meta["_parent"] = self.parent
        if self.routing is not None:
            meta["_routing"] = self.routing
        return meta


@dataclass
class TransformOutcome:
    """记录转换结果基类.

    Attributes:
        event: 原始事件（未被修改，用于重试时重新发射）
        error_events: 转换过程中产生的非致命错误通知（如时间解析失败）
    """

    event: Event
    error_events: list[ErrorEvent] = field(default_factory=list, kw_only=True)


@dataclass
class AddressedAction(TransformOutcome):
    """带有写入坐标的 bulk 操作.

    Attributes:
        operation: 写操作类型
        address: 写入坐标
        body: 请求体（index/create 为文档本身，update/upsert 为 doc/upsert 包装）
    """

    operation: WriteOperation
    address: AddressSpec
    body: dict[str, Any]

    @property
    def meta(self) -> dict[str, MetaDict]:
        """bulk 元数据行: {操作关键字: 坐标}."""
        return {self.operation.bulk_keyword: self.address.to_meta()}


@dataclass
class Excluded(TransformOutcome):
    """被排除、不进入 bulk 请求的记录.

    Attributes:
        reason: 排除原因
        error: 对应的异常，用于日志或错误事件
    """

    reason: ExclusionReason
    error: Exception
