"""记录转换核心工具类.

把一条原始事件和输出配置转换为 bulk 写操作（AddressedAction），
或在无法写入时给出排除结果（Excluded）。不做任何 I/O。
"""

from __future__ import annotations

import copy
import logging
import time as time_module
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from elasticsink.config import OutputConfig, WriteOperation
from elasticsink.core.events import ErrorEvent, Event
from elasticsink.core.utils import flatten_record, is_present, pop_path, resolve_path
from elasticsink.typing import Record

from .exceptions import InvalidRecordError, MissingIdFieldError, TimeParseError
from .models import (
    AddressedAction,
    AddressSpec,
    Excluded,
    ExclusionReason,
    TransformOutcome,
)
from .time_parser import TimeParser, event_datetime

logger = logging.getLogger(__name__)

TIMESTAMP_FIELD = "@timestamp"


class RecordTransformer:
    """记录转换器.

    根据 OutputConfig 解析每条记录的目标索引、类型、ID、路由、父文档和 pipeline，
    注入 @timestamp，按写操作类型组织请求体。

    Args:
        config: 输出配置
        now_func: 获取当前时间（epoch 秒）的函数，用于错误事件时间，主要用于测试

    示例:
        >>> transformer = RecordTransformer(OutputConfig(index_name="MyIndex"))
        >>> action = transformer.transform(Event("app", 0.0, {"msg": "hi"}))
        >>> action.address.index
        'myindex'
    """

    def __init__(
        self,
        config: OutputConfig,
        now_func: Callable[[], float] | None = None,
    ) -> None:
        self.config = config
        self._now_func = now_func or time_module.time
        self._time_parser = TimeParser(config.time_key_format)

    def transform(self, event: Event) -> AddressedAction | Excluded:
        """转换单条事件.

        Args:
            event: 原始事件，其记录不会被修改

        Returns:
            AddressedAction；记录不是字典或缺少必需 _id 时返回 Excluded
        """
        config = self.config

        if not isinstance(event.record, Mapping):
            return Excluded(
                event,
                reason=ExclusionReason.INVALID_RECORD,
                error=InvalidRecordError(
                    f"记录必须是字典，当前类型: {type(event.record).__name__}"
                ),
            )

        record: Record = copy.deepcopy(dict(event.record))
        if config.flatten_hashes:
            record = flatten_record(record, config.flatten_hashes_separator)

        error_events: list[ErrorEvent] = []
        dt = self._apply_timestamp(record, event, error_events)

        # 先取出索引字段，再写入标签字段，最后取出类型字段
        index = self._resolve_index(record, dt)
        if config.include_tag_key:
            record[config.tag_key] = event.tag
        type_name = self._resolve_type(record)
        address = AddressSpec(
            index=index,
            type=type_name,
            pipeline=config.pipeline,
            id=self._meta_value(record, config.id_key),
            parent=self._meta_value(record, config.parent_key),
            routing=self._meta_value(record, config.routing_key),
        )

        for key in config.remove_keys:
            record.pop(key, None)

        operation = config.write_operation
        if operation.requires_id and address.id is None:
            return Excluded(
                event,
                reason=ExclusionReason.MISSING_ID,
                error=MissingIdFieldError(
                    f"Missing '_id' field. Write operation is {operation.value}"
                ),
                error_events=error_events,
            )

        if operation in (WriteOperation.INDEX, WriteOperation.CREATE):
            body = record
        else:
            body = self._update_body(record, operation)

        return AddressedAction(
            event,
            operation=operation,
            address=address,
            body=body,
            error_events=error_events,
        )

    def transform_all(self, events: list[Event]) -> list[TransformOutcome]:
        """按顺序转换一批事件."""
        return [self.transform(event) for event in events]

    # ------------------------------------------------------------------
    # 时间戳与索引
    # ------------------------------------------------------------------

    def _apply_timestamp(
        self, record: Record, event: Event, error_events: list[ErrorEvent]
    ) -> datetime:
        """注入 @timestamp 并返回用于计算索引日期的时间.

        记录中已有 @timestamp 时优先使用；其次是 time_key；都没有时使用事件时间。
        """
        config = self.config
        if not (config.logstash_format or config.include_timestamp):
            return event_datetime(event.time)

        if TIMESTAMP_FIELD in record:
            return self._parse_time(record[TIMESTAMP_FIELD], event, error_events)

        if config.time_key is not None and config.time_key in record:
            raw_value = record[config.time_key]
            dt = self._parse_time(raw_value, event, error_events)
            if not config.time_key_exclude_timestamp:
                record[TIMESTAMP_FIELD] = raw_value
            return dt

        dt = event_datetime(event.time)
        record[TIMESTAMP_FIELD] = dt.isoformat(timespec=config.timespec)
        return dt

    def _parse_time(
        self, value: Any, event: Event, error_events: list[ErrorEvent]
    ) -> datetime:
        """解析时间值，失败时回退到事件时间并记录错误通知."""
        try:
            return self._time_parser.parse(value)
        except TimeParseError as e:
            logger.warning(f"时间解析失败，回退到事件时间: {e}")
            error_events.append(
                ErrorEvent(
                    tag=self.config.time_parse_error_tag,
                    time=self._now_func(),
                    record={
                        "tag": event.tag,
                        "time": event.time,
                        "format": self.config.time_key_format,
                        "value": value,
                    },
                    error=e,
                )
            )
            return event_datetime(event.time)

    def _resolve_index(self, record: Record, dt: datetime) -> str:
        """解析目标索引名（始终转为小写）."""
        config = self.config
        target_index = None
        if config.target_index_key:
            target_index = pop_path(record, config.target_index_key)

        if target_index is None:
            if config.logstash_format:
                if config.utc_index:
                    dt = dt.astimezone(UTC)
                target_index = (
                    f"{config.logstash_prefix}{config.logstash_prefix_separator}"
                    f"{dt.strftime(config.logstash_dateformat)}"
                )
            else:
                target_index = config.index_name

        # Elasticsearch 不允许索引名中出现大写字母
        return str(target_index).lower()

    def _resolve_type(self, record: Record) -> str:
        """解析文档类型."""
        config = self.config
        if config.target_type_key:
            target_type = pop_path(record, config.target_type_key)
            if target_type is not None:
                return str(target_type)
        return config.type_name

    @staticmethod
    def _meta_value(record: Record, key: str | None) -> Any | None:
        """从记录中读取元数据字段值，不存在时返回 None."""
        if not key:
            return None
        value = resolve_path(record, key)
        return value if is_present(value) else None

    # ------------------------------------------------------------------
    # update / upsert 请求体
    # ------------------------------------------------------------------

    def _update_body(self, record: Record, operation: WriteOperation) -> dict[str, Any]:
        """组织 update/upsert 请求体.

        需跳过的字段优先取记录中 remove_keys_on_update_key 字段的值，
        其次是静态配置的 remove_keys_on_update。跳过字段只作用于 doc，不影响 upsert。
        """
        config = self.config
        keys: Any = None
        if config.remove_keys_on_update_key:
            keys = record.pop(config.remove_keys_on_update_key, None)
        if not keys:
            keys = config.remove_keys_on_update

        if isinstance(keys, str):
            keys = [keys]
        elif not isinstance(keys, (list, tuple)) or not all(
            isinstance(key, str) for key in keys
        ):
            logger.warning(
                f"字段 {config.remove_keys_on_update_key!r} 的值不是字段名列表，"
                f"改用 remove_keys_on_update: {keys!r}"
            )
            keys = config.remove_keys_on_update

        doc = record
        if keys:
            skipped = set(keys)
            doc = {k: v for k, v in record.items() if k not in skipped}

        if config.suppress_doc_wrap:
            return doc

        body: dict[str, Any] = {"doc": doc}
        if operation is WriteOperation.UPSERT:
            if doc == record:
                body["doc_as_upsert"] = True
            else:
                body["upsert"] = record
        return body
