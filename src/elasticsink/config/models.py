"""输出配置数据模型定义模块.

提供 Elasticsearch 输出相关的配置模型，包括：
- WriteOperation: 写操作类型枚举
- OutputConfig: 输出配置
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import ConfigError


class WriteOperation(Enum):
    """写操作类型枚举.

    Attributes:
        INDEX: 索引文档，已存在则覆盖
        CREATE: 创建文档，已存在则失败（需要 _id）
        UPDATE: 部分更新文档（需要 _id）
        UPSERT: 更新文档，不存在则创建（需要 _id，线上以 update 发送）
    """

    INDEX = "index"
    CREATE = "create"
    UPDATE = "update"
    UPSERT = "upsert"

    @property
    def bulk_keyword(self) -> str:
        """bulk 元数据行中使用的操作关键字."""
        if self is WriteOperation.UPSERT:
            return "update"
        return self.value

    @property
    def requires_id(self) -> bool:
        """该操作是否必须提供文档 ID."""
        return self is not WriteOperation.INDEX


# 支持的时间精度（小数位数）与 isoformat 的 timespec 对应关系
TIME_PRECISION_TIMESPEC = {0: "seconds", 3: "milliseconds", 6: "microseconds"}

_KEY_LIST_FIELDS = ("remove_keys", "remove_keys_on_update")
_TRUE_STRINGS = ("true", "yes", "on", "1")
_FALSE_STRINGS = ("false", "no", "off", "0")


def _parse_key_list(value: Any) -> tuple[str, ...]:
    """将逗号分隔字符串或序列规范化为键名元组."""
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(key.strip() for key in value.split(",") if key.strip())
    return tuple(str(key) for key in value)


def _parse_bool(name: str, value: Any) -> bool:
    """将配置值解析为布尔值."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ConfigError(f"配置项 {name} 需要布尔值，当前值: {value!r}")


@dataclass(frozen=True)
class OutputConfig:
    """Elasticsearch 输出配置模型.

    一个输出实例的全部行为开关，创建后不可修改，可在多个批次之间只读共享。

    Attributes:
        write_operation: 写操作类型，默认 INDEX
        index_name: 静态索引名，默认 "fluentd"
        type_name: 静态文档类型，默认 "fluentd"
        target_index_key: 从记录中读取索引名的字段（支持点路径，读取后从记录中删除）
        target_type_key: 从记录中读取文档类型的字段（支持点路径，读取后从记录中删除）
        id_key: 用作 _id 的记录字段
        routing_key: 用作 _routing 的记录字段
        parent_key: 用作 _parent 的记录字段
        pipeline: ingest pipeline 名称，原样写入元数据
        logstash_format: 是否使用 logstash 风格的按日期索引名
        logstash_prefix: logstash 索引名前缀
        logstash_prefix_separator: 前缀与日期之间的分隔符
        logstash_dateformat: 索引日期格式（strftime）
        utc_index: 计算索引日期时是否使用 UTC
        include_timestamp: 非 logstash 模式下是否也注入 @timestamp
        time_key: 记录中作为事件时间的字段
        time_key_format: 解析时间字段的 strptime 格式，为空时按 ISO 8601 解析
        time_key_exclude_timestamp: 使用 time_key 时不再注入 @timestamp
        time_precision: 注入 @timestamp 的小数位数（0、3、6）
        time_parse_error_tag: 时间解析失败通知使用的错误标签
        include_tag_key: 是否把事件标签写入记录
        tag_key: 写入事件标签使用的字段名
        flatten_hashes: 是否扁平化嵌套字典
        flatten_hashes_separator: 扁平化键名分隔符
        remove_keys: 发送前从记录中删除的字段
        remove_keys_on_update: update/upsert 时从 doc 中删除的字段
        remove_keys_on_update_key: 记录中保存"需删除字段列表"的字段名，优先级高于 remove_keys_on_update
        suppress_doc_wrap: update/upsert 时不包装 doc，记录原样作为请求体
        retry_tag: 可重试记录重新发射时使用的标签，为空时沿用原标签
        emit_error_for_missing_id: 缺少 _id 时发射错误事件而不是丢弃并记录日志
        reconnect_on_error: 任意异常后都重建连接
        backend_major_version: 后端主版本号，决定 bulk 请求的 Content-Type

    Raises:
        ConfigError: 当参数不合法时抛出

    Examples:
        >>> config = OutputConfig(logstash_format=True, logstash_prefix="app")
    """

    write_operation: WriteOperation = WriteOperation.INDEX
    index_name: str = "fluentd"
    type_name: str = "fluentd"
    target_index_key: str | None = None
    target_type_key: str | None = None
    id_key: str | None = None
    routing_key: str | None = None
    parent_key: str | None = None
    pipeline: str | None = None
    logstash_format: bool = False
    logstash_prefix: str = "logstash"
    logstash_prefix_separator: str = "-"
    logstash_dateformat: str = "%Y.%m.%d"
    utc_index: bool = True
    include_timestamp: bool = False
    time_key: str | None = None
    time_key_format: str | None = None
    time_key_exclude_timestamp: bool = False
    time_precision: int = 0
    time_parse_error_tag: str = "elasticsink.time_parser.error"
    include_tag_key: bool = False
    tag_key: str = "tag"
    flatten_hashes: bool = False
    flatten_hashes_separator: str = "_"
    remove_keys: tuple[str, ...] = ()
    remove_keys_on_update: tuple[str, ...] = ()
    remove_keys_on_update_key: str | None = None
    suppress_doc_wrap: bool = False
    retry_tag: str | None = None
    emit_error_for_missing_id: bool = False
    reconnect_on_error: bool = False
    backend_major_version: int = 7

    def __post_init__(self) -> None:
        """校验输出配置参数合法性."""
        if not isinstance(self.write_operation, WriteOperation):
            raise ConfigError(
                f"write_operation 必须是 WriteOperation，当前值: {self.write_operation!r}"
            )
        if not self.index_name:
            raise ConfigError("index_name 不能为空")
        if not self.type_name:
            raise ConfigError("type_name 不能为空")
        if self.time_precision not in TIME_PRECISION_TIMESPEC:
            raise ConfigError(
                f"time_precision 只支持 {sorted(TIME_PRECISION_TIMESPEC)}，"
                f"当前值: {self.time_precision}"
            )
        if not self.flatten_hashes_separator:
            raise ConfigError("flatten_hashes_separator 不能为空")
        if not self.tag_key:
            raise ConfigError("tag_key 不能为空")
        if self.backend_major_version < 1:
            raise ConfigError(
                f"backend_major_version 必须 >= 1，当前值: {self.backend_major_version}"
            )
        for name in _KEY_LIST_FIELDS:
            if not isinstance(getattr(self, name), tuple):
                raise ConfigError(f"{name} 必须是元组，请使用 OutputConfig.from_dict 传入列表")

    @property
    def timespec(self) -> str:
        """注入 @timestamp 时 isoformat 使用的 timespec."""
        return TIME_PRECISION_TIMESPEC[self.time_precision]

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> OutputConfig:
        """从普通配置字典创建输出配置.

        - write_operation 可以是字符串（"index"/"create"/"update"/"upsert"）
        - remove_keys / remove_keys_on_update 可以是逗号分隔字符串或列表
        - 布尔项接受 "true"/"false" 等字符串

        Args:
            options: 配置字典

        Returns:
            OutputConfig 实例

        Raises:
            ConfigError: 存在未知配置项或值不合法时抛出
        """
        known = {f.name: f for f in dataclasses.fields(cls)}
        unknown = sorted(set(options) - set(known))
        if unknown:
            raise ConfigError(f"未知的配置项: {', '.join(unknown)}")

        kwargs: dict[str, Any] = {}
        for name, value in options.items():
            default = known[name].default
            if name == "write_operation":
                try:
                    value = WriteOperation(str(value).lower())
                except ValueError as e:
                    raise ConfigError(f"不支持的 write_operation: {value!r}") from e
            elif name in _KEY_LIST_FIELDS:
                value = _parse_key_list(value)
            elif isinstance(default, bool):
                value = _parse_bool(name, value)
            elif isinstance(default, int) and not isinstance(value, int):
                try:
                    value = int(value)
                except (TypeError, ValueError) as e:
                    raise ConfigError(f"配置项 {name} 需要整数，当前值: {value!r}") from e
            kwargs[name] = value

        return cls(**kwargs)
