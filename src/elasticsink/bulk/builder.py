"""bulk 请求体构建模块."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from elasticsearch.exceptions import SerializationError
from elasticsearch.serializer import JsonSerializer

from elasticsink.transformer.models import AddressedAction

from .exceptions import BulkSerializationError
from .models import BulkPayload

logger = logging.getLogger(__name__)

NDJSON_CONTENT_TYPE = "application/x-ndjson"
LEGACY_JSON_CONTENT_TYPE = "application/json"

# 从该主版本开始后端要求 bulk 请求使用 application/x-ndjson
NDJSON_MIN_MAJOR_VERSION = 6


def content_type_for(backend_major_version: int) -> str:
    """根据后端主版本号返回 bulk 请求的 Content-Type.

    示例:
        >>> content_type_for(7)
        'application/x-ndjson'
        >>> content_type_for(5)
        'application/json'
    """
    if backend_major_version >= NDJSON_MIN_MAJOR_VERSION:
        return NDJSON_CONTENT_TYPE
    return LEGACY_JSON_CONTENT_TYPE


class BulkPayloadBuilder:
    """bulk 请求体构建器.

    每个操作输出一行元数据 {"<op>": {...}} 和一行请求体，顺序与输入一致。
    无法序列化的操作会被移入 BulkPayload.rejected，不影响同批次其他操作。

    Args:
        backend_major_version: 后端主版本号，决定 Content-Type
        serializer: JSON 序列化器，默认使用 elasticsearch 客户端的 JsonSerializer

    示例:
        >>> builder = BulkPayloadBuilder(backend_major_version=7)
        >>> payload = builder.build(actions)
        >>> transport.bulk(payload.body, payload.content_type)
    """

    def __init__(
        self,
        backend_major_version: int = 7,
        serializer: JsonSerializer | None = None,
    ) -> None:
        self.content_type = content_type_for(backend_major_version)
        self._serializer = serializer or JsonSerializer()

    def serialize_action(self, action: AddressedAction) -> tuple[bytes, bytes]:
        """序列化单个操作为 (元数据行, 请求体行).

        Raises:
            BulkSerializationError: 元数据或请求体无法序列化，或结果不是合法 UTF-8 时抛出
        """
        try:
            meta_line = self._serializer.dumps(action.meta)
            body_line = self._serializer.dumps(action.body)
            # JsonSerializer 以 surrogatepass 编码，孤立代理字符会产生非法 UTF-8
            meta_line.decode("utf-8")
            body_line.decode("utf-8")
        except (SerializationError, TypeError, ValueError) as e:
            raise BulkSerializationError(
                f"无法序列化 bulk 操作 (index={action.address.index}, "
                f"id={action.address.id}): {e}"
            ) from e
        return meta_line, body_line

    def build(self, actions: Iterable[AddressedAction]) -> BulkPayload:
        """构建 bulk 请求.

        Args:
            actions: 按顺序排列的 AddressedAction

        Returns:
            BulkPayload，lines 长度为成功操作数的 2 倍
        """
        payload = BulkPayload(content_type=self.content_type)
        for action in actions:
            try:
                meta_line, body_line = self.serialize_action(action)
            except BulkSerializationError as e:
                logger.warning(f"跳过无法序列化的记录: {e}")
                payload.rejected.append((action, e))
                continue
            payload.actions.append(action)
            payload.lines.append(meta_line)
            payload.lines.append(body_line)

        logger.debug(
            f"构建 bulk 请求: {len(payload.actions)} 个操作, "
            f"{len(payload.rejected)} 个无法序列化, content_type={payload.content_type}"
        )
        return payload
