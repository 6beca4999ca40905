"""
elasticsink 工具函数模块

提供记录字段访问相关的工具函数：点路径查找、点路径删除、嵌套字典扁平化。
"""

from collections.abc import Mapping, MutableMapping
from typing import Any

_MISSING = object()


def is_present(value: Any) -> bool:
    """判断字段值是否视为"存在".

    只有 None 和 False 视为不存在，0、空字符串等仍视为存在。

    示例:
        >>> is_present(0)
        True
        >>> is_present(None)
        False
    """
    return value is not None and value is not False


def _split_path(tree: Mapping, path: str) -> list[str]:
    """将点路径拆分为键序列.

    如果完整路径本身就是 tree 中的键（例如扁平化后的 "a.b"），则直接作为单个键。
    """
    if path in tree or "." not in path:
        return [path]
    return path.split(".")


def resolve_path(tree: Any, path: str) -> Any | None:
    """按点路径从嵌套字典中取值.

    示例:
        >>> resolve_path({"kubernetes": {"labels": {"app": "web"}}}, "kubernetes.labels.app")
        'web'
        >>> resolve_path({"a": 1}, "a.b") is None
        True

    Args:
        tree: 记录（嵌套字典）
        path: 字段路径，使用 "." 分隔层级

    Returns:
        找到的值；路径不存在或中途遇到非字典节点时返回 None
    """
    if not isinstance(tree, Mapping):
        return None

    node: Any = tree
    for key in _split_path(tree, path):
        if not isinstance(node, Mapping):
            return None
        node = node.get(key, _MISSING)
        if node is _MISSING:
            return None
    return node


def pop_path(tree: MutableMapping, path: str) -> Any | None:
    """按点路径取出并删除字段.

    只有当值存在（见 is_present）时才会删除，否则记录保持不变。

    Args:
        tree: 记录（嵌套字典），会被原地修改
        path: 字段路径

    Returns:
        被删除的值；不存在时返回 None
    """
    keys = _split_path(tree, path)
    parent: Any = tree
    for key in keys[:-1]:
        parent = parent.get(key) if isinstance(parent, Mapping) else None
        if parent is None:
            return None

    if not isinstance(parent, MutableMapping):
        return None

    value = parent.get(keys[-1])
    if not is_present(value):
        return None
    del parent[keys[-1]]
    return value


def flatten_record(
    record: Mapping[str, Any], separator: str = "_", prefix: str | None = None
) -> dict[str, Any]:
    """递归扁平化嵌套字典.

    只展开字典，列表保持原样不递归。

    示例:
        >>> flatten_record({"foo": {"bar": "baz"}, "people": [{"age": 1}]}, "|")
        {'foo|bar': 'baz', 'people': [{'age': 1}]}

    Args:
        record: 待扁平化的记录
        separator: 键拼接分隔符
        prefix: 当前层级的键前缀（递归内部使用）

    Returns:
        单层字典
    """
    flat: dict[str, Any] = {}
    for key, value in record.items():
        full_key = f"{prefix}{separator}{key}" if prefix is not None else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_record(value, separator, full_key))
        else:
            flat[full_key] = value
    return flat
