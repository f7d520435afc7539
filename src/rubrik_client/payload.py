"""Safe traversal helpers for decoded JSON payloads."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from .exceptions import UnexpectedResponseError

_MISSING = object()


def _step(node: Any, key: str | int) -> Any:
    if isinstance(key, int):
        if isinstance(node, Sequence) and not isinstance(node, (str, bytes)):
            if -len(node) <= key < len(node):
                return node[key]
        return _MISSING
    if isinstance(node, Mapping):
        return node.get(key, _MISSING)
    return _MISSING


def dig(data: Any, *path: str | int, default: Any = None) -> Any:
    """Walk ``path`` through nested mappings/lists, returning ``default`` on any miss.

    String keys index mappings and integer keys index lists; a key applied to the
    wrong container type counts as a miss rather than an error.
    """

    node = data
    for key in path:
        node = _step(node, key)
        if node is _MISSING:
            return default
    return node


def require(
    data: Any,
    *path: str | int,
    expected: type | tuple[type, ...] | None = None,
) -> Any:
    """Like `dig` but raise `UnexpectedResponseError` when the value is absent or mistyped."""

    value = dig(data, *path, default=_MISSING)
    dotted = ".".join(str(key) for key in path) or "<root>"
    if value is _MISSING:
        raise UnexpectedResponseError(f"Response is missing the '{dotted}' field", details=data)
    if expected is not None and (
        not isinstance(value, expected) or (isinstance(value, bool) and bool not in _as_tuple(expected))
    ):
        raise UnexpectedResponseError(
            f"Response field '{dotted}' has unexpected type {type(value).__name__}",
            details=data,
        )
    return value


def _as_tuple(expected: type | tuple[type, ...]) -> tuple[type, ...]:
    return expected if isinstance(expected, tuple) else (expected,)


__all__ = ["dig", "require"]
