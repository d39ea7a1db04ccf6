"""Cache key serialization and argument matching."""

import json
from collections.abc import Mapping, Sequence
from typing import Any


def make_cache_key(args: Sequence[Any]) -> str:
    """Serialize an argument list to its canonical cache key.

    Keys are compact JSON: ``(7,)`` becomes ``"[7]"``. Tuples encode as
    lists and mapping keys are sorted, so structurally equal arguments
    always produce the same key.

    Raises:
        TypeError: an argument is not JSON-serializable (functions, sets...)
            or holds a mapping with a non-string key
        ValueError: an argument is cyclic or holds NaN/infinity
    """
    _check_mapping_keys(args, set())
    return json.dumps(
        list(args),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def _check_mapping_keys(value: Any, path: set[int]) -> None:
    """Reject mapping keys that JSON would silently turn into strings.

    ``{1: "x"}`` and ``{"1": "x"}`` are different arguments but encode to the
    same JSON object, so only string keys are accepted.
    """
    if isinstance(value, Mapping):
        children: Any = value.values()
        for k in value:
            if not isinstance(k, str):
                raise TypeError(
                    f"Mapping keys must be str, got {type(k).__name__}: {k!r}"
                )
    elif isinstance(value, (list, tuple)):
        children = value
    else:
        return

    if id(value) in path:
        raise ValueError("Circular reference detected")
    path.add(id(value))
    for child in children:
        _check_mapping_keys(child, path)
    path.discard(id(value))


def parse_cache_key(key: str) -> list[Any]:
    """Decode a cache key back to its argument list."""
    args = json.loads(key)
    if not isinstance(args, list):
        raise ValueError(f"Not a cache key: {key!r}")
    return args


def arg_matches(key: str, index: int | None, arg: Any) -> bool:
    """Check if the argument at ``index`` of a key equals ``arg``.

    Equality is structural: both sides are compared in canonical form.
    ``index=None`` matches every key.
    """
    if index is None:
        return True
    args = parse_cache_key(key)
    if not -len(args) <= index < len(args):
        return False
    return make_cache_key([args[index]]) == make_cache_key([arg])
