# tracker/merge.py
from typing import Any, Dict

MAX_MERGE_DEPTH = 64


class MergeDepthError(ValueError):
    """Raised when a tree nests deeper than the merge is allowed to recurse."""


def merge_deep(target: Dict[str, Any], source: Dict[str, Any], max_depth: int = MAX_MERGE_DEPTH, _depth: int = 0) -> Dict[str, Any]:
    """
    Merge `source` into `target` in place and return `target`.

    Nested dicts are merged key by key; any other value from `source`
    (scalars, lists, None) replaces the one in `target`. Keys only present in
    `target` are left untouched.
    """
    if _depth > max_depth:
        raise MergeDepthError(f"merge exceeded max depth of {max_depth}")

    for key, value in source.items():
        if isinstance(value, dict):
            if not isinstance(target.get(key), dict):
                target[key] = {}
            merge_deep(target[key], value, max_depth, _depth + 1)
        else:
            target[key] = value
    return target
