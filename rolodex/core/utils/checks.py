import os
from typing import Any, TypeVar

T = TypeVar("T")


def ifnone(val: T | None, default: T) -> T:
    """``val`` unless it is None, in which case ``default``."""
    return default if val is None else val


def expand_tilde(obj: Any) -> Any:
    """Expand a leading ``~`` in strings, descending into dicts, lists, tuples and sets."""
    if isinstance(obj, str):
        return os.path.expanduser(obj) if obj.startswith("~") else obj
    if isinstance(obj, dict):
        return {k: expand_tilde(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return type(obj)(expand_tilde(v) for v in obj)
    return obj
