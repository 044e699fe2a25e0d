"""
Path helpers shared by the policy and engine packages.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Optional

_MISSING = object()


def join_path(prefix: Optional[str], key: Any) -> str:
    """Append ``key`` to a dot-delimited path."""
    return f"{prefix}.{key}" if prefix else str(key)


def split_path(path: Optional[str]) -> list[str]:
    return [segment for segment in (path or "").split(".") if segment]


def get_path(data: Any, path: Optional[str], default: Any = None) -> Any:
    """
    Read the value at a dot-delimited path.

    Mappings are indexed by key, sequences by integer segment and any other
    object by attribute, so Django model instances work the same way plain
    dictionaries do. An empty path returns ``data`` itself.

    Args:
        data: Value to read from
        path: Dot-delimited path such as ``"author.email"`` or ``"posts.0.id"``
        default: Returned when any segment is missing

    Returns:
        The value found at ``path`` or ``default``
    """
    current = data
    for segment in split_path(path):
        if current is None:
            return default
        if isinstance(current, Mapping):
            current = current.get(segment, _MISSING)
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return default
        else:
            current = getattr(current, segment, _MISSING)
        if current is _MISSING:
            return default
    return current

