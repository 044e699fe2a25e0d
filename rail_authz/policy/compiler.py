"""
Compilation of authored permission mappings.

An authored mapping is a plain dictionary ``{TypeName: {"read" | "write": node}}``
where a node is a bool, a type name to delegate to, a callable or a nested
dictionary. Compiling it once turns every node into a tagged PolicyNode so
evaluation never has to inspect shapes again.
"""

import logging
from collections.abc import Mapping
from typing import Any, Iterator, Optional

from ..exceptions import InvalidPolicyNode
from ..utils import join_path
from .types import ALLOW, DENY, AuthType, Delegate, PolicyNode, Predicate, Subtree

logger = logging.getLogger(__name__)


def compile_node(value: Any, location: str = "") -> PolicyNode:
    """
    Compile one authored value into a PolicyNode.

    Args:
        value: Authored value (bool, str, callable, mapping or PolicyNode)
        location: Human readable position used in error messages

    Returns:
        The tagged node

    Raises:
        InvalidPolicyNode: If the value has no policy meaning
    """
    if isinstance(value, PolicyNode):
        return value
    if isinstance(value, bool):
        return ALLOW if value else DENY
    if isinstance(value, str):
        return Delegate(value)
    if isinstance(value, Mapping):
        return _compile_subtree(value, location)
    if callable(value):
        return Predicate(value)
    raise InvalidPolicyNode(
        f"Unsupported policy value {value!r} at '{location}'", path=location or None
    )


def _compile_subtree(value: Mapping, location: str) -> Subtree:
    subtree = Subtree()
    for key, child in value.items():
        child_location = join_path(location, key)
        _insert(subtree, str(key).split("."), compile_node(child, child_location), child_location)
    return subtree


def _insert(subtree: Subtree, segments: list[str], node: PolicyNode, location: str) -> None:
    head, rest = segments[0], segments[1:]
    existing = subtree.children.get(head)

    if not rest:
        if existing is None:
            subtree.children[head] = node
        elif isinstance(existing, Subtree) and isinstance(node, Subtree):
            _merge_subtrees(existing, node, location)
        else:
            raise InvalidPolicyNode(
                f"Conflicting policies declared for '{location}'", path=location
            )
        return

    if existing is None:
        existing = subtree.children[head] = Subtree()
    elif existing.is_terminal:
        raise InvalidPolicyNode(
            f"'{location}' is nested under a terminal policy", path=location
        )
    _insert(existing, rest, node, location)


def _merge_subtrees(target: Subtree, source: Subtree, location: str) -> None:
    for key, node in source.children.items():
        _insert(target, [key], node, join_path(location, key))


class PermissionMapping:
    """
    Compiled permission mapping.

    Holds one root PolicyNode per ``(type name, auth type)`` pair. Instances
    are immutable once built and shared between every principal compiled
    from the same authored mapping.
    """

    def __init__(self, entries: Optional[dict[str, dict[AuthType, PolicyNode]]] = None):
        self._entries: dict[str, dict[AuthType, PolicyNode]] = entries or {}

    @classmethod
    def compile(cls, authored: Mapping[str, Any]) -> "PermissionMapping":
        """Compile an authored mapping. Already compiled mappings pass through."""
        if isinstance(authored, PermissionMapping):
            return authored

        entries: dict[str, dict[AuthType, PolicyNode]] = {}
        for type_name, buckets in (authored or {}).items():
            if not isinstance(buckets, Mapping):
                raise InvalidPolicyNode(
                    f"Policy for type '{type_name}' must map 'read'/'write' to nodes",
                    type_name=type_name,
                )
            compiled: dict[AuthType, PolicyNode] = {}
            for auth_key, node in buckets.items():
                try:
                    auth_type = AuthType(auth_key)
                except ValueError:
                    raise InvalidPolicyNode(
                        f"Unknown auth type '{auth_key}' for type '{type_name}'",
                        type_name=type_name,
                    ) from None
                compiled[auth_type] = compile_node(
                    node, f"{type_name}.{auth_type.value}"
                )
            entries[type_name] = compiled

        logger.debug("Compiled permission mapping for %d types", len(entries))
        return cls(entries)

    def get_root(self, type_name: Optional[str], auth_type: AuthType) -> Optional[PolicyNode]:
        """Return the node declared for a whole type and auth type, if any."""
        if type_name is None:
            return None
        return self._entries.get(type_name, {}).get(AuthType(auth_type))

    def has_entry(self, type_name: str, auth_type: AuthType) -> bool:
        return self.get_root(type_name, auth_type) is not None

    def type_names(self) -> set[str]:
        return set(self._entries)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
