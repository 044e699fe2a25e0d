"""
Default policies for types nobody authored.

GraphQL schemas create many types implicitly (connection and aggregate
wrappers, generated input types, enums...). Every type without an explicit
``read`` or ``write`` entry receives a synthesized one: Allow for scalars
and enums, Deny for everything else. Authored entries always win.
"""

import logging
from collections.abc import Mapping
from typing import Any

from ..schema import TypeGraph
from .types import AuthType

logger = logging.getLogger(__name__)


def merge_permission_maps(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two authored permission mappings.

    Nested mappings are merged key by key; any other value in ``override``
    replaces the value in ``base``. Neither argument is modified.
    """
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_permission_maps(current, value)
        else:
            merged[key] = value
    return merged


class DerivedPermissionGenerator:
    """Synthesizes default permission entries from a type graph."""

    def __init__(self, type_graph: TypeGraph, allow_leaf_types: bool = True):
        self.type_graph = type_graph
        self.allow_leaf_types = allow_leaf_types

    def default_for(self, type_name: str) -> bool:
        return self.allow_leaf_types and self.type_graph.is_leaf_type(type_name)

    def derive(self, permission_map: Mapping[str, Any]) -> dict[str, dict[str, bool]]:
        """
        Build entries for every ``(type, auth type)`` pair missing from the map.

        Args:
            permission_map: The authored permission mapping

        Returns:
            A mapping holding only the synthesized entries
        """
        derived: dict[str, dict[str, bool]] = {}
        for type_name in sorted(self.type_graph.get_resource_type_names()):
            authored = permission_map.get(type_name)
            if not isinstance(authored, Mapping):
                authored = {}
            missing = [
                auth_type.value for auth_type in AuthType if auth_type.value not in authored
            ]
            if not missing:
                continue
            default = self.default_for(type_name)
            derived[type_name] = {auth_key: default for auth_key in missing}
            if not default and self.type_graph.has_relationships(type_name):
                logger.debug(
                    "Derived deny-by-default policy for relationship type %s (%s)",
                    type_name,
                    ", ".join(missing),
                )
        return derived

    def apply(self, permission_map: Mapping[str, Any]) -> dict[str, Any]:
        """Return the authored mapping completed with derived entries."""
        derived = self.derive(permission_map)
        logger.info(
            "Derived default permissions for %d of %d schema types",
            len(derived),
            len(self.type_graph.get_resource_type_names()),
        )
        return merge_permission_maps(derived, permission_map)


def apply_derived_type_permissions(
    type_graph: TypeGraph, permission_map: Mapping[str, Any], allow_leaf_types: bool = True
) -> dict[str, Any]:
    return DerivedPermissionGenerator(type_graph, allow_leaf_types).apply(permission_map)
