"""
Path resolution against a compiled permission mapping.

A lookup miss always resolves to Deny. The rule lives here, explicitly,
instead of depending on how the mapping container treats missing keys.
"""

from typing import Optional

from ..utils import split_path
from .compiler import PermissionMapping
from .types import DENY, AuthType, PolicyNode, Subtree


def resolve(
    mapping: PermissionMapping,
    type_name: Optional[str],
    auth_type: AuthType,
    path: Optional[str] = "",
) -> PolicyNode:
    """
    Return the policy node for a field path of a type.

    Args:
        mapping: Compiled permission mapping
        type_name: Resource type the path belongs to
        auth_type: ``read`` or ``write``
        path: Dot-joined field names from the authorization root, without
            the type name. An empty path returns the type-level node.

    Returns:
        The node at ``path``, or Deny when nothing is declared there
    """
    node = mapping.get_root(type_name, auth_type)
    for segment in split_path(path):
        if not isinstance(node, Subtree):
            return DENY
        node = node.get(segment)
    return node if node is not None else DENY
