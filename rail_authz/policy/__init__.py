"""
Permission mappings: compiled policy nodes, path resolution, result
aggregation and derived default policies.
"""

from .compiler import PermissionMapping, compile_node
from .derived import (
    DerivedPermissionGenerator,
    apply_derived_type_permissions,
    merge_permission_maps,
)
from .resolver import resolve
from .results import (
    AuthResult,
    annotate_auth_result_with_input_types,
    gather_mapping,
    summarize_auth_result,
)
from .types import (
    ALLOW,
    DENY,
    Allow,
    AuthContext,
    AuthType,
    Delegate,
    Deny,
    PolicyNode,
    Predicate,
    RootData,
    Subtree,
)

__all__ = [
    # Types
    "AuthType",
    "PolicyNode",
    "Allow",
    "Deny",
    "Delegate",
    "Predicate",
    "Subtree",
    "ALLOW",
    "DENY",
    "AuthContext",
    "RootData",
    "AuthResult",
    # Compilation and lookup
    "PermissionMapping",
    "compile_node",
    "resolve",
    # Results
    "summarize_auth_result",
    "annotate_auth_result_with_input_types",
    "gather_mapping",
    # Derived permissions
    "DerivedPermissionGenerator",
    "apply_derived_type_permissions",
    "merge_permission_maps",
]
