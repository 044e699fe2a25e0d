"""
Classification of root operations by write style.
"""

import re
from enum import Enum

from ..exceptions import UnknownQueryOperation


class OperationKind(Enum):
    """Write style of a root operation."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    UPSERT = "upsert"
    DELETE = "delete"
    UPDATE_MANY = "updateMany"
    DELETE_MANY = "deleteMany"
    CUSTOM = "custom"

    @property
    def is_write(self) -> bool:
        return self is not OperationKind.READ


# Longest prefixes first so updateManyPosts is not read as an update
_MUTATION_PREFIX = re.compile(r"^(updateMany|deleteMany|create|update|upsert|delete)(?=[A-Z_]|$)")


def is_read_root(root_kind: str) -> bool:
    return str(root_kind).lower() == "query"


def classify_operation(root_kind: str, operation_name: str, strict: bool = True) -> OperationKind:
    """
    Classify an operation from its root type and name.

    Args:
        root_kind: ``"Query"`` or ``"Mutation"``
        operation_name: Root field name, e.g. ``"createPost"``
        strict: Raise for unrecognized mutations instead of returning CUSTOM

    Returns:
        The operation kind

    Raises:
        UnknownQueryOperation: If ``strict`` and the mutation has no known prefix
    """
    if is_read_root(root_kind):
        return OperationKind.READ

    match = _MUTATION_PREFIX.match(operation_name or "")
    if match:
        return OperationKind(match.group(1))
    if strict:
        raise UnknownQueryOperation(operation_name)
    return OperationKind.CUSTOM
