"""
Type definitions for compiled permission mappings.

This module provides:
- AuthType enum for the two policy buckets (read and write)
- The PolicyNode tagged union (Allow, Deny, Delegate, Predicate, Subtree)
- AuthContext and RootData, the request-scoped values passed to predicates
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from ..engine.operations import OperationKind


class AuthType(str, Enum):
    """Policy bucket a request phase is checked against."""

    READ = "read"
    WRITE = "write"


class PolicyNode:
    """Base class of every compiled policy node."""

    __slots__ = ()

    @property
    def is_terminal(self) -> bool:
        return not isinstance(self, Subtree)


@dataclass(frozen=True)
class Allow(PolicyNode):
    """Grants access to the value and everything below it."""

    def __repr__(self) -> str:
        return "Allow"


@dataclass(frozen=True)
class Deny(PolicyNode):
    """Refuses access to the value and everything below it."""

    def __repr__(self) -> str:
        return "Deny"


@dataclass(frozen=True)
class Delegate(PolicyNode):
    """
    Evaluates the value with another resource type's policy.

    Attributes:
        resource_name: Name of the type whose policy takes over.
    """

    resource_name: str


@dataclass(frozen=True)
class Predicate(PolicyNode):
    """
    Computes the decision at evaluation time.

    The function is called as ``fn(root_args, run, context)`` and may return
    a bool, an awaitable, another predicate function or a mapping of any of
    these.
    """

    fn: Callable[..., Any]

    def __repr__(self) -> str:
        name = getattr(self.fn, "__qualname__", None) or repr(self.fn)
        return f"Predicate({name})"


@dataclass(frozen=True)
class Subtree(PolicyNode):
    """Nested policy keyed by field name."""

    children: dict[str, PolicyNode] = field(default_factory=dict)

    def get(self, key: str) -> Optional[PolicyNode]:
        return self.children.get(key)


ALLOW = Allow()
DENY = Deny()


@dataclass(frozen=True)
class AuthContext:
    """
    Request-scoped values handed to every predicate.

    Attributes:
        principal: Identity the request is authorized for.
        transport_context: Context object of the transport (e.g. the GraphQL context).
        data_layer: The underlying data-operation layer.
    """

    principal: Any
    transport_context: Any = None
    data_layer: Any = None


@dataclass(frozen=True)
class RootData:
    """Identifies the top-level operation being authorized."""

    root_field_name: str
    root_type_name: str
    inputs: Any = None
    operation_kind: Optional["OperationKind"] = None


__all__ = [
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
]
