"""
Exceptions raised by the authorization engine.

Three kinds reach callers: ``AuthorizationDenied`` when a principal is not
allowed, ``PolicyEvaluationError`` (and its subclasses) when a policy is
broken, and ``UnknownQueryOperation`` when an operation cannot be
classified. None of them are retried by the engine.
"""

import json
from typing import Any, Optional

from graphql import GraphQLError


class AuthorizationError(Exception):
    """Base exception for the authorization engine."""

    default_code = "AUTHORIZATION_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def __str__(self) -> str:
        return self.message

    def get_extensions(self) -> dict[str, Any]:
        return {"code": self.code}

    def to_graphql_error(self) -> GraphQLError:
        """Convert to a GraphQLError carrying the diagnostics as extensions."""
        return GraphQLError(
            self.message,
            original_error=self,
            extensions=self.get_extensions(),
        )


class AuthorizationDenied(AuthorizationError):
    """
    Raised when the aggregated authorization result is false.

    Attributes:
        result: The unsummarized, JSON-serializable result tree.
        phase: ``"input"`` for write-policy failures, ``"output"`` for
            read-policy failures.
    """

    default_code = "AUTHORIZATION_DENIED"

    def __init__(
        self,
        result: Any,
        phase: str,
        operation_name: Optional[str] = None,
        include_result: bool = True,
    ):
        self.result = result
        self.phase = phase
        self.operation_name = operation_name
        message = "Authorization check failed"
        if operation_name:
            message = f"{message} for '{operation_name}'"
        if include_result:
            message = f"{message}. Detailed access result: {json.dumps(result)}"
        super().__init__(message)

    def get_extensions(self) -> dict[str, Any]:
        extensions = super().get_extensions()
        extensions["phase"] = self.phase
        extensions["result"] = self.result
        return extensions


class PolicyEvaluationError(AuthorizationError):
    """
    Raised when a policy cannot be evaluated.

    Signals a broken permission mapping, never a denied principal.
    """

    default_code = "POLICY_EVALUATION_ERROR"

    def __init__(
        self,
        message: str,
        type_name: Optional[str] = None,
        auth_type: Optional[str] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message)
        self.type_name = type_name
        self.auth_type = auth_type
        self.path = path

    def get_extensions(self) -> dict[str, Any]:
        extensions = super().get_extensions()
        extensions.update(
            {"type_name": self.type_name, "auth_type": self.auth_type, "path": self.path}
        )
        return extensions


class InvalidAuthResultShape(PolicyEvaluationError):
    """Raised when a result tree holds something other than bools and mappings."""

    default_code = "INVALID_AUTH_RESULT_SHAPE"

    def __init__(self, value: Any, path: Optional[str] = None):
        self.value = value
        location = f" at '{path}'" if path else ""
        super().__init__(
            f"Invalid authorization result{location}: expected a bool or a "
            f"mapping, got {type(value).__name__}",
            path=path,
        )


class UnknownResourceType(PolicyEvaluationError):
    """Raised when a delegation names a type the engine does not know."""

    default_code = "UNKNOWN_RESOURCE_TYPE"

    def __init__(self, resource_name: str, path: Optional[str] = None):
        self.resource_name = resource_name
        super().__init__(
            f"Cannot delegate to unknown resource type '{resource_name}'",
            type_name=resource_name,
            path=path,
        )


class InvalidPolicyNode(PolicyEvaluationError):
    """Raised when an authored permission mapping cannot be compiled."""

    default_code = "INVALID_POLICY_NODE"


class UnknownQueryOperation(AuthorizationError):
    """Raised when a mutation name has no recognizable write style."""

    default_code = "UNKNOWN_QUERY_OPERATION"

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        super().__init__(f"Unknown query type for query named {operation_name}")
