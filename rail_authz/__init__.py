"""
Rail Authz - attribute-based authorization for GraphQL data APIs.

A permission mapping declares, per type and per ``read``/``write`` bucket,
which fields a principal may receive or submit. Every data-layer operation
is wrapped so its inputs are checked against write policies before it runs
and its response against read policies before it is returned.

Example usage:
    >>> from rail_authz import Authorized, is_mine
    >>> authorized = Authorized(
    ...     data_layer,
    ...     type_defs,
    ...     {
    ...         "Post": {"read": {"title": True, "author": "User"}},
    ...         "User": {"read": {"email": is_mine("user", "id")}},
    ...     },
    ... )
    >>> api = authorized.for_principal(request.user)
    >>> await api.query.posts({}, "{ title author { email } }")
"""

from .engine import (
    Authorized,
    Authorizer,
    CompiledAuthorizer,
    GuardedRun,
    LazyRun,
    OperationKind,
    PipelineState,
    PrincipalAuthorizerCache,
    ProjectedRun,
    RequestPipeline,
    classify_operation,
    create_run,
    project_run,
)
from .exceptions import (
    AuthorizationDenied,
    AuthorizationError,
    InvalidAuthResultShape,
    InvalidPolicyNode,
    PolicyEvaluationError,
    UnknownQueryOperation,
    UnknownResourceType,
)
from .options import AuthorizationOptions
from .policy import (
    ALLOW,
    DENY,
    Allow,
    AuthContext,
    AuthType,
    Delegate,
    Deny,
    DerivedPermissionGenerator,
    PermissionMapping,
    Predicate,
    RootData,
    Subtree,
    resolve,
    summarize_auth_result,
)
from .predicates import is_authenticated, is_mine
from .schema import TypeGraph

__version__ = "0.1.0"

__all__ = [
    # Entry point
    "Authorized",
    "AuthorizationOptions",
    "CompiledAuthorizer",
    "PrincipalAuthorizerCache",
    # Engine
    "Authorizer",
    "RequestPipeline",
    "PipelineState",
    "LazyRun",
    "GuardedRun",
    "ProjectedRun",
    "create_run",
    "project_run",
    "OperationKind",
    "classify_operation",
    # Policies
    "AuthType",
    "Allow",
    "Deny",
    "Delegate",
    "Predicate",
    "Subtree",
    "ALLOW",
    "DENY",
    "AuthContext",
    "RootData",
    "PermissionMapping",
    "DerivedPermissionGenerator",
    "resolve",
    "summarize_auth_result",
    "TypeGraph",
    # Predicates
    "is_authenticated",
    "is_mine",
    # Errors
    "AuthorizationError",
    "AuthorizationDenied",
    "PolicyEvaluationError",
    "InvalidAuthResultShape",
    "InvalidPolicyNode",
    "UnknownResourceType",
    "UnknownQueryOperation",
]
