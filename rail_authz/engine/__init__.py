"""
Evaluation engine: recursive authorizer, lazy execution, request pipeline
and the per-principal cache.
"""

from .authorizer import Authorizer
from .cache import (
    Authorized,
    CompiledAuthorizer,
    OperationNamespace,
    PrincipalAuthorizerCache,
)
from .lazy import GuardedRun, LazyRun, ProjectedRun, create_run, project_run
from .operations import OperationKind, classify_operation
from .pipeline import PipelineState, RequestPipeline

__all__ = [
    "Authorizer",
    "Authorized",
    "CompiledAuthorizer",
    "OperationNamespace",
    "PrincipalAuthorizerCache",
    "LazyRun",
    "GuardedRun",
    "ProjectedRun",
    "create_run",
    "project_run",
    "OperationKind",
    "classify_operation",
    "PipelineState",
    "RequestPipeline",
]
