"""
Recursive policy evaluation.

``Authorizer.authorize`` walks the data being authorized alongside the
compiled policy of its type and returns a result tree of the same shape.
Sibling fields are evaluated concurrently; a parent awaits all of its
children before returning.
"""

import inspect
import logging
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from ..exceptions import AuthorizationError, InvalidAuthResultShape, PolicyEvaluationError, UnknownResourceType
from ..policy import (
    AuthContext,
    AuthResult,
    AuthType,
    Allow,
    Delegate,
    Deny,
    PermissionMapping,
    PolicyNode,
    Predicate,
    RootData,
    Subtree,
    gather_mapping,
    resolve,
)
from ..utils import get_path, join_path

logger = logging.getLogger(__name__)


class Authorizer:
    """
    Evaluates data against a compiled permission mapping.

    Args:
        permission_mapping: Compiled (or authored) permission mapping
        known_types: Extra type names that are valid delegation targets even
            without an entry in the mapping. Delegating to them resolves to
            Deny like any other missing entry.
    """

    def __init__(
        self,
        permission_mapping: PermissionMapping,
        known_types: Optional[Iterable[str]] = None,
    ):
        self.permission_mapping = PermissionMapping.compile(permission_mapping)
        self.known_types = frozenset(known_types or ())

    def is_known_type(self, type_name: str) -> bool:
        return type_name in self.permission_mapping or type_name in self.known_types

    async def authorize(
        self,
        type_name: Optional[str],
        auth_type: AuthType,
        data: Any,
        context: AuthContext,
        root_data: RootData,
        run: Any = None,
    ) -> AuthResult:
        """
        Authorize ``data`` as a value of ``type_name``.

        Args:
            type_name: Resource type whose policy applies
            auth_type: ``read`` for outputs, ``write`` for inputs
            data: The value being authorized
            context: Request-scoped AuthContext
            root_data: Top-level operation description
            run: Lazy handle to the operation result, handed to predicates

        Returns:
            A bool or a mapping of nested results mirroring ``data``

        Raises:
            PolicyEvaluationError: If a predicate fails or the policy is broken
        """
        evaluation = _Evaluation(self, type_name, AuthType(auth_type), data, context, root_data, run)
        root_node = resolve(self.permission_mapping, type_name, evaluation.auth_type, "")
        return await evaluation.process_path(data, root_node, "", "")


class _Evaluation:
    """State of one ``authorize`` call, shared by its recursive steps."""

    def __init__(
        self,
        authorizer: Authorizer,
        type_name: Optional[str],
        auth_type: AuthType,
        data: Any,
        context: AuthContext,
        root_data: RootData,
        run: Any,
    ):
        self.authorizer = authorizer
        self.type_name = type_name
        self.auth_type = auth_type
        self.data = data
        self.context = context
        self.root_data = root_data
        self.run = run

    async def process_level(self, value: Any, policy_path: str, data_path: str) -> AuthResult:
        if value is None:
            return {}

        if isinstance(value, Mapping):
            children = {}
            for key, child in value.items():
                child_policy_path = join_path(policy_path, key)
                node = resolve(
                    self.authorizer.permission_mapping,
                    self.type_name,
                    self.auth_type,
                    child_policy_path,
                )
                children[str(key)] = self.process_path(
                    child, node, child_policy_path, join_path(data_path, key)
                )
            return await gather_mapping(children)

        if isinstance(value, (list, tuple)):
            # Elements share the policy path; only the data path carries the index
            return await gather_mapping(
                {
                    str(index): self.process_level(item, policy_path, join_path(data_path, index))
                    for index, item in enumerate(value)
                }
            )

        logger.debug(
            "Scalar value at %s.%s.%s has a nested policy; denying",
            self.type_name,
            self.auth_type.value,
            policy_path or "<root>",
        )
        return False

    async def process_path(
        self, value: Any, node: PolicyNode, policy_path: str, data_path: str
    ) -> AuthResult:
        logger.debug(
            "Evaluating %s.%s.%s with %r",
            self.type_name,
            self.auth_type.value,
            policy_path or "<root>",
            node,
        )
        if isinstance(node, Allow):
            return True
        if isinstance(node, Deny):
            return False
        if isinstance(node, Subtree):
            return await self.process_level(value, policy_path, data_path)
        if isinstance(node, Delegate):
            return await self.delegate(node, policy_path, data_path)
        if isinstance(node, Predicate):
            return await self.call_predicate(node, policy_path)
        raise PolicyEvaluationError(
            f"Unsupported policy node {node!r}",
            type_name=self.type_name,
            auth_type=self.auth_type.value,
            path=policy_path,
        )

    async def delegate(self, node: Delegate, policy_path: str, data_path: str) -> AuthResult:
        target = node.resource_name
        if not self.authorizer.is_known_type(target):
            raise UnknownResourceType(target, path=policy_path or None)

        sub_args = get_path(self.data, data_path)
        sub_run = self.run.project(data_path) if self.run is not None else None
        logger.debug("Delegating %s.%s to %s", self.type_name, policy_path, target)
        return await self.authorizer.authorize(
            target, self.auth_type, sub_args, self.context, self.root_data, run=sub_run
        )

    async def call_predicate(self, node: Predicate, policy_path: str) -> AuthResult:
        try:
            return await self.settle(node.fn(self.data, self.run, self.context), policy_path)
        except AuthorizationError:
            raise
        except Exception as exc:
            raise PolicyEvaluationError(
                f"Policy predicate for {self.type_name}.{self.auth_type.value}."
                f"{policy_path or '<root>'} failed: {exc}",
                type_name=self.type_name,
                auth_type=self.auth_type.value,
                path=policy_path,
            ) from exc

    async def settle(self, outcome: Any, path: str) -> AuthResult:
        """Resolve a predicate outcome into a plain result tree."""
        while inspect.isawaitable(outcome):
            outcome = await outcome

        if isinstance(outcome, bool):
            return outcome
        if isinstance(outcome, Allow):
            return True
        if isinstance(outcome, Deny):
            return False
        if isinstance(outcome, Mapping):
            return await gather_mapping(
                {str(key): self.settle(value, join_path(path, key)) for key, value in outcome.items()}
            )
        if callable(outcome) and not isinstance(outcome, PolicyNode):
            return await self.settle(outcome(self.data, self.run, self.context), path)
        raise InvalidAuthResultShape(outcome, path or None)
