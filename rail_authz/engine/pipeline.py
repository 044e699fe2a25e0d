"""
Three-phase request pipeline.

Every wrapped operation goes through:

1. validating-input: mutation arguments are checked against ``write`` policies;
   predicates cannot force the operation during this phase
2. executing: the underlying operation runs (at most once, lazily)
3. validating-output: the response is checked against ``read`` policies

Phases never overlap for one request. A failed phase aborts the request
and the response is never altered, only released or withheld.
"""

import logging
from enum import Enum
from typing import Any, Callable, Optional

from asgiref.sync import async_to_sync

from ..exceptions import AuthorizationDenied, PolicyEvaluationError
from ..observability import report_policy_error
from ..options import AuthorizationOptions
from ..policy import (
    AuthContext,
    AuthResult,
    AuthType,
    RootData,
    annotate_auth_result_with_input_types,
    gather_mapping,
    summarize_auth_result,
)
from ..schema import TypeGraph
from .authorizer import Authorizer
from .lazy import GuardedRun, create_run
from .operations import classify_operation, is_read_root

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    """States a request moves through."""

    VALIDATING_INPUT = "validating-input"
    EXECUTING = "executing"
    VALIDATING_OUTPUT = "validating-output"
    DONE = "done"
    FAILED = "failed"


class RequestPipeline:
    """
    Authorization wrapper around one data-layer operation.

    Instances are callable: ``await pipeline(inputs, info, ctx)`` runs one
    request through the three phases and returns the operation result.
    ``pipeline.sync(...)`` does the same from synchronous code.
    """

    def __init__(
        self,
        authorizer: Authorizer,
        type_graph: TypeGraph,
        operation: Callable[..., Any],
        root_kind: str,
        operation_name: str,
        principal: Any = None,
        data_layer: Any = None,
        options: Optional[AuthorizationOptions] = None,
    ):
        self.authorizer = authorizer
        self.type_graph = type_graph
        self.operation = operation
        self.operation_name = operation_name
        self.is_read = is_read_root(root_kind)
        self.root_type_name = "Query" if self.is_read else "Mutation"
        self.principal = principal
        self.data_layer = data_layer
        self.options = options or AuthorizationOptions.from_settings()
        self.input_types = type_graph.get_input_types(self.root_type_name, operation_name)
        self.response_type = type_graph.get_response_type(self.root_type_name, operation_name)

    def __repr__(self) -> str:
        return f"<RequestPipeline {self.root_type_name}.{self.operation_name}>"

    def _transition(self, current: PipelineState, target: PipelineState) -> PipelineState:
        logger.debug("%s.%s: %s -> %s", self.root_type_name, self.operation_name, current.value, target.value)
        return target

    def _deny(self, result: AuthResult, phase: str) -> AuthorizationDenied:
        if self.options.log_denials:
            logger.warning(
                "Authorization denied for %s.%s (%s phase)",
                self.root_type_name,
                self.operation_name,
                phase,
            )
        return AuthorizationDenied(
            result,
            phase=phase,
            operation_name=self.operation_name,
            include_result=self.options.include_result_in_message,
        )

    async def validate_inputs(
        self, inputs: Any, context: AuthContext, root_data: RootData, run: Any
    ) -> AuthResult:
        """Authorize each top-level argument against the write policy of its input type."""
        awaitables = {}
        for key, value in (inputs or {}).items():
            type_name = self.input_types.get(key)
            if type_name is None:
                logger.warning(
                    "Argument %s of %s has no declared input type", key, self.operation_name
                )
            awaitables[key] = self.authorizer.authorize(
                type_name, AuthType.WRITE, value, context, root_data, run=run
            )
        return await gather_mapping(awaitables)

    async def validate_response(
        self, response: Any, context: AuthContext, root_data: RootData, run: Any
    ) -> AuthResult:
        return await self.authorizer.authorize(
            self.response_type, AuthType.READ, response, context, root_data, run=run
        )

    async def execute(self, inputs: Any = None, info: Any = None, transport_context: Any = None) -> Any:
        """
        Run one request through the pipeline.

        Args:
            inputs: Operation arguments
            info: Selection passed through to the data layer
            transport_context: Context of the transport layer (e.g. the HTTP request)

        Returns:
            The operation result, unchanged

        Raises:
            AuthorizationDenied: If inputs or response are not allowed
            PolicyEvaluationError: If a policy could not be evaluated
            UnknownQueryOperation: If the mutation cannot be classified
        """
        operation_kind = classify_operation(
            self.root_type_name,
            self.operation_name,
            strict=self.options.require_operation_classification,
        )
        context = AuthContext(
            principal=self.principal,
            transport_context=transport_context,
            data_layer=self.data_layer,
        )
        root_data = RootData(
            root_field_name=self.operation_name,
            root_type_name=self.root_type_name,
            inputs=inputs,
            operation_kind=operation_kind,
        )
        run = create_run(
            self.operation,
            inputs,
            info,
            run_sync_in_thread=self.options.run_sync_in_thread,
            label=self.operation_name,
        )

        state = PipelineState.VALIDATING_INPUT
        try:
            if not self.is_read:
                # The operation must not run before its inputs are authorized
                input_result = await self.validate_inputs(
                    inputs, context, root_data, GuardedRun(self.operation_name)
                )
                if not summarize_auth_result(input_result):
                    state = self._transition(state, PipelineState.FAILED)
                    raise self._deny(
                        annotate_auth_result_with_input_types(input_result, self.input_types),
                        phase="input",
                    )

            state = self._transition(state, PipelineState.EXECUTING)
            response = await run()

            state = self._transition(state, PipelineState.VALIDATING_OUTPUT)
            output_result = await self.validate_response(response, context, root_data, run)
            if not summarize_auth_result(output_result):
                state = self._transition(state, PipelineState.FAILED)
                raise self._deny(output_result, phase="output")
        except PolicyEvaluationError as exc:
            self._transition(state, PipelineState.FAILED)
            logger.error(
                "Policy evaluation failed for %s.%s: %s",
                self.root_type_name,
                self.operation_name,
                exc,
            )
            if self.options.report_policy_errors:
                report_policy_error(exc, root_data)
            raise

        self._transition(state, PipelineState.DONE)
        return response

    async def __call__(self, inputs: Any = None, info: Any = None, ctx: Any = None) -> Any:
        return await self.execute(inputs, info, ctx)

    def sync(self, inputs: Any = None, info: Any = None, ctx: Any = None) -> Any:
        """Blocking variant for synchronous resolvers."""
        return async_to_sync(self.execute)(inputs, info, ctx)
