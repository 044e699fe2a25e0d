"""
Lazy, single-shot execution of data-layer operations.

A request wraps its underlying operation in a ``LazyRun``. Predicates,
delegated evaluations and the pipeline itself may all ask for the result;
the operation runs the first time anybody does and every later caller
reads the same settled value (or the same exception).
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional

from asgiref.sync import iscoroutinefunction, sync_to_async

from ..exceptions import PolicyEvaluationError
from ..utils import get_path, join_path

logger = logging.getLogger(__name__)


def is_async_callable(fn: Any) -> bool:
    """True for coroutine functions and objects with an async ``__call__``."""
    return iscoroutinefunction(fn) or iscoroutinefunction(getattr(fn, "__call__", None))


class LazyRun:
    """
    Resolve-once, read-many handle over one operation call.

    Calling the handle (``await run()``) starts the operation on first use
    and awaits its settlement. The call is made with ``(args, info)``.
    """

    def __init__(
        self,
        operation: Callable[..., Any],
        args: Any = None,
        info: Any = None,
        run_sync_in_thread: bool = True,
        label: Optional[str] = None,
    ):
        self.operation = operation
        self.args = args
        self.info = info
        self.run_sync_in_thread = run_sync_in_thread
        self.label = label or getattr(operation, "__name__", repr(operation))
        self._task: Optional[asyncio.Future] = None

    @property
    def started(self) -> bool:
        return self._task is not None

    def done(self) -> bool:
        return self._task is not None and self._task.done()

    async def _execute(self) -> Any:
        operation = self.operation
        if self.run_sync_in_thread and not is_async_callable(operation):
            operation = sync_to_async(operation)
        logger.debug("Executing operation %s", self.label)
        result = operation(self.args, self.info)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def __call__(self) -> Any:
        if self._task is None:
            self._task = asyncio.ensure_future(self._execute())
        # A cancelled caller must not cancel the shared execution
        return await asyncio.shield(self._task)

    def project(self, path: Optional[str]) -> "ProjectedRun":
        return ProjectedRun(self, path)

    def __repr__(self) -> str:
        return f"<LazyRun {self.label} started={self.started}>"


class ProjectedRun:
    """
    View of a parent run's result at a dot-delimited path.

    Projections of projections collapse onto the root run, so however deep
    the nesting only the root operation is ever executed.
    """

    def __init__(self, parent: "LazyRun | ProjectedRun", path: Optional[str]):
        if isinstance(parent, ProjectedRun):
            path = join_path(parent.path, path) if path else parent.path
            parent = parent.root
        self.root: LazyRun = parent
        self.path = path or ""

    async def __call__(self) -> Any:
        return get_path(await self.root(), self.path)

    def project(self, path: Optional[str]) -> "ProjectedRun":
        return ProjectedRun(self, path)

    def __repr__(self) -> str:
        return f"<ProjectedRun {self.root.label}:{self.path or '.'}>"


class GuardedRun:
    """
    Stand-in run handed to write policies.

    Inputs are validated before the operation may execute, so forcing this
    handle (or any projection of it) is a policy error rather than a call.
    """

    def __init__(self, label: str):
        self.label = label

    async def __call__(self) -> Any:
        raise PolicyEvaluationError(
            f"Write policies of '{self.label}' cannot read the operation result "
            "before its inputs are authorized",
            auth_type="write",
        )

    def project(self, path: Optional[str]) -> "GuardedRun":
        return self

    def __repr__(self) -> str:
        return f"<GuardedRun {self.label}>"


def create_run(operation: Callable[..., Any], args: Any = None, info: Any = None, **kwargs) -> LazyRun:
    return LazyRun(operation, args, info, **kwargs)


def project_run(parent_run: "LazyRun | ProjectedRun", path: Optional[str]) -> ProjectedRun:
    return ProjectedRun(parent_run, path)
