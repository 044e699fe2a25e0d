"""
Reusable predicates for permission mappings.

Predicates are called as ``fn(root_args, run, context)``:

    >>> permission_map = {
    ...     "Post": {
    ...         "read": {"title": True, "body": is_authenticated},
    ...         "write": {"where": is_mine("post")},
    ...     }
    ... }
"""

import inspect
import logging
from collections.abc import Mapping
from typing import Any, Callable

from asgiref.sync import sync_to_async

from .engine.lazy import is_async_callable
from .policy import AuthContext
from .utils import get_path, split_path

logger = logging.getLogger(__name__)


def _selection_for(path: str) -> str:
    """Build a selection set for a dotted path: ``user.id`` -> ``{ user { id } }``."""
    segments = split_path(path)
    selection = ""
    for segment in reversed(segments):
        selection = f"{segment} {{ {selection} }}" if selection else segment
    return f"{{ {selection} }}"


def _get_query(data_layer: Any, query_name: str) -> Callable[..., Any]:
    queries = getattr(data_layer, "query", None)
    operation = queries.get(query_name) if isinstance(queries, Mapping) else getattr(queries, query_name, None)
    if operation is None:
        raise LookupError(f"Data layer has no query named '{query_name}'")
    return operation


def is_authenticated(root_args: Any, run: Any, context: AuthContext) -> bool:
    """Allow authenticated principals (Django ``is_authenticated`` semantics)."""
    return bool(getattr(context.principal, "is_authenticated", False))


def is_mine(
    query_name: str,
    relationship_path: str = "user.id",
    resource_id_path: str = "id",
) -> Callable[[Any, Any, AuthContext], Any]:
    """
    Allow when the resource belongs to the principal.

    The owner id is read from the authorized data at ``relationship_path``.
    When the data does not carry it, the resource is fetched by the id found
    at ``resource_id_path`` through ``data_layer.query[query_name]`` and the
    owner read from the fetched object.

    Args:
        query_name: Data-layer query returning a single resource
        relationship_path: Path of the owner id in the data
        resource_id_path: Path of the resource id in the data

    Returns:
        An async predicate
    """
    resource_prefix = resource_id_path.rpartition(".")[0]
    if resource_prefix and relationship_path.startswith(f"{resource_prefix}."):
        owner_path = relationship_path[len(resource_prefix) + 1:]
    else:
        owner_path = relationship_path
    selection = _selection_for(owner_path)

    async def check(root_args: Any, run: Any, context: AuthContext) -> bool:
        principal_id = get_path(context.principal, "id")
        if principal_id is None:
            return False

        owner_id = get_path(root_args, relationship_path)
        if owner_id is None:
            resource_id = get_path(root_args, resource_id_path)
            if resource_id is None:
                return False
            fetch = _get_query(context.data_layer, query_name)
            if not is_async_callable(fetch):
                fetch = sync_to_async(fetch)
            resource = fetch({"where": {"id": resource_id}}, selection)
            if inspect.isawaitable(resource):
                resource = await resource
            owner_id = get_path(resource, owner_path)
            logger.debug("Fetched owner of %s %s for ownership check", query_name, resource_id)

        return owner_id is not None and str(owner_id) == str(principal_id)

    check.__name__ = check.__qualname__ = f"is_mine[{query_name}]"
    return check
