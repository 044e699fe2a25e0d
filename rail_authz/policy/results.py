"""
Helpers for authorization result trees.

A result tree is either a bool or a mapping from field name to a nested
result tree, mirroring the shape of the authorized data.
"""

import asyncio
from collections.abc import Mapping
from typing import Any, Awaitable, Optional

from ..exceptions import InvalidAuthResultShape
from ..utils import join_path

AuthResult = Any


def summarize_auth_result(result: AuthResult, path: Optional[str] = None) -> bool:
    """
    Reduce a result tree to one decision.

    Every leaf is visited, so a malformed leaf is reported even when an
    earlier sibling already denied. An empty mapping summarizes to True.

    Raises:
        InvalidAuthResultShape: If a leaf is neither a bool nor a mapping
    """
    if isinstance(result, bool):
        return result
    if not isinstance(result, Mapping):
        raise InvalidAuthResultShape(result, path)

    allowed = True
    for key, child in result.items():
        if not summarize_auth_result(child, join_path(path, key)):
            allowed = False
    return allowed


def annotate_auth_result_with_input_types(
    result: Mapping[str, AuthResult], input_types: Mapping[str, Optional[str]]
) -> dict[str, dict[str, Any]]:
    """Tag each top-level input result with the input type it was checked as."""
    return {
        key: {"input_type": input_types.get(key), "result": value}
        for key, value in result.items()
    }


async def gather_mapping(awaitables: Mapping[str, Awaitable[Any]]) -> dict[str, Any]:
    """
    Await every value of a mapping concurrently, keeping the keys.

    Every sibling is settled before returning; if any of them failed, the
    first failure in key order is raised.
    """
    keys = list(awaitables)
    values = await asyncio.gather(*(awaitables[key] for key in keys), return_exceptions=True)
    for value in values:
        if isinstance(value, BaseException):
            raise value
    return dict(zip(keys, values))
