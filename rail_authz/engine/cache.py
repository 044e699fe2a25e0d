"""
Per-principal authorizer cache and the ``Authorized`` entry point.

``Authorized`` owns the data layer, the type graph and the authored
permission map. ``for_principal`` returns a ``CompiledAuthorizer`` whose
``query``/``mutation`` namespaces expose every data-layer operation wrapped
in a RequestPipeline. Compiled authorizers hold their principal strongly
and are memoized by principal identity for as long as somebody holds them;
they are all dropped when the permission map is replaced.
"""

import logging
import threading
import weakref
from collections.abc import Mapping
from typing import Any, Callable, Iterator, Optional, Union

from ..options import AuthorizationOptions, resolve_options
from ..policy import DerivedPermissionGenerator, PermissionMapping
from ..schema import TypeDefs, TypeGraph
from .authorizer import Authorizer
from .pipeline import RequestPipeline

logger = logging.getLogger(__name__)


class OperationNamespace:
    """Wrapped operations of one root type, reachable by attribute or key."""

    def __init__(self, pipelines: dict[str, RequestPipeline]):
        self._pipelines = pipelines

    def __getattr__(self, name: str) -> RequestPipeline:
        try:
            return self._pipelines[name]
        except KeyError:
            raise AttributeError(name) from None

    def __getitem__(self, name: str) -> RequestPipeline:
        return self._pipelines[name]

    def __contains__(self, name: object) -> bool:
        return name in self._pipelines

    def __iter__(self) -> Iterator[str]:
        return iter(self._pipelines)

    def __len__(self) -> int:
        return len(self._pipelines)


class CompiledAuthorizer:
    """Fully wired authorization pipelines for one principal."""

    def __init__(
        self,
        principal: Any,
        permission_mapping: PermissionMapping,
        query: OperationNamespace,
        mutation: OperationNamespace,
    ):
        self.principal = principal
        self.permission_mapping = permission_mapping
        self.query = query
        self.mutation = mutation


class PrincipalAuthorizerCache:
    """
    Memoizes one value per principal, keyed by identity.

    Values are held weakly. Since a compiled authorizer holds its principal,
    an entry lives exactly as long as somebody uses it and the principal's
    ``id()`` cannot be reused meanwhile. Equal but distinct principals (two
    loads of the same user row) never share an entry.
    """

    def __init__(self, factory: Callable[[Any], CompiledAuthorizer]):
        self._factory = factory
        self._cache: "weakref.WeakValueDictionary[int, CompiledAuthorizer]" = (
            weakref.WeakValueDictionary()
        )
        self._lock = threading.Lock()

    def get(self, principal: Any) -> CompiledAuthorizer:
        key = id(principal)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached
            compiled = self._factory(principal)
            self._cache[key] = compiled
            return compiled

    def invalidate(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


def _iter_operations(source: Any) -> dict[str, Callable[..., Any]]:
    if source is None:
        return {}
    if isinstance(source, Mapping):
        return dict(source)
    return {
        name: getattr(source, name)
        for name in dir(source)
        if not name.startswith("_") and callable(getattr(source, name))
    }


class Authorized:
    """
    Authorization front door for a data layer.

    Args:
        data_layer: Object exposing ``query`` and ``mutation`` operations,
            each a mapping or object of ``(args, info)`` callables
        type_defs: SDL text, parsed document, graphql-core or graphene schema
        permission_map: Authored permission mapping
        options: AuthorizationOptions or a dict of overrides

    Example:
        >>> authorized = Authorized(data_layer, type_defs, permission_map)
        >>> api = authorized.for_principal(request.user)
        >>> post = await api.query.post({"where": {"id": 1}}, "{ id title }")
    """

    def __init__(
        self,
        data_layer: Any,
        type_defs: TypeDefs,
        permission_map: Mapping[str, Any],
        options: Optional[Union[AuthorizationOptions, Mapping[str, Any]]] = None,
    ):
        self.data_layer = data_layer
        self.type_graph = TypeGraph(type_defs)
        self.options = resolve_options(options)
        self.permission_map = permission_map
        self._compiled_mapping: Optional[PermissionMapping] = None
        self._mapping_lock = threading.Lock()
        self._principals = PrincipalAuthorizerCache(self._build)

    def set_permission_map(self, permission_map: Mapping[str, Any]) -> None:
        """Replace the permission map and drop every compiled authorizer."""
        with self._mapping_lock:
            self.permission_map = permission_map
            self._compiled_mapping = None
        self._principals.invalidate()
        logger.info("Permission map replaced; principal cache cleared")

    replace_permission_mapping = set_permission_map

    def invalidate(self) -> None:
        with self._mapping_lock:
            self._compiled_mapping = None
        self._principals.invalidate()

    def get_permission_mapping(self) -> PermissionMapping:
        """Return the compiled mapping, derived entries included."""
        with self._mapping_lock:
            if self._compiled_mapping is None:
                authored = self.permission_map
                if self.options.auto_generate_derived_type_permissions and not isinstance(
                    authored, PermissionMapping
                ):
                    authored = DerivedPermissionGenerator(
                        self.type_graph, allow_leaf_types=self.options.allow_leaf_types
                    ).apply(authored)
                self._compiled_mapping = PermissionMapping.compile(authored)
                logger.info(
                    "Compiled permission mapping (%d types)", len(self._compiled_mapping)
                )
            return self._compiled_mapping

    def for_principal(self, principal: Any) -> CompiledAuthorizer:
        if not self.options.cache_enabled:
            return self._build(principal)
        return self._principals.get(principal)

    for_user = for_principal

    def _build(self, principal: Any) -> CompiledAuthorizer:
        mapping = self.get_permission_mapping()
        authorizer = Authorizer(mapping, known_types=self.type_graph.get_resource_type_names())

        def wrap(root_kind: str, source: Any) -> OperationNamespace:
            return OperationNamespace(
                {
                    name: RequestPipeline(
                        authorizer,
                        self.type_graph,
                        operation,
                        root_kind,
                        name,
                        principal=principal,
                        data_layer=self.data_layer,
                        options=self.options,
                    )
                    for name, operation in _iter_operations(source).items()
                }
            )

        logger.debug("Building authorizer for principal %r", principal)
        return CompiledAuthorizer(
            principal=principal,
            permission_mapping=mapping,
            query=wrap("Query", getattr(self.data_layer, "query", None)),
            mutation=wrap("Mutation", getattr(self.data_layer, "mutation", None)),
        )
