"""
Queryable type graph built from GraphQL type definitions.

The engine only needs a handful of questions answered about the schema:
which input types an operation takes, which type it returns, which types
exist and which of them are plain leaves. ``TypeGraph`` answers them from
SDL text, a parsed document, a graphql-core schema or a graphene schema.
"""

import logging
from typing import Optional, Union

import graphene
from django.utils.functional import cached_property
from graphql import (
    DocumentNode,
    GraphQLField,
    GraphQLInputField,
    GraphQLNamedType,
    GraphQLObjectType,
    GraphQLSchema,
    build_ast_schema,
    build_schema,
    get_named_type,
    is_input_object_type,
    is_interface_type,
    is_introspection_type,
    is_leaf_type,
    is_object_type,
    is_union_type,
)

logger = logging.getLogger(__name__)

TypeDefs = Union[str, DocumentNode, GraphQLSchema, graphene.Schema]

ROOT_KINDS = ("Query", "Mutation", "Subscription")


def resolve_type_defs(type_defs: TypeDefs) -> GraphQLSchema:
    """
    Build a graphql-core schema from any supported type definition source.

    Custom directives in SDL (``@unique``, ``@relation``...) are accepted
    without declaration.
    """
    if isinstance(type_defs, GraphQLSchema):
        return type_defs
    if isinstance(type_defs, graphene.Schema):
        return type_defs.graphql_schema
    if isinstance(type_defs, DocumentNode):
        return build_ast_schema(type_defs, assume_valid_sdl=True)
    if isinstance(type_defs, str):
        return build_schema(type_defs, assume_valid_sdl=True)
    raise TypeError(f"Unsupported type definitions: {type(type_defs).__name__}")


def _normalize_root_kind(root_kind: str) -> str:
    normalized = str(root_kind)[:1].upper() + str(root_kind)[1:].lower()
    if normalized not in ROOT_KINDS:
        raise ValueError(f"Unknown root kind '{root_kind}'")
    return normalized


class TypeGraph:
    """Read-only view over a GraphQL schema for the authorization engine."""

    def __init__(self, type_defs: TypeDefs):
        self.schema = resolve_type_defs(type_defs)

    def _root_type(self, root_kind: str) -> Optional[GraphQLObjectType]:
        kind = _normalize_root_kind(root_kind)
        if kind == "Query":
            return self.schema.query_type
        if kind == "Mutation":
            return self.schema.mutation_type
        return self.schema.subscription_type

    def _root_field(self, root_kind: str, operation_name: str) -> Optional[GraphQLField]:
        root_type = self._root_type(root_kind)
        if root_type is None:
            return None
        return root_type.fields.get(operation_name)

    def get_operation_names(self, root_kind: str) -> list[str]:
        root_type = self._root_type(root_kind)
        return list(root_type.fields) if root_type is not None else []

    def get_input_types(self, root_kind: str, operation_name: str) -> dict[str, str]:
        """
        Map each argument of an operation to its named input type.

        List and non-null wrappers are removed, so ``[PostWhereInput!]!``
        becomes ``PostWhereInput``.
        """
        field = self._root_field(root_kind, operation_name)
        if field is None:
            logger.debug("No %s operation named %s", root_kind, operation_name)
            return {}
        return {
            arg_name: get_named_type(arg.type).name for arg_name, arg in field.args.items()
        }

    def get_response_type(self, root_kind: str, operation_name: str) -> Optional[str]:
        field = self._root_field(root_kind, operation_name)
        if field is None:
            logger.debug("No %s operation named %s", root_kind, operation_name)
            return None
        return get_named_type(field.type).name

    @cached_property
    def _root_type_names(self) -> set[str]:
        roots = (
            self.schema.query_type,
            self.schema.mutation_type,
            self.schema.subscription_type,
        )
        return {root.name for root in roots if root is not None}

    @cached_property
    def _resource_type_names(self) -> frozenset[str]:
        return frozenset(
            name
            for name, named_type in self.schema.type_map.items()
            if not is_introspection_type(named_type) and name not in self._root_type_names
        )

    def get_resource_type_names(self) -> set[str]:
        """Names of every non-introspection, non-root type in the schema."""
        return set(self._resource_type_names)

    def get_type(self, type_name: str) -> Optional[GraphQLNamedType]:
        return self.schema.type_map.get(type_name)

    def is_leaf_type(self, type_name: str) -> bool:
        """True for scalars and enums."""
        named_type = self.get_type(type_name)
        return named_type is not None and is_leaf_type(named_type)

    def get_field_types(self, type_name: str) -> dict[str, str]:
        """Map each field of an object, interface or input type to its named type."""
        named_type = self.get_type(type_name)
        fields: dict[str, Union[GraphQLField, GraphQLInputField]] = getattr(
            named_type, "fields", None
        ) or {}
        return {name: get_named_type(field.type).name for name, field in fields.items()}

    def is_relationship_field(self, type_name: str, field_name: str) -> bool:
        """True when the field points at a composite type rather than a leaf."""
        target_name = self.get_field_types(type_name).get(field_name)
        if target_name is None:
            return False
        target = self.get_type(target_name)
        return any(
            check(target)
            for check in (is_object_type, is_interface_type, is_union_type, is_input_object_type)
        )

    def has_relationships(self, type_name: str) -> bool:
        return any(
            self.is_relationship_field(type_name, field_name)
            for field_name in self.get_field_types(type_name)
        )

