# Copyright 2026-present Kensho Technologies, LLC.
from collections import OrderedDict
import logging
from typing import Callable, Dict, Mapping

from graphql import (
    GraphQLArgument,
    GraphQLEnumType,
    GraphQLField,
    GraphQLInt,
    GraphQLList,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLOutputType,
    GraphQLSchema,
    GraphQLString,
)

from ..schema import ID_FIELD_NAME, SCALAR_TYPE_NAME_TO_GRAPHQL_TYPE
from ..schema.entities import (
    DerivedField,
    Entity,
    EntitySchema,
    EnumField,
    FieldDescriptor,
    ListField,
    RelationshipField,
    ScalarField,
)
from ..store.typedefs import (
    DEFAULT_FIRST,
    DEFAULT_ORDER_BY,
    DEFAULT_ORDER_DIRECTION,
    DEFAULT_SKIP,
)
from .field_resolvers import (
    make_derived_resolver,
    make_find_many_resolver,
    make_find_unique_resolver,
    make_relationship_resolver,
)
from .validation import ROOT_QUERY_TYPE_NAME, get_root_field_names, validate_entity_schema


logger = logging.getLogger(__name__)

# Name-keyed registries of the GraphQL types generated for the entities and enums of a schema.
TypeRegistry = Dict[str, GraphQLObjectType]
EnumRegistry = Dict[str, GraphQLEnumType]


def _make_pagination_args() -> Dict[str, GraphQLArgument]:
    """Return the arguments accepted by every field that lists records of an entity."""
    # "timestamp" has no default value: graphql-core only passes it to the resolver
    # when the query supplies it, which is how "latest state" is told apart from time zero.
    return OrderedDict(
        [
            ("skip", GraphQLArgument(GraphQLInt, default_value=DEFAULT_SKIP)),
            ("first", GraphQLArgument(GraphQLInt, default_value=DEFAULT_FIRST)),
            (
                "orderBy",
                GraphQLArgument(GraphQLString, default_value=DEFAULT_ORDER_BY, out_name="order_by"),
            ),
            (
                "orderDirection",
                GraphQLArgument(
                    GraphQLString,
                    default_value=DEFAULT_ORDER_DIRECTION,
                    out_name="order_direction",
                ),
            ),
            ("timestamp", GraphQLArgument(GraphQLInt)),
        ]
    )


def _wrap_non_null(graphql_type: GraphQLOutputType, not_null: bool) -> GraphQLOutputType:
    """Wrap the type in GraphQLNonNull if requested."""
    if not_null:
        return GraphQLNonNull(graphql_type)
    return graphql_type


def _make_scalar_field(
    field: ScalarField, entity_types: TypeRegistry, enum_types: EnumRegistry
) -> GraphQLField:
    graphql_type = SCALAR_TYPE_NAME_TO_GRAPHQL_TYPE[field.scalar_type_name]
    return GraphQLField(_wrap_non_null(graphql_type, field.not_null))


def _make_enum_field(
    field: EnumField, entity_types: TypeRegistry, enum_types: EnumRegistry
) -> GraphQLField:
    return GraphQLField(_wrap_non_null(enum_types[field.enum_name], field.not_null))


def _make_relationship_field(
    field: RelationshipField, entity_types: TypeRegistry, enum_types: EnumRegistry
) -> GraphQLField:
    # The type is nullable even for non-null fields: a dangling id is reported as an error
    # on this field alone, instead of nulling out the whole parent record.
    return GraphQLField(
        entity_types[field.related_entity_name], resolve=make_relationship_resolver(field)
    )


def _make_derived_field(
    field: DerivedField, entity_types: TypeRegistry, enum_types: EnumRegistry
) -> GraphQLField:
    derived_type = entity_types[field.derived_from_entity_name]
    return GraphQLField(
        GraphQLNonNull(GraphQLList(GraphQLNonNull(derived_type))),
        args=_make_pagination_args(),
        resolve=make_derived_resolver(field),
    )


def _make_list_field(
    field: ListField, entity_types: TypeRegistry, enum_types: EnumRegistry
) -> GraphQLField:
    element_type_name = field.element_type_name
    if element_type_name in enum_types:
        element_type = enum_types[element_type_name]
    else:
        element_type = SCALAR_TYPE_NAME_TO_GRAPHQL_TYPE[element_type_name]

    list_type = GraphQLList(_wrap_non_null(element_type, field.is_list_element_not_null))
    return GraphQLField(_wrap_non_null(list_type, field.not_null))


_FIELD_DESCRIPTOR_TO_FIELD_MAKER: Mapping[type, Callable[..., GraphQLField]] = {
    ScalarField: _make_scalar_field,
    EnumField: _make_enum_field,
    RelationshipField: _make_relationship_field,
    DerivedField: _make_derived_field,
    ListField: _make_list_field,
}


def _make_graphql_field(
    field: FieldDescriptor, entity_types: TypeRegistry, enum_types: EnumRegistry
) -> GraphQLField:
    """Return the GraphQL field, with its resolution rule, for the given field descriptor."""
    field_maker = _FIELD_DESCRIPTOR_TO_FIELD_MAKER.get(type(field))
    if field_maker is None:
        raise AssertionError(
            "Unreachable code reached: no GraphQL field maker for field descriptor {}".format(field)
        )
    return field_maker(field, entity_types, enum_types)


def _create_field_specification(
    entity: Entity, entity_types: TypeRegistry, enum_types: EnumRegistry
) -> Callable[[], Dict[str, GraphQLField]]:
    """Return a function that specifies the fields present on the given entity's type."""

    def field_maker_func() -> Dict[str, GraphQLField]:
        """Create and return the fields for the given GraphQL type."""
        logger.debug("Building GraphQL fields of entity %s.", entity.name)
        return OrderedDict(
            (field.name, _make_graphql_field(field, entity_types, enum_types))
            for field in entity.fields
        )

    return field_maker_func


def build_enum_types(entity_schema: EntitySchema) -> EnumRegistry:
    """Return a dict of enum name -> GraphQLEnumType, for every enum in the schema."""
    return OrderedDict(
        (
            enum.name,
            GraphQLEnumType(enum.name, OrderedDict((value, value) for value in enum.values)),
        )
        for enum in entity_schema.enums
    )


def build_entity_types(entity_schema: EntitySchema) -> TypeRegistry:
    """Return a dict of entity name -> GraphQLObjectType, for every entity in the schema.

    The fields of each returned type are computed lazily, the first time they are accessed,
    and memoized by graphql-core from then on. Building a GraphQLSchema out of the types
    accesses all of them.

    Args:
        entity_schema: EntitySchema to compile

    Returns:
        OrderedDict of entity name -> GraphQL object type, in schema order

    Raises:
        SchemaConfigurationError if the schema references undefined entities, enums or scalar
        types. This is checked up front, so it never surfaces when fields are first accessed.
    """
    validate_entity_schema(entity_schema)

    enum_types = build_enum_types(entity_schema)
    entity_types: TypeRegistry = OrderedDict()
    for entity in entity_schema.entities:
        # We have to use delayed type binding here, because some of the type references
        # are circular: if Pet has a relationship field pointing to Person, and Person has
        # a field derived from Pet, each type needs the other to define its fields.
        # graphql-core allows us to create the types without their field information,
        # and to supply a function that is called to compute the fields once they are needed.
        # By that time, every entity type is already in the registry.
        #
        # The function is made by a helper, so that it is bound to this loop's entity.
        field_specification_lambda = _create_field_specification(entity, entity_types, enum_types)
        entity_types[entity.name] = GraphQLObjectType(entity.name, field_specification_lambda)

    logger.debug("Registered GraphQL types for %d entities.", len(entity_types))
    return entity_types


def get_graphql_schema_from_entities(entity_schema: EntitySchema) -> GraphQLSchema:
    """Return a GraphQL schema exposing every entity of the given entity schema.

    For each entity, e.g. "Pet", the root query type has two fields:
        - pet(id: ...): the record with the given id, or null;
        - pets(skip, first, orderBy, orderDirection, timestamp): a page of its records.

    Args:
        entity_schema: EntitySchema to compile

    Returns:
        GraphQLSchema whose resolvers expect a QueryContext as the context value
    """
    entity_types = build_entity_types(entity_schema)

    root_fields = OrderedDict()
    for entity in entity_schema.entities:
        entity_type = entity_types[entity.name]
        id_field = entity.fields_by_name[ID_FIELD_NAME]
        id_type = SCALAR_TYPE_NAME_TO_GRAPHQL_TYPE[id_field.scalar_type_name]

        singular_name, plural_name = get_root_field_names(entity.name)
        root_fields[singular_name] = GraphQLField(
            entity_type,
            args={"id": GraphQLArgument(GraphQLNonNull(id_type))},
            resolve=make_find_unique_resolver(entity.name),
        )
        root_fields[plural_name] = GraphQLField(
            GraphQLNonNull(GraphQLList(GraphQLNonNull(entity_type))),
            args=_make_pagination_args(),
            resolve=make_find_many_resolver(entity.name),
        )

    # Constructing the schema collects every reachable type, which evaluates
    # all field specification functions before the schema is used to serve queries.
    schema = GraphQLSchema(GraphQLObjectType(ROOT_QUERY_TYPE_NAME, root_fields))
    logger.info(
        "Compiled GraphQL schema with %d entities and %d enums.",
        len(entity_schema.entities),
        len(entity_schema.enums),
    )
    return schema
