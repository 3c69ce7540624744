# Copyright 2026-present Kensho Technologies, LLC.
"""Resolution rules for the fields of compiled entity types.

Scalar, enum and list fields are not given a resolver: graphql-core's default resolver reads
the value from the parent record by field name, and the field's scalar type serializes it.
Relationship, derived and root fields get one of the resolvers constructed here. The resolvers
only read from the store in the request's QueryContext, and never mutate it.
"""
from typing import Any, Callable, List, Mapping, Optional

from graphql import GraphQLResolveInfo

from ..exceptions import ReferentialInconsistencyError
from ..schema import ID_FIELD_NAME
from ..schema.entities import DerivedField, RelationshipField
from ..store.typedefs import (
    DEFAULT_FIRST,
    DEFAULT_ORDER_BY,
    DEFAULT_ORDER_DIRECTION,
    DEFAULT_SKIP,
    ModelFilter,
    QueryContext,
    Record,
    make_model_filter,
)


def _make_page_filter(
    where: Mapping[str, Any],
    skip: Optional[int],
    first: Optional[int],
    order_by: Optional[str],
    order_direction: Optional[str],
    timestamp: Optional[int],
) -> ModelFilter:
    """Return the filter for one page of records, using the defaults for null arguments."""
    # graphql-core only passes "timestamp" if the query supplied it, and an explicit null
    # is treated the same as an omitted argument. Zero is a valid point in time.
    return make_model_filter(
        where,
        skip=DEFAULT_SKIP if skip is None else skip,
        first=DEFAULT_FIRST if first is None else first,
        order_by=DEFAULT_ORDER_BY if order_by is None else order_by,
        order_direction=DEFAULT_ORDER_DIRECTION if order_direction is None else order_direction,
        timestamp=timestamp,
    )


def make_relationship_resolver(field: RelationshipField) -> Callable:
    """Return a resolver that replaces the stored id of the related record by the record itself."""

    async def resolve_relationship(parent: Record, info: GraphQLResolveInfo) -> Optional[Record]:
        related_id = parent.get(field.name)
        if related_id is None:
            # A null id of a non-null field is caught by the non-null check below,
            # without querying the store for a record that cannot exist.
            related_record = None
        else:
            context: QueryContext = info.context
            related_record = await context.store.find_unique(field.related_entity_name, related_id)

        if related_record is None and field.not_null:
            raise ReferentialInconsistencyError(
                'Non-null relationship field "{}" points to {} record with id {!r}, but the store '
                "has no such record.".format(field.name, field.related_entity_name, related_id)
            )
        return related_record

    return resolve_relationship


def make_derived_resolver(field: DerivedField) -> Callable:
    """Return a resolver listing the records whose back-reference field equals the parent's id."""

    async def resolve_derived(
        parent: Record,
        info: GraphQLResolveInfo,
        skip: Optional[int] = DEFAULT_SKIP,
        first: Optional[int] = DEFAULT_FIRST,
        order_by: Optional[str] = DEFAULT_ORDER_BY,
        order_direction: Optional[str] = DEFAULT_ORDER_DIRECTION,
        timestamp: Optional[int] = None,
    ) -> List[Record]:
        model_filter = _make_page_filter(
            {field.derived_from_field_name: parent[ID_FIELD_NAME]},
            skip,
            first,
            order_by,
            order_direction,
            timestamp,
        )
        context: QueryContext = info.context
        records = await context.store.find_many(field.derived_from_entity_name, model_filter)
        if records is None:
            return []
        return list(records)

    return resolve_derived


def make_find_unique_resolver(entity_name: str) -> Callable:
    """Return a root resolver that looks up one record of the entity by its id."""

    async def resolve_find_unique(root: Any, info: GraphQLResolveInfo, id: Any) -> Optional[Record]:
        context: QueryContext = info.context
        return await context.store.find_unique(entity_name, id)

    return resolve_find_unique


def make_find_many_resolver(entity_name: str) -> Callable:
    """Return a root resolver that lists the records of the entity, one page at a time."""

    async def resolve_find_many(
        root: Any,
        info: GraphQLResolveInfo,
        skip: Optional[int] = DEFAULT_SKIP,
        first: Optional[int] = DEFAULT_FIRST,
        order_by: Optional[str] = DEFAULT_ORDER_BY,
        order_direction: Optional[str] = DEFAULT_ORDER_DIRECTION,
        timestamp: Optional[int] = None,
    ) -> List[Record]:
        model_filter = _make_page_filter({}, skip, first, order_by, order_direction, timestamp)
        context: QueryContext = info.context
        records = await context.store.find_many(entity_name, model_filter)
        if records is None:
            return []
        return list(records)

    return resolve_find_many
