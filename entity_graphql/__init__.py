# Copyright 2026-present Kensho Technologies, LLC.
"""Commonly-used functions and data types from this package."""
from .exceptions import (  # noqa
    EntityGraphQLError,
    InvalidStoreRequestError,
    ReferentialInconsistencyError,
    SchemaConfigurationError,
    SqliteError,
    StoreError,
)
from .query_running import execute_query  # noqa
from .schema import (  # noqa
    DerivedField,
    Entity,
    EntitySchema,
    EnumDefinition,
    EnumField,
    GraphQLBigInt,
    GraphQLBytes,
    ListField,
    RelationshipField,
    ScalarField,
)
from .schema_generation import build_entity_types, get_graphql_schema_from_entities  # noqa
from .store import ModelFilter, QueryContext, SqliteStore, Store  # noqa


__package_name__ = "entity-graphql"
__version__ = "1.0.0"
