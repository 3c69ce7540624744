# Copyright 2026-present Kensho Technologies, LLC.
from .graphql_schema import (  # noqa
    build_entity_types,
    build_enum_types,
    get_graphql_schema_from_entities,
)
from .validation import validate_entity_schema  # noqa
