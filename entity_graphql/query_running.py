# Copyright 2026-present Kensho Technologies, LLC.
from typing import Any, Dict, Optional

from graphql import ExecutionResult, GraphQLSchema, graphql

from .store.typedefs import QueryContext, Store


async def execute_query(
    schema: GraphQLSchema,
    query: str,
    store: Store,
    variables: Optional[Dict[str, Any]] = None,
    operation_name: Optional[str] = None,
) -> ExecutionResult:
    """Run a GraphQL query against the store, with a fresh QueryContext for this query only.

    Errors raised while resolving a field, e.g. a ReferentialInconsistencyError or a StoreError,
    are reported in the "errors" of the result, and the other fields are still resolved.

    Args:
        schema: GraphQLSchema produced by get_graphql_schema_from_entities()
        query: str, the GraphQL query to run
        store: Store to read records from
        variables: optional dict, mapping variable name to its value, for every variable
                   the query expects
        operation_name: optional str, which operation of the query document to run

    Returns:
        graphql-core ExecutionResult, with the query's data and any errors
    """
    return await graphql(
        schema,
        query,
        context_value=QueryContext(store=store),
        variable_values=variables,
        operation_name=operation_name,
    )
