import asyncio

from sqlalchemy.ext.asyncio import create_async_engine

from entity_graphql import (
    DerivedField,
    Entity,
    EntitySchema,
    RelationshipField,
    ScalarField,
    SqliteStore,
    execute_query,
    get_graphql_schema_from_entities,
)

# Describe the entities. Pet.owner points to a Person, and Person.pets lists the Pets it owns.
entity_schema = EntitySchema(
    entities=(
        Entity(
            "Person",
            (
                ScalarField("id", "String", not_null=True),
                ScalarField("name", "String"),
                ScalarField("balance", "BigInt"),
                DerivedField(
                    "pets", derived_from_entity_name="Pet", derived_from_field_name="owner"
                ),
            ),
        ),
        Entity(
            "Pet",
            (
                ScalarField("id", "String", not_null=True),
                ScalarField("name", "String"),
                RelationshipField("owner", related_entity_name="Person", not_null=True),
            ),
        ),
    )
)

# Compile the GraphQL schema.
schema = get_graphql_schema_from_entities(entity_schema)


async def main():
    # Create the store the queries will read from, in an in-memory SQLite database.
    engine = create_async_engine("sqlite+aiosqlite://")
    store = SqliteStore(engine, entity_schema)
    await store.create_tables()

    await store.upsert("Person", "alice", {"name": "Alice", "balance": 2 ** 100}, timestamp=1)
    await store.upsert("Pet", "scooby", {"name": "Scooby", "owner": "alice"}, timestamp=2)

    # Write GraphQL query.
    graphql_query = """
    query ($timestamp: Int) {
        person(id: "alice") {
            name
            balance
            pets(timestamp: $timestamp) { name }
        }
    }
    """

    # Execute the query as of the latest state, and as of timestamp 1.
    latest_result = await execute_query(schema, graphql_query, store)
    past_result = await execute_query(schema, graphql_query, store, variables={"timestamp": 1})
    await engine.dispose()
    return latest_result.data, past_result.data


query_results = asyncio.run(main())
