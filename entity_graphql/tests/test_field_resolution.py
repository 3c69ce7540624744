# Copyright 2026-present Kensho Technologies, LLC.
import sqlite3
from typing import Any, List, Optional
import unittest

from ..exceptions import ReferentialInconsistencyError, SqliteError
from ..schema import Entity, EntitySchema, ScalarField
from ..schema_generation import get_graphql_schema_from_entities
from ..store.typedefs import ModelFilter, Record
from .in_memory_test_store import InMemoryTestStore, get_test_records
from .test_helpers import get_error_paths, get_schema, run_query


class FieldResolutionTests(unittest.TestCase):
    def setUp(self) -> None:
        """Compile the schema and create a store over fresh copies of the test records."""
        self.maxDiff = None
        self.schema = get_schema()
        self.records = get_test_records()
        self.store = InMemoryTestStore(self.records)

    def test_scalar_enum_and_list_fields(self) -> None:
        query = """{
            person(id: "person_1") {
                id
                name
                age
                balance
                avatar
                kind
                nicknames
                luckyNumbers
                pastKinds
            }
        }"""
        result = run_query(self.schema, query, self.store)

        self.assertIsNone(result.errors)
        expected_person = {
            "id": "person_1",
            "name": "Alice",
            "age": 34,
            "balance": "123456789012345678901234567890",
            "avatar": "0x01ab",
            "kind": "ADULT",
            "nicknames": ["Al", "Ali"],
            "luckyNumbers": ["7", "1267650600228229401496703205376", None],
            "pastKinds": ["CHILD"],
        }
        self.assertEqual({"person": expected_person}, result.data)
        self.assertEqual([("Person", "person_1")], self.store.find_unique_calls)

    def test_null_valued_nullable_fields(self) -> None:
        query = """{
            person(id: "person_2") {
                age
                balance
                avatar
                kind
                nicknames
                luckyNumbers
                pastKinds
            }
        }"""
        result = run_query(self.schema, query, self.store)

        self.assertIsNone(result.errors)
        expected_person = {
            "age": None,
            "balance": None,
            "avatar": None,
            "kind": None,
            "nicknames": [],
            "luckyNumbers": None,
            "pastKinds": None,
        }
        self.assertEqual({"person": expected_person}, result.data)

    def test_bigint_keeps_full_precision(self) -> None:
        self.records["Person"][0]["balance"] = -(10 ** 40) - 1
        result = run_query(self.schema, '{ person(id: "person_1") { balance } }', self.store)

        self.assertIsNone(result.errors)
        self.assertEqual(
            {"person": {"balance": "-10000000000000000000000000000000000000001"}}, result.data
        )

    def test_derived_field_default_filter(self) -> None:
        query = '{ person(id: "person_1") { name pets { id name } } }'
        result = run_query(self.schema, query, self.store)

        self.assertIsNone(result.errors)
        expected_pets = [{"id": "pet_1", "name": "Scooby"}, {"id": "pet_2", "name": "Hedwig"}]
        self.assertEqual({"person": {"name": "Alice", "pets": expected_pets}}, result.data)

        expected_filter = {
            "where": {"owner": "person_1"},
            "skip": 0,
            "first": 100,
            "order_by": "id",
            "order_direction": "asc",
        }
        self.assertEqual([("Pet", expected_filter)], self.store.find_many_calls)

    def test_derived_field_pagination_arguments(self) -> None:
        query = """{
            person(id: "person_1") {
                pets(skip: 1, first: 1, orderBy: "name", orderDirection: "desc") { name }
            }
        }"""
        result = run_query(self.schema, query, self.store)

        self.assertIsNone(result.errors)
        # Sorted by name descending: Scooby, Hedwig. The first one is skipped.
        self.assertEqual({"person": {"pets": [{"name": "Hedwig"}]}}, result.data)
        expected_filter = {
            "where": {"owner": "person_1"},
            "skip": 1,
            "first": 1,
            "order_by": "name",
            "order_direction": "desc",
        }
        self.assertEqual([("Pet", expected_filter)], self.store.find_many_calls)

    def test_null_pagination_arguments_use_defaults(self) -> None:
        query = """{
            person(id: "person_1") {
                pets(skip: null, first: null, orderBy: null, orderDirection: null) { id }
            }
            pets(skip: null, first: null, timestamp: null) { id }
        }"""
        result = run_query(self.schema, query, self.store)

        self.assertIsNone(result.errors)
        self.assertEqual(
            {
                "person": {"pets": [{"id": "pet_1"}, {"id": "pet_2"}]},
                "pets": [{"id": "pet_1"}, {"id": "pet_2"}, {"id": "pet_3"}],
            },
            result.data,
        )
        default_page = {"skip": 0, "first": 100, "order_by": "id", "order_direction": "asc"}
        expected_calls = [
            ("Pet", dict(default_page, where={"owner": "person_1"})),
            ("Pet", dict(default_page, where={})),
        ]
        self.assertEqual(
            sorted(expected_calls, key=str), sorted(self.store.find_many_calls, key=str)
        )

    def test_derived_field_timestamp(self) -> None:
        query = '{ person(id: "person_1") { pets(timestamp: 1700000000) { id } } }'
        result = run_query(self.schema, query, self.store)

        self.assertIsNone(result.errors)
        (_, model_filter) = self.store.find_many_calls[0]
        self.assertEqual(1700000000, model_filter["timestamp"])

    def test_derived_field_zero_timestamp_is_forwarded(self) -> None:
        query = '{ person(id: "person_1") { pets(timestamp: 0) { id } } }'
        result = run_query(self.schema, query, self.store)

        self.assertIsNone(result.errors)
        (_, model_filter) = self.store.find_many_calls[0]
        self.assertIn("timestamp", model_filter)
        self.assertEqual(0, model_filter["timestamp"])

    def test_derived_field_unset_timestamp_is_omitted(self) -> None:
        query = """query ($timestamp: Int) {
            person(id: "person_1") { pets(timestamp: $timestamp) { id } }
        }"""

        # Variable not provided at all.
        result = run_query(self.schema, query, self.store)
        self.assertIsNone(result.errors)

        # Variable explicitly set to null.
        result = run_query(self.schema, query, self.store, variables={"timestamp": None})
        self.assertIsNone(result.errors)

        self.assertEqual(2, len(self.store.find_many_calls))
        for _, model_filter in self.store.find_many_calls:
            self.assertNotIn("timestamp", model_filter)

    def test_derived_field_with_no_matches(self) -> None:
        result = run_query(self.schema, '{ person(id: "person_2") { pets { id } } }', self.store)

        self.assertIsNone(result.errors)
        self.assertEqual({"person": {"pets": []}}, result.data)

    def test_derived_field_store_returning_none(self) -> None:
        class NoneReturningStore(InMemoryTestStore):
            async def find_many(self, model_name: str, model_filter: ModelFilter) -> Any:
                return None

        store = NoneReturningStore(self.records)
        result = run_query(self.schema, '{ person(id: "person_1") { pets { id } } }', store)

        self.assertIsNone(result.errors)
        self.assertEqual({"person": {"pets": []}}, result.data)

    def test_relationship_fields(self) -> None:
        query = """{
            pet(id: "pet_1") {
                name
                owner { name }
                bestFriend { name bestFriend { name } }
            }
        }"""
        result = run_query(self.schema, query, self.store)

        self.assertIsNone(result.errors)
        expected_pet = {
            "name": "Scooby",
            "owner": {"name": "Alice"},
            "bestFriend": {"name": "Hedwig", "bestFriend": None},
        }
        self.assertEqual({"pet": expected_pet}, result.data)
        # Hedwig's bestFriend id is null, so the store is not asked for it.
        self.assertEqual(
            [("Person", "person_1"), ("Pet", "pet_1"), ("Pet", "pet_2")],
            sorted(self.store.find_unique_calls, key=lambda call: call[1]),
        )

    def test_dangling_non_null_relationship(self) -> None:
        query = """{
            pet(id: "pet_3") {
                name
                weight
                owner { name }
                bestFriend { name }
            }
        }"""
        result = run_query(self.schema, query, self.store)

        expected_pet = {
            "name": "Beethoven",
            "weight": 80.0,
            "owner": None,
            "bestFriend": {"name": "Scooby"},
        }
        self.assertEqual({"pet": expected_pet}, result.data)
        self.assertEqual(["pet.owner"], list(get_error_paths(result).keys()))
        self.assertIsInstance(result.errors[0].original_error, ReferentialInconsistencyError)
        self.assertIn("person_404", result.errors[0].message)

    def test_non_null_list_rejects_null(self) -> None:
        self.records["Person"][0]["nicknames"] = None
        query = '{ person(id: "person_1") { nicknames } pet(id: "pet_1") { name } }'
        result = run_query(self.schema, query, self.store)

        self.assertEqual(["person.nicknames"], list(get_error_paths(result).keys()))
        # The error nulls out the nearest nullable parent, but not unrelated fields.
        self.assertEqual({"person": None, "pet": {"name": "Scooby"}}, result.data)

    def test_non_null_list_rejects_null_element(self) -> None:
        self.records["Person"][0]["nicknames"] = ["Al", None]
        result = run_query(self.schema, '{ person(id: "person_1") { nicknames } }', self.store)

        self.assertEqual(["person.nicknames.1"], list(get_error_paths(result).keys()))
        self.assertEqual({"person": None}, result.data)

    def test_nullable_list_of_non_null_elements(self) -> None:
        self.records["Person"][0]["pastKinds"] = ["ADULT", None]
        result = run_query(self.schema, '{ person(id: "person_1") { pastKinds } }', self.store)

        self.assertEqual(["person.pastKinds.1"], list(get_error_paths(result).keys()))
        self.assertEqual({"person": {"pastKinds": None}}, result.data)

    def test_non_null_scalar_rejects_null(self) -> None:
        self.records["Person"][0]["name"] = None
        result = run_query(self.schema, '{ person(id: "person_1") { id name } }', self.store)

        self.assertEqual(["person.name"], list(get_error_paths(result).keys()))
        self.assertEqual({"person": None}, result.data)

    def test_invalid_enum_value(self) -> None:
        self.records["Person"][0]["kind"] = "ELDER"
        result = run_query(self.schema, '{ person(id: "person_1") { name kind } }', self.store)

        self.assertEqual(["person.kind"], list(get_error_paths(result).keys()))
        self.assertEqual({"person": {"name": "Alice", "kind": None}}, result.data)

    def test_root_list_field(self) -> None:
        query = """{
            pets(first: 2, orderBy: "weight", orderDirection: "desc", timestamp: 5) { name }
        }"""
        result = run_query(self.schema, query, self.store)

        self.assertIsNone(result.errors)
        self.assertEqual({"pets": [{"name": "Beethoven"}, {"name": "Scooby"}]}, result.data)
        expected_filter = {
            "where": {},
            "skip": 0,
            "first": 2,
            "order_by": "weight",
            "order_direction": "desc",
            "timestamp": 5,
        }
        self.assertEqual([("Pet", expected_filter)], self.store.find_many_calls)

    def test_bigint_id_argument(self) -> None:
        entity_schema = EntitySchema(
            entities=(
                Entity(
                    "Token",
                    (
                        ScalarField("id", "BigInt", not_null=True),
                        ScalarField("symbol", "String"),
                    ),
                ),
            )
        )
        schema = get_graphql_schema_from_entities(entity_schema)
        store = InMemoryTestStore({"Token": [{"id": 2 ** 100, "symbol": "BIG"}]})

        query = """query ($id: BigInt!) {
            literal: token(id: "1267650600228229401496703205376") { id symbol }
            variable: token(id: $id) { id }
            missing: token(id: 5) { id }
        }"""
        result = run_query(schema, query, store, variables={"id": str(2 ** 100)})

        self.assertIsNone(result.errors)
        self.assertEqual(
            {
                "literal": {"id": "1267650600228229401496703205376", "symbol": "BIG"},
                "variable": {"id": "1267650600228229401496703205376"},
                "missing": None,
            },
            result.data,
        )
        self.assertEqual(
            [("Token", 5), ("Token", 2 ** 100), ("Token", 2 ** 100)],
            sorted(store.find_unique_calls),
        )

    def test_root_field_for_missing_record(self) -> None:
        result = run_query(self.schema, '{ person(id: "nobody") { name } }', self.store)

        self.assertIsNone(result.errors)
        self.assertEqual({"person": None}, result.data)

    def test_store_error_is_reported_on_the_field(self) -> None:
        class FailingStore(InMemoryTestStore):
            async def find_unique(self, model_name: str, id: Any) -> Optional[Record]:
                if model_name == "Person":
                    raise SqliteError(
                        "SELECT * FROM Person WHERE id = ?", [id], sqlite3.OperationalError("boom")
                    )
                return await super().find_unique(model_name, id)

        store = FailingStore(self.records)
        result = run_query(self.schema, '{ pet(id: "pet_1") { name owner { name } } }', store)

        self.assertEqual({"pet": {"name": "Scooby", "owner": None}}, result.data)
        errors: List[Any] = result.errors
        self.assertEqual(1, len(errors))
        self.assertEqual(["pet", "owner"], errors[0].path)
        self.assertTrue(errors[0].message.startswith("SQLite error: boom"))
        self.assertIsInstance(errors[0].original_error, SqliteError)
