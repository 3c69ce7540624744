# Copyright 2026-present Kensho Technologies, LLC.
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..store.typedefs import ModelFilter, Record, Store


class InMemoryTestStore(Store):
    """A simple store over in-memory records, which records every call made to it.

    Only the latest state of the records is kept: the "timestamp" of a filter is recorded,
    but does not change which records are returned.
    """

    def __init__(self, records_by_model: Mapping[str, List[Record]]) -> None:
        """Create a new InMemoryTestStore over a dict of model name -> list of records."""
        self.records_by_model = records_by_model
        self.find_unique_calls: List[Tuple[str, Any]] = []
        self.find_many_calls: List[Tuple[str, ModelFilter]] = []

    async def find_unique(self, model_name: str, id: Any) -> Optional[Record]:
        """Return the record of the given model with the given id, or None if there is none."""
        self.find_unique_calls.append((model_name, id))
        for record in self.records_by_model.get(model_name, []):
            if record["id"] == id:
                return record
        return None

    async def find_many(self, model_name: str, model_filter: ModelFilter) -> List[Record]:
        """Return the records of the given model that match the filter."""
        self.find_many_calls.append((model_name, dict(model_filter)))
        matching_records = [
            record
            for record in self.records_by_model.get(model_name, [])
            if all(
                record.get(field_name) == value
                for field_name, value in model_filter["where"].items()
            )
        ]

        order_by = model_filter["order_by"]
        # Sort by id first: the sort below is stable, so ties remain ordered by id.
        matching_records.sort(key=lambda record: record["id"])
        matching_records.sort(
            key=lambda record: record[order_by],
            reverse=model_filter["order_direction"] == "desc",
        )

        skip = model_filter["skip"]
        return matching_records[skip : skip + model_filter["first"]]


def get_test_records() -> Dict[str, List[Dict[str, Any]]]:
    """Return a fresh copy of the records used by the resolution tests."""
    return {
        "Person": [
            {
                "id": "person_1",
                "name": "Alice",
                "age": 34,
                "balance": 123456789012345678901234567890,
                "avatar": b"\x01\xab",
                "kind": "ADULT",
                "nicknames": ["Al", "Ali"],
                "luckyNumbers": [7, 2 ** 100, None],
                "pastKinds": ["CHILD"],
            },
            {
                "id": "person_2",
                "name": "Bob",
                "age": None,
                "balance": None,
                "avatar": None,
                "kind": None,
                "nicknames": [],
                "luckyNumbers": None,
                "pastKinds": None,
            },
        ],
        "Pet": [
            {
                "id": "pet_1",
                "name": "Scooby",
                "weight": 31.5,
                "isVaccinated": True,
                "owner": "person_1",
                "bestFriend": "pet_2",
            },
            {
                "id": "pet_2",
                "name": "Hedwig",
                "weight": 0.3,
                "isVaccinated": False,
                "owner": "person_1",
                "bestFriend": None,
            },
            {
                "id": "pet_3",
                "name": "Beethoven",
                "weight": 80.0,
                "isVaccinated": None,
                "owner": "person_404",
                "bestFriend": "pet_1",
            },
        ],
    }
