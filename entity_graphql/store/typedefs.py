# Copyright 2026-present Kensho Technologies, LLC.
from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Literal, Mapping, Optional, TypedDict


# An untyped row returned by a store. Relationship fields hold the id of the related record,
# and BigInt fields hold Python ints that have not yet been converted for the transport.
Record = Mapping[str, Any]

OrderDirection = Literal["asc", "desc"]

DEFAULT_SKIP = 0
DEFAULT_FIRST = 100
DEFAULT_ORDER_BY = "id"
DEFAULT_ORDER_DIRECTION: OrderDirection = "asc"


class _RequiredModelFilter(TypedDict):
    where: Mapping[str, Any]  # field name -> value, all of which must be equal
    skip: int
    first: int
    order_by: str
    order_direction: OrderDirection


class ModelFilter(_RequiredModelFilter, total=False):
    """Describe which records find_many() should return, and in what order.

    The "timestamp" key is only present when the records should be read as of that point in time.
    A filter without the key reads the latest state. Since 0 is a valid timestamp,
    stores must check for the presence of the key rather than the truthiness of its value.
    """

    timestamp: int


def make_model_filter(
    where: Mapping[str, Any],
    skip: int = DEFAULT_SKIP,
    first: int = DEFAULT_FIRST,
    order_by: str = DEFAULT_ORDER_BY,
    order_direction: OrderDirection = DEFAULT_ORDER_DIRECTION,
    timestamp: Optional[int] = None,
) -> ModelFilter:
    """Construct a ModelFilter, including the timestamp key only if a timestamp was given."""
    model_filter = ModelFilter(
        where=where,
        skip=skip,
        first=first,
        order_by=order_by,
        order_direction=order_direction,
    )
    if timestamp is not None:
        model_filter["timestamp"] = timestamp
    return model_filter


class Store(metaclass=ABCMeta):
    """Base class defining the read API that field resolvers use to fetch records.

    All methods are coroutines: they are the only places where query resolution suspends.
    Implementations are responsible for any retry policy; the resolvers never retry.
    Failures that carry statement and parameter context should be raised as StoreError subclasses.
    """

    @abstractmethod
    async def find_unique(self, model_name: str, id: Any) -> Optional[Record]:
        """Return the latest version of the record with the given id, or None if there is none."""

    @abstractmethod
    async def find_many(self, model_name: str, model_filter: ModelFilter) -> List[Record]:
        """Return the records of the given model that match the filter.

        Args:
            model_name: name of the entity whose records to return
            model_filter: ModelFilter describing the records to return. Records must match every
                          equality predicate in "where", and are sorted by "order_by" in
                          "order_direction" with ties broken by id, so that paginating with
                          "skip" and "first" is stable across calls. If the "timestamp" key is
                          present, records are read as of that point in time.

        Returns:
            list of records, at most model_filter["first"] long
        """


@dataclass(frozen=True)
class QueryContext:
    """Request-scoped data handed to every field resolver as the GraphQL context value.

    Created anew for each query, and never shared across queries.
    """

    store: Store
