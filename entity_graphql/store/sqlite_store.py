# Copyright 2026-present Kensho Technologies, LLC.
"""A versioned store of entity records, kept in SQLite tables through SQLAlchemy Core.

Each entity gets one table. Every write closes the currently live version of a record
and inserts a new version, so every row is valid over [effective_from, effective_to).
The live version of a record has effective_to equal to MAX_TIMESTAMP. Reading the state
as of timestamp T selects the rows with effective_from <= T < effective_to.
"""
import logging
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

import funcy
import sqlalchemy
from sqlalchemy import Column, MetaData, Table, and_, select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from ..exceptions import InvalidStoreRequestError, SqliteError
from ..schema import (
    BIGINT_TYPE_NAME,
    BOOLEAN_TYPE_NAME,
    BYTES_TYPE_NAME,
    FLOAT_TYPE_NAME,
    ID_FIELD_NAME,
    INT_TYPE_NAME,
    STRING_TYPE_NAME,
)
from ..schema.entities import (
    DerivedField,
    Entity,
    EntitySchema,
    EnumField,
    ListField,
    RelationshipField,
    ScalarField,
)
from .typedefs import ModelFilter, Record, Store


logger = logging.getLogger(__name__)

EFFECTIVE_FROM_COLUMN_NAME = "effective_from"
EFFECTIVE_TO_COLUMN_NAME = "effective_to"
VERSIONING_COLUMN_NAMES = (EFFECTIVE_FROM_COLUMN_NAME, EFFECTIVE_TO_COLUMN_NAME)

# Largest value a SQLite INTEGER can hold.
MAX_TIMESTAMP = 2 ** 63 - 1

# BigInt values are stored as fixed-width decimal text, offset so that they are non-negative.
# This keeps lexicographic ordering of the text equal to numeric ordering of the values,
# for all values representable as 256-bit signed or unsigned integers.
_BIGINT_OFFSET = 2 ** 256
_BIGINT_TEXT_WIDTH = len(str(2 * _BIGINT_OFFSET))

_SCALAR_TYPE_NAME_TO_COLUMN_TYPE = {
    BOOLEAN_TYPE_NAME: sqlalchemy.Boolean,
    INT_TYPE_NAME: sqlalchemy.Integer,
    FLOAT_TYPE_NAME: sqlalchemy.Float,
    STRING_TYPE_NAME: sqlalchemy.Text,
    BIGINT_TYPE_NAME: sqlalchemy.Text,
    BYTES_TYPE_NAME: sqlalchemy.LargeBinary,
}


def encode_bigint(value: Any) -> str:
    """Encode an integer as sortable fixed-width decimal text."""
    encoded_value = int(value) + _BIGINT_OFFSET
    if not 0 <= encoded_value < 2 * _BIGINT_OFFSET:
        raise ValueError("BigInt value out of the storable range: {}".format(value))
    return str(encoded_value).zfill(_BIGINT_TEXT_WIDTH)


def decode_bigint(text: str) -> int:
    """Decode an integer from the text produced by encode_bigint()."""
    return int(text) - _BIGINT_OFFSET


def _make_sqlite_error(error: DBAPIError) -> SqliteError:
    """Return a SqliteError describing the statement that SQLAlchemy failed to execute."""
    return SqliteError(statement=error.statement, parameters=error.params, driver_error=error.orig)


def _get_id_type_name(entity: Entity) -> str:
    return entity.fields_by_name[ID_FIELD_NAME].scalar_type_name


class _ModelInfo(object):
    """The table of one entity, and which of its columns need value conversions."""

    def __init__(
        self,
        table: Table,
        bigint_columns: FrozenSet[str],
        bigint_list_columns: FrozenSet[str],
        bytes_list_columns: FrozenSet[str],
    ) -> None:
        self.table = table
        self.bigint_columns = bigint_columns
        # List columns are JSON, which holds neither big integers nor bytes,
        # so their elements are stored as decimal and hex strings respectively.
        self.bigint_list_columns = bigint_list_columns
        self.bytes_list_columns = bytes_list_columns

    def to_column_value(self, column_name: str, value: Any) -> Any:
        """Convert a record value to the value stored in the column."""
        if value is None:
            return None
        if column_name in self.bigint_columns:
            return encode_bigint(value)
        if column_name in self.bigint_list_columns:
            return [None if element is None else str(element) for element in value]
        if column_name in self.bytes_list_columns:
            return [None if element is None else bytes(element).hex() for element in value]
        return value

    def to_record(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Convert a table row to a record, dropping the versioning columns."""
        record = funcy.omit(dict(row), VERSIONING_COLUMN_NAMES)
        for column_name in self.bigint_columns:
            if record.get(column_name) is not None:
                record[column_name] = decode_bigint(record[column_name])
        for column_name in self.bigint_list_columns:
            if record.get(column_name) is not None:
                record[column_name] = [
                    None if element is None else int(element) for element in record[column_name]
                ]
        for column_name in self.bytes_list_columns:
            if record.get(column_name) is not None:
                record[column_name] = [
                    None if element is None else bytes.fromhex(element)
                    for element in record[column_name]
                ]
        return record


def _make_model_info(
    entity: Entity, entity_schema: EntitySchema, metadata: MetaData
) -> _ModelInfo:
    """Create the versioned table for the entity, and note the columns needing conversions."""
    entities_by_name = entity_schema.entities_by_name

    columns = []
    bigint_columns = set()
    bigint_list_columns = set()
    bytes_list_columns = set()
    for field in entity.fields:
        if isinstance(field, ScalarField):
            type_name = field.scalar_type_name
            column_type = _SCALAR_TYPE_NAME_TO_COLUMN_TYPE[type_name]
        elif isinstance(field, EnumField):
            type_name = None
            column_type = sqlalchemy.Text
        elif isinstance(field, RelationshipField):
            # Relationship columns hold ids, so they are stored like the related entity's id.
            type_name = _get_id_type_name(entities_by_name[field.related_entity_name])
            column_type = _SCALAR_TYPE_NAME_TO_COLUMN_TYPE[type_name]
        elif isinstance(field, ListField):
            if field.element_type_name == BIGINT_TYPE_NAME:
                bigint_list_columns.add(field.name)
            elif field.element_type_name == BYTES_TYPE_NAME:
                bytes_list_columns.add(field.name)
            columns.append(Column(field.name, sqlalchemy.JSON))
            continue
        elif isinstance(field, DerivedField):
            # Derived fields are computed from the other entity's table.
            continue
        else:
            raise AssertionError(
                "Unreachable code reached: unexpected field descriptor {} of entity {}".format(
                    field, entity.name
                )
            )

        if type_name == BIGINT_TYPE_NAME:
            bigint_columns.add(field.name)
        is_id = field.name == ID_FIELD_NAME
        columns.append(Column(field.name, column_type, primary_key=is_id, nullable=not is_id))

    columns.extend(
        [
            Column(EFFECTIVE_FROM_COLUMN_NAME, sqlalchemy.BigInteger, primary_key=True),
            Column(EFFECTIVE_TO_COLUMN_NAME, sqlalchemy.BigInteger, nullable=False),
        ]
    )
    table = Table(entity.name, metadata, *columns)
    return _ModelInfo(
        table,
        frozenset(bigint_columns),
        frozenset(bigint_list_columns),
        frozenset(bytes_list_columns),
    )


class SqliteStore(Store):
    """Store of versioned entity records, in a SQLite database accessed via SQLAlchemy.

    Queries are awaited on an AsyncEngine, e.g. one created with
    sqlalchemy.ext.asyncio.create_async_engine("sqlite+aiosqlite://"), so they do not block
    the event loop.
    Timestamps of successive writes to the same record are expected to be non-decreasing.
    Every failure of the database driver is raised as a SqliteError, which includes the failing
    statement and its parameters. No operation is retried.
    """

    def __init__(self, engine: AsyncEngine, entity_schema: EntitySchema) -> None:
        """Create a new SqliteStore holding the records of every entity of the schema.

        Args:
            engine: SQLAlchemy AsyncEngine connected to the SQLite database to use
            entity_schema: EntitySchema whose entities are stored, one table per entity
        """
        self._engine = engine
        self._metadata = MetaData()
        self._models = {
            entity.name: _make_model_info(entity, entity_schema, self._metadata)
            for entity in entity_schema.entities
        }

    def _get_model_info(self, model_name: str) -> _ModelInfo:
        if model_name not in self._models:
            raise InvalidStoreRequestError("Unknown model: {}".format(model_name))
        return self._models[model_name]

    def _get_column(self, model_info: _ModelInfo, column_name: str) -> Column:
        if column_name in VERSIONING_COLUMN_NAMES or column_name not in model_info.table.c:
            raise InvalidStoreRequestError(
                'Model "{}" has no stored field "{}".'.format(model_info.table.name, column_name)
            )
        return model_info.table.c[column_name]

    async def _execute(self, connection: AsyncConnection, statement: Any) -> Any:
        """Execute the statement, wrapping driver errors with the statement and parameters."""
        try:
            return await connection.execute(statement)
        except DBAPIError as e:
            raise _make_sqlite_error(e) from e

    async def create_tables(self) -> None:
        """Create the tables of all entities, if they do not exist yet."""
        try:
            async with self._engine.begin() as connection:
                await connection.run_sync(self._metadata.create_all)
        except DBAPIError as e:
            raise _make_sqlite_error(e) from e

    async def _get_live_row(
        self, connection: AsyncConnection, model_info: _ModelInfo, id: Any
    ) -> Optional[Any]:
        table = model_info.table
        query = select(table).where(
            and_(
                table.c[ID_FIELD_NAME] == model_info.to_column_value(ID_FIELD_NAME, id),
                table.c[EFFECTIVE_TO_COLUMN_NAME] == MAX_TIMESTAMP,
            )
        )
        result = await self._execute(connection, query)
        return result.mappings().first()

    async def _close_live_version(
        self, connection: AsyncConnection, model_info: _ModelInfo, id: Any, timestamp: int
    ) -> None:
        """End the validity of the live version of the record at the given timestamp."""
        table = model_info.table
        id_value = model_info.to_column_value(ID_FIELD_NAME, id)
        # A version that started at this very timestamp never becomes visible, so drop it.
        await self._execute(
            connection,
            table.delete().where(
                and_(
                    table.c[ID_FIELD_NAME] == id_value,
                    table.c[EFFECTIVE_FROM_COLUMN_NAME] == timestamp,
                )
            ),
        )
        await self._execute(
            connection,
            table.update()
            .where(
                and_(
                    table.c[ID_FIELD_NAME] == id_value,
                    table.c[EFFECTIVE_TO_COLUMN_NAME] == MAX_TIMESTAMP,
                )
            )
            .values({EFFECTIVE_TO_COLUMN_NAME: timestamp}),
        )

    async def upsert(
        self, model_name: str, id: Any, data: Mapping[str, Any], timestamp: int
    ) -> Record:
        """Write a new version of the record, valid from the given timestamp onward.

        The given data is merged over the live version of the record, if there is one.

        Returns:
            the newly written record
        """
        model_info = self._get_model_info(model_name)
        for column_name in data:
            self._get_column(model_info, column_name)

        async with self._engine.begin() as connection:
            live_row = await self._get_live_row(connection, model_info, id)
            record = model_info.to_record(live_row) if live_row is not None else {}
            record.update(data)
            record[ID_FIELD_NAME] = id

            await self._close_live_version(connection, model_info, id, timestamp)
            row = {
                column_name: model_info.to_column_value(column_name, value)
                for column_name, value in record.items()
            }
            row[EFFECTIVE_FROM_COLUMN_NAME] = timestamp
            row[EFFECTIVE_TO_COLUMN_NAME] = MAX_TIMESTAMP
            await self._execute(connection, model_info.table.insert().values(row))

        logger.debug("Upserted %s record %r at timestamp %d.", model_name, id, timestamp)
        return record

    async def delete(self, model_name: str, id: Any, timestamp: int) -> bool:
        """End the validity of the record at the given timestamp.

        Returns:
            True if there was a live version of the record, False otherwise
        """
        model_info = self._get_model_info(model_name)
        async with self._engine.begin() as connection:
            live_row = await self._get_live_row(connection, model_info, id)
            if live_row is None:
                return False
            await self._close_live_version(connection, model_info, id, timestamp)

        logger.debug("Deleted %s record %r at timestamp %d.", model_name, id, timestamp)
        return True

    async def find_unique(self, model_name: str, id: Any) -> Optional[Record]:
        """Return the live version of the record with the given id, or None if there is none."""
        model_info = self._get_model_info(model_name)
        async with self._engine.connect() as connection:
            row = await self._get_live_row(connection, model_info, id)
        if row is None:
            return None
        return model_info.to_record(row)

    async def find_many(self, model_name: str, model_filter: ModelFilter) -> List[Record]:
        """Return the page of matching records described by the filter."""
        model_info = self._get_model_info(model_name)
        table = model_info.table

        conditions = [
            self._get_column(model_info, column_name)
            == model_info.to_column_value(column_name, value)
            for column_name, value in model_filter["where"].items()
        ]
        if "timestamp" in model_filter:
            timestamp = model_filter["timestamp"]
            conditions.append(table.c[EFFECTIVE_FROM_COLUMN_NAME] <= timestamp)
            conditions.append(table.c[EFFECTIVE_TO_COLUMN_NAME] > timestamp)
        else:
            conditions.append(table.c[EFFECTIVE_TO_COLUMN_NAME] == MAX_TIMESTAMP)

        order_column = self._get_column(model_info, model_filter["order_by"])
        order_direction = model_filter["order_direction"]
        if order_direction == "asc":
            order_clause = order_column.asc()
        elif order_direction == "desc":
            order_clause = order_column.desc()
        else:
            raise InvalidStoreRequestError(
                'Invalid order direction "{}", expected "asc" or "desc".'.format(order_direction)
            )

        # Ties are broken by id, so that pages do not overlap across calls.
        order_clauses = [order_clause]
        if order_column.name != ID_FIELD_NAME:
            order_clauses.append(table.c[ID_FIELD_NAME].asc())

        query = (
            select(table)
            .where(and_(*conditions))
            .order_by(*order_clauses)
            .offset(model_filter["skip"])
            .limit(model_filter["first"])
        )
        logger.debug("Finding %s records matching %s.", model_name, model_filter)
        async with self._engine.connect() as connection:
            result = await self._execute(connection, query)
            rows = result.mappings().all()
        return [model_info.to_record(row) for row in rows]
