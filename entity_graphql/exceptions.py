# Copyright 2026-present Kensho Technologies, LLC.
from pprint import pformat
import textwrap
from typing import Any, Mapping, Optional, Sequence, Union


class EntityGraphQLError(Exception):
    """Generic error when compiling or querying an entity schema."""


class SchemaConfigurationError(EntityGraphQLError):
    """Raised at compile time when the entity schema cannot be turned into GraphQL types.

    Possible reasons include:
        - a relationship or derived field references an entity that is not in the schema;
        - a field references an enum that is not in the schema;
        - a field uses an unsupported scalar type name;
        - an entity has no scalar "id" field.

    This is a programming error in the schema definition, and there is nothing
    the code can do to recover.
    """


class ReferentialInconsistencyError(EntityGraphQLError):
    """Raised when a non-null relationship field points to a record the store does not have.

    The error is attached to the offending field in the query result,
    and does not prevent sibling fields from resolving.
    """


class StoreError(EntityGraphQLError):
    """Base class for failures raised by a store, carrying diagnostic context.

    The str() representation of the error is the short message followed by
    each of the diagnostic blocks in order, separated by blank lines.
    """

    store_kind = "Store"

    def __init__(self, short_message: str, meta_messages: Optional[Sequence[str]] = None) -> None:
        """Create a new StoreError from a short message and optional diagnostic blocks."""
        self.short_message = short_message
        self.meta_messages = list(meta_messages) if meta_messages is not None else []
        super(StoreError, self).__init__("\n\n".join([short_message] + self.meta_messages))


def _number_parameters(parameters: Union[Sequence[Any], Mapping[Any, Any], None]) -> dict:
    """Return the bound parameters as a 1-indexed position -> value dict."""
    if parameters is None:
        return {}
    if isinstance(parameters, Mapping):
        parameters = list(parameters.values())
    return {index: parameter for index, parameter in enumerate(parameters, start=1)}


class SqliteError(StoreError):
    """Raised when a SQLite statement executed by the store fails.

    The underlying driver error is kept in the "driver_error" attribute. The statement text
    and its bound parameters are rendered into the diagnostic blocks, for example:

        SQLite error: no such table: t

        Statement:
          SELECT * FROM t WHERE id = ?

        Parameters:
          {1: 42}
    """

    store_kind = "SQLite"

    def __init__(
        self,
        statement: str,
        parameters: Union[Sequence[Any], Mapping[Any, Any], None],
        driver_error: BaseException,
    ) -> None:
        """Create a new SqliteError from the failing statement, its parameters and driver error."""
        self.statement = statement if statement is not None else ""
        self.parameters = _number_parameters(parameters)
        self.driver_error = driver_error

        meta_messages = [
            "Statement:\n{}".format(textwrap.indent(self.statement, "  ")),
            "Parameters:\n{}".format(textwrap.indent(pformat(self.parameters), "  ")),
        ]
        short_message = "{} error: {}".format(self.store_kind, driver_error)
        super(SqliteError, self).__init__(short_message, meta_messages)


class InvalidStoreRequestError(EntityGraphQLError):
    """Raised when a store is asked about a model or field that does not exist.

    For example:
    - the model name is not one of the entities the store was created for;
    - a filter orders by, or tests equality of, a field that is not stored on the model;
    - the order direction is neither "asc" nor "desc".
    """
