# Copyright 2026-present Kensho Technologies, LLC.
from typing import Any, Dict, FrozenSet

from graphql import (
    GraphQLBoolean,
    GraphQLFloat,
    GraphQLInt,
    GraphQLScalarType,
    GraphQLString,
    IntValueNode,
    StringValueNode,
    ValueNode,
)

from .entities import (  # noqa
    DerivedField,
    Entity,
    EntitySchema,
    EnumDefinition,
    EnumField,
    FieldDescriptor,
    ListField,
    RelationshipField,
    ScalarField,
)


BOOLEAN_TYPE_NAME = "Boolean"
INT_TYPE_NAME = "Int"
FLOAT_TYPE_NAME = "Float"
STRING_TYPE_NAME = "String"
BIGINT_TYPE_NAME = "BigInt"
BYTES_TYPE_NAME = "Bytes"

# Name of the scalar field every entity uses as its primary key.
ID_FIELD_NAME = "id"


# BigInt and Bytes values cannot be carried by the transport natively,
# so they are custom scalars whose values are serialized as strings.
def serialize_bigint(value: Any) -> str:
    """Convert an arbitrary-precision integer to its exact decimal string representation."""
    return str(value)


def _parse_bigint_value(value: Any) -> int:
    """Parse a BigInt from an integer or from its decimal string representation."""
    if isinstance(value, bool):
        raise ValueError("Expected an integer or a decimal string, got boolean {}.".format(value))
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 10)
    raise ValueError(
        "Expected an integer or a decimal string, got {} of type {}.".format(value, type(value))
    )


def _parse_bigint_literal(value_node: ValueNode, _variables: Any = None) -> int:
    if isinstance(value_node, (IntValueNode, StringValueNode)):
        return _parse_bigint_value(value_node.value)
    raise ValueError("Expected an integer or string literal, got {}.".format(value_node))


def serialize_bytes(value: Any) -> str:
    """Convert a bytes value to a "0x"-prefixed lowercase hex string."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)


def _parse_bytes_value(value: Any) -> bytes:
    """Parse bytes from a hex string, with or without a "0x" prefix."""
    if not isinstance(value, str):
        raise ValueError("Expected a hex string, got {} of type {}.".format(value, type(value)))
    if value[:2] in ("0x", "0X"):
        value = value[2:]
    return bytes.fromhex(value)


def _parse_bytes_literal(value_node: ValueNode, _variables: Any = None) -> bytes:
    if isinstance(value_node, StringValueNode):
        return _parse_bytes_value(value_node.value)
    raise ValueError("Expected a string literal, got {}.".format(value_node))


GraphQLBigInt = GraphQLScalarType(
    name=BIGINT_TYPE_NAME,
    description=(
        "The `BigInt` scalar type represents arbitrary-precision integers. Values are "
        "serialized as strings in base-10 format, without separators and with a leading "
        '"-" for negative values: for example, "-123456789012345678901234567890". '
        "Inputs may be given either as strings in that format or as integers."
    ),
    serialize=serialize_bigint,
    parse_value=_parse_bigint_value,
    parse_literal=_parse_bigint_literal,
)


GraphQLBytes = GraphQLScalarType(
    name=BYTES_TYPE_NAME,
    description=(
        "The `Bytes` scalar type represents byte strings. Values are serialized as "
        'lowercase hexadecimal strings prefixed with "0x", for example "0x01ab".'
    ),
    serialize=serialize_bytes,
    parse_value=_parse_bytes_value,
    parse_literal=_parse_bytes_literal,
)


SCALAR_TYPE_NAME_TO_GRAPHQL_TYPE: Dict[str, GraphQLScalarType] = {
    BOOLEAN_TYPE_NAME: GraphQLBoolean,
    INT_TYPE_NAME: GraphQLInt,
    FLOAT_TYPE_NAME: GraphQLFloat,
    STRING_TYPE_NAME: GraphQLString,
    BIGINT_TYPE_NAME: GraphQLBigInt,
    BYTES_TYPE_NAME: GraphQLBytes,
}

SUPPORTED_SCALAR_TYPE_NAMES: FrozenSet[str] = frozenset(SCALAR_TYPE_NAME_TO_GRAPHQL_TYPE)
