# Copyright 2026-present Kensho Technologies, LLC.
"""Descriptors of the entities and fields that make up an entity schema.

An entity schema is defined once, when the process starts, and is immutable thereafter.
Entities refer to each other by name, so the graph of entities may contain cycles:
for example, Pet may have a relationship field pointing to Person, while Person has
a derived field listing all the Pets whose "owner" field equals the Person's id.
"""
from dataclasses import dataclass, field
from typing import Mapping, Tuple, Union


@dataclass(frozen=True)
class ScalarField:
    """A field holding a single scalar value of one of the supported scalar types."""

    name: str
    scalar_type_name: str
    not_null: bool = False


@dataclass(frozen=True)
class EnumField:
    """A field holding one of the values of a named enum."""

    name: str
    enum_name: str
    not_null: bool = False


@dataclass(frozen=True)
class RelationshipField:
    """A field holding the id of a record of another entity.

    When queried, the id is replaced by the related record itself.
    """

    name: str
    related_entity_name: str
    not_null: bool = False


@dataclass(frozen=True)
class DerivedField:
    """A reverse one-to-many relationship, not stored on the record itself.

    Resolves to all records of the "derived_from_entity_name" entity
    whose "derived_from_field_name" field is equal to this record's id.
    """

    name: str
    derived_from_entity_name: str
    derived_from_field_name: str


@dataclass(frozen=True)
class ListField:
    """A field holding a homogeneous list of scalar or enum values.

    The nullability of the list and of its elements are configured independently.
    """

    name: str
    element_type_name: str  # a scalar type name, or the name of an enum in the schema
    is_list_element_not_null: bool = False
    not_null: bool = False


FieldDescriptor = Union[ScalarField, EnumField, RelationshipField, DerivedField, ListField]


@dataclass(frozen=True)
class EnumDefinition:
    """A named enum and its ordered values."""

    name: str
    values: Tuple[str, ...]


@dataclass(frozen=True)
class Entity:
    """A named record type, and the ordered descriptors of its fields."""

    name: str
    fields: Tuple[FieldDescriptor, ...]

    @property
    def fields_by_name(self) -> Mapping[str, FieldDescriptor]:
        """Return a dict of field name -> field descriptor, in field order."""
        return {field_descriptor.name: field_descriptor for field_descriptor in self.fields}


@dataclass(frozen=True)
class EntitySchema:
    """All the entities and enums that are compiled together into one GraphQL schema."""

    entities: Tuple[Entity, ...]
    enums: Tuple[EnumDefinition, ...] = field(default_factory=tuple)

    @property
    def entities_by_name(self) -> Mapping[str, Entity]:
        """Return a dict of entity name -> Entity, in schema order."""
        return {entity.name: entity for entity in self.entities}

    @property
    def enums_by_name(self) -> Mapping[str, EnumDefinition]:
        """Return a dict of enum name -> EnumDefinition, in schema order."""
        return {enum.name: enum for enum in self.enums}
