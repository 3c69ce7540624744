# Copyright 2026-present Kensho Technologies, LLC.
from typing import Dict, FrozenSet, List, Tuple

from ..exceptions import SchemaConfigurationError
from ..schema import ID_FIELD_NAME, SUPPORTED_SCALAR_TYPE_NAMES
from ..schema.entities import (
    DerivedField,
    Entity,
    EntitySchema,
    EnumField,
    ListField,
    RelationshipField,
    ScalarField,
)


# Name of the root query type of compiled schemas.
ROOT_QUERY_TYPE_NAME = "Query"

# Type names that entities and enums cannot use, since the compiled schema already defines them.
RESERVED_TYPE_NAMES: FrozenSet[str] = frozenset(
    {ROOT_QUERY_TYPE_NAME, "ID"} | SUPPORTED_SCALAR_TYPE_NAMES
)


def get_root_field_names(entity_name: str) -> Tuple[str, str]:
    """Return the root query field names for one record and for a list of records."""
    singular_name = entity_name[:1].lower() + entity_name[1:]
    return singular_name, singular_name + "s"


def _get_name_errors(entity_schema: EntitySchema) -> List[str]:
    """Return a description of each reserved or clashing type name and root query field name."""
    errors = []

    seen_names = set()
    for name in [entity.name for entity in entity_schema.entities] + [
        enum.name for enum in entity_schema.enums
    ]:
        if name in RESERVED_TYPE_NAMES:
            errors.append('Name "{}" is reserved and cannot be used in the schema.'.format(name))
        elif name in seen_names:
            errors.append('Name "{}" is defined more than once in the schema.'.format(name))
        seen_names.add(name)

    root_field_name_to_entity_name: Dict[str, str] = {}
    for entity in entity_schema.entities:
        for root_field_name in get_root_field_names(entity.name):
            other_entity_name = root_field_name_to_entity_name.setdefault(
                root_field_name, entity.name
            )
            # Entities defined more than once are already reported above.
            if other_entity_name != entity.name:
                errors.append(
                    'Entities "{}" and "{}" both need the root query field "{}".'.format(
                        other_entity_name, entity.name, root_field_name
                    )
                )

    return errors


def _get_derived_field_errors(
    field: DerivedField, entity: Entity, entity_schema: EntitySchema
) -> List[str]:
    """Return a description of each way the derived field fails to mirror a relationship."""
    location = 'Field "{}" of entity "{}"'.format(field.name, entity.name)
    derived_from_entity = entity_schema.entities_by_name.get(field.derived_from_entity_name)
    if derived_from_entity is None:
        return [
            '{} is derived from unknown entity "{}".'.format(
                location, field.derived_from_entity_name
            )
        ]

    # The derived field lists the records whose back-reference holds this entity's id,
    # so the back-reference must be a relationship pointing at this entity.
    back_reference = derived_from_entity.fields_by_name.get(field.derived_from_field_name)
    if not isinstance(back_reference, RelationshipField):
        return [
            '{} is derived from field "{}" of entity "{}", which is not a relationship '
            "field: {}.".format(
                location,
                field.derived_from_field_name,
                field.derived_from_entity_name,
                back_reference,
            )
        ]
    if back_reference.related_entity_name != entity.name:
        return [
            '{} is derived from field "{}" of entity "{}", which points to entity "{}" '
            "instead.".format(
                location,
                field.derived_from_field_name,
                field.derived_from_entity_name,
                back_reference.related_entity_name,
            )
        ]
    return []


def _get_reference_errors(entity: Entity, entity_schema: EntitySchema) -> List[str]:
    """Return a description of each field of the entity that references an unknown name."""
    entity_names = entity_schema.entities_by_name
    enum_names = entity_schema.enums_by_name

    errors = []
    for field in entity.fields:
        location = 'Field "{}" of entity "{}"'.format(field.name, entity.name)
        if isinstance(field, ScalarField):
            if field.scalar_type_name not in SUPPORTED_SCALAR_TYPE_NAMES:
                errors.append(
                    '{} has unsupported scalar type "{}". Supported scalar types: {}.'.format(
                        location, field.scalar_type_name, sorted(SUPPORTED_SCALAR_TYPE_NAMES)
                    )
                )
        elif isinstance(field, EnumField):
            if field.enum_name not in enum_names:
                errors.append(
                    '{} references unknown enum "{}".'.format(location, field.enum_name)
                )
        elif isinstance(field, RelationshipField):
            if field.related_entity_name not in entity_names:
                errors.append(
                    '{} references unknown entity "{}".'.format(
                        location, field.related_entity_name
                    )
                )
        elif isinstance(field, DerivedField):
            errors.extend(_get_derived_field_errors(field, entity, entity_schema))
        elif isinstance(field, ListField):
            element_type_name = field.element_type_name
            if (
                element_type_name not in SUPPORTED_SCALAR_TYPE_NAMES
                and element_type_name not in enum_names
            ):
                errors.append(
                    '{} has list elements of unknown scalar or enum type "{}".'.format(
                        location, element_type_name
                    )
                )
        else:
            raise AssertionError(
                "Unreachable code reached: unexpected field descriptor {} of entity {}".format(
                    field, entity.name
                )
            )

    id_field = entity.fields_by_name.get(ID_FIELD_NAME)
    if not isinstance(id_field, ScalarField):
        errors.append(
            'Entity "{}" must have a scalar field named "{}", found: {}.'.format(
                entity.name, ID_FIELD_NAME, id_field
            )
        )

    return errors


def validate_entity_schema(entity_schema: EntitySchema) -> None:
    """Ensure every name referenced by the schema is defined in it, raising otherwise.

    Raises:
        SchemaConfigurationError listing every offending entity and field, if any entity,
        enum or scalar type name is referenced but not defined, if an entity or enum name
        is defined more than once or is reserved, if two entities need the same root query
        field, if a derived field does not mirror a relationship field pointing back at its
        entity, or if an entity has no scalar id field.
    """
    errors = _get_name_errors(entity_schema)
    for entity in entity_schema.entities:
        errors.extend(_get_reference_errors(entity, entity_schema))

    if errors:
        raise SchemaConfigurationError(
            "Invalid entity schema: {} problem(s) found.\n{}".format(len(errors), "\n".join(errors))
        )
