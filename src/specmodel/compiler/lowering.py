"""Schema lowering -- turn a recursive schema graph into flat registry entries.

:class:`SchemaLowerer` walks one :class:`~specmodel.models.SchemaNode` and
writes fields and structures into a
:class:`~specmodel.model.service_model.ServiceModel` under synthetic names
derived from the node's position in the tree:

* **primitive** -- one field under the proposed name (``integer`` with
  ``format: int64`` becomes a long).
* **object with additionalProperties** -- one map field.
* **object** -- one structure; properties are visited in sorted key order
  and numbered by that order. A property that is a reference points at the
  referenced name and creates nothing; any other property is lowered under
  ``<Enclosing><Property>``.
* **array** -- a list field under the pluralised container name, its
  element lowered under the singular name.
* **allOf/anyOf/oneOf** -- one structure merging the members of every
  object-shaped branch.
* **reference** -- nothing; the referrer uses the reference's name.
* **not/fragment** -- rejected.

Registries are last-write-wins: lowering a name twice keeps the second
result.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from specmodel.compiler.assembly import renumber_by_name
from specmodel.exceptions import ReferentialError, UnsupportedConstructError
from specmodel.model.entities import (
    BinaryField,
    BooleanField,
    DoubleField,
    EnumerationValue,
    FieldDescription,
    IntegerField,
    LengthRangeConstraint,
    ListField,
    LongField,
    MapField,
    Member,
    NumericRangeConstraint,
    StringField,
    StructureDescription,
    TimestampField,
)
from specmodel.model.naming import pluralize_container, synthesize
from specmodel.model.override import ModelOverride
from specmodel.model.service_model import ServiceModel
from specmodel.models import SchemaKind, SchemaNode

logger = logging.getLogger(__name__)

_TIMESTAMP_FORMATS = frozenset({"date-time"})
_BINARY_FORMATS = frozenset({"binary", "byte"})


# ---------------------------------------------------------------------------
# Primitive fields
# ---------------------------------------------------------------------------


def primitive_field(
    schema: SchemaNode, override: ModelOverride, location: str
) -> FieldDescription:
    """Build the field for a boolean, integer, number or string schema.

    Args:
        schema: The schema to convert.
        override: Supplies the pattern-as-alternation flag for strings.
        location: Name used in the diagnostic if *schema* is not primitive.

    Raises:
        UnsupportedConstructError: If *schema* is not one of the four
            primitive kinds.
    """
    if schema.kind is SchemaKind.BOOLEAN:
        return BooleanField()
    if schema.kind is SchemaKind.INTEGER:
        if schema.format == "int64":
            return LongField(range_constraint=_numeric_range(schema))
        return IntegerField(range_constraint=_numeric_range(schema))
    if schema.kind is SchemaKind.NUMBER:
        return DoubleField(range_constraint=_numeric_range(schema))
    if schema.kind is SchemaKind.STRING:
        return string_field(schema, override)
    raise UnsupportedConstructError(
        f"{schema.kind.value} schema where a primitive is required", location
    )


def string_field(schema: SchemaNode, override: ModelOverride) -> FieldDescription:
    """Build the field for a string schema.

    Enumerations come from ``enum`` (string values only) or, when
    ``modelStringPatternsAreAlternativeList`` is set, from a pattern of the
    form ``^(a|b|c)$``. A ``minLength`` of 0 means "no minimum". Strings
    with a ``date-time`` format become timestamps and ``binary``/``byte``
    strings become binary fields, unless they are enumerations.
    """
    alternatives: Optional[list[EnumerationValue]] = None
    if override.model_string_patterns_are_alternative_list and schema.pattern:
        alternatives = parse_pattern_alternatives(schema.pattern)

    if alternatives is not None:
        regex_constraint = None
        value_constraints = alternatives
    else:
        regex_constraint = schema.pattern
        value_constraints = enumeration_values(schema.enum_values)

    if not value_constraints:
        if schema.format in _TIMESTAMP_FORMATS:
            return TimestampField()
        if schema.format in _BINARY_FORMATS:
            return BinaryField()

    return StringField(
        regex_constraint=regex_constraint,
        length_constraint=LengthRangeConstraint(
            minimum=schema.min_length or None,
            maximum=schema.max_length,
        ),
        value_constraints=value_constraints,
    )


def parse_pattern_alternatives(pattern: str) -> Optional[list[EnumerationValue]]:
    """Split an anchored alternation pattern into enumeration values.

    Returns ``None`` when *pattern* is not anchored with ``^`` and ``$``.
    One pair of parentheses around the alternatives is dropped, and empty
    alternatives are skipped.

    Example::

        >>> [v.value for v in parse_pattern_alternatives("^(red|green)$")]
        ['red', 'green']
    """
    if len(pattern) < 2 or not pattern.startswith("^") or not pattern.endswith("$"):
        return None
    body = pattern[1:-1]
    if body.startswith("(") and body.endswith(")"):
        body = body[1:-1]
    return [
        EnumerationValue(name=value, value=value)
        for value in body.split("|")
        if value
    ]


def enumeration_values(values: Optional[list[Any]]) -> list[EnumerationValue]:
    """Keep the string entries of an ``enum`` list, in order."""
    if not values:
        return []
    return [
        EnumerationValue(name=value, value=value)
        for value in values
        if isinstance(value, str)
    ]


def _numeric_range(schema: SchemaNode) -> NumericRangeConstraint:
    return NumericRangeConstraint(
        minimum=schema.minimum,
        maximum=schema.maximum,
        exclusive_minimum=schema.exclusive_minimum,
        exclusive_maximum=schema.exclusive_maximum,
    )


# ---------------------------------------------------------------------------
# Lowering engine
# ---------------------------------------------------------------------------


class SchemaLowerer:
    """Lowers schema nodes into one service model's registries.

    Args:
        model: The model being built; its registries are written in place.
        override: Read-only overrides for this build.
        components: The document's named schemas, used to look through a
            reference when a union branch points at a named object.

    Example::

        lowerer = SchemaLowerer(model, ModelOverride(), spec.schemas)
        for name, schema in spec.schemas.items():
            lowerer.lower(name, schema)
    """

    def __init__(
        self,
        model: ServiceModel,
        override: ModelOverride,
        components: Mapping[str, SchemaNode],
    ) -> None:
        self.model = model
        self.override = override
        self.components = components

    def lower(self, name: str, schema: SchemaNode) -> str:
        """Lower *schema* under the proposed *name*.

        Returns:
            The name the lowered type was registered under. It differs from
            *name* only for arrays, whose container name may be pluralised.

        Raises:
            UnsupportedConstructError: For ``not`` and untyped schemas,
                unsupported map values, arrays without items, and non-object
                union branches.
        """
        kind = schema.kind

        if schema.is_primitive:
            self.model.field_descriptions[name] = primitive_field(
                schema, self.override, name
            )
        elif kind is SchemaKind.OBJECT:
            if schema.additional_properties is not None:
                self._lower_map(name, schema)
            else:
                self.model.structure_descriptions[name] = self.lower_object(name, schema)
        elif kind is SchemaKind.ARRAY:
            name = self._lower_array(name, schema)
        elif schema.is_union:
            self._lower_union(name, schema)
        elif kind is SchemaKind.REFERENCE:
            pass
        elif kind is SchemaKind.NOT:
            raise UnsupportedConstructError("'not' schema", name)
        else:
            raise UnsupportedConstructError("untyped schema fragment", name)

        logger.debug("Lowered %s schema as %s", kind.value, name)
        return name

    def lower_object(self, name: str, schema: SchemaNode) -> StructureDescription:
        """Build (without registering) the structure for an object schema.

        Nested property types are registered as a side effect.
        """
        structure = StructureDescription(documentation=schema.description)
        self._add_object_members(structure.members, name, schema)
        return structure

    def _add_object_members(
        self, members: dict[str, Member], enclosing_name: str, schema: SchemaNode
    ) -> None:
        required = set(schema.required)
        for index, key in enumerate(sorted(schema.properties)):
            prop = schema.properties[key]
            if prop.kind is SchemaKind.REFERENCE and prop.ref_name:
                value_type = prop.ref_name
            else:
                value_type = self.lower(synthesize(enclosing_name, key), prop)

            members[key] = Member(
                value_type=value_type,
                position=index,
                required=key in required,
                documentation=prop.description,
            )

    def _lower_map(self, name: str, schema: SchemaNode) -> None:
        value_schema = schema.additional_properties
        assert value_schema is not None

        if value_schema.kind is SchemaKind.STRING:
            value_type = "String"
        elif value_schema.kind is SchemaKind.REFERENCE and value_schema.ref_name:
            value_type = value_schema.ref_name
        else:
            raise UnsupportedConstructError(
                f"map value of kind '{value_schema.kind.value}'",
                name,
                "only string and reference values are supported",
            )

        self.model.field_descriptions[name] = MapField(
            key_type="String",
            value_type=value_type,
            length_constraint=LengthRangeConstraint(),
        )

    def _lower_array(self, name: str, schema: SchemaNode) -> str:
        items = schema.items
        if items is None:
            raise UnsupportedConstructError("array without 'items'", name)

        if items.kind is SchemaKind.REFERENCE and items.ref_name:
            container_name, element_type = name, items.ref_name
        else:
            container_name, element_name = pluralize_container(name)
            element_type = self.lower(element_name, items)

        self.model.field_descriptions[container_name] = ListField(
            element_type=element_type,
            length_constraint=LengthRangeConstraint(
                minimum=schema.min_items, maximum=schema.max_items
            ),
        )
        return container_name

    def _lower_union(self, name: str, schema: SchemaNode) -> None:
        members: dict[str, Member] = {}
        for index, subschema in enumerate(schema.subschemas):
            branch = self._object_branch(name, subschema)
            self._add_object_members(members, f"{name}{index + 1}", branch)

        self.model.structure_descriptions[name] = StructureDescription(
            members=renumber_by_name(members),
            documentation=schema.description,
        )

    def _object_branch(self, name: str, subschema: SchemaNode) -> SchemaNode:
        """Return the object schema a union branch contributes members from."""
        branch = subschema
        if subschema.kind is SchemaKind.REFERENCE and subschema.ref_name:
            target = self.components.get(subschema.ref_name)
            if target is None:
                raise ReferentialError(subschema.ref_name, name)
            branch = target

        if branch.kind is not SchemaKind.OBJECT or branch.additional_properties is not None:
            raise UnsupportedConstructError(
                f"non-object union branch ({branch.kind.value})", name
            )
        return branch
