"""Entities of the intermediate service model.

These are the value types the compiler writes into the registries of a
:class:`~specmodel.model.service_model.ServiceModel` and that code emitters
read back. Three groups:

**Constraints** -- :class:`LengthRangeConstraint`,
:class:`NumericRangeConstraint` and :class:`EnumerationValue`.

**Fields** -- the :data:`FieldDescription` tagged union, one class per
primitive shape (:class:`StringField`, :class:`IntegerField`,
:class:`LongField`, :class:`DoubleField`, :class:`BooleanField`,
:class:`TimestampField`, :class:`BinaryField`, :class:`ListField`,
:class:`MapField`), discriminated on ``kind``.

**Structures and operations** -- :class:`Member`,
:class:`StructureDescription`, :class:`OperationInputDescription`,
:class:`OperationOutputDescription`, :class:`OperationError` and
:class:`OperationDescription`.

All entities serialise with camelCase keys so that override files and
emitted models share one spelling (``bodyStructureName``,
``defaultInputLocation``...). Constraints, fields and members are frozen;
structures and operation descriptions are assembled step by step during a
build and are treated as read-only afterwards.
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

BUILTIN_TYPE_NAMES = frozenset(
    {"String", "Integer", "Boolean", "Double", "Long", "Timestamp", "Data"}
)
"""Type names that denote a primitive directly rather than a registry entry."""


def is_builtin_type(name: str) -> bool:
    """Return ``True`` if *name* is a primitive type name such as ``"String"``."""
    return name in BUILTIN_TYPE_NAMES


class _ModelEntity(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _FrozenEntity(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


# --- Constraints ---


class LengthRangeConstraint(_FrozenEntity):
    """A potentially half or fully open length range (string length, list/map size)."""

    minimum: Optional[int] = None
    maximum: Optional[int] = None

    @property
    def has_constraints(self) -> bool:
        return self.minimum is not None or self.maximum is not None


class NumericRangeConstraint(_FrozenEntity):
    """A potentially half or fully open numeric value range."""

    minimum: Optional[Union[int, float]] = None
    maximum: Optional[Union[int, float]] = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False

    @property
    def has_constraints(self) -> bool:
        return self.minimum is not None or self.maximum is not None


class EnumerationValue(_FrozenEntity):
    """One allowed value of an enumerated string field."""

    name: str
    value: str


# --- Fields ---


class StringField(_FrozenEntity):
    """A string field; a non-empty ``value_constraints`` makes it an enumeration."""

    kind: Literal["string"] = "string"
    regex_constraint: Optional[str] = None
    length_constraint: LengthRangeConstraint = Field(
        default_factory=LengthRangeConstraint
    )
    value_constraints: list[EnumerationValue] = Field(default_factory=list)

    @property
    def is_enumeration(self) -> bool:
        return bool(self.value_constraints)

    @property
    def type_description(self) -> str:
        return "String"


class IntegerField(_FrozenEntity):
    kind: Literal["integer"] = "integer"
    range_constraint: NumericRangeConstraint = Field(
        default_factory=NumericRangeConstraint
    )

    @property
    def type_description(self) -> str:
        return "Integer"


class LongField(_FrozenEntity):
    """A 64-bit integer field (``format: int64``)."""

    kind: Literal["long"] = "long"
    range_constraint: NumericRangeConstraint = Field(
        default_factory=NumericRangeConstraint
    )

    @property
    def type_description(self) -> str:
        return "Long"


class DoubleField(_FrozenEntity):
    kind: Literal["double"] = "double"
    range_constraint: NumericRangeConstraint = Field(
        default_factory=NumericRangeConstraint
    )

    @property
    def type_description(self) -> str:
        return "Double"


class BooleanField(_FrozenEntity):
    kind: Literal["boolean"] = "boolean"

    @property
    def type_description(self) -> str:
        return "Boolean"


class TimestampField(_FrozenEntity):
    kind: Literal["timestamp"] = "timestamp"

    @property
    def type_description(self) -> str:
        return "Timestamp"


class BinaryField(_FrozenEntity):
    kind: Literal["binary"] = "binary"

    @property
    def type_description(self) -> str:
        return "Data"


class ListField(_FrozenEntity):
    """A list whose elements are of the registry type ``element_type``."""

    kind: Literal["list"] = "list"
    element_type: str
    length_constraint: LengthRangeConstraint = Field(
        default_factory=LengthRangeConstraint
    )

    @property
    def type_description(self) -> str:
        return "List"


class MapField(_FrozenEntity):
    """A map from ``key_type`` to ``value_type`` (registry or builtin type names)."""

    kind: Literal["map"] = "map"
    key_type: str
    value_type: str
    length_constraint: LengthRangeConstraint = Field(
        default_factory=LengthRangeConstraint
    )

    @property
    def type_description(self) -> str:
        return "Map"


FieldDescription = Annotated[
    Union[
        StringField,
        IntegerField,
        LongField,
        DoubleField,
        BooleanField,
        TimestampField,
        BinaryField,
        ListField,
        MapField,
    ],
    Field(discriminator="kind"),
]


# --- Structures ---


class Member(_FrozenEntity):
    """A named, positioned reference from a structure to another type.

    ``position`` defines declaration/serialisation order within the owning
    structure; positions of one structure are unique and contiguous from 0.
    """

    value_type: str
    position: int
    required: bool = False
    location_name: Optional[str] = None
    documentation: Optional[str] = None


class StructureDescription(_ModelEntity):
    """An ordered set of members plus optional documentation."""

    members: dict[str, Member] = Field(default_factory=dict)
    documentation: Optional[str] = None

    def ordered_members(self) -> list[tuple[str, Member]]:
        """Return ``(name, member)`` pairs sorted by position."""
        return sorted(self.members.items(), key=lambda entry: entry[1].position)

    def has_contiguous_positions(self) -> bool:
        """Return ``True`` if member positions are exactly ``0..N-1``."""
        positions = sorted(member.position for member in self.members.values())
        return positions == list(range(len(positions)))


# --- Operations ---


class DefaultInputLocation(str, enum.Enum):
    """Where input fields not assigned to an explicit location are carried."""

    QUERY = "Query"
    BODY = "Body"


class OperationInputDescription(_ModelEntity):
    """How the members of an operation's input map onto the HTTP request."""

    path_fields: list[str] = Field(default_factory=list)
    query_fields: list[str] = Field(default_factory=list)
    body_fields: list[str] = Field(default_factory=list)
    path_template_field: Optional[str] = None
    additional_header_fields: list[str] = Field(default_factory=list)
    default_input_location: DefaultInputLocation = DefaultInputLocation.BODY
    body_structure_name: Optional[str] = None
    payload_as_member: Optional[str] = None

    @property
    def only_has_default_location(self) -> bool:
        return (
            not self.path_fields
            and not self.query_fields
            and not self.body_fields
            and self.path_template_field is None
            and not self.additional_header_fields
        )


class OperationOutputDescription(_ModelEntity):
    """How the members of an operation's output map onto the HTTP response.

    ``payload_as_member`` names the single member the whole response body
    deserialises into, when the body is not itself a structure.
    """

    body_fields: list[str] = Field(default_factory=list)
    header_fields: list[str] = Field(default_factory=list)
    body_structure_name: Optional[str] = None
    payload_as_member: Optional[str] = None


class OperationError(_FrozenEntity):
    """An error type an operation can return, with its HTTP status code."""

    type_name: str
    code: int


class OperationDescription(_ModelEntity):
    """Everything a client emitter needs to know about one operation."""

    input: Optional[str] = None
    output: Optional[str] = None
    http_verb: Optional[str] = None
    http_url: Optional[str] = None
    errors: list[OperationError] = Field(default_factory=list)
    documentation: Optional[str] = None
    input_description: OperationInputDescription = Field(
        default_factory=OperationInputDescription
    )
    output_description: OperationOutputDescription = Field(
        default_factory=OperationOutputDescription
    )
