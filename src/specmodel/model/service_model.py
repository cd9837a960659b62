"""The service model -- aggregate root of the intermediate representation.

A :class:`ServiceModel` owns flat registries keyed by type name:

* ``field_descriptions`` -- name -> :data:`~specmodel.model.entities.FieldDescription`
* ``structure_descriptions`` -- name -> :class:`~specmodel.model.entities.StructureDescription`
* ``operation_descriptions`` -- operation name -> :class:`~specmodel.model.entities.OperationDescription`

plus the set of error type names and a type-name remapping table. It is
built once per document by :func:`~specmodel.compiler.builder.build_service_model`
and read, never written, by emitters.

Referential closure is not checked while building. A member whose
``value_type`` is in neither registry is only reported when a consumer asks
for it through :meth:`ServiceModel.resolve` or
:meth:`ServiceModel.validate_references`.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from specmodel.exceptions import ReferentialError
from specmodel.model.entities import (
    FieldDescription,
    ListField,
    MapField,
    OperationDescription,
    StructureDescription,
    is_builtin_type,
)
from specmodel.model.naming import starting_with_uppercase

if TYPE_CHECKING:
    from specmodel.model.override import ModelOverride
    from specmodel.models import ParsedSpec


class ServiceInformation(BaseModel):
    """Title, version and description of the modelled service."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    version: str
    description: Optional[str] = None


class ServiceModel(BaseModel):
    """Flat, name-keyed registries describing one service.

    Example::

        model = ServiceModel.build(parsed_spec)
        widget = model.lookup("Widget")
        for name, member in widget.ordered_members():
            print(name, model.normalized_type_name(member.value_type))
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    service_information: Optional[ServiceInformation] = None
    field_descriptions: dict[str, FieldDescription] = Field(default_factory=dict)
    structure_descriptions: dict[str, StructureDescription] = Field(
        default_factory=dict
    )
    operation_descriptions: dict[str, OperationDescription] = Field(
        default_factory=dict
    )
    error_types: set[str] = Field(default_factory=set)
    type_mappings: dict[str, str] = Field(default_factory=dict)

    @field_serializer("error_types")
    def _serialize_error_types(self, error_types: set[str]) -> list[str]:
        return sorted(error_types)

    @classmethod
    def build(
        cls, spec: ParsedSpec, override: Optional[ModelOverride] = None
    ) -> ServiceModel:
        """Build a model from a parsed document.

        Shortcut for :func:`~specmodel.compiler.builder.build_service_model`.
        """
        from specmodel.compiler.builder import build_service_model

        return build_service_model(spec, override)

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    def lookup(
        self, type_name: str
    ) -> Optional[Union[FieldDescription, StructureDescription]]:
        """Return the field or structure registered under *type_name*, or ``None``.

        Fields take precedence over structures when a name is in both
        registries.
        """
        field = self.field_descriptions.get(type_name)
        if field is not None:
            return field
        return self.structure_descriptions.get(type_name)

    def resolve(
        self, type_name: str, referenced_from: Optional[str] = None
    ) -> Union[FieldDescription, StructureDescription]:
        """Like :meth:`lookup`, but raise if *type_name* is not registered.

        Raises:
            ReferentialError: If *type_name* is in neither registry.
        """
        entry = self.lookup(type_name)
        if entry is None:
            raise ReferentialError(type_name, referenced_from)
        return entry

    def dangling_references(self) -> Iterator[tuple[str, str]]:
        """Yield ``(owner, type_name)`` for every reference that does not resolve.

        Owners are ``"<Structure>.<member>"`` for members and the field name
        for list elements and map keys/values. Builtin type names such as
        ``"String"`` always resolve.
        """
        for structure_name in sorted(self.structure_descriptions):
            structure = self.structure_descriptions[structure_name]
            for member_name, member in structure.ordered_members():
                if not self._resolves(member.value_type):
                    yield f"{structure_name}.{member_name}", member.value_type

        for field_name in sorted(self.field_descriptions):
            field = self.field_descriptions[field_name]
            if isinstance(field, ListField):
                referenced = [field.element_type]
            elif isinstance(field, MapField):
                referenced = [field.key_type, field.value_type]
            else:
                continue
            for type_name in referenced:
                if not self._resolves(type_name):
                    yield field_name, type_name

    def validate_references(self) -> None:
        """Raise on the first reference that does not resolve.

        Raises:
            ReferentialError: Naming the missing type and its referrer.
        """
        for owner, type_name in self.dangling_references():
            raise ReferentialError(type_name, owner)

    def _resolves(self, type_name: str) -> bool:
        return is_builtin_type(type_name) or self.lookup(type_name) is not None

    # ------------------------------------------------------------------ #
    # Type names
    # ------------------------------------------------------------------ #

    def normalized_type_name(self, type_name: str) -> str:
        """Return the emitted name for *type_name*: its mapping, or upper-first."""
        mapped = self.type_mappings.get(type_name)
        if mapped is not None:
            return mapped
        return starting_with_uppercase(type_name)

    # ------------------------------------------------------------------ #
    # Serialisation
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, Any]:
        """Dump the model as JSON-compatible data with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, indent: int = 2) -> str:
        """Dump the model as a JSON string; equal models give identical text."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


def compute_type_mappings(
    field_descriptions: dict[str, FieldDescription],
    structure_descriptions: dict[str, StructureDescription],
) -> dict[str, str]:
    """Disambiguate type names that collide once upper-first normalised.

    ``widget`` and ``Widget`` both normalise to ``Widget``. For every such
    collision each original name is mapped to
    ``<Normalized><EntityType><Index>``, where the entity type (``String``,
    ``List``... empty for structures) is only added when the colliding
    names are of different kinds, and the 1-based index only when several
    names of the same kind collide. A string field normalising to
    ``String`` keeps the name ``String``.

    Names that do not collide are absent from the result.

    Example::

        >>> compute_type_mappings({"widget": StringField()}, {"Widget": StructureDescription()})
        {'widget': 'WidgetString', 'Widget': 'Widget'}
    """
    # normalized name -> entity type -> original names, in first-seen order
    collisions: dict[str, dict[str, list[str]]] = {}
    counts: dict[str, int] = {}

    def _add(name: str, entity_type: str) -> None:
        normalized = starting_with_uppercase(name)
        collisions.setdefault(normalized, {}).setdefault(entity_type, []).append(name)
        counts[normalized] = counts.get(normalized, 0) + 1

    for name in sorted(field_descriptions):
        _add(name, field_descriptions[name].type_description)
    for name in sorted(structure_descriptions):
        _add(name, "")

    mappings: dict[str, str] = {}
    for normalized, entity_types in collisions.items():
        if counts[normalized] < 2:
            continue
        for entity_type, type_names in entity_types.items():
            entity_suffix = entity_type if len(entity_types) > 1 else ""
            for index, type_name in enumerate(type_names):
                index_suffix = str(index + 1) if len(type_names) > 1 else ""
                if entity_type == "String" and normalized == "String" and not entity_suffix:
                    mappings[type_name] = "String"
                else:
                    mappings[type_name] = f"{normalized}{entity_suffix}{index_suffix}"
    return mappings
