"""The ``ModelOverride`` configuration consumed while building a service model.

A ``ModelOverride`` is an explicit, read-only value passed into every
lowering and decomposition call; there is no ambient override state. It is
usually loaded from a JSON or YAML file with
:func:`~specmodel.config.load_model_override`::

    {
      "ignoreRequestHeaders": ["*.X-Trace-Id"],
      "ignoreResponseHeaders": ["getWidget.*.ETag"],
      "modelStringPatternsAreAlternativeList": true
    }

Some fields steer the compiler (the ignore lists, the alternation flag, the
per-operation description overrides); the rest are carried through
unchanged for code emitters (``fieldRawTypeOverride``,
``namedFieldValuesOverride``, ``codingKeyOverrides``...).
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from specmodel.model.entities import (
    OperationInputDescription,
    OperationOutputDescription,
)


class EnumerationNaming(BaseModel):
    """How enumeration cases are spelled in the source document.

    Emitters expect upper snake case by default; types listed in
    ``using_upper_camel_case`` declare their cases in upper camel case.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    using_upper_camel_case: set[str] = Field(default_factory=set)


class RawTypeOverride(BaseModel):
    """Replace the type emitted for a field with a custom type and default value."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type_name: str
    default_value: str


class ModelOverride(BaseModel):
    """Overrides applied on top of what the source document says.

    Ignore lists use dot-separated patterns where ``*`` matches one whole
    segment only:

    * ``ignore_operations`` -- ``<operationId>.<method>``
    * ``ignore_request_headers`` -- ``<operationId>.<header>``
    * ``ignore_response_headers`` -- ``<operationId>.<code>.<header>``

    See Also:
        :mod:`specmodel.compiler.filters`: The matcher.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    match_case: set[str] = Field(default_factory=set)
    enumerations: Optional[EnumerationNaming] = None
    field_raw_type_override: dict[str, RawTypeOverride] = Field(default_factory=dict)
    named_field_values_override: dict[str, str] = Field(default_factory=dict)
    operation_input_overrides: dict[str, OperationInputDescription] = Field(
        default_factory=dict
    )
    operation_output_overrides: dict[str, OperationOutputDescription] = Field(
        default_factory=dict
    )
    model_string_patterns_are_alternative_list: bool = Field(
        default=False,
        description="Treat '^a|b|c$' string patterns as enumerations",
    )
    coding_key_overrides: dict[str, str] = Field(default_factory=dict)
    required_overrides: dict[str, bool] = Field(default_factory=dict)
    additional_errors: set[str] = Field(default_factory=set)
    ignore_operations: set[str] = Field(default_factory=set)
    ignore_response_headers: set[str] = Field(default_factory=set)
    ignore_request_headers: set[str] = Field(default_factory=set)
    default_enumeration_value_override: dict[str, str] = Field(default_factory=dict)

    def get_coding_key_override(
        self, attribute_name: str, in_type: Optional[str] = None
    ) -> Optional[str]:
        """Return the wire-name override for an attribute, if any.

        ``*.<attribute>`` takes precedence over ``<type>.<attribute>``.
        """
        override = self.coding_key_overrides.get(f"*.{attribute_name}")
        if override is not None:
            return override
        if in_type is not None:
            return self.coding_key_overrides.get(f"{in_type}.{attribute_name}")
        return None

    def get_is_required_override(
        self, attribute_name: str, in_type: Optional[str] = None
    ) -> Optional[bool]:
        """Return the optionality override for an attribute, if any.

        ``*.<attribute>`` takes precedence over ``<type>.<attribute>``.
        """
        override = self.required_overrides.get(f"*.{attribute_name}")
        if override is not None:
            return override
        if in_type is not None:
            return self.required_overrides.get(f"{in_type}.{attribute_name}")
        return None
