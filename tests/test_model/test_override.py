"""Tests for specmodel.model.override."""

from __future__ import annotations

from specmodel.model.entities import DefaultInputLocation
from specmodel.model.override import ModelOverride


class TestModelOverrideParsing:
    def test_defaults(self) -> None:
        override = ModelOverride()
        assert override.ignore_operations == set()
        assert override.model_string_patterns_are_alternative_list is False
        assert override.enumerations is None

    def test_camel_case_keys(self) -> None:
        override = ModelOverride.model_validate(
            {
                "ignoreRequestHeaders": ["*.X-Trace-Id"],
                "modelStringPatternsAreAlternativeList": True,
                "enumerations": {"usingUpperCamelCase": ["Color"]},
                "fieldRawTypeOverride": {
                    "Long": {"typeName": "Int64", "defaultValue": "0"}
                },
            }
        )
        assert override.ignore_request_headers == {"*.X-Trace-Id"}
        assert override.model_string_patterns_are_alternative_list is True
        assert override.enumerations.using_upper_camel_case == {"Color"}
        assert override.field_raw_type_override["Long"].type_name == "Int64"

    def test_operation_overrides(self) -> None:
        override = ModelOverride.model_validate(
            {
                "operationInputOverrides": {
                    "getWidget": {"defaultInputLocation": "Body", "bodyFields": ["name"]}
                },
                "operationOutputOverrides": {"getWidget": {"headerFields": ["ETag"]}},
            }
        )
        input_override = override.operation_input_overrides["getWidget"]
        assert input_override.default_input_location is DefaultInputLocation.BODY
        assert input_override.body_fields == ["name"]
        assert override.operation_output_overrides["getWidget"].header_fields == ["ETag"]


class TestCodingKeyOverride:
    def test_type_specific(self) -> None:
        override = ModelOverride(coding_key_overrides={"Widget.id": "ID"})
        assert override.get_coding_key_override("id", "Widget") == "ID"
        assert override.get_coding_key_override("id", "Gadget") is None

    def test_wildcard_wins(self) -> None:
        override = ModelOverride(
            coding_key_overrides={"*.id": "identifier", "Widget.id": "ID"}
        )
        assert override.get_coding_key_override("id", "Widget") == "identifier"

    def test_no_type(self) -> None:
        override = ModelOverride(coding_key_overrides={"Widget.id": "ID"})
        assert override.get_coding_key_override("id") is None


class TestRequiredOverride:
    def test_wildcard(self) -> None:
        override = ModelOverride(required_overrides={"*.count": True})
        assert override.get_is_required_override("count", "Widget") is True

    def test_false_is_returned(self) -> None:
        override = ModelOverride(required_overrides={"Widget.id": False})
        assert override.get_is_required_override("id", "Widget") is False

    def test_absent(self) -> None:
        assert ModelOverride().get_is_required_override("id", "Widget") is None
