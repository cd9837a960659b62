"""Tests for specmodel.compiler.decomposer."""

from __future__ import annotations

from typing import Any, Optional

import pytest

from specmodel.compiler.decomposer import OperationDecomposer
from specmodel.compiler.lowering import SchemaLowerer
from specmodel.exceptions import (
    AmbiguityError,
    ReferentialError,
    UnsupportedConstructError,
)
from specmodel.model.entities import (
    DefaultInputLocation,
    OperationInputDescription,
    OperationOutputDescription,
    StructureDescription,
)
from specmodel.model.override import ModelOverride
from specmodel.model.service_model import ServiceModel
from specmodel.models import (
    APIOperation,
    APIParameter,
    HeaderInfo,
    HTTPMethod,
    ParameterLocation,
    RequestBodyInfo,
    ResponseInfo,
    SchemaKind,
    SchemaNode,
)


def _string() -> SchemaNode:
    return SchemaNode(kind=SchemaKind.STRING)


def _ref(name: str) -> SchemaNode:
    return SchemaNode(kind=SchemaKind.REFERENCE, ref_name=name)


def _object(**properties: SchemaNode) -> SchemaNode:
    return SchemaNode(kind=SchemaKind.OBJECT, properties=properties)


def _param(name: str, location: ParameterLocation, **kwargs: Any) -> APIParameter:
    kwargs.setdefault("schema", _string())
    return APIParameter(name=name, location=location, **kwargs)


def _response(code: str, schema: Optional[SchemaNode] = None, **headers: HeaderInfo) -> ResponseInfo:
    return ResponseInfo(status_code=code, schema=schema, headers=headers)


def _operation(**kwargs: Any) -> APIOperation:
    kwargs.setdefault("path", "/widgets")
    kwargs.setdefault("method", HTTPMethod.GET)
    return APIOperation(**kwargs)


WIDGET = SchemaNode(
    kind=SchemaKind.OBJECT,
    properties={"id": _string(), "count": SchemaNode(kind=SchemaKind.INTEGER)},
    required=["id"],
)


@pytest.fixture
def model() -> ServiceModel:
    return ServiceModel()


def _decomposer(
    model: ServiceModel,
    override: Optional[ModelOverride] = None,
    components: Optional[dict[str, SchemaNode]] = None,
) -> OperationDecomposer:
    override = override or ModelOverride()
    components = components if components is not None else {"Widget": WIDGET}
    lowerer = SchemaLowerer(model, override, components)
    for name, schema in components.items():
        lowerer.lower(name, schema)
    return OperationDecomposer(model, override, lowerer)


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


class TestMetadata:
    def test_verb_url_and_documentation(self, model: ServiceModel) -> None:
        description = _decomposer(model).decompose(
            "listWidgets",
            "get",
            "/widgets",
            _operation(summary="List widgets"),
        )
        assert description.http_verb == "GET"
        assert description.http_url == "/widgets"
        assert description.documentation == "List widgets"

    def test_description_preferred_over_summary(self, model: ServiceModel) -> None:
        description = _decomposer(model).decompose(
            "listWidgets", "get", "/widgets", _operation(summary="s", description="d")
        )
        assert description.documentation == "d"

    def test_no_input_no_output(self, model: ServiceModel) -> None:
        description = _decomposer(model).decompose(
            "ping", "head", "/ping", _operation(responses=[_response("204")])
        )
        assert description.output is None
        assert description.errors == []


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class TestInput:
    def test_referenced_body_alone_is_input(self, model: ServiceModel) -> None:
        operation = _operation(
            method=HTTPMethod.POST,
            request_body=RequestBodyInfo(required=True, schema=_ref("Widget")),
        )
        description = _decomposer(model).decompose("createWidget", "post", "/widgets", operation)

        assert description.input == "Widget"
        assert description.input_description.body_structure_name == "Widget"
        assert description.input_description.body_fields == ["count", "id"]
        assert description.input_description.payload_as_member is None
        assert "CreateWidgetRequest" not in model.structure_descriptions

    def test_inline_body_is_lowered(self, model: ServiceModel) -> None:
        operation = _operation(
            request_body=RequestBodyInfo(schema=_object(count=SchemaNode(kind=SchemaKind.INTEGER)))
        )
        description = _decomposer(model).decompose("updateWidget", "put", "/w", operation)

        assert description.input == "UpdateWidgetRequestBody"
        assert "UpdateWidgetRequestBodyCount" in model.field_descriptions

    def test_query_only(self, model: ServiceModel) -> None:
        operation = _operation(
            parameters=[_param("name", ParameterLocation.QUERY, required=True)]
        )
        description = _decomposer(model).decompose("getWidget", "get", "/widgets", operation)

        assert description.input == "GetWidgetRequest"
        structure = model.structure_descriptions["GetWidgetRequest"]
        assert structure.documentation == "Input model for the getWidget operation."
        assert structure.members["name"].value_type == "GetWidgetRequestName"
        assert structure.members["name"].required is True
        input_description = description.input_description
        assert input_description.query_fields == ["name"]
        assert input_description.default_input_location is DefaultInputLocation.QUERY
        assert input_description.body_structure_name is None

    def test_body_and_parameters_merged(self, model: ServiceModel) -> None:
        operation = _operation(
            method=HTTPMethod.PUT,
            parameters=[
                _param("widgetId", ParameterLocation.PATH),
                _param("X-Trace-Id", ParameterLocation.HEADER),
            ],
            request_body=RequestBodyInfo(schema=_ref("Widget")),
        )
        description = _decomposer(model).decompose(
            "updateWidget", "put", "/widgets/{widgetId}", operation
        )

        structure = model.structure_descriptions["UpdateWidgetRequest"]
        assert [name for name, _ in structure.ordered_members()] == [
            "X-Trace-Id",
            "count",
            "id",
            "widgetId",
        ]
        assert structure.has_contiguous_positions()
        assert structure.members["X-Trace-Id"].value_type == "UpdateWidgetRequestXTraceId"
        assert structure.members["widgetId"].required is True
        assert structure.members["id"].value_type == "WidgetId"

        input_description = description.input_description
        assert input_description.path_fields == ["widgetId"]
        assert input_description.body_fields == ["count", "id"]
        assert input_description.additional_header_fields == ["X-Trace-Id"]
        assert input_description.query_fields == []
        assert input_description.default_input_location is DefaultInputLocation.BODY
        assert input_description.body_structure_name == "Widget"
        assert input_description.payload_as_member is None

    @pytest.mark.parametrize(
        "operation",
        [
            _operation(
                parameters=[
                    _param("id", ParameterLocation.PATH),
                    _param("q", ParameterLocation.QUERY),
                    _param("X-A", ParameterLocation.HEADER),
                ],
                request_body=RequestBodyInfo(schema=_object(note=_string())),
            ),
            _operation(request_body=RequestBodyInfo(schema=_ref("Widget"))),
            _operation(request_body=RequestBodyInfo(schema=_object(note=_string()))),
        ],
        ids=["merged", "referenced-body", "inline-body"],
    )
    def test_every_member_in_exactly_one_location(
        self, model: ServiceModel, operation: APIOperation
    ) -> None:
        description = _decomposer(model).decompose("patchWidget", "patch", "/w/{id}", operation)

        d = description.input_description
        located = d.path_fields + d.query_fields + d.body_fields + d.additional_header_fields
        members = model.structure_descriptions[description.input].members
        assert sorted(located) == sorted(members)
        assert len(located) == len(set(located))

    def test_non_structure_body_is_payload_member(self, model: ServiceModel) -> None:
        components = {"Blob": SchemaNode(kind=SchemaKind.STRING, format="binary")}
        operation = _operation(
            parameters=[_param("name", ParameterLocation.QUERY)],
            request_body=RequestBodyInfo(required=True, schema=_ref("Blob")),
        )
        description = _decomposer(model, components=components).decompose(
            "upload", "post", "/blobs", operation
        )

        members = model.structure_descriptions["UploadRequest"].members
        assert members["body"].value_type == "Blob"
        assert members["body"].required is True
        assert description.input_description.payload_as_member == "body"
        assert description.input_description.body_fields == ["body"]

    def test_referenced_primitive_parameter(self, model: ServiceModel) -> None:
        components = {"WidgetId": _string()}
        operation = _operation(
            parameters=[_param("id", ParameterLocation.PATH, schema=_ref("WidgetId"))]
        )
        _decomposer(model, components=components).decompose("getWidget", "get", "/w/{id}", operation)

        assert model.structure_descriptions["GetWidgetRequest"].members["id"].value_type == "WidgetId"
        assert "GetWidgetRequestId" not in model.field_descriptions

    def test_missing_referenced_parameter(self, model: ServiceModel) -> None:
        operation = _operation(
            parameters=[_param("id", ParameterLocation.PATH, schema=_ref("Ghost"))]
        )
        with pytest.raises(ReferentialError, match="Ghost"):
            _decomposer(model).decompose("getWidget", "get", "/w/{id}", operation)

    def test_object_parameter_rejected(self, model: ServiceModel) -> None:
        operation = _operation(
            parameters=[_param("filter", ParameterLocation.QUERY, schema=_object(a=_string()))]
        )
        with pytest.raises(UnsupportedConstructError, match="getWidget.filter"):
            _decomposer(model).decompose("getWidget", "get", "/w", operation)

    def test_cookie_parameter_rejected(self, model: ServiceModel) -> None:
        operation = _operation(parameters=[_param("session", ParameterLocation.COOKIE)])
        with pytest.raises(UnsupportedConstructError, match="cookie parameter"):
            _decomposer(model).decompose("getWidget", "get", "/w", operation)

    def test_ignored_request_header(self, model: ServiceModel) -> None:
        override = ModelOverride(ignore_request_headers={"*.X-Trace-Id"})
        operation = _operation(
            parameters=[
                _param("name", ParameterLocation.QUERY),
                _param("X-Trace-Id", ParameterLocation.HEADER),
            ]
        )
        description = _decomposer(model, override).decompose("getWidget", "get", "/w", operation)

        assert "X-Trace-Id" not in model.structure_descriptions["GetWidgetRequest"].members
        assert "GetWidgetRequestXTraceId" not in model.field_descriptions
        assert description.input_description.additional_header_fields == []

    def test_map_body_rejected(self, model: ServiceModel) -> None:
        body = SchemaNode(kind=SchemaKind.OBJECT, additional_properties=_string())
        operation = _operation(request_body=RequestBodyInfo(schema=body))
        with pytest.raises(UnsupportedConstructError, match="non-object request body"):
            _decomposer(model).decompose("putLabels", "put", "/labels", operation)


# ---------------------------------------------------------------------------
# Output and errors
# ---------------------------------------------------------------------------


class TestResponses:
    def test_referenced_success_body(self, model: ServiceModel) -> None:
        operation = _operation(responses=[_response("200", _ref("Widget"))])
        description = _decomposer(model).decompose("getWidget", "get", "/w", operation)

        assert description.output == "Widget"
        assert description.output_description == OperationOutputDescription()

    @pytest.mark.parametrize("code", ["200", "201", "299"])
    def test_success_range(self, model: ServiceModel, code: str) -> None:
        operation = _operation(responses=[_response(code, _ref("Widget"))])
        description = _decomposer(model).decompose("getWidget", "get", "/w", operation)
        assert description.output == "Widget"
        assert description.errors == []

    @pytest.mark.parametrize("code", ["199", "300", "404", "500"])
    def test_other_codes_are_errors(self, model: ServiceModel, code: str) -> None:
        operation = _operation(responses=[_response(code, _ref("Widget"))])
        description = _decomposer(model).decompose("getWidget", "get", "/w", operation)

        assert description.output is None
        assert [(e.type_name, e.code) for e in description.errors] == [("Widget", int(code))]
        assert "Widget" in model.error_types

    def test_inline_body(self, model: ServiceModel) -> None:
        operation = _operation(
            responses=[_response("200", _object(updated=SchemaNode(kind=SchemaKind.BOOLEAN)))]
        )
        description = _decomposer(model).decompose("updateWidget", "put", "/w", operation)

        assert description.output == "UpdateWidget200ResponseBody"
        structure = model.structure_descriptions["UpdateWidget200ResponseBody"]
        assert structure.members["updated"].value_type == "UpdateWidget200ResponseBodyUpdated"

    def test_default_response_skipped(self, model: ServiceModel) -> None:
        operation = _operation(responses=[_response("default", _ref("Widget"))])
        description = _decomposer(model).decompose("getWidget", "get", "/w", operation)
        assert description.output is None
        assert description.errors == []

    def test_range_code_rejected(self, model: ServiceModel) -> None:
        operation = _operation(responses=[_response("2XX", _ref("Widget"))])
        with pytest.raises(UnsupportedConstructError, match="2XX"):
            _decomposer(model).decompose("getWidget", "get", "/w", operation)

    def test_headers_merged_with_body(self, model: ServiceModel) -> None:
        operation = _operation(
            responses=[
                _response(
                    "201",
                    _ref("Widget"),
                    ETag=HeaderInfo(schema=_string()),
                    Location=HeaderInfo(required=True, schema=_string()),
                )
            ]
        )
        description = _decomposer(model).decompose("createWidget", "post", "/w", operation)

        assert description.output == "CreateWidget201Response"
        structure = model.structure_descriptions["CreateWidget201Response"]
        assert structure.documentation == "Output model for the createWidget operation."
        assert [name for name, _ in structure.ordered_members()] == [
            "ETag",
            "Location",
            "count",
            "id",
        ]
        assert structure.members["ETag"].value_type == "CreateWidget201ETagHeader"
        assert structure.members["Location"].required is True
        output = description.output_description
        assert output.body_fields == ["count", "id"]
        assert output.header_fields == ["ETag", "Location"]
        assert output.body_structure_name == "Widget"
        assert output.payload_as_member is None

    def test_headers_without_body(self, model: ServiceModel) -> None:
        operation = _operation(
            responses=[_response("202", None, Location=HeaderInfo(schema=_string()))]
        )
        description = _decomposer(model).decompose("startJob", "post", "/jobs", operation)

        assert description.output == "StartJob202Response"
        assert description.output_description.header_fields == ["Location"]
        assert description.output_description.body_structure_name is None

    def test_ignored_response_header(self, model: ServiceModel) -> None:
        override = ModelOverride(ignore_response_headers={"createWidget.*.Location"})
        operation = _operation(
            responses=[
                _response(
                    "201",
                    _ref("Widget"),
                    ETag=HeaderInfo(schema=_string()),
                    Location=HeaderInfo(schema=_string()),
                )
            ]
        )
        _decomposer(model, override).decompose("createWidget", "post", "/w", operation)

        members = model.structure_descriptions["CreateWidget201Response"].members
        assert "Location" not in members
        assert "CreateWidget201LocationHeader" not in model.field_descriptions

    def test_union_response_branches(self, model: ServiceModel) -> None:
        schema = SchemaNode(
            kind=SchemaKind.ONE_OF,
            subschemas=[_ref("Widget"), _object(reason=_string())],
        )
        operation = _operation(responses=[_response("400", schema)])
        description = _decomposer(model).decompose("getWidget", "get", "/w", operation)

        assert [e.type_name for e in description.errors] == [
            "Widget",
            "GetWidget400Response1Body",
        ]
        assert "GetWidget400Response1Body" in model.structure_descriptions

    def test_non_object_body_rejected(self, model: ServiceModel) -> None:
        operation = _operation(
            responses=[_response("200", SchemaNode(kind=SchemaKind.ARRAY, items=_ref("Widget")))]
        )
        with pytest.raises(UnsupportedConstructError, match="getWidget.200"):
            _decomposer(model).decompose("getWidget", "get", "/w", operation)

    def test_conflicting_response_structure(self, model: ServiceModel) -> None:
        model.structure_descriptions["GetWidget200ResponseBody"] = StructureDescription()
        operation = _operation(responses=[_response("200", _object(other=_string()))])
        with pytest.raises(AmbiguityError, match="GetWidget200ResponseBody"):
            _decomposer(model).decompose("getWidget", "get", "/w", operation)

    def test_identical_response_structure_allowed(self, model: ServiceModel) -> None:
        operation = _operation(responses=[_response("200", _object(other=_string()))])
        decomposer = _decomposer(model)
        decomposer.decompose("getWidget", "get", "/w", operation)
        description = decomposer.decompose("getWidget", "get", "/w", operation)
        assert description.output == "GetWidget200ResponseBody"

    def test_conflicting_nested_property_type(self, model: ServiceModel) -> None:
        decomposer = _decomposer(model)
        decomposer.decompose(
            "getX", "get", "/x", _operation(responses=[_response("200", _object(a=_string()))])
        )
        conflicting = _operation(
            responses=[_response("200", _object(a=SchemaNode(kind=SchemaKind.INTEGER)))]
        )
        with pytest.raises(AmbiguityError, match="GetX200ResponseBodyA"):
            decomposer.decompose("GetX", "get", "/x", conflicting)
        assert model.field_descriptions["GetX200ResponseBodyA"].kind == "string"

    def test_conflicting_response_header_type(self, model: ServiceModel) -> None:
        decomposer = _decomposer(model)
        decomposer.decompose(
            "getX",
            "get",
            "/x",
            _operation(responses=[_response("204", ETag=HeaderInfo(schema=_string()))]),
        )
        conflicting = _operation(
            responses=[
                _response("204", ETag=HeaderInfo(schema=SchemaNode(kind=SchemaKind.INTEGER)))
            ]
        )
        with pytest.raises(AmbiguityError, match="GetX204ETagHeader"):
            decomposer.decompose("GetX", "get", "/x", conflicting)

    def test_nested_union_branches_named_by_path(self, model: ServiceModel) -> None:
        inner = SchemaNode(
            kind=SchemaKind.ONE_OF,
            subschemas=[_object(a=_string()), _object(b=_string())],
        )
        schema = SchemaNode(kind=SchemaKind.ONE_OF, subschemas=[inner, _object(c=_string())])
        operation = _operation(responses=[_response("400", schema)])
        description = _decomposer(model).decompose("getWidget", "get", "/w", operation)

        assert [e.type_name for e in description.errors] == [
            "GetWidget400Response0_0Body",
            "GetWidget400Response0_1Body",
            "GetWidget400Response1Body",
        ]
        assert list(model.structure_descriptions["GetWidget400Response1Body"].members) == ["c"]


# ---------------------------------------------------------------------------
# Overrides
# ---------------------------------------------------------------------------


class TestDescriptionOverrides:
    def test_input_and_output_descriptions_replaced(self, model: ServiceModel) -> None:
        override = ModelOverride(
            operation_input_overrides={
                "getWidget": OperationInputDescription(path_template_field="id")
            },
            operation_output_overrides={
                "getWidget": OperationOutputDescription(header_fields=["ETag"])
            },
        )
        operation = _operation(
            parameters=[_param("name", ParameterLocation.QUERY)],
            responses=[_response("200", _ref("Widget"))],
        )
        description = _decomposer(model, override).decompose("getWidget", "get", "/w", operation)

        assert description.input == "GetWidgetRequest"
        assert description.input_description.path_template_field == "id"
        assert description.input_description.query_fields == []
        assert description.output_description.header_fields == ["ETag"]
