"""Build a :class:`~specmodel.models.ParsedSpec` from a raw document dict.

:func:`extract_spec` resolves non-schema ``$ref``\\ s (see
:mod:`~specmodel.parser.resolver`) and then walks the document:

* ``_extract_info`` / ``_extract_servers`` -- service metadata.
* ``_extract_schemas`` -- ``components/schemas`` (OpenAPI 3) or
  ``definitions`` (Swagger 2.0), in document order.
* ``_extract_operations`` -- every path, then every HTTP method in the
  fixed :class:`~specmodel.models.HTTPMethod` order, so the operation list
  does not depend on how a YAML loader orders keys within a path item.

Schemas become :class:`~specmodel.models.SchemaNode` trees via
:func:`extract_schema`. A reference to a named schema stays a ``REFERENCE``
node holding the name.

Swagger 2.0 documents are normalised into the OpenAPI 3 shapes while
walking: ``in: body`` parameters become the request body, response
``schema`` becomes the response schema, and the type keywords written
directly on parameters and headers become inline schemas. ``formData``
parameters are rejected.

Path-level parameters apply to every operation under the path; an
operation-level parameter with the same ``name`` and ``in`` replaces one.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from specmodel.exceptions import SpecParseError
from specmodel.models import (
    APIInfo,
    APIOperation,
    APIParameter,
    HeaderInfo,
    HTTPMethod,
    ParameterLocation,
    ParsedSpec,
    RequestBodyInfo,
    ResponseInfo,
    SchemaKind,
    SchemaNode,
    ServerInfo,
)
from specmodel.parser.loader import SWAGGER_VERSION
from specmodel.parser.resolver import resolve_refs, schema_ref_name

logger = logging.getLogger(__name__)

_UNION_KEYWORDS = (
    ("allOf", SchemaKind.ALL_OF),
    ("anyOf", SchemaKind.ANY_OF),
    ("oneOf", SchemaKind.ONE_OF),
)
_TYPE_KINDS = {
    "boolean": SchemaKind.BOOLEAN,
    "integer": SchemaKind.INTEGER,
    "number": SchemaKind.NUMBER,
    "string": SchemaKind.STRING,
    "object": SchemaKind.OBJECT,
    "array": SchemaKind.ARRAY,
}
# Keys of a Swagger 2.0 parameter or header that are not schema keywords.
_NON_SCHEMA_KEYS = frozenset({"name", "in", "required", "description", "collectionFormat"})
_DEFAULT_MEDIA_TYPES = ["application/json"]


def extract_spec(raw_spec: dict[str, Any], spec_version: str) -> ParsedSpec:
    """Extract a :class:`ParsedSpec` from a loaded document.

    Args:
        raw_spec: The document as returned by
            :func:`~specmodel.parser.loader.load_spec`.
        spec_version: As returned by
            :func:`~specmodel.parser.loader.validate_spec_version`.

    Raises:
        SpecParseError: On unresolvable references, malformed schemas and
            Swagger 2.0 ``formData`` parameters.

    Example::

        raw = load_spec("widgets.yaml")
        parsed = extract_spec(raw, validate_spec_version(raw))
        for op in parsed.operations:
            print(op.method.value.upper(), op.path, op.operation_id)
    """
    spec = resolve_refs(raw_spec)
    swagger = spec_version == SWAGGER_VERSION
    parsed = ParsedSpec(
        info=_extract_info(spec),
        servers=_extract_servers(spec, swagger),
        schemas=_extract_schemas(spec, swagger),
        operations=_extract_operations(spec, swagger),
        openapi_version=spec_version,
        raw_spec=raw_spec,
    )
    logger.debug(
        "Extracted %d schemas and %d operations", len(parsed.schemas), len(parsed.operations)
    )
    return parsed


def _extract_info(spec: dict[str, Any]) -> APIInfo:
    info = spec.get("info") or {}
    return APIInfo(
        title=str(info.get("title", "Untitled API")),
        version=str(info.get("version", "0.0.0")),
        description=info.get("description"),
    )


def _extract_servers(spec: dict[str, Any], swagger: bool) -> list[ServerInfo]:
    if swagger:
        host = spec.get("host")
        if not host:
            return []
        base_path = spec.get("basePath", "")
        schemes = spec.get("schemes") or ["https"]
        return [ServerInfo(url=f"{scheme}://{host}{base_path}") for scheme in schemes]

    return [
        ServerInfo(url=server.get("url", "/"), description=server.get("description"))
        for server in spec.get("servers") or []
        if isinstance(server, dict)
    ]


def _extract_schemas(spec: dict[str, Any], swagger: bool) -> dict[str, SchemaNode]:
    if swagger:
        raw_schemas = spec.get("definitions") or {}
    else:
        raw_schemas = (spec.get("components") or {}).get("schemas") or {}
    return {str(name): extract_schema(schema, str(name)) for name, schema in raw_schemas.items()}


# --- Schemas ---


def extract_schema(raw: Any, location: str = "schema") -> SchemaNode:
    """Convert one raw schema dict into a :class:`SchemaNode` tree.

    The variant is chosen by, in order: ``$ref``, ``allOf``/``anyOf``/
    ``oneOf``, ``not``, ``type``. A schema without ``type`` is an object if
    it has ``properties`` or ``additionalProperties``, an array if it has
    ``items``, and a ``FRAGMENT`` otherwise. For OpenAPI 3.1 type lists the
    first non-``null`` entry is used.

    Args:
        raw: The schema, normally a dict. ``True`` (as allowed for
            ``additionalProperties``) is a fragment.
        location: Where the schema sits, for error messages.

    Raises:
        SpecParseError: For non-dict schemas and references that do not
            name a schema.
    """
    if raw is True:
        return SchemaNode(kind=SchemaKind.FRAGMENT)
    if not isinstance(raw, dict):
        raise SpecParseError(f"Schema at '{location}' must be an object, got {type(raw).__name__}")

    description = raw.get("description")

    ref = raw.get("$ref")
    if isinstance(ref, str):
        name = schema_ref_name(ref)
        if name is None:
            raise SpecParseError(f"Reference '{ref}' at '{location}' does not name a schema")
        return SchemaNode(kind=SchemaKind.REFERENCE, ref_name=name, description=description)

    for keyword, kind in _UNION_KEYWORDS:
        if keyword in raw:
            return SchemaNode(
                kind=kind,
                description=description,
                subschemas=[
                    extract_schema(sub, f"{location}/{keyword}/{index}")
                    for index, sub in enumerate(raw[keyword] or [])
                ],
            )

    if "not" in raw:
        return SchemaNode(kind=SchemaKind.NOT, description=description)

    kind = _schema_kind(raw)
    node: dict[str, Any] = {"kind": kind, "description": description, "format": raw.get("format")}

    if kind in (SchemaKind.INTEGER, SchemaKind.NUMBER):
        node.update(_numeric_bounds(raw))
    elif kind is SchemaKind.STRING:
        node.update(
            min_length=raw.get("minLength"),
            max_length=raw.get("maxLength"),
            pattern=raw.get("pattern"),
            enum_values=raw.get("enum"),
        )
    elif kind is SchemaKind.ARRAY:
        items = raw.get("items")
        node.update(
            min_items=raw.get("minItems"),
            max_items=raw.get("maxItems"),
            items=extract_schema(items, f"{location}/items") if items is not None else None,
        )
    elif kind is SchemaKind.OBJECT:
        additional = raw.get("additionalProperties")
        node.update(
            required=list(raw.get("required") or []),
            properties={
                str(key): extract_schema(value, f"{location}/{key}")
                for key, value in (raw.get("properties") or {}).items()
            },
            additional_properties=(
                extract_schema(additional, f"{location}/additionalProperties")
                if additional is not None and not isinstance(additional, bool)
                else None
            ),
        )

    return SchemaNode(**node)


def _schema_kind(raw: dict[str, Any]) -> SchemaKind:
    type_value = raw.get("type")
    if isinstance(type_value, list):
        non_null = [t for t in type_value if t != "null"]
        type_value = non_null[0] if non_null else None

    if type_value is None:
        if "properties" in raw or "additionalProperties" in raw:
            return SchemaKind.OBJECT
        if "items" in raw:
            return SchemaKind.ARRAY
        return SchemaKind.FRAGMENT

    kind = _TYPE_KINDS.get(str(type_value))
    if kind is None:
        raise SpecParseError(f"Unknown schema type '{type_value}'")
    return kind


def _numeric_bounds(raw: dict[str, Any]) -> dict[str, Any]:
    """Read bounds in both the boolean (3.0) and numeric (3.1) exclusive styles."""
    bounds: dict[str, Any] = {"minimum": raw.get("minimum"), "maximum": raw.get("maximum")}
    for keyword, bound, flag in (
        ("exclusiveMinimum", "minimum", "exclusive_minimum"),
        ("exclusiveMaximum", "maximum", "exclusive_maximum"),
    ):
        value = raw.get(keyword)
        if isinstance(value, bool):
            bounds[flag] = value
        elif isinstance(value, (int, float)):
            bounds[bound] = value
            bounds[flag] = True
    return bounds


# --- Operations ---


def _extract_operations(spec: dict[str, Any], swagger: bool) -> list[APIOperation]:
    operations: list[APIOperation] = []
    global_consumes = spec.get("consumes") or _DEFAULT_MEDIA_TYPES
    global_produces = spec.get("produces") or _DEFAULT_MEDIA_TYPES

    for path, path_item in (spec.get("paths") or {}).items():
        if not isinstance(path_item, dict):
            continue
        path_params = path_item.get("parameters") or []

        for method in HTTPMethod:
            operation = path_item.get(method.value)
            if not isinstance(operation, dict):
                continue

            location = f"{method.value.upper()} {path}"
            raw_params = _merge_parameters(path_params, operation.get("parameters") or [])

            if swagger:
                request_body, raw_params = _swagger_request_body(
                    raw_params, operation.get("consumes") or global_consumes, location
                )
                responses = _extract_responses(
                    operation.get("responses") or {},
                    location,
                    swagger_produces=operation.get("produces") or global_produces,
                )
            else:
                request_body = _extract_request_body(operation.get("requestBody"), location)
                responses = _extract_responses(operation.get("responses") or {}, location)

            operations.append(
                APIOperation(
                    path=str(path),
                    method=method,
                    operation_id=operation.get("operationId"),
                    summary=operation.get("summary"),
                    description=operation.get("description"),
                    parameters=[
                        _extract_parameter(param, swagger, location) for param in raw_params
                    ],
                    request_body=request_body,
                    responses=responses,
                )
            )

    return operations


def _merge_parameters(
    path_params: list[dict[str, Any]], op_params: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    """Path-level parameters first, minus those an operation-level one replaces."""
    overridden = {(param.get("name"), param.get("in")) for param in op_params}
    merged = [
        param for param in path_params if (param.get("name"), param.get("in")) not in overridden
    ]
    merged.extend(op_params)
    return merged


def _extract_parameter(param: dict[str, Any], swagger: bool, location: str) -> APIParameter:
    name = str(param.get("name", ""))
    location_str = param.get("in", "query")
    try:
        param_location = ParameterLocation(location_str)
    except ValueError:
        raise SpecParseError(
            f"Unsupported parameter location '{location_str}' for '{name}' at {location}"
        ) from None

    if swagger:
        schema = _inline_schema(param, f"{location}/{name}")
    else:
        raw_schema = param.get("schema")
        if raw_schema is None:
            raw_schema = _first_content_schema(param.get("content"))
        schema = extract_schema(raw_schema, f"{location}/{name}") if raw_schema is not None else None

    return APIParameter(
        name=name,
        location=param_location,
        required=bool(param.get("required", False)) or param_location is ParameterLocation.PATH,
        description=param.get("description"),
        schema=schema,
    )


def _inline_schema(raw: dict[str, Any], location: str) -> SchemaNode:
    """Schema for a Swagger 2.0 parameter or header, whose type keywords sit inline."""
    return extract_schema(
        {key: value for key, value in raw.items() if key not in _NON_SCHEMA_KEYS}, location
    )


def _swagger_request_body(
    params: list[dict[str, Any]], consumes: list[str], location: str
) -> tuple[Optional[RequestBodyInfo], list[dict[str, Any]]]:
    """Split Swagger 2.0 parameters into the request body and the rest."""
    body: Optional[RequestBodyInfo] = None
    remaining: list[dict[str, Any]] = []
    for param in params:
        param_in = param.get("in")
        if param_in == "formData":
            raise SpecParseError(
                f"formData parameter '{param.get('name')}' at {location} is not supported"
            )
        if param_in == "body":
            raw_schema = param.get("schema")
            body = RequestBodyInfo(
                required=bool(param.get("required", False)),
                description=param.get("description"),
                content_types=list(consumes),
                schema=extract_schema(raw_schema, f"{location}/body")
                if raw_schema is not None
                else None,
            )
        else:
            remaining.append(param)
    return body, remaining


def _first_content_schema(content: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    for media in (content or {}).values():
        if isinstance(media, dict) and "schema" in media:
            return media["schema"]
    return None


def _extract_request_body(
    body: Optional[dict[str, Any]], location: str
) -> Optional[RequestBodyInfo]:
    if body is None:
        return None
    content = body.get("content") or {}
    raw_schema = _first_content_schema(content)
    return RequestBodyInfo(
        required=bool(body.get("required", False)),
        description=body.get("description"),
        content_types=list(content),
        schema=extract_schema(raw_schema, f"{location}/requestBody")
        if raw_schema is not None
        else None,
    )


def _extract_responses(
    responses: dict[str, Any],
    location: str,
    swagger_produces: Optional[list[str]] = None,
) -> list[ResponseInfo]:
    swagger = swagger_produces is not None
    result: list[ResponseInfo] = []

    for status_code, response in responses.items():
        if not isinstance(response, dict):
            continue
        response_location = f"{location}/{status_code}"

        if swagger:
            raw_schema = response.get("schema")
            content_types = list(swagger_produces or []) if raw_schema is not None else []
        else:
            content = response.get("content") or {}
            raw_schema = _first_content_schema(content)
            content_types = list(content)

        headers = {
            str(name): _extract_header(header, swagger, f"{response_location}/{name}")
            for name, header in (response.get("headers") or {}).items()
            if isinstance(header, dict)
        }

        result.append(
            ResponseInfo(
                status_code=str(status_code),
                description=response.get("description"),
                content_types=content_types,
                schema=extract_schema(raw_schema, response_location)
                if raw_schema is not None
                else None,
                headers=headers,
            )
        )

    return result


def _extract_header(header: dict[str, Any], swagger: bool, location: str) -> HeaderInfo:
    if swagger:
        schema: Optional[SchemaNode] = _inline_schema(header, location)
    else:
        raw_schema = header.get("schema")
        if raw_schema is None:
            raw_schema = _first_content_schema(header.get("content"))
        schema = extract_schema(raw_schema, location) if raw_schema is not None else None
    return HeaderInfo(
        description=header.get("description"),
        required=bool(header.get("required", False)),
        schema=schema,
    )
