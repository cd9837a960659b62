"""Pydantic models for the parsed API document and the build configuration.

The models fall into two groups:

**Configuration models** -- resolved from CLI flags, environment variables
and the project file by :func:`~specmodel.config.resolve_config`:
    :class:`BuildConfig`.

**Document models** -- produced by the parser and consumed by the compiler.
These are the "already-parsed document" the compiler works from; nothing in
:mod:`specmodel.compiler` touches a raw dict:
    :class:`SchemaKind`, :class:`SchemaNode`, :class:`HTTPMethod`,
    :class:`ParameterLocation`, :class:`APIParameter`, :class:`HeaderInfo`,
    :class:`RequestBodyInfo`, :class:`ResponseInfo`, :class:`APIOperation`,
    :class:`APIInfo`, :class:`ServerInfo`, and :class:`ParsedSpec`.

The intermediate representation the compiler produces lives in
:mod:`specmodel.model`, not here.
"""

from __future__ import annotations

import enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


# --- Build Config ---


class BuildConfig(BaseModel):
    """Effective inputs for one ``specmodel build`` run.

    See Also:
        :func:`~specmodel.config.resolve_config`: Precedence resolution.
    """

    spec: Optional[str] = Field(
        default=None, description="URL, file path, or '-' for the API document"
    )
    override: Optional[str] = Field(
        default=None, description="Path to a ModelOverride JSON/YAML file"
    )
    output: Optional[str] = Field(
        default=None, description="File to write the model JSON to (stdout if unset)"
    )


# --- Document Models ---


class SchemaKind(str, enum.Enum):
    """Variants of the :class:`SchemaNode` tagged union.

    ``FRAGMENT`` is a schema with no ``type`` and no structural keyword.
    ``NOT`` and ``FRAGMENT`` are parsed so that the compiler can reject them
    with a precise diagnostic instead of the parser guessing a type.
    """

    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"
    STRING = "string"
    OBJECT = "object"
    ARRAY = "array"
    ALL_OF = "all_of"
    ANY_OF = "any_of"
    ONE_OF = "one_of"
    REFERENCE = "reference"
    NOT = "not"
    FRAGMENT = "fragment"


UNION_KINDS = frozenset({SchemaKind.ALL_OF, SchemaKind.ANY_OF, SchemaKind.ONE_OF})
PRIMITIVE_KINDS = frozenset(
    {SchemaKind.BOOLEAN, SchemaKind.INTEGER, SchemaKind.NUMBER, SchemaKind.STRING}
)


class SchemaNode(BaseModel):
    """One node of a document's schema graph.

    References to named schemas are kept as ``REFERENCE`` nodes carrying the
    target's name in ``ref_name`` rather than being inlined, which is what
    lets self-referential schemas terminate: a reference is a name lookup,
    not an object graph edge.
    """

    kind: SchemaKind
    format: Optional[str] = None
    description: Optional[str] = None
    # numeric
    minimum: Optional[Union[int, float]] = None
    maximum: Optional[Union[int, float]] = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False
    # string
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    enum_values: Optional[list[Any]] = None
    # array
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    items: Optional[SchemaNode] = None
    # object
    required: list[str] = Field(default_factory=list)
    properties: dict[str, SchemaNode] = Field(default_factory=dict)
    additional_properties: Optional[SchemaNode] = None
    # all_of / any_of / one_of
    subschemas: list[SchemaNode] = Field(default_factory=list)
    # reference
    ref_name: Optional[str] = None

    @property
    def is_primitive(self) -> bool:
        return self.kind in PRIMITIVE_KINDS

    @property
    def is_union(self) -> bool:
        return self.kind in UNION_KINDS


SchemaNode.model_rebuild()


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised in path-item objects."""

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where an operation parameter can appear, per the ``in`` field."""

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class APIParameter(BaseModel):
    """A single non-body parameter of an operation.

    Path parameters are always required, whatever the document says.
    """

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")

    model_config = {"populate_by_name": True}


class HeaderInfo(BaseModel):
    """A response header declared under one status code."""

    description: Optional[str] = None
    required: bool = False
    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")

    model_config = {"populate_by_name": True}


class RequestBodyInfo(BaseModel):
    """Request body of an operation; ``schema`` comes from the first content type that has one."""

    required: bool = False
    description: Optional[str] = None
    content_types: list[str] = Field(default_factory=list)
    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")

    model_config = {"populate_by_name": True}


class ResponseInfo(BaseModel):
    """Response metadata for a single status code (``"200"``, ``"404"``, ``"default"``)."""

    status_code: str
    description: Optional[str] = None
    content_types: list[str] = Field(default_factory=list)
    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")
    headers: dict[str, HeaderInfo] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


class APIOperation(BaseModel):
    """A single operation (one URL path + HTTP method pair).

    Each operation with an ``operation_id`` becomes one entry in the service
    model's operation registry.
    """

    path: str
    method: HTTPMethod
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    parameters: list[APIParameter] = Field(default_factory=list)
    request_body: Optional[RequestBodyInfo] = None
    responses: list[ResponseInfo] = Field(default_factory=list)


class APIInfo(BaseModel):
    """API metadata from the document's *Info Object*."""

    title: str
    version: str
    description: Optional[str] = None


class ServerInfo(BaseModel):
    """A server entry (OpenAPI ``servers`` or Swagger ``host``/``basePath``)."""

    url: str
    description: Optional[str] = None


class ParsedSpec(BaseModel):
    """Complete parsed representation of an API document.

    Produced by :func:`~specmodel.parser.extractor.extract_spec` and consumed
    by :func:`~specmodel.compiler.builder.build_service_model`. ``schemas``
    keeps document order, which is the order the compiler lowers them in.

    See Also:
        :class:`APIOperation`: Individual operation within the document.
        :class:`SchemaNode`: Named and inline schemas.
    """

    info: APIInfo
    servers: list[ServerInfo] = Field(default_factory=list)
    schemas: dict[str, SchemaNode] = Field(default_factory=dict)
    operations: list[APIOperation] = Field(default_factory=list)
    openapi_version: str = Field(
        description="Original version string (e.g., '3.0.3', '3.1.0', '2.0')"
    )
    raw_spec: Optional[dict[str, Any]] = Field(
        default=None, description="Original document dict for reference"
    )
