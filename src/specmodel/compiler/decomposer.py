"""Operation decomposition -- turn one API operation into input/output types.

:class:`OperationDecomposer` builds the :class:`OperationDescription` of one
operation and registers every type it needs in the service model:

1. **Request body** -- a reference is used by name; an inline object is
   lowered as ``<Op>RequestBody``.
2. **Parameters** -- each query, path or header parameter becomes a member
   whose type is ``<Op>Request<Param>`` (or a referenced primitive
   component). Ignored request headers are dropped before lowering.
3. **Input assembly** -- a body with no parameters is the input as-is;
   otherwise everything is merged into ``<Op>Request``.
4. **Responses** -- every numeric status code yields a body type
   (``<Op><code>Response[<index>]Body`` for inline objects) plus header
   members typed ``<Op><code><Header>Header``.
5. **Output assembly** -- headers are merged with the body into
   ``<Op><code>Response[<index>]``. Codes 200..299 set the output, all other
   codes are recorded as errors.

Response types are lowered into a scratch model first and then copied in;
a name already registered with a different description raises
:class:`~specmodel.exceptions.AmbiguityError`.

``<Op>`` is the operation name with its first letter upper-cased, so
``getWidget`` produces ``GetWidgetRequest``.
"""

from __future__ import annotations

import logging
from typing import Optional

from specmodel.compiler.assembly import merge_members
from specmodel.compiler.filters import (
    is_ignored_request_header,
    is_ignored_response_header,
)
from specmodel.compiler.lowering import SchemaLowerer
from specmodel.exceptions import (
    AmbiguityError,
    ReferentialError,
    UnsupportedConstructError,
)
from specmodel.model.entities import (
    DefaultInputLocation,
    Member,
    OperationDescription,
    OperationError,
    OperationInputDescription,
    OperationOutputDescription,
    StructureDescription,
)
from specmodel.model.naming import safe_model_name, starting_with_uppercase
from specmodel.model.override import ModelOverride
from specmodel.model.service_model import ServiceModel
from specmodel.models import (
    APIOperation,
    APIParameter,
    ParameterLocation,
    ResponseInfo,
    SchemaKind,
    SchemaNode,
)

logger = logging.getLogger(__name__)

SUCCESS_CODES = range(200, 300)
PAYLOAD_MEMBER = "body"


class OperationDecomposer:
    """Decomposes operations into the registries of one service model.

    Args:
        model: The model being built.
        override: Ignore lists and description overrides for this build.
        lowerer: Lowers inline schemas into the same *model*.
    """

    def __init__(
        self,
        model: ServiceModel,
        override: ModelOverride,
        lowerer: SchemaLowerer,
    ) -> None:
        self.model = model
        self.override = override
        self.lowerer = lowerer

    def decompose(
        self,
        operation_name: str,
        http_method: str,
        url_template: str,
        operation: APIOperation,
    ) -> OperationDescription:
        """Build the description of one operation.

        Args:
            operation_name: The operation's registry key, usually its
                ``operationId``.
            http_method: HTTP method, any case.
            url_template: Path template such as ``/widgets/{id}``.
            operation: The parsed operation.

        Returns:
            The operation description. The caller registers it.

        Raises:
            UnsupportedConstructError: On cookie parameters, non-primitive
                parameters or headers, non-object bodies and non-numeric
                status codes other than ``default``.
            AmbiguityError: If a response type name is already taken by a
                different structure.
        """
        prefix = starting_with_uppercase(operation_name)
        description = OperationDescription(
            http_verb=http_method.upper(),
            http_url=url_template,
            documentation=operation.description or operation.summary,
        )

        body_name = self._request_body_name(operation_name, prefix, operation)
        query, headers, path = self._parameter_members(operation_name, prefix, operation)
        self._assemble_input(
            description, operation_name, prefix, operation, body_name, query, headers, path
        )

        for response in operation.responses:
            self._add_response(description, operation_name, prefix, response)

        input_override = self.override.operation_input_overrides.get(operation_name)
        if input_override is not None:
            description.input_description = input_override.model_copy(deep=True)
        output_override = self.override.operation_output_overrides.get(operation_name)
        if output_override is not None:
            description.output_description = output_override.model_copy(deep=True)

        logger.debug(
            "Decomposed %s: input=%s output=%s errors=%d",
            operation_name,
            description.input,
            description.output,
            len(description.errors),
        )
        return description

    # ------------------------------------------------------------------ #
    # Steps 1-3: input
    # ------------------------------------------------------------------ #

    def _request_body_name(
        self, operation_name: str, prefix: str, operation: APIOperation
    ) -> Optional[str]:
        body = operation.request_body
        if body is None or body.schema_ is None:
            return None

        schema = body.schema_
        if schema.kind is SchemaKind.REFERENCE and schema.ref_name:
            return schema.ref_name
        if schema.kind is SchemaKind.OBJECT and schema.additional_properties is None:
            return self.lowerer.lower(f"{prefix}RequestBody", schema)
        raise UnsupportedConstructError(
            "non-object request body",
            operation_name,
            f"schema kind is '{schema.kind.value}'",
        )

    def _parameter_members(
        self, operation_name: str, prefix: str, operation: APIOperation
    ) -> tuple[dict[str, Member], dict[str, Member], dict[str, Member]]:
        query: dict[str, Member] = {}
        headers: dict[str, Member] = {}
        path: dict[str, Member] = {}

        for index, parameter in enumerate(operation.parameters):
            location = f"{operation_name}.{parameter.name}"
            if parameter.location is ParameterLocation.COOKIE:
                raise UnsupportedConstructError("cookie parameter", location)
            if parameter.location is ParameterLocation.HEADER and is_ignored_request_header(
                self.override.ignore_request_headers, operation_name, parameter.name
            ):
                continue

            member = self._parameter_member(prefix, parameter, index, location)
            if parameter.location is ParameterLocation.QUERY:
                query[parameter.name] = member
            elif parameter.location is ParameterLocation.HEADER:
                headers[parameter.name] = member
            else:
                path[parameter.name] = member

        return query, headers, path

    def _parameter_member(
        self, prefix: str, parameter: APIParameter, index: int, location: str
    ) -> Member:
        type_name = f"{prefix}Request{starting_with_uppercase(safe_model_name(parameter.name))}"
        value_type = self._lower_primitive(type_name, parameter.schema_, location)
        return Member(
            value_type=value_type,
            position=index,
            required=parameter.required or parameter.location is ParameterLocation.PATH,
            documentation=parameter.description,
        )

    def _lower_primitive(
        self,
        type_name: str,
        schema: Optional[SchemaNode],
        location: str,
        lowerer: Optional[SchemaLowerer] = None,
    ) -> str:
        """Lower a parameter or header schema, which must be primitive."""
        lowerer = lowerer or self.lowerer
        if schema is None:
            raise UnsupportedConstructError("parameter without a schema", location)

        if schema.kind is SchemaKind.REFERENCE and schema.ref_name:
            target = self.lowerer.components.get(schema.ref_name)
            if target is None:
                raise ReferentialError(schema.ref_name, location)
            if not target.is_primitive:
                raise UnsupportedConstructError(
                    f"{target.kind.value} parameter type", location
                )
            return schema.ref_name

        if not schema.is_primitive:
            raise UnsupportedConstructError(f"{schema.kind.value} parameter type", location)
        return lowerer.lower(type_name, schema)

    def _assemble_input(
        self,
        description: OperationDescription,
        operation_name: str,
        prefix: str,
        operation: APIOperation,
        body_name: Optional[str],
        query: dict[str, Member],
        headers: dict[str, Member],
        path: dict[str, Member],
    ) -> None:
        if body_name is not None and not (query or headers or path):
            structure = self.model.structure_descriptions.get(body_name)
            description.input = body_name
            description.input_description = OperationInputDescription(
                body_fields=sorted(structure.members) if structure is not None else [],
                body_structure_name=body_name,
            )
            return

        body_members, payload_as_member = self._body_members(
            body_name, required=bool(operation.request_body and operation.request_body.required)
        )
        members, names = merge_members(
            [("body", body_members), ("query", query), ("header", headers), ("path", path)]
        )

        input_name = f"{prefix}Request"
        self.model.structure_descriptions[input_name] = StructureDescription(
            members=members,
            documentation=f"Input model for the {operation_name} operation.",
        )
        description.input = input_name
        description.input_description = OperationInputDescription(
            path_fields=names["path"],
            query_fields=names["query"],
            body_fields=names["body"],
            additional_header_fields=names["header"],
            default_input_location=(
                DefaultInputLocation.QUERY if names["query"] else DefaultInputLocation.BODY
            ),
            body_structure_name=body_name,
            payload_as_member=payload_as_member,
        )

    def _body_members(
        self, body_name: Optional[str], required: bool = True
    ) -> tuple[dict[str, Member], Optional[str]]:
        """Return the members a body contributes to a merged structure.

        A body that is not a registered structure is carried whole as the
        single member ``body``, which is then returned as the payload member.
        """
        if body_name is None:
            return {}, None
        structure = self.model.structure_descriptions.get(body_name)
        if structure is not None:
            return dict(structure.members), None
        member = Member(value_type=body_name, position=0, required=required)
        return {PAYLOAD_MEMBER: member}, PAYLOAD_MEMBER

    # ------------------------------------------------------------------ #
    # Steps 4-5: responses
    # ------------------------------------------------------------------ #

    def _add_response(
        self,
        description: OperationDescription,
        operation_name: str,
        prefix: str,
        response: ResponseInfo,
    ) -> None:
        if response.status_code == "default":
            logger.info("Skipping default response of %s", operation_name)
            return
        try:
            code = int(response.status_code)
        except ValueError as exc:
            raise UnsupportedConstructError(
                f"response code '{response.status_code}'", operation_name
            ) from exc

        scratch = self._scratch_lowerer()
        header_members = self._response_header_members(
            operation_name, prefix, code, response, scratch
        )
        self._commit_response_types(scratch.model)

        if response.schema_ is None:
            if header_members:
                self._classify(
                    description,
                    code,
                    *self._merge_output(operation_name, prefix, code, "", None, header_members),
                )
            return

        for index, body_type in self._response_body_types(
            operation_name, prefix, code, response.schema_, ""
        ):
            if header_members:
                output_type, output_description = self._merge_output(
                    operation_name, prefix, code, index, body_type, header_members
                )
            else:
                output_type, output_description = body_type, OperationOutputDescription()
            self._classify(description, code, output_type, output_description)

    def _response_header_members(
        self,
        operation_name: str,
        prefix: str,
        code: int,
        response: ResponseInfo,
        lowerer: SchemaLowerer,
    ) -> dict[str, Member]:
        members: dict[str, Member] = {}
        for index, (header_name, header) in enumerate(response.headers.items()):
            if is_ignored_response_header(
                self.override.ignore_response_headers, operation_name, code, header_name
            ):
                continue
            type_name = f"{prefix}{code}{starting_with_uppercase(safe_model_name(header_name))}Header"
            value_type = self._lower_primitive(
                type_name, header.schema_, f"{operation_name}.{code}.{header_name}", lowerer
            )
            members[header_name] = Member(
                value_type=value_type,
                position=index,
                required=header.required,
                documentation=header.description,
            )
        return members

    def _response_body_types(
        self,
        operation_name: str,
        prefix: str,
        code: int,
        schema: SchemaNode,
        suffix: str,
    ) -> list[tuple[str, str]]:
        """Return ``(index_suffix, type_name)`` for every body type of a response.

        Union branches append their 0-based index to *suffix*; a branch of a
        nested union is joined with ``_``, so ``oneOf: [oneOf: [A, B], C]``
        yields the suffixes ``0_0``, ``0_1`` and ``1``.
        """
        if schema.kind is SchemaKind.REFERENCE and schema.ref_name:
            return [(suffix, schema.ref_name)]

        if schema.is_union:
            body_types: list[tuple[str, str]] = []
            for branch_index, branch in enumerate(schema.subschemas):
                branch_suffix = f"{suffix}_{branch_index}" if suffix else str(branch_index)
                body_types.extend(
                    self._response_body_types(operation_name, prefix, code, branch, branch_suffix)
                )
            return body_types

        if schema.kind is SchemaKind.OBJECT and schema.additional_properties is None:
            structure_name = f"{prefix}{code}Response{suffix}Body"
            scratch = self._scratch_lowerer()
            scratch.model.structure_descriptions[structure_name] = scratch.lower_object(
                structure_name, schema
            )
            self._commit_response_types(scratch.model)
            return [(suffix, structure_name)]

        raise UnsupportedConstructError(
            "non-object response body",
            f"{operation_name}.{code}",
            f"schema kind is '{schema.kind.value}'",
        )

    def _merge_output(
        self,
        operation_name: str,
        prefix: str,
        code: int,
        index: str,
        body_type: Optional[str],
        header_members: dict[str, Member],
    ) -> tuple[str, OperationOutputDescription]:
        body_members, payload_as_member = self._body_members(body_type)
        members, names = merge_members([("body", body_members), ("header", header_members)])

        output_name = f"{prefix}{code}Response{index}"
        self._register_response_structure(
            output_name,
            StructureDescription(
                members=members,
                documentation=f"Output model for the {operation_name} operation.",
            ),
        )
        return output_name, OperationOutputDescription(
            body_fields=names["body"],
            header_fields=names["header"],
            body_structure_name=body_type,
            payload_as_member=payload_as_member,
        )

    def _register_response_structure(self, name: str, structure: StructureDescription) -> None:
        scratch = ServiceModel()
        scratch.structure_descriptions[name] = structure
        self._commit_response_types(scratch)

    def _scratch_lowerer(self) -> SchemaLowerer:
        """Return a lowerer writing into an empty model, for checked commits."""
        return SchemaLowerer(ServiceModel(), self.override, self.lowerer.components)

    def _commit_response_types(self, scratch: ServiceModel) -> None:
        """Copy every entry of *scratch* into the model.

        Raises:
            AmbiguityError: If any entry's name is already registered with a
                different description.
        """
        registries = (
            (scratch.field_descriptions, self.model.field_descriptions),
            (scratch.structure_descriptions, self.model.structure_descriptions),
        )
        for entries, registry in registries:
            for name, entry in entries.items():
                existing = registry.get(name)
                if existing is not None and existing != entry:
                    raise AmbiguityError(
                        name, "two different response types share this synthetic name"
                    )
        for entries, registry in registries:
            registry.update(entries)

    def _classify(
        self,
        description: OperationDescription,
        code: int,
        type_name: str,
        output_description: OperationOutputDescription,
    ) -> None:
        if code in SUCCESS_CODES:
            description.output = type_name
            description.output_description = output_description
        else:
            description.errors.append(OperationError(type_name=type_name, code=code))
            self.model.error_types.add(type_name)
