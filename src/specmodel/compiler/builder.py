"""Build a :class:`~specmodel.model.service_model.ServiceModel` from a parsed document.

The build is one synchronous pass:

1. every named schema is lowered, in document order;
2. every operation with an ``operationId`` that is not ignored is
   decomposed and registered under that id;
3. type-name collisions are resolved into ``type_mappings``.

Any unsupported construct aborts the whole build; there is no partial model.
"""

from __future__ import annotations

import logging
from typing import Optional

from specmodel.compiler.decomposer import OperationDecomposer
from specmodel.compiler.filters import is_ignored_operation
from specmodel.compiler.lowering import SchemaLowerer
from specmodel.model.override import ModelOverride
from specmodel.model.service_model import (
    ServiceInformation,
    ServiceModel,
    compute_type_mappings,
)
from specmodel.models import ParsedSpec

logger = logging.getLogger(__name__)


def build_service_model(
    spec: ParsedSpec, override: Optional[ModelOverride] = None
) -> ServiceModel:
    """Compile *spec* into a service model.

    Args:
        spec: The parsed document.
        override: Overrides for this build. Defaults to an empty
            :class:`ModelOverride`.

    Returns:
        The populated service model.

    Raises:
        UnsupportedConstructError: On the first construct outside the
            supported subset.
        AmbiguityError: On conflicting response structures.
    """
    override = override or ModelOverride()
    model = ServiceModel(
        service_information=ServiceInformation(
            title=spec.info.title,
            version=spec.info.version,
            description=spec.info.description,
        )
    )

    lowerer = SchemaLowerer(model, override, spec.schemas)
    for name, schema in spec.schemas.items():
        lowerer.lower(name, schema)

    decomposer = OperationDecomposer(model, override, lowerer)
    for operation in spec.operations:
        if not operation.operation_id:
            logger.warning(
                "Skipping %s %s: no operationId", operation.method.value.upper(), operation.path
            )
            continue
        if is_ignored_operation(
            override.ignore_operations, operation.operation_id, operation.method.value
        ):
            continue
        if operation.operation_id in model.operation_descriptions:
            logger.warning("Duplicate operationId %s; keeping the last one", operation.operation_id)

        model.operation_descriptions[operation.operation_id] = decomposer.decompose(
            operation.operation_id, operation.method.value, operation.path, operation
        )

    model.type_mappings = compute_type_mappings(
        model.field_descriptions, model.structure_descriptions
    )
    logger.info(
        "Built service model: %d fields, %d structures, %d operations",
        len(model.field_descriptions),
        len(model.structure_descriptions),
        len(model.operation_descriptions),
    )
    return model
