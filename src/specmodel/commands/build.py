"""The ``specmodel build`` command and the load-and-compile pipeline it shares.

:func:`compile_document` runs load -> version check -> extract -> build and
turns any :class:`~specmodel.exceptions.SpecModelError` into an error line
on stderr plus a ``typer.Exit`` carrying the error's exit code. Nothing is
written when the build fails.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from specmodel.exceptions import InvalidUsageError, SpecModelError
from specmodel.model import ServiceModel
from specmodel.output import debug, error, print_json, success

logger = logging.getLogger(__name__)


def compile_document(spec_source: Optional[str], override_path: Optional[str]) -> ServiceModel:
    """Load *spec_source* and compile it with the overrides at *override_path*.

    Raises:
        typer.Exit: With the failing error's exit code.
    """
    from specmodel.compiler import build_service_model
    from specmodel.config import load_model_override
    from specmodel.parser import extract_spec, load_spec, validate_spec_version

    try:
        if not spec_source:
            raise InvalidUsageError(
                "No API document given. Pass SPEC, set SPECMODEL_SPEC, "
                "or add \"spec\" to ./specmodel.json"
            )
        override = load_model_override(override_path)
        debug(f"Loading {spec_source}")
        raw = load_spec(spec_source)
        parsed = extract_spec(raw, validate_spec_version(raw))
        return build_service_model(parsed, override)
    except SpecModelError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def build_command(
    spec: Optional[str] = typer.Argument(
        None, help="API document: file path, URL, or '-' for stdin."
    ),
    override: Optional[str] = typer.Option(
        None, "--override", "-m", help="ModelOverride JSON/YAML file."
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write the model JSON here instead of stdout."
    ),
    check_references: bool = typer.Option(
        False,
        "--check-references",
        help="Fail if any member refers to a type that is not in the model.",
    ),
) -> None:
    """Compile an OpenAPI/Swagger document into a service model.

    Example::

        specmodel build widgets.yaml -m overrides.json -o model.json
    """
    from specmodel.config import resolve_config, write_output

    try:
        config = resolve_config(cli_spec=spec, cli_override=override, cli_output=output)
    except SpecModelError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    model = compile_document(config.spec, config.override)

    if check_references:
        try:
            model.validate_references()
        except SpecModelError as exc:
            error(str(exc))
            raise typer.Exit(code=exc.exit_code) from None

    if config.output:
        write_output(Path(config.output), model.to_json() + "\n")
        success(
            f"Wrote {len(model.structure_descriptions)} structures, "
            f"{len(model.field_descriptions)} fields and "
            f"{len(model.operation_descriptions)} operations to {config.output}"
        )
    else:
        print_json(model.to_dict())
