"""Inspect commands -- tabulate what a document compiles to.

``specmodel inspect operations`` lists each operation with its verb, URL,
input, output and error types; ``specmodel inspect types`` lists every
registered field and structure with the name an emitter would use for it.
Both compile the document first, so they fail exactly where ``build`` would.
"""

from __future__ import annotations

from typing import Optional

import typer

from specmodel.commands.build import compile_document
from specmodel.exceptions import SpecModelError
from specmodel.model.entities import StructureDescription
from specmodel.output import error, get_output, info

inspect_app = typer.Typer(no_args_is_help=True)


def _resolve(spec: Optional[str], override: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    from specmodel.config import resolve_config

    try:
        config = resolve_config(cli_spec=spec, cli_override=override)
    except SpecModelError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    return config.spec, config.override


@inspect_app.command("operations")
def inspect_operations(
    spec: Optional[str] = typer.Argument(None, help="API document."),
    override: Optional[str] = typer.Option(
        None, "--override", "-m", help="ModelOverride JSON/YAML file."
    ),
) -> None:
    """List the operations of the compiled model.

    Example::

        specmodel inspect operations widgets.yaml
    """
    model = compile_document(*_resolve(spec, override))

    if not model.operation_descriptions:
        info("No operations in this document.")
        return

    headers = ["Operation", "Verb", "URL", "Input", "Output", "Errors"]
    rows: list[list[str]] = []
    for name in sorted(model.operation_descriptions):
        operation = model.operation_descriptions[name]
        rows.append([
            name,
            operation.http_verb or "-",
            operation.http_url or "-",
            operation.input or "-",
            operation.output or "-",
            ", ".join(f"{e.type_name} ({e.code})" for e in operation.errors) or "-",
        ])

    get_output().print_table(headers, rows, title=f"Operations ({len(rows)})")


@inspect_app.command("types")
def inspect_types(
    spec: Optional[str] = typer.Argument(None, help="API document."),
    override: Optional[str] = typer.Option(
        None, "--override", "-m", help="ModelOverride JSON/YAML file."
    ),
) -> None:
    """List every field and structure of the compiled model.

    The *Emitted As* column shows the name after collision remapping.
    """
    model = compile_document(*_resolve(spec, override))

    headers = ["Type", "Kind", "Emitted As", "Details"]
    rows: list[list[str]] = []
    for name in sorted(set(model.field_descriptions) | set(model.structure_descriptions)):
        entry = model.lookup(name)
        if isinstance(entry, StructureDescription):
            kind = "Structure"
            members = [member_name for member_name, _ in entry.ordered_members()]
            details = ", ".join(members[:5]) + ("..." if len(members) > 5 else "")
        else:
            kind = entry.type_description
            details = ""
        marker = " (error)" if name in model.error_types else ""
        rows.append([name + marker, kind, model.normalized_type_name(name), details or "-"])

    get_output().print_table(headers, rows, title=f"Types ({len(rows)})")
