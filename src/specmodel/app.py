"""Typer application and CLI entry point for specmodel.

The root app carries the global output options (``--json``, ``--plain``,
``--no-color``, ``--quiet``, ``--verbose``) and registers the ``build``
command and the ``inspect`` group.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. Errors from the specmodel hierarchy exit with their own
exit code; anything else is written to a crash log under the data directory.

See Also:
    :mod:`specmodel.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from specmodel import __version__
from specmodel.commands.build import build_command
from specmodel.commands.inspect import inspect_app
from specmodel.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="specmodel",
    help="Compile OpenAPI 3.x / Swagger 2.0 documents into a service model.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("build")(build_command)
app.add_typer(inspect_app, name="inspect", help="Inspect the compiled model.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"specmodel {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output and compiler logging."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~specmodel.output.OutputManager` and, with
    ``--verbose``, routes the compiler's ``logging`` output to stderr.
    """
    from specmodel.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback to ``<data dir>/logs`` and return the path."""
    from specmodel.config import get_logs_dir

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = get_logs_dir() / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc(), encoding="utf-8")
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``specmodel`` console script.

    Raises:
        SystemExit: Always, with the command's exit code.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from specmodel.exceptions import SpecModelError
        from specmodel.output import error

        if isinstance(exc, SpecModelError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
