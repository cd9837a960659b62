"""Exception hierarchy for specmodel.

All exceptions inherit from :class:`SpecModelError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specmodel.exit_codes`.
The top-level error handler in :func:`specmodel.app.main` catches
``SpecModelError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Every failure inside the compiler is fatal: errors are raised where the
offending construct is found and propagate to the caller of
:func:`~specmodel.compiler.builder.build_service_model`. No partial model is
ever returned.

Subclass hierarchy::

    SpecModelError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- ConfigError                (exit 1)
    +-- SpecParseError             (exit 7)
    +-- ModelBuildError            (exit 8)
    |   +-- UnsupportedConstructError (exit 8)
    |   +-- AmbiguityError            (exit 9)
    +-- ReferentialError           (exit 10)
"""

from __future__ import annotations

from typing import Optional

from specmodel.exit_codes import (
    EXIT_AMBIGUOUS_MODEL,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_UNRESOLVED_REFERENCE,
    EXIT_UNSUPPORTED_CONSTRUCT,
)


class SpecModelError(Exception):
    """Base exception for all specmodel errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specmodel.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecModelError):
    """Raised for invalid CLI arguments or a missing document path."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(SpecModelError):
    """Raised for configuration problems (unreadable override file, invalid project config)."""

    exit_code = EXIT_GENERIC_FAILURE


class SpecParseError(SpecModelError):
    """Raised when the API document cannot be loaded, parsed or version-checked."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class ModelBuildError(SpecModelError):
    """Base class for fatal conditions met while building a service model."""

    exit_code = EXIT_UNSUPPORTED_CONSTRUCT


class UnsupportedConstructError(ModelBuildError):
    """Raised when a schema or operation shape is outside the supported subset.

    The message names both the construct and where it was found so that the
    document author can fix the source document.

    Args:
        construct: Short description of the unsupported shape (e.g.
            ``"not schema"``, ``"cookie parameter"``).
        location: The synthetic type name, field or operation being built
            when the construct was met.
        detail: Optional extra context appended to the message.

    Example::

        UnsupportedConstructError("cookie parameter", "getWidget.session")
        # Unsupported cookie parameter at 'getWidget.session'
    """

    def __init__(self, construct: str, location: str, detail: Optional[str] = None):
        message = f"Unsupported {construct} at '{location}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.construct = construct
        self.location = location


class AmbiguityError(ModelBuildError):
    """Raised when one synthetic type name is produced twice with different shapes.

    Args:
        type_name: The synthetic name both producers claimed.
        detail: Optional description of the two producers.
    """

    exit_code = EXIT_AMBIGUOUS_MODEL

    def __init__(self, type_name: str, detail: Optional[str] = None):
        message = f"Type '{type_name}' is produced twice with different shapes"
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.type_name = type_name


class ReferentialError(SpecModelError):
    """Raised when a referenced type name resolves to neither a field nor a structure.

    The builder raises this only when it has to look through a reference
    (a union branch or a parameter type) to a schema that does not exist.
    Otherwise it is raised lazily by
    :meth:`~specmodel.model.service_model.ServiceModel.resolve` and
    :meth:`~specmodel.model.service_model.ServiceModel.validate_references`
    when a consumer walks the model.
    """

    exit_code = EXIT_UNRESOLVED_REFERENCE

    def __init__(self, type_name: str, referenced_from: Optional[str] = None):
        message = f"Unknown type '{type_name}'"
        if referenced_from:
            message += f" referenced from '{referenced_from}'"
        super().__init__(message)
        self.type_name = type_name
        self.referenced_from = referenced_from
