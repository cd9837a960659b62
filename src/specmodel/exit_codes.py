"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific failure category and is referenced by the
corresponding :class:`~specmodel.exceptions.SpecModelError` subclass.
Build scripts that regenerate code can inspect the exit code to tell a
malformed document apart from a document that uses an unsupported construct.

Example::

    $ specmodel build service.yaml -o model.json
    $ echo $?
    8   # EXIT_UNSUPPORTED_CONSTRUCT -- e.g. a cookie parameter
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required inputs."""

EXIT_SPEC_PARSE_ERROR = 7
"""The API document could not be loaded, parsed or version-checked."""

EXIT_UNSUPPORTED_CONSTRUCT = 8
"""The document uses a schema or operation shape outside the supported subset."""

EXIT_AMBIGUOUS_MODEL = 9
"""Two parts of the document produced the same synthetic type name with different shapes."""

EXIT_UNRESOLVED_REFERENCE = 10
"""A member or field references a type name absent from the model."""
