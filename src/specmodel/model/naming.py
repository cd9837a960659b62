"""Name conversions used to derive synthetic type names.

Every type the compiler creates that is not a named schema of the source
document gets a *synthetic name* built from its nesting context, e.g. the
``id`` property of ``Widget`` becomes ``WidgetId``. The helpers here are
pure and deterministic; identical inputs always yield identical names, which
is what keeps generated output diff-stable across regenerations.

The array-name heuristic in :func:`pluralize_container` is knowingly naive
(``"Status"`` singularises to ``"Statu"``). It is kept as-is because changing
it renames generated types and breaks code already written against them.
"""

from __future__ import annotations

import re

RESERVED_WORDS = frozenset(
    {
        "in", "protocol", "return", "default", "public", "self", "static",
        "private", "internal", "do", "is", "as", "true", "false", "import",
    }
)

_ERROR_SUFFIXES = ("Error", "Fault", "Exception")

# Characters removed (or replaced) by safe_model_name.
_UNSAFE_CHARS_RE = re.compile(r"[-. /():]")


def starting_with_uppercase(name: str) -> str:
    """Return *name* with its first character upper-cased; the rest is untouched."""
    return name[:1].upper() + name[1:]


def upper_to_lower_camel_case(name: str) -> str:
    """Convert ``UpperCamel`` to ``lowerCamel`` by lower-casing the first character."""
    return name[:1].lower() + name[1:]


def lower_to_upper_camel_case(name: str) -> str:
    """Convert ``lowerCamel`` to ``UpperCamel`` by upper-casing the first character."""
    return name[:1].upper() + name[1:]


def synthesize(parent_name: str, property_name: str) -> str:
    """Derive a child's synthetic name from its parent's.

    Concatenation is injective along one path of the schema tree, so
    children of uniquely named parents get unique names.

    Example::

        >>> synthesize("Widget", "id")
        'WidgetId'
    """
    return parent_name + starting_with_uppercase(property_name)


def safe_model_name(
    name: str,
    replacement: str = "",
    wildcard_replacement: str = "Star",
) -> str:
    """Strip characters that cannot appear in a target-language identifier.

    ``-``, ``.``, space, ``/``, ``(``, ``)`` and ``:`` are replaced by
    *replacement*; ``*`` becomes ``replacement + wildcard_replacement``.

    Example::

        >>> safe_model_name("X-Request-Id")
        'XRequestId'
        >>> safe_model_name("accept/*")
        'acceptStar'
    """
    cleaned = _UNSAFE_CHARS_RE.sub(replacement, name)
    return cleaned.replace("*", f"{replacement}{wildcard_replacement}")


def normalized_error_name(name: str) -> str:
    """Lower-camel-case *name* and drop one trailing ``Error``/``Fault``/``Exception``."""
    normalized = upper_to_lower_camel_case(name)
    for suffix in _ERROR_SUFFIXES:
        if normalized.endswith(suffix):
            return normalized[: -len(suffix)]
    return normalized


def escape_reserved_words(name: str) -> str:
    """Back-tick escape *name* if it is a reserved word of the target language."""
    if name in RESERVED_WORDS:
        return f"`{name}`"
    return name


def pluralize_container(name: str) -> tuple[str, str]:
    """Derive ``(container_name, element_name)`` for an array type.

    If *name* ends in ``s`` (either case) the element name drops that
    trailing character and the container keeps *name*; otherwise the
    element reuses *name* and the container gains an ``s``.

    Example::

        >>> pluralize_container("Tags")
        ('Tags', 'Tag')
        >>> pluralize_container("WidgetPart")
        ('WidgetParts', 'WidgetPart')
        >>> pluralize_container("Status")
        ('Status', 'Statu')
    """
    if name[-1:].lower() == "s":
        return name, name[:-1]
    return f"{name}s", name
