"""Inline ``$ref`` pointers, except references to named schemas.

The compiler treats a reference to a named schema as a *name*: an object
property pointing at ``#/components/schemas/Widget`` becomes a member of type
``Widget`` and no new type is created. Those references must therefore
survive resolution. Every other internal reference (parameters, request
bodies, responses, headers, and pointers into the middle of a schema) is
replaced by a copy of its target.

Preserved references are still checked: a pointer to a schema that does not
exist raises :class:`~specmodel.exceptions.SpecParseError` here rather than
producing a dangling name later.

External references (anything not starting with ``#/``) are rejected.
"""

from __future__ import annotations

import copy
from typing import Any, Optional

from specmodel.exceptions import SpecParseError

SCHEMA_REF_PREFIXES = ("#/components/schemas/", "#/definitions/")


def schema_ref_name(ref: str) -> Optional[str]:
    """Return the schema name if *ref* points at a named schema, else ``None``.

    Example::

        >>> schema_ref_name("#/components/schemas/Widget")
        'Widget'
        >>> schema_ref_name("#/components/schemas/Widget/properties/id") is None
        True
    """
    for prefix in SCHEMA_REF_PREFIXES:
        if ref.startswith(prefix):
            name = ref[len(prefix):]
            if name and "/" not in name:
                return _unescape(name)
    return None


def resolve_refs(spec: dict[str, Any]) -> dict[str, Any]:
    """Return a deep copy of *spec* with all non-schema ``$ref``\\ s inlined.

    Cycles through non-schema references are left unresolved at the point
    where they close.

    Raises:
        SpecParseError: For external references and pointers to paths that
            do not exist.
    """
    root = copy.deepcopy(spec)
    return _resolve(root, root, frozenset())


def _unescape(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def _follow(ref: str, root: dict[str, Any]) -> Any:
    if not ref.startswith("#/"):
        raise SpecParseError(
            f"External $ref not supported: {ref}. Only internal references (#/...) are handled."
        )

    current: Any = root
    for raw_segment in ref[2:].split("/"):
        segment = _unescape(raw_segment)
        if isinstance(current, dict):
            if segment not in current:
                raise SpecParseError(f"Cannot resolve $ref '{ref}': '{segment}' not found")
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise SpecParseError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise SpecParseError(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}"
            )
    return current


def _resolve(obj: Any, root: dict[str, Any], seen: frozenset[str]) -> Any:
    if isinstance(obj, dict):
        ref = obj.get("$ref")
        if isinstance(ref, str):
            if schema_ref_name(ref) is not None:
                _follow(ref, root)
                return {
                    key: value if key == "$ref" else _resolve(value, root, seen)
                    for key, value in obj.items()
                }
            if ref in seen:
                return obj
            return _resolve(_follow(ref, root), root, seen | {ref})
        return {key: _resolve(value, root, seen) for key, value in obj.items()}

    if isinstance(obj, list):
        return [_resolve(item, root, seen) for item in obj]

    return obj
