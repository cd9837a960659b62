"""Merging member sets into one structure.

Used wherever several member sources become one structure: union branches
(:mod:`~specmodel.compiler.lowering`), operation inputs built from body,
query, header and path members, and outputs built from body and header
members (:mod:`~specmodel.compiler.decomposer`).

Merged positions are reassigned by sorted member name, not by source order,
so the result is contiguous from 0 and independent of the order in which
parameters happen to be declared.
"""

from __future__ import annotations

from collections.abc import Sequence

from specmodel.model.entities import Member


def renumber_by_name(members: dict[str, Member]) -> dict[str, Member]:
    """Return *members* in sorted-name order with positions ``0..N-1``."""
    return {
        name: members[name].model_copy(update={"position": index})
        for index, name in enumerate(sorted(members))
    }


def merge_members(
    sources: Sequence[tuple[str, dict[str, Member]]],
) -> tuple[dict[str, Member], dict[str, list[str]]]:
    """Merge labelled member sources, first source winning on a name clash.

    Args:
        sources: ``(label, members)`` pairs in precedence order, e.g.
            ``[("body", ...), ("query", ...), ("header", ...), ("path", ...)]``.

    Returns:
        A ``(members, names_by_label)`` tuple. ``members`` is renumbered with
        :func:`renumber_by_name`. ``names_by_label`` maps every label to the
        sorted names that label contributed; a name appears under exactly
        one label, and the union of all labels equals ``members``' keys.

    Example::

        merged, names = merge_members([("body", body), ("query", query)])
        assert set(names["body"]) | set(names["query"]) == set(merged)
    """
    merged: dict[str, Member] = {}
    names_by_label: dict[str, list[str]] = {}

    for label, members in sources:
        contributed = names_by_label.setdefault(label, [])
        for name, member in members.items():
            if name in merged:
                continue
            merged[name] = member
            contributed.append(name)

    for contributed in names_by_label.values():
        contributed.sort()

    return renumber_by_name(merged), names_by_label
