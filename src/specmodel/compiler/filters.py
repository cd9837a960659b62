"""Ignore-list matching for operations and headers.

Patterns are dot-separated with one segment per axis, for example
``getWidget.get`` (operation, method) or ``*.404.ETag`` (operation, status
code, header). A ``*`` stands for one whole segment and nothing else:
``get*.get`` is an ordinary literal, never a prefix match. Matching is done by
enumerating every combination of literal-or-``*`` per segment and testing set
membership, so a header name that itself contains a dot is still compared
as one segment.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable

logger = logging.getLogger(__name__)

WILDCARD = "*"


def matches_ignore_pattern(patterns: Iterable[str], *segments: str) -> bool:
    """Return ``True`` if any pattern matches *segments* exactly.

    Args:
        patterns: The ignore list (e.g. ``{"*.X-Trace-Id"}``).
        *segments: The concrete value for every axis, in order
            (e.g. ``"getWidget", "X-Trace-Id"``).

    Example::

        >>> matches_ignore_pattern({"*.*.ETag"}, "getWidget", "200", "ETag")
        True
        >>> matches_ignore_pattern({"get*.ETag"}, "getWidget", "ETag")
        False
    """
    pattern_set = set(patterns)
    if not pattern_set:
        return False

    choices = [(segment, WILDCARD) for segment in segments]
    for candidate in itertools.product(*choices):
        if ".".join(candidate) in pattern_set:
            return True
    return False


def is_ignored_operation(patterns: Iterable[str], operation_id: str, method: str) -> bool:
    """Check ``<operationId>.<method>`` against ``ignoreOperations``."""
    ignored = matches_ignore_pattern(patterns, operation_id, method.lower())
    if ignored:
        logger.info("Ignoring operation %s (%s)", operation_id, method.upper())
    return ignored


def is_ignored_request_header(patterns: Iterable[str], operation_id: str, header: str) -> bool:
    """Check ``<operationId>.<header>`` against ``ignoreRequestHeaders``."""
    ignored = matches_ignore_pattern(patterns, operation_id, header)
    if ignored:
        logger.debug("Ignoring request header %s of %s", header, operation_id)
    return ignored


def is_ignored_response_header(
    patterns: Iterable[str], operation_id: str, code: int, header: str
) -> bool:
    """Check ``<operationId>.<code>.<header>`` against ``ignoreResponseHeaders``."""
    ignored = matches_ignore_pattern(patterns, operation_id, str(code), header)
    if ignored:
        logger.debug("Ignoring response header %s of %s (%d)", header, operation_id, code)
    return ignored
