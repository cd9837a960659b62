"""Load API documents from a URL, a local file, or stdin.

Everything here is I/O and syntax: the document is read, parsed as JSON or
YAML and returned as a plain dict. :func:`validate_spec_version` then checks
that the dict declares a version the compiler understands:

* OpenAPI ``3.0.x`` and ``3.1.x`` (other ``3.x`` versions are accepted with
  a warning);
* Swagger ``2.0``, which :mod:`~specmodel.parser.extractor` normalises into
  the same shapes.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from specmodel.exceptions import SpecParseError

logger = logging.getLogger(__name__)

SWAGGER_VERSION = "2.0"
_YAML_SUFFIXES = (".yaml", ".yml")


def load_spec(source: str, timeout: float = 30.0) -> dict[str, Any]:
    """Load a document from *source*.

    Args:
        source: An ``http(s)://`` URL, a file path, or ``"-"`` for stdin.
        timeout: Seconds to wait when fetching a URL.

    Returns:
        The document as a dict.

    Raises:
        SpecParseError: If the source cannot be read or is not a JSON/YAML
            mapping.
    """
    if source == "-":
        content, fmt = _read_stdin(), None
    elif source.startswith(("http://", "https://")):
        content, fmt = _fetch(source, timeout)
    else:
        content, fmt = _read_file(source)

    logger.debug("Loaded %d characters from %s", len(content), source)
    return parse_document(content, fmt)


def _read_stdin() -> str:
    content = sys.stdin.read()
    if not content.strip():
        raise SpecParseError("No input received from stdin")
    return content


def _fetch(url: str, timeout: float) -> tuple[str, Optional[str]]:
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        return response.text, "json"
    if "yaml" in content_type or "yml" in content_type:
        return response.text, "yaml"
    return response.text, None


def _read_file(path: str) -> tuple[str, Optional[str]]:
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Document not found: {path}")
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read {path}: {exc}") from exc
    if not content.strip():
        raise SpecParseError(f"Document is empty: {path}")

    suffix = file_path.suffix.lower()
    if suffix == ".json":
        return content, "json"
    if suffix in _YAML_SUFFIXES:
        return content, "yaml"
    return content, None


def parse_document(content: str, fmt: Optional[str] = None) -> dict[str, Any]:
    """Parse *content* as JSON or YAML.

    With ``fmt=None`` JSON is tried first, then YAML. An explicit ``"json"``
    never falls back to YAML.

    Raises:
        SpecParseError: If the content does not parse, or parses to
            something other than a mapping.
    """
    if fmt != "yaml":
        try:
            return _require_mapping(json.loads(content))
        except json.JSONDecodeError as exc:
            if fmt == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
            logger.debug("Not JSON (%s), trying YAML", exc)

    try:
        return _require_mapping(yaml.safe_load(content))
    except yaml.YAMLError as exc:
        raise SpecParseError(f"Failed to parse document as JSON or YAML: {exc}") from exc


def _require_mapping(document: Any) -> dict[str, Any]:
    if not isinstance(document, dict):
        found = "empty document" if document is None else type(document).__name__
        raise SpecParseError(f"Document must be a JSON/YAML object (got {found})")
    return document


def validate_spec_version(spec: dict[str, Any]) -> str:
    """Return the document's version string if it is supported.

    Returns:
        ``"2.0"`` for Swagger documents, otherwise the ``openapi`` value
        (e.g. ``"3.0.3"``).

    Raises:
        SpecParseError: If neither ``swagger`` nor ``openapi`` is present,
            or the version is not supported.
    """
    if "swagger" in spec:
        version = str(spec["swagger"])
        if version != SWAGGER_VERSION:
            raise SpecParseError(
                f"Unsupported Swagger version: {version}. Only Swagger 2.0 is supported."
            )
        return version

    openapi_version = spec.get("openapi")
    if openapi_version is None:
        raise SpecParseError(
            "Missing 'openapi' or 'swagger' field. Is this an API description document?"
        )

    version = str(openapi_version)
    if version.startswith(("3.0.", "3.1.")):
        return version
    if version.startswith("3."):
        logger.warning("OpenAPI %s is newer than 3.1; treating it as 3.1", version)
        return version

    raise SpecParseError(
        f"Unsupported OpenAPI version: {version}. "
        "Only OpenAPI 3.0.x/3.1.x and Swagger 2.0 are supported."
    )
