"""Document parser -- load, resolve ``$ref`` pointers, and extract a :class:`~specmodel.models.ParsedSpec`.

Typical usage::

    from specmodel.parser import extract_spec, load_spec, validate_spec_version

    raw = load_spec("widgets.yaml")
    parsed = extract_spec(raw, validate_spec_version(raw))

Sub-modules:

* :mod:`~specmodel.parser.loader` -- I/O (URL, file, stdin), format
  detection and version validation.
* :mod:`~specmodel.parser.resolver` -- inlines non-schema ``$ref``\\ s and
  keeps references to named schemas.
* :mod:`~specmodel.parser.extractor` -- builds the document models,
  normalising Swagger 2.0 on the way.
"""

from specmodel.parser.extractor import extract_spec
from specmodel.parser.loader import load_spec, validate_spec_version

__all__ = ["load_spec", "validate_spec_version", "extract_spec"]
