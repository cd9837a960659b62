"""Schema-to-model compiler.

* :mod:`~specmodel.compiler.lowering` -- schemas to fields and structures.
* :mod:`~specmodel.compiler.decomposer` -- operations to input/output types.
* :mod:`~specmodel.compiler.assembly` -- member merging and renumbering.
* :mod:`~specmodel.compiler.filters` -- ignore-list matching.
* :mod:`~specmodel.compiler.builder` -- the whole pass.
"""

from specmodel.compiler.builder import build_service_model

__all__ = ["build_service_model"]
