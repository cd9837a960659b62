"""Intermediate service model -- the deliverable of the compiler.

Sub-modules:

* :mod:`~specmodel.model.entities` -- fields, constraints, structures and
  operation descriptions.
* :mod:`~specmodel.model.service_model` -- the :class:`ServiceModel`
  aggregate with its registries and lookup.
* :mod:`~specmodel.model.override` -- the :class:`ModelOverride`
  configuration consumed during a build.
* :mod:`~specmodel.model.naming` -- synthetic-name helpers.
"""

from specmodel.model.override import ModelOverride
from specmodel.model.service_model import ServiceModel

__all__ = ["ModelOverride", "ServiceModel"]
