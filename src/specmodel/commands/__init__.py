"""Built-in CLI sub-commands.

* :mod:`~specmodel.commands.build` -- compile a document and emit the
  service model as JSON.
* :mod:`~specmodel.commands.inspect` -- tabulate the operations and types
  of a compiled model.
"""
