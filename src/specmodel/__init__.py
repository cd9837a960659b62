"""specmodel -- compile OpenAPI 3.x and Swagger 2.0 documents into a service model.

The service model is a flat, name-keyed description of every type and
operation a document declares, ready to be handed to a code emitter::

    specmodel build widgets.yaml --override overrides.json -o model.json

or from Python::

    from specmodel.parser import extract_spec, load_spec, validate_spec_version
    from specmodel.compiler import build_service_model

    raw = load_spec("widgets.yaml")
    model = build_service_model(extract_spec(raw, validate_spec_version(raw)))

Modules:
    app: Typer application and CLI entry point.
    models: Parsed-document models and build settings.
    model: The service model and its entities.
    compiler: Schema lowering and operation decomposition.
    parser: Loading, reference resolution and extraction.
    config: Override files, build settings and atomic writes.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes.
    output: stdout/stderr formatting with Rich.
"""

__version__ = "0.1.0"
