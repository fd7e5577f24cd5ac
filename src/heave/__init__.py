"""heave -- Generate hurl test files from OpenAPI 3.x specs.

This package walks every operation of an OpenAPI document and, for each
documented response status code, writes a ``.hurl`` file containing a
request skeleton (method, path, header and query parameters, a placeholder
JSON body) and response assertions derived from the response schema.

Typical workflow::

    heave generate openapi.yaml hurl/        # one file per operation/status
    heave generate openapi.yaml hurl/ --only-new --show-diagnostics
    heave template > my-template.hurl        # start a custom template

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    schema: Schema resolution and request body / assertion builders.
    generator: Operation walker that produces the per-file IR.
    render: Jinja2 template rendering and output file writing.
    diagnostics: Non-fatal diagnostic collection and formatting.
    config: Configuration precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.15.1"
