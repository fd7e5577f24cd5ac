"""Typer application and CLI entry point for heave.

This module wires together the top-level Typer application and its two
commands:

* ``heave generate SPEC OUTPUT_DIR`` -- load an OpenAPI 3.x document, build
  one :class:`~heave.models.OperationOutput` per operation/response via
  :func:`~heave.generator.generate`, and render each to a ``.hurl`` file.
* ``heave template`` -- print the built-in template so it can be copied and
  customised.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`heave.config`: Settings resolution for ``generate``.
    :mod:`heave.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from heave import __version__
from heave.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="heave",
    help="Generate hurl test files from OpenAPI 3.x specs.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"heave {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~heave.output.OutputManager` from
    CLI flags.
    """
    from heave.output import OutputManager, set_output

    set_output(OutputManager(no_color=no_color, quiet=quiet, verbose=verbose))


@app.command("generate")
def generate_command(
    spec: str = typer.Argument(
        ..., help="OpenAPI spec file path or URL (use '-' for stdin)."
    ),
    output_dir: Path = typer.Argument(
        ..., help="Existing directory the .hurl files are written to."
    ),
    template: Optional[Path] = typer.Option(
        None, "--template", "-t", help="Custom Jinja2 template file."
    ),
    show_diagnostics: bool = typer.Option(
        False, "--show-diagnostics", help="Print every diagnostic recorded during generation."
    ),
    only_new: bool = typer.Option(
        False, "--only-new", help="Skip files that already exist in OUTPUT_DIR."
    ),
    operation: Optional[str] = typer.Option(
        None, "--operation", help="Regex matched against operation names."
    ),
    path: Optional[str] = typer.Option(
        None, "--path", help="Regex matched against URL path templates."
    ),
    status: Optional[str] = typer.Option(
        None, "--status", help="Regex matched against response status codes."
    ),
) -> None:
    """Generate one .hurl file per operation and response status code.

    Resolves settings via :func:`~heave.config.resolve_config`, compiles the
    template before touching the spec so a broken template fails fast, then
    loads, validates, and generates. Problems inside the spec (dangling
    ``$ref``, cycles, non-JSON media types) never abort the run; they are
    collected as diagnostics and summarised at the end.

    Raises:
        typer.Exit: With the ``exit_code`` of any
            :class:`~heave.exceptions.HeaveError` raised along the way.

    Example::

        heave generate ./openapi.yaml ./tests/api
        heave generate https://example.com/openapi.json out --only-new
        heave generate spec.yaml out --path '^/pet' --status '^2'
    """
    from heave.exceptions import HeaveError
    from heave.output import error

    try:
        _run_generate(
            spec,
            output_dir,
            cli_template=template,
            cli_show_diagnostics=True if show_diagnostics else None,
            cli_only_new=True if only_new else None,
            cli_operation=operation,
            cli_path=path,
            cli_status=status,
        )
    except HeaveError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _run_generate(spec: str, output_dir: Path, **cli_options: Any) -> None:
    from heave.config import resolve_config
    from heave.diagnostics import format_diagnostic
    from heave.exceptions import InvalidUsageError
    from heave.generator import generate
    from heave.output import debug, info, report, success, suggest, warning
    from heave.parser import load_spec, validate_openapi_version
    from heave.render import (
        compile_template,
        existing_files,
        filter_only_new,
        load_template,
        write_outputs,
    )

    config = resolve_config(**cli_options)

    if not output_dir.is_dir():
        raise InvalidUsageError(f"Output path must be an existing directory: {output_dir}")

    template_source = load_template(config.template)
    compile_template(template_source)
    if config.template is not None:
        debug(f"Using template: {config.template}")

    info(f"Loading spec from: {spec}")
    raw = load_spec(spec)
    version = validate_openapi_version(raw)
    debug(f"OpenAPI version: {version}")

    result = generate(raw, config.filters)
    outputs = result.outputs
    if config.only_new:
        before = len(outputs)
        outputs = filter_only_new(existing_files(output_dir), outputs)
        debug(f"Skipped {before - len(outputs)} existing file(s)")

    written = write_outputs(outputs, template_source, output_dir)
    for file_path in written:
        debug(f"Wrote {file_path}")
    success(f"Generated {len(written)} file(s) in {output_dir}")

    if not result.diagnostics:
        return
    if config.show_diagnostics:
        for diagnostic in result.diagnostics:
            report(format_diagnostic(diagnostic))
    else:
        warning(f"{len(result.diagnostics)} diagnostic(s) recorded during generation.")
        suggest("Re-run with --show-diagnostics to see them.")


@app.command("template")
def template_command() -> None:
    """Print the built-in hurl template to stdout.

    Example::

        heave template > hurl.j2
        heave generate spec.yaml out --template hurl.j2
    """
    from heave.output import print_data
    from heave.render import DEFAULT_TEMPLATE

    print_data(DEFAULT_TEMPLATE.rstrip("\n"))


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from heave.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``heave`` console script.

    Unhandled :class:`~heave.exceptions.HeaveError` instances cause a clean
    exit with the error's ``exit_code``. All other exceptions produce a crash
    log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from heave.exceptions import HeaveError
        from heave.output import error

        if isinstance(exc, HeaveError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
