"""Render :class:`~heave.models.OperationOutput` objects through a Jinja2 template and write them.

The template receives these variables:

* ``name`` -- output file name (``addPet_200.hurl``)
* ``method`` -- upper-case HTTP method
* ``path`` -- URL path with ``{param}`` escaped to hurl's ``{{param}}``
* ``expected_status_code`` -- integer status code
* ``header_parameters`` / ``query_parameters`` -- parameter names
* ``request_body_parameter`` -- pretty-printed JSON body, or ``""``
* ``asserts`` -- rendered assert lines (disabled ones start with ``#``)
* ``media_type`` -- the JSON media type used for the response, or ``None``

A custom template is compiled before any file is written, so a syntax error
aborts the run without leaving partial output behind. Each file is written
atomically (temp file + rename).
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, Template, TemplateError as Jinja2TemplateError

from heave.exceptions import OutputWriteError, TemplateError
from heave.models import OperationOutput

DEFAULT_TEMPLATE = """{{ method }} {{ '{{ baseurl }}' }}{{ path | safe }}
Authorization: Bearer {{ '{{ authorization }}' }}
Prefer: code={{ expected_status_code }}
{% for header in header_parameters %}{{ header }}:
{% endfor %}{% if query_parameters %}
[QueryStringParams]
{% for query in query_parameters %}{{ query }}:
{% endfor %}
{% endif %}{{ request_body_parameter }}
HTTP {{ expected_status_code }}
{% if asserts %}
[Asserts]
{% for line in asserts %}{{ line }}
{% endfor %}{% endif %}
"""
"""Built-in hurl template, printed by ``heave template``."""


def _create_jinja_env() -> Environment:
    return Environment(autoescape=False, keep_trailing_newline=True)


def load_template(path: Optional[Path]) -> str:
    """Return the template source at *path*, or :data:`DEFAULT_TEMPLATE` when ``None``.

    Raises:
        TemplateError: If *path* is not a readable file.
    """
    if path is None:
        return DEFAULT_TEMPLATE
    if not path.is_file():
        raise TemplateError(f"Template must be a file: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TemplateError(f"Failed to read template {path}: {exc}") from exc


def compile_template(source: str) -> Template:
    """Compile *source* into a Jinja2 template.

    Raises:
        TemplateError: If the template has a syntax error.
    """
    try:
        return _create_jinja_env().from_string(source)
    except Jinja2TemplateError as exc:
        raise TemplateError(f"Error parsing custom template: {exc}") from exc


def template_context(output: OperationOutput) -> dict[str, Any]:
    """Build the variables passed to the template for *output*."""
    if output.request_body is None:
        body = ""
    else:
        body = json.dumps(output.request_body, indent=2, ensure_ascii=False)

    return {
        "name": output.name,
        "method": output.method,
        "path": output.path.replace("{", "{{").replace("}", "}}"),
        "expected_status_code": output.expected_status_code,
        "header_parameters": output.header_parameters,
        "query_parameters": output.query_parameters,
        "asserts": [entry.render() for entry in output.assertions],
        "request_body_parameter": body,
        "media_type": output.media_type,
    }


def render_output(template: Template, output: OperationOutput) -> str:
    """Render one output.

    Raises:
        TemplateError: If rendering fails (e.g. a filter error in a custom template).
    """
    try:
        return template.render(template_context(output))
    except Jinja2TemplateError as exc:
        raise TemplateError(f"Failed to render {output.name}: {exc}") from exc


def existing_files(directory: Path) -> list[Path]:
    """Return the regular files directly inside *directory*."""
    return [entry for entry in directory.iterdir() if entry.is_file()]


def filter_only_new(
    existing: Iterable[Path], outputs: list[OperationOutput]
) -> list[OperationOutput]:
    """Drop outputs whose file name matches one of *existing*."""
    taken = {path.name for path in existing}
    return [output for output in outputs if output.name not in taken]


def write_outputs(
    outputs: list[OperationOutput],
    template_source: str,
    directory: Path,
) -> list[Path]:
    """Render every output with *template_source* and write it into *directory*.

    Args:
        outputs: Outputs to write; ``output.name`` is the file name.
        template_source: Jinja2 template text.
        directory: Existing output directory.

    Returns:
        Paths of the written files, in output order.

    Raises:
        TemplateError: If the template does not compile or fails to render.
        OutputWriteError: If a file cannot be written.
    """
    template = compile_template(template_source)
    written: list[Path] = []
    for output in outputs:
        target = directory / output.name
        content = render_output(template, output)
        try:
            _atomic_write(target, content)
        except OSError as exc:
            raise OutputWriteError(f"Failed to write {target}: {exc}") from exc
        written.append(target)
    return written


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise
