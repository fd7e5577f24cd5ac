"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~heave.exceptions.HeaveError` subclass.
CI scripts can inspect the exit code to tell a broken spec apart from a
broken template without parsing stderr.

Example::

    $ heave generate broken.yaml out/
    $ echo $?
    7   # EXIT_SPEC_PARSE_ERROR -- the spec could not be loaded
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI specification could not be loaded, parsed, or validated."""

EXIT_TEMPLATE_ERROR = 8
"""The output template could not be read or failed to compile."""

EXIT_OUTPUT_ERROR = 9
"""A generated file could not be written to the output directory."""
