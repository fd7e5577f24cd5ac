"""Exception hierarchy for heave.

Only *fatal* conditions are exceptions. Everything the schema resolver can
recover from (missing references, cycles, unsupported composition) is a
:class:`~heave.models.Diagnostic` instead and never raised.

All exceptions inherit from :class:`HeaveError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`heave.exit_codes`.
The top-level handler in :func:`heave.app.main` catches ``HeaveError``
and exits with the appropriate code.

Subclass hierarchy::

    HeaveError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- SpecParseError      (exit 7)
    +-- TemplateError       (exit 8)
    +-- OutputWriteError    (exit 9)
    +-- ConfigError         (exit 1)
"""

from heave.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_OUTPUT_ERROR,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_TEMPLATE_ERROR,
)


class HeaveError(Exception):
    """Base exception for all heave errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(HeaveError):
    """Raised for invalid CLI arguments (bad output directory, bad filter regex)."""

    exit_code = EXIT_INVALID_USAGE


class SpecParseError(HeaveError):
    """Raised when the OpenAPI spec cannot be loaded, parsed, or fails the version check."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class TemplateError(HeaveError):
    """Raised when the output template cannot be read or does not compile."""

    exit_code = EXIT_TEMPLATE_ERROR


class OutputWriteError(HeaveError):
    """Raised when a rendered file cannot be written."""

    exit_code = EXIT_OUTPUT_ERROR


class ConfigError(HeaveError):
    """Raised for configuration problems (invalid ``heave.json``)."""

    exit_code = EXIT_GENERIC_FAILURE
