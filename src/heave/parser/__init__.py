"""OpenAPI document loading and component dereferencing.

Typical usage::

    from heave.parser import load_spec, validate_openapi_version

    document = load_spec("petstore.yaml")
    validate_openapi_version(document)

Sub-modules:

* :mod:`~heave.parser.loader` -- I/O layer (file, URL, stdin) plus format
  detection and OpenAPI version validation.
* :mod:`~heave.parser.references` -- JSON pointer lookup and non-fatal
  dereferencing of request bodies, responses, and parameters.
"""

from heave.parser.loader import load_spec, validate_openapi_version
from heave.parser.references import PointerError, lookup_pointer, resolve_component

__all__ = [
    "load_spec",
    "validate_openapi_version",
    "PointerError",
    "lookup_pointer",
    "resolve_component",
]
