"""Follow ``$ref`` JSON Reference pointers inside an OpenAPI document.

Two layers live here:

* :func:`lookup_pointer` walks an internal pointer such as
  ``#/components/schemas/Pet`` (RFC 6901 escaping included) and raises
  :class:`PointerError` when the target does not exist.
* :func:`resolve_component` dereferences a request body, response, or
  parameter object that may be written as ``{"$ref": ...}``. It never
  raises; problems are recorded on the run's
  :class:`~heave.diagnostics.DiagnosticsCollector` and ``None`` is returned.

Schema references are handled separately by
:mod:`heave.schema.resolver`, which needs cycle tracking on top of the plain
lookup.
"""

from __future__ import annotations

from typing import Any, Optional

from heave.diagnostics import DiagnosticsCollector
from heave.models import DiagnosticKind


class PointerError(LookupError):
    """Raised when a ``$ref`` cannot be followed within the document."""


def lookup_pointer(ref: str, document: dict[str, Any]) -> Any:
    """Resolve a single ``$ref`` string against the document root.

    Args:
        ref: The ``$ref`` string (e.g., ``"#/components/schemas/Pet"``).
        document: The loaded OpenAPI document.

    Returns:
        The value found at the referenced path.

    Raises:
        PointerError: If the reference is external (does not start with
            ``#/``), or if any segment in the pointer path does not exist.
    """
    if not ref.startswith("#/"):
        raise PointerError(f"External $ref not supported: {ref}")

    current: Any = document
    for segment in ref[2:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise PointerError(f"Cannot resolve $ref '{ref}': key '{segment}' not found")
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise PointerError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise PointerError(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}"
            )

    return current


def resolve_component(
    item: Any,
    section: str,
    document: dict[str, Any],
    diagnostics: DiagnosticsCollector,
    location: str,
) -> Optional[dict[str, Any]]:
    """Dereference a possibly-``$ref`` component object.

    References must point into ``#/components/<section>/``. Chained
    references (a component that is itself a ``$ref``) are followed until a
    concrete object is reached or a reference repeats.

    Args:
        item: The raw request body / response / parameter object.
        section: Components section the reference must target, e.g.
            ``"requestBodies"``, ``"responses"``, ``"parameters"``.
        document: The loaded OpenAPI document.
        diagnostics: Collector receiving any problem found.
        location: Human-readable operation location for diagnostics.

    Returns:
        The concrete component dict, or ``None`` when it cannot be resolved.
    """
    prefix = f"#/components/{section}/"
    seen: set[str] = set()

    while isinstance(item, dict) and "$ref" in item:
        ref = item["$ref"]
        if not isinstance(ref, str) or not ref.startswith(prefix):
            diagnostics.record(
                DiagnosticKind.MALFORMED_REFERENCE,
                f"References here must start with `{prefix}`",
                location,
                reference=str(ref),
            )
            return None
        if ref in seen:
            diagnostics.record(
                DiagnosticKind.CYCLE_DETECTED,
                f"Reference '{ref}' refers back to itself",
                location,
                reference=ref,
            )
            return None
        seen.add(ref)
        try:
            item = lookup_pointer(ref, document)
        except PointerError as exc:
            diagnostics.record(
                DiagnosticKind.UNRESOLVED_REFERENCE, str(exc), location, reference=ref
            )
            return None

    if not isinstance(item, dict):
        return None
    return item
