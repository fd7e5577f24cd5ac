"""Collect and format non-fatal generation diagnostics.

A single :class:`DiagnosticsCollector` is created per ``heave generate`` run
and passed by reference to the schema resolver and the generator. Nothing in
this module raises: recording is purely additive, and the caller decides
whether to print the collected :class:`~heave.models.Diagnostic` objects
(``--show-diagnostics``) or just mention that some exist.
"""

from __future__ import annotations

import threading
from typing import Optional

from heave.models import Diagnostic, DiagnosticKind

_SUMMARIES: dict[DiagnosticKind, str] = {
    DiagnosticKind.UNRESOLVED_REFERENCE: "Failed to find a referenced definition.",
    DiagnosticKind.UNSUPPORTED_SCHEMA_KIND: "Generation based on this schema kind is not supported.",
    DiagnosticKind.MISSING_JSON_MEDIA_TYPE: "Missing application/json media type.",
    DiagnosticKind.CYCLE_DETECTED: "A cycle was detected in the schema. Generation was halted for that schema.",
    DiagnosticKind.MISSING_SCHEMA_DEFINITION: "Missing schema definition for media type.",
    DiagnosticKind.UNSUPPORTED_STATUS_CODE_RANGE: "Using ranges for HTTP status codes is not supported.",
    DiagnosticKind.MALFORMED_REFERENCE: "Reference points into the wrong components section.",
}


class DiagnosticsCollector:
    """Thread-safe, append-only sink for :class:`~heave.models.Diagnostic` records.

    Entries keep emission order. The lock only matters when operations are
    processed on several threads; the generator itself runs sequentially.
    """

    def __init__(self) -> None:
        self._entries: list[Diagnostic] = []
        self._lock = threading.Lock()

    def record(
        self,
        kind: DiagnosticKind,
        message: str,
        location: str = "",
        reference: Optional[str] = None,
    ) -> None:
        """Append a diagnostic."""
        entry = Diagnostic(kind=kind, message=message, location=location, reference=reference)
        with self._lock:
            self._entries.append(entry)

    def extend(self, diagnostics: list[Diagnostic]) -> None:
        """Append already-built diagnostics, e.g. from a per-thread collector."""
        with self._lock:
            self._entries.extend(diagnostics)

    def snapshot(self) -> list[Diagnostic]:
        """Return a copy of the recorded diagnostics without clearing them."""
        with self._lock:
            return list(self._entries)

    def drain(self) -> list[Diagnostic]:
        """Return every recorded diagnostic in emission order and clear the collector."""
        with self._lock:
            entries, self._entries = self._entries, []
        return entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """Render a diagnostic as the banner block printed by ``--show-diagnostics``.

    Example output::

        -------------
        CycleDetected

        Message: A cycle was detected in the schema. ...
        Detail: Reference '#/components/schemas/Node' re-entered at $.next
        Location: GET /nodes (listNodes)
        Reference: #/components/schemas/Node
    """
    title = diagnostic.kind.value
    lines = [
        "-" * len(title),
        title,
        "",
        f"Message: {_SUMMARIES[diagnostic.kind]}",
        f"Detail: {diagnostic.message}",
    ]
    if diagnostic.location:
        lines.append(f"Location: {diagnostic.location}")
    if diagnostic.reference:
        lines.append(f"Reference: {diagnostic.reference}")
    return "\n".join(lines)
