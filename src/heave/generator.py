"""Walk an OpenAPI document and build one :class:`~heave.models.OperationOutput` per response.

For every path + HTTP method pair the generator:

1. merges path-level and operation-level parameters (operation-level wins on
   the same ``name`` + ``in``) and keeps the names of query and header
   parameters;
2. builds a placeholder request body from the ``application/json`` request
   schema, if any;
3. for every numeric response status code, builds the response assertions
   from the ``application/json`` response schema, if any.

Only the JSON media type family (``application/json`` and variants such as
``application/json; charset=utf-8``) feeds bodies and assertions. A response
with another media type still produces an output, with no assertions.

Nothing here raises for problems in the document; every anomaly is recorded
on the run's :class:`~heave.diagnostics.DiagnosticsCollector` and returned in
:attr:`~heave.models.GenerateResult.diagnostics`.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from heave.diagnostics import DiagnosticsCollector
from heave.models import (
    AssertionEntry,
    DiagnosticKind,
    GenerateResult,
    GenerationFilters,
    HTTPMethod,
    OpaqueNode,
    OperationOutput,
    ParameterLocation,
    SchemaNode,
)
from heave.parser.references import resolve_component
from heave.schema import build_assertions, build_body, resolve_schema

JSON_MEDIA_TYPE = "application/json"

_STATUS_RANGE = re.compile(r"^[1-5]XX$", re.IGNORECASE)


def generate(
    document: dict[str, Any],
    filters: Optional[GenerationFilters] = None,
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> GenerateResult:
    """Build the IR for every selected operation/response in *document*.

    Args:
        document: A loaded OpenAPI 3.x document.
        filters: Optional operation/path/status regex filters.
        diagnostics: Collector to record into. A new one is created when
            omitted. It is drained into the returned result.

    Returns:
        All outputs, in path order then method order then response order,
        plus the diagnostics recorded while building them.
    """
    collector = diagnostics if diagnostics is not None else DiagnosticsCollector()
    filters = filters or GenerationFilters()
    outputs: list[OperationOutput] = []

    paths = document.get("paths") or {}
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        path = str(path)
        path_params = path_item.get("parameters") or []

        for method in HTTPMethod:
            operation = path_item.get(method.value)
            if not isinstance(operation, dict):
                continue
            name = operation_name(operation, method, path)
            if not filters.matches_operation(name, path):
                continue
            outputs.extend(
                _generate_operation(
                    document, path, method, name, operation, path_params, filters, collector
                )
            )

    return GenerateResult(outputs=outputs, diagnostics=collector.drain())


def operation_name(operation: dict[str, Any], method: HTTPMethod, path: str) -> str:
    """Return the ``operationId``, or ``<method>_<path>`` with slashes replaced."""
    operation_id = operation.get("operationId")
    if operation_id:
        return str(operation_id)
    return f"{method.value}_{path.replace('/', '_')}"


def is_json_media_type(media_type: str) -> bool:
    """True for ``application/json`` and its parameterised variants."""
    return media_type.strip().lower().startswith(JSON_MEDIA_TYPE)


def _generate_operation(
    document: dict[str, Any],
    path: str,
    method: HTTPMethod,
    name: str,
    operation: dict[str, Any],
    path_params: list[Any],
    filters: GenerationFilters,
    collector: DiagnosticsCollector,
) -> list[OperationOutput]:
    location = f"{method.value.upper()} {path} ({name})"

    parameters = _merge_parameters(
        _resolve_parameters(path_params, document, collector, location),
        _resolve_parameters(operation.get("parameters") or [], document, collector, location),
    )
    query_parameters: list[str] = []
    header_parameters: list[str] = []
    for param in parameters:
        if param.get("in") == ParameterLocation.QUERY.value:
            query_parameters.append(str(param.get("name", "")))
        elif param.get("in") == ParameterLocation.HEADER.value:
            header_parameters.append(str(param.get("name", "")))

    request_body = _request_body(operation, document, collector, location)

    outputs: list[OperationOutput] = []
    responses = operation.get("responses") or {}
    for status_key, raw_response in responses.items():
        status = str(status_key)
        if status == "default":
            continue
        if not status.isdigit():
            if _STATUS_RANGE.match(status):
                collector.record(
                    DiagnosticKind.UNSUPPORTED_STATUS_CODE_RANGE,
                    f"Status code range '{status}' skipped",
                    location,
                )
            continue
        if not filters.matches_status(status):
            continue

        response = resolve_component(raw_response, "responses", document, collector, location)
        if response is None:
            continue

        media_type, assertions = _response_assertions(response, document, collector, location)
        outputs.append(
            OperationOutput(
                name=f"{name}_{status}.hurl",
                method=method.value.upper(),
                path=path,
                expected_status_code=int(status),
                header_parameters=list(header_parameters),
                query_parameters=list(query_parameters),
                media_type=media_type,
                request_body=request_body,
                assertions=assertions,
            )
        )
    return outputs


def _resolve_parameters(
    raw: Any,
    document: dict[str, Any],
    collector: DiagnosticsCollector,
    location: str,
) -> list[dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    resolved: list[dict[str, Any]] = []
    for item in raw:
        param = resolve_component(item, "parameters", document, collector, location)
        if param is not None:
            resolved.append(param)
    return resolved


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    ``name`` and ``in``, per the OpenAPI spec.
    """
    overridden = {(p.get("name", ""), p.get("in", "")) for p in op_params}
    merged = [p for p in path_params if (p.get("name", ""), p.get("in", "")) not in overridden]
    merged.extend(op_params)
    return merged


def _json_media(content: Any) -> Optional[tuple[str, Any]]:
    if not isinstance(content, dict):
        return None
    for media_type, media in content.items():
        if is_json_media_type(str(media_type)):
            return str(media_type), media
    return None


def _request_body(
    operation: dict[str, Any],
    document: dict[str, Any],
    collector: DiagnosticsCollector,
    location: str,
) -> Optional[Any]:
    raw = operation.get("requestBody")
    if raw is None:
        return None
    body = resolve_component(raw, "requestBodies", document, collector, location)
    if body is None:
        return None

    match = _json_media(body.get("content"))
    if match is None:
        collector.record(
            DiagnosticKind.MISSING_JSON_MEDIA_TYPE,
            "Missing application/json media type for request body",
            location,
        )
        return None

    _, media = match
    if not isinstance(media, dict) or "schema" not in media:
        collector.record(
            DiagnosticKind.MISSING_SCHEMA_DEFINITION,
            "Request body media type has no schema",
            location,
        )
        return None

    return build_body(_resolve_root(media["schema"], document, collector, location))


def _response_assertions(
    response: dict[str, Any],
    document: dict[str, Any],
    collector: DiagnosticsCollector,
    location: str,
) -> tuple[Optional[str], list[AssertionEntry]]:
    content = response.get("content")
    if not content:
        return None, []

    match = _json_media(content)
    if match is None:
        collector.record(
            DiagnosticKind.MISSING_JSON_MEDIA_TYPE,
            "Missing application/json media type for response body",
            location,
        )
        return None, []

    media_type, media = match
    if not isinstance(media, dict) or "schema" not in media:
        collector.record(
            DiagnosticKind.MISSING_SCHEMA_DEFINITION,
            "Response media type has no schema",
            location,
        )
        return media_type, []

    node = _resolve_root(media["schema"], document, collector, location)
    return media_type, build_assertions(node)


def _resolve_root(
    schema: Any,
    document: dict[str, Any],
    collector: DiagnosticsCollector,
    location: str,
) -> SchemaNode:
    """Resolve a body schema, flagging a shapeless root nobody else reported."""
    recorded = len(collector)
    node = resolve_schema(schema, document, collector, location)
    if isinstance(node, OpaqueNode) and len(collector) == recorded:
        collector.record(
            DiagnosticKind.UNSUPPORTED_SCHEMA_KIND,
            "Body schema has no recognizable type or composition keyword",
            location,
        )
    return node
