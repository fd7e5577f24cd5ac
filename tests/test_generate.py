"""Tests for heave.generator."""

from __future__ import annotations

from typing import Any

import pytest

from heave.diagnostics import DiagnosticsCollector
from heave.generator import generate, is_json_media_type, operation_name
from heave.models import DiagnosticKind, GenerationFilters, HTTPMethod, OperationOutput


def _by_name(outputs: list[OperationOutput]) -> dict[str, OperationOutput]:
    return {output.name: output for output in outputs}


def _minimal(paths: dict[str, Any], **components: Any) -> dict[str, Any]:
    return {"openapi": "3.0.3", "paths": paths, "components": components}


# ---------------------------------------------------------------------------
# Naming and media types
# ---------------------------------------------------------------------------


class TestNaming:
    """Operation names and JSON media type detection."""

    def test_uses_operation_id(self) -> None:
        assert operation_name({"operationId": "listPets"}, HTTPMethod.GET, "/pets") == "listPets"

    def test_falls_back_to_method_and_path(self) -> None:
        assert operation_name({}, HTTPMethod.DELETE, "/pets/{id}") == "delete__pets_{id}"

    @pytest.mark.parametrize(
        "media_type",
        ["application/json", "application/json; charset=utf-8", "Application/JSON"],
    )
    def test_json_media_types(self, media_type: str) -> None:
        assert is_json_media_type(media_type)

    @pytest.mark.parametrize("media_type", ["application/xml", "text/plain", "application/problem+json"])
    def test_non_json_media_types(self, media_type: str) -> None:
        assert not is_json_media_type(media_type)


# ---------------------------------------------------------------------------
# Petstore
# ---------------------------------------------------------------------------


class TestPetstore:
    """End-to-end IR for the allOf petstore."""

    def test_outputs_in_path_then_method_order(self, petstore_allof: dict[str, Any]) -> None:
        result = generate(petstore_allof)
        assert [o.name for o in result.outputs] == [
            "updatePet_200.hurl",
            "addPet_200.hurl",
            "getPetById_200.hurl",
            "deletePet_204.hurl",
        ]
        assert result.diagnostics == []

    def test_add_pet(self, petstore_allof: dict[str, Any]) -> None:
        output = _by_name(generate(petstore_allof).outputs)["addPet_200.hurl"]

        assert output.method == "POST"
        assert output.path == "/pet"
        assert output.expected_status_code == 200
        assert output.media_type == "application/json"
        assert output.request_body == {
            "id": 0,
            "name": "",
            "category": {"id": 0, "name": ""},
            "photoUrls": [""],
            "tags": [{"id": 0, "name": ""}],
            "status": "",
        }
        enabled = [a.path for a in output.assertions if a.enabled]
        assert enabled == ["$", "$.name", "$.photoUrls", "$.tags"]

    def test_delete_pet_parameters_and_empty_response(
        self, petstore_allof: dict[str, Any]
    ) -> None:
        output = _by_name(generate(petstore_allof).outputs)["deletePet_204.hurl"]

        assert output.method == "DELETE"
        assert output.path == "/pet/{petId}"
        assert output.header_parameters == ["api_key"]
        assert output.query_parameters == []
        assert output.request_body is None
        assert output.media_type is None
        assert output.assertions == []

    def test_get_has_no_body(self, petstore_allof: dict[str, Any]) -> None:
        output = _by_name(generate(petstore_allof).outputs)["getPetById_200.hurl"]
        assert output.request_body is None
        assert output.assertions[0].path == "$"

    def test_deterministic(self, petstore_allof: dict[str, Any]) -> None:
        assert generate(petstore_allof) == generate(petstore_allof)


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


class TestDiagnostics:
    """Every anomaly becomes a diagnostic instead of an error."""

    def test_diagnostic_sequence(self, diagnostics_spec: dict[str, Any]) -> None:
        result = generate(diagnostics_spec)
        assert [d.kind for d in result.diagnostics] == [
            DiagnosticKind.MALFORMED_REFERENCE,
            DiagnosticKind.MISSING_JSON_MEDIA_TYPE,
            DiagnosticKind.UNSUPPORTED_STATUS_CODE_RANGE,
            DiagnosticKind.UNRESOLVED_REFERENCE,
            DiagnosticKind.UNRESOLVED_REFERENCE,
            DiagnosticKind.MISSING_JSON_MEDIA_TYPE,
            DiagnosticKind.UNSUPPORTED_SCHEMA_KIND,
        ]

    def test_outputs_survive_diagnostics(self, diagnostics_spec: dict[str, Any]) -> None:
        result = generate(diagnostics_spec)
        assert [o.name for o in result.outputs] == [
            "listReports_200.hurl",
            "post__reports_201.hurl",
            "putExport_202.hurl",
        ]

    def test_parameter_merge(self, diagnostics_spec: dict[str, Any]) -> None:
        outputs = _by_name(generate(diagnostics_spec).outputs)

        list_reports = outputs["listReports_200.hurl"]
        assert list_reports.header_parameters == ["X-Tenant"]
        assert list_reports.query_parameters == ["limit", "cursor"]

        post_reports = outputs["post__reports_201.hurl"]
        assert post_reports.header_parameters == ["X-Tenant"]
        assert post_reports.query_parameters == ["limit"]

    def test_non_json_response_has_no_assertions(self, diagnostics_spec: dict[str, Any]) -> None:
        output = _by_name(generate(diagnostics_spec).outputs)["listReports_200.hurl"]
        assert output.assertions == []
        assert output.media_type is None

    def test_response_ref_and_visibility(self, diagnostics_spec: dict[str, Any]) -> None:
        output = _by_name(generate(diagnostics_spec).outputs)["post__reports_201.hurl"]
        assert output.request_body is None
        assert [a.render() for a in output.assertions] == [
            'jsonpath "$" exists',
            'jsonpath "$.id" isInteger',
            'jsonpath "$.title" isString',
            'jsonpath "$.owner" isCollection',
            "#jsonpath \"$.owner['@type']\" isString",
        ]

    def test_charset_media_type_and_not_schema(self, diagnostics_spec: dict[str, Any]) -> None:
        output = _by_name(generate(diagnostics_spec).outputs)["putExport_202.hurl"]
        assert output.media_type == "application/json; charset=utf-8"
        assert [a.render() for a in output.assertions] == ['jsonpath "$" exists']
        assert output.request_body is None

    def test_locations_name_the_operation(self, diagnostics_spec: dict[str, Any]) -> None:
        result = generate(diagnostics_spec)
        assert result.diagnostics[0].location == "GET /reports (listReports)"
        assert result.diagnostics[2].message == "Status code range '2XX' skipped"
        assert result.diagnostics[3].location.startswith("POST /reports (post__reports)")

    def test_cycles_one_per_resolution(self, cycles_spec: dict[str, Any]) -> None:
        result = generate(cycles_spec)
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.CYCLE_DETECTED] * 3
        outputs = _by_name(result.outputs)
        assert outputs["createTree_201.hurl"].request_body == {"value": 0, "children": []}

    def test_collector_is_drained(self, cycles_spec: dict[str, Any]) -> None:
        collector = DiagnosticsCollector()
        result = generate(cycles_spec, diagnostics=collector)
        assert len(result.diagnostics) == 3
        assert len(collector) == 0

    def test_shapeless_root_is_reported(self) -> None:
        doc = _minimal(
            {
                "/raw": {
                    "get": {
                        "operationId": "getRaw",
                        "responses": {
                            "200": {"content": {"application/json": {"schema": {}}}}
                        },
                    }
                }
            }
        )
        result = generate(doc)
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.UNSUPPORTED_SCHEMA_KIND]

    def test_media_type_without_schema(self) -> None:
        doc = _minimal(
            {
                "/ping": {
                    "get": {
                        "operationId": "ping",
                        "responses": {"200": {"content": {"application/json": {}}}},
                    }
                }
            }
        )
        result = generate(doc)
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.MISSING_SCHEMA_DEFINITION]
        assert result.outputs[0].media_type == "application/json"
        assert result.outputs[0].assertions == []

    def test_numeric_yaml_status_keys(self) -> None:
        doc = _minimal(
            {"/ping": {"head": {"operationId": "ping", "responses": {204: {"description": "ok"}}}}}
        )
        (output,) = generate(doc).outputs
        assert output.name == "ping_204.hurl"
        assert output.method == "HEAD"


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class TestFilters:
    """Regex filters on operation name, path and status."""

    def test_operation_filter(self, petstore_allof: dict[str, Any]) -> None:
        result = generate(petstore_allof, GenerationFilters(operation="Pet$"))
        assert [o.name for o in result.outputs] == [
            "updatePet_200.hurl",
            "addPet_200.hurl",
            "deletePet_204.hurl",
        ]

    def test_path_filter(self, petstore_allof: dict[str, Any]) -> None:
        result = generate(petstore_allof, GenerationFilters(path=r"\{petId\}"))
        assert [o.name for o in result.outputs] == ["getPetById_200.hurl", "deletePet_204.hurl"]

    def test_status_filter(self, petstore_allof: dict[str, Any]) -> None:
        result = generate(petstore_allof, GenerationFilters(status="^204$"))
        assert [o.name for o in result.outputs] == ["deletePet_204.hurl"]

    def test_filtered_operations_record_nothing(self, diagnostics_spec: dict[str, Any]) -> None:
        result = generate(diagnostics_spec, GenerationFilters(path="^/exports$"))
        assert [o.name for o in result.outputs] == ["putExport_202.hurl"]
        assert [d.kind for d in result.diagnostics] == [
            DiagnosticKind.MISSING_JSON_MEDIA_TYPE,
            DiagnosticKind.UNSUPPORTED_SCHEMA_KIND,
        ]
