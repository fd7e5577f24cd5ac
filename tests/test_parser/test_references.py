"""Tests for heave.parser.references."""

from __future__ import annotations

from typing import Any

import pytest

from heave.diagnostics import DiagnosticsCollector
from heave.models import DiagnosticKind
from heave.parser.references import PointerError, lookup_pointer, resolve_component


# ---------------------------------------------------------------------------
# lookup_pointer
# ---------------------------------------------------------------------------


class TestLookupPointer:
    """Test JSON pointer navigation."""

    def test_resolves_nested_path(self) -> None:
        doc = {"components": {"schemas": {"Pet": {"type": "object"}}}}
        assert lookup_pointer("#/components/schemas/Pet", doc) == {"type": "object"}

    def test_escaped_segments(self) -> None:
        doc = {"paths": {"/pets/{id}": {"get": {"x": 1}}, "a~b": 2}}
        assert lookup_pointer("#/paths/~1pets~1{id}/get", doc) == {"x": 1}
        assert lookup_pointer("#/paths/a~0b", doc) == 2

    def test_list_index(self) -> None:
        doc = {"servers": [{"url": "a"}, {"url": "b"}]}
        assert lookup_pointer("#/servers/1/url", doc) == "b"

    def test_missing_key(self) -> None:
        with pytest.raises(PointerError, match="key 'Nope' not found"):
            lookup_pointer("#/components/schemas/Nope", {"components": {"schemas": {}}})

    def test_bad_index(self) -> None:
        with pytest.raises(PointerError, match="invalid array index"):
            lookup_pointer("#/servers/9", {"servers": []})

    def test_cannot_navigate_into_scalar(self) -> None:
        with pytest.raises(PointerError, match="cannot navigate into str"):
            lookup_pointer("#/info/title/x", {"info": {"title": "T"}})

    def test_external_ref(self) -> None:
        with pytest.raises(PointerError, match="External"):
            lookup_pointer("common.yaml#/Pet", {})

    def test_is_a_lookup_error(self) -> None:
        assert issubclass(PointerError, LookupError)


# ---------------------------------------------------------------------------
# resolve_component
# ---------------------------------------------------------------------------


def _components(**sections: Any) -> dict[str, Any]:
    return {"components": sections}


class TestResolveComponent:
    """Test request body / response / parameter dereferencing."""

    def test_inline_passthrough(self, collector: DiagnosticsCollector) -> None:
        item = {"name": "limit", "in": "query"}
        assert resolve_component(item, "parameters", {}, collector, "GET /") is item
        assert len(collector) == 0

    def test_follows_ref(self, collector: DiagnosticsCollector) -> None:
        doc = _components(responses={"NotFound": {"description": "nope"}})
        result = resolve_component(
            {"$ref": "#/components/responses/NotFound"}, "responses", doc, collector, "GET /"
        )
        assert result == {"description": "nope"}

    def test_follows_chain(self, collector: DiagnosticsCollector) -> None:
        doc = _components(
            requestBodies={
                "Alias": {"$ref": "#/components/requestBodies/Real"},
                "Real": {"content": {}},
            }
        )
        result = resolve_component(
            {"$ref": "#/components/requestBodies/Alias"}, "requestBodies", doc, collector, "POST /"
        )
        assert result == {"content": {}}

    def test_wrong_section_is_malformed(self, collector: DiagnosticsCollector) -> None:
        doc = _components(schemas={"Limit": {"type": "integer"}})
        result = resolve_component(
            {"$ref": "#/components/schemas/Limit"}, "parameters", doc, collector, "GET /items"
        )
        assert result is None
        (diagnostic,) = collector.snapshot()
        assert diagnostic.kind == DiagnosticKind.MALFORMED_REFERENCE
        assert diagnostic.location == "GET /items"
        assert diagnostic.reference == "#/components/schemas/Limit"
        assert "#/components/parameters/" in diagnostic.message

    def test_missing_target_is_unresolved(self, collector: DiagnosticsCollector) -> None:
        result = resolve_component(
            {"$ref": "#/components/responses/Gone"}, "responses", _components(), collector, "GET /"
        )
        assert result is None
        assert collector.snapshot()[0].kind == DiagnosticKind.UNRESOLVED_REFERENCE

    def test_reference_loop(self, collector: DiagnosticsCollector) -> None:
        doc = _components(
            responses={
                "A": {"$ref": "#/components/responses/B"},
                "B": {"$ref": "#/components/responses/A"},
            }
        )
        result = resolve_component(
            {"$ref": "#/components/responses/A"}, "responses", doc, collector, "GET /"
        )
        assert result is None
        assert collector.snapshot()[0].kind == DiagnosticKind.CYCLE_DETECTED

    def test_non_dict_target(self, collector: DiagnosticsCollector) -> None:
        doc = _components(parameters={"Weird": "text"})
        result = resolve_component(
            {"$ref": "#/components/parameters/Weird"}, "parameters", doc, collector, "GET /"
        )
        assert result is None
