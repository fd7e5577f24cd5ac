"""Tests for heave.schema.jsonpath."""

from __future__ import annotations

import pytest

from heave.schema.jsonpath import ROOT, child_path, item_path


class TestChildPath:
    """Dot vs bracket notation."""

    @pytest.mark.parametrize("name", ["name", "photo_urls", "x-rate", "A1"])
    def test_plain_names_use_dots(self, name: str) -> None:
        assert child_path(ROOT, name) == f"$.{name}"

    def test_special_names_use_brackets(self) -> None:
        assert child_path(ROOT, "@type") == "$['@type']"
        assert child_path("$.a", "b.c") == "$.a['b.c']"
        assert child_path(ROOT, "") == "$['']"

    def test_quotes_are_escaped(self) -> None:
        assert child_path(ROOT, "it's") == "$['it\\'s']"


class TestItemPath:
    def test_first_element(self) -> None:
        assert item_path("$.tags") == "$.tags[0]"
        assert item_path(item_path(ROOT)) == "$[0][0]"
