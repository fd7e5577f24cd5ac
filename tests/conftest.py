"""Shared test fixtures for heave.

Provides reusable fixtures for loading spec fixtures, isolating the
environment from ``HEAVE_*`` variables and project config, and managing
output state. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from heave.diagnostics import DiagnosticsCollector
from heave.output import reset_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"

_HEAVE_ENV_VARS = (
    "HEAVE_TEMPLATE",
    "HEAVE_SHOW_DIAGNOSTICS",
    "HEAVE_ONLY_NEW",
    "HEAVE_OPERATION_FILTER",
    "HEAVE_PATH_FILTER",
    "HEAVE_STATUS_FILTER",
)


def load_fixture(name: str) -> dict[str, Any]:
    """Load a YAML spec from ``tests/fixtures``."""
    with open(FIXTURES_DIR / name, encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stderr at creation time.
    When Typer's CliRunner redirects that stream during a test and the test
    finishes, the cached reference becomes stale ("I/O operation on closed
    file"). Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _clean_heave_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Strip ``HEAVE_*`` variables so the developer's shell cannot leak in."""
    for name in _HEAVE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_allof() -> dict[str, Any]:
    """Petstore whose Pet schema is assembled entirely from ``allOf`` parts."""
    return load_fixture("petstore_allof.yaml")


@pytest.fixture
def cycles_spec() -> dict[str, Any]:
    """Spec with a NodeA <-> NodeB cycle and a self-referencing Tree."""
    return load_fixture("cycles.yaml")


@pytest.fixture
def diagnostics_spec() -> dict[str, Any]:
    """Spec that trips every generator-level diagnostic."""
    return load_fixture("diagnostics.yaml")


@pytest.fixture
def collector() -> DiagnosticsCollector:
    return DiagnosticsCollector()


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from an empty directory with XDG data pointed inside it."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    return tmp_path
