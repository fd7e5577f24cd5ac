"""Configuration resolution for ``heave generate``.

Settings come from four layers, highest precedence first:

1. CLI flags (``--template``, ``--show-diagnostics``, ``--only-new``,
   ``--operation``, ``--path``, ``--status``)
2. Environment variables (``HEAVE_TEMPLATE``, ``HEAVE_SHOW_DIAGNOSTICS``,
   ``HEAVE_ONLY_NEW``, ``HEAVE_OPERATION_FILTER``, ``HEAVE_PATH_FILTER``,
   ``HEAVE_STATUS_FILTER``)
3. Project config (``./heave.json``)
4. Defaults

:func:`resolve_config` merges them into a
:class:`~heave.models.GenerateConfig`. The module also provides the XDG data
directory used for crash logs (:func:`get_data_dir`).
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from heave.exceptions import ConfigError, InvalidUsageError
from heave.models import GenerateConfig

_APP_NAME = "heave"
_PROJECT_CONFIG_FILENAME = "heave.json"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})

_ENV_FILTERS = {
    "operation": "HEAVE_OPERATION_FILTER",
    "path": "HEAVE_PATH_FILTER",
    "status": "HEAVE_STATUS_FILTER",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/heave/`` (default ``~/.local/share/heave/``).
    On macOS/Windows: ``~/.heave/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./heave.json``.

    The file uses the same field names as :class:`~heave.models.GenerateConfig`::

        {"template": "hurl.j2", "only_new": true, "filters": {"path": "^/pet"}}

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a valid JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _env_flag(name: str) -> Optional[bool]:
    raw = os.environ.get(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"Environment variable {name} must be a boolean, got {raw!r}")


# --- Precedence resolution ---


def resolve_config(
    cli_template: Optional[Path] = None,
    cli_show_diagnostics: Optional[bool] = None,
    cli_only_new: Optional[bool] = None,
    cli_operation: Optional[str] = None,
    cli_path: Optional[str] = None,
    cli_status: Optional[str] = None,
) -> GenerateConfig:
    """Resolve the effective :class:`~heave.models.GenerateConfig`.

    ``None`` for a CLI argument means "not given on the command line", so
    lower layers apply.

    Raises:
        ConfigError: If ``heave.json`` or a boolean environment variable is invalid.
        InvalidUsageError: If the merged settings fail validation (e.g. a
            filter is not a valid regular expression).
    """
    # 4 + 3. Defaults overlaid with project config
    merged: dict[str, Any] = {}
    project = load_project_config()
    if project is not None:
        merged.update({k: v for k, v in project.items() if k != "filters"})
    filters: dict[str, Any] = dict((project or {}).get("filters") or {})

    # 2. Environment variables
    env_template = os.environ.get("HEAVE_TEMPLATE")
    if env_template:
        merged["template"] = env_template
    for key, env_name in (("show_diagnostics", "HEAVE_SHOW_DIAGNOSTICS"), ("only_new", "HEAVE_ONLY_NEW")):
        flag = _env_flag(env_name)
        if flag is not None:
            merged[key] = flag
    for key, env_name in _ENV_FILTERS.items():
        env_value = os.environ.get(env_name)
        if env_value:
            filters[key] = env_value

    # 1. CLI flags
    if cli_template is not None:
        merged["template"] = cli_template
    if cli_show_diagnostics is not None:
        merged["show_diagnostics"] = cli_show_diagnostics
    if cli_only_new is not None:
        merged["only_new"] = cli_only_new
    for key, value in (("operation", cli_operation), ("path", cli_path), ("status", cli_status)):
        if value is not None:
            filters[key] = value

    merged["filters"] = filters
    try:
        return GenerateConfig.model_validate(merged)
    except ValidationError as exc:
        raise InvalidUsageError(f"Invalid configuration: {exc}") from exc
