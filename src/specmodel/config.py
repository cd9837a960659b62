"""Configuration: override files, build settings, data directory and atomic writes.

* **Model overrides** -- :func:`load_model_override` reads a
  :class:`~specmodel.model.override.ModelOverride` from a JSON or YAML file.
* **Build settings** -- :func:`resolve_config` merges CLI flags, environment
  variables and the project file ``./specmodel.json`` into a
  :class:`~specmodel.models.BuildConfig`.
* **Data directory** -- :func:`get_data_dir` is XDG compliant on Linux/BSD
  and ``~/.specmodel/`` elsewhere; crash logs go under it.
* **Output** -- :func:`write_output` writes through a temp file and
  ``os.replace`` so a failed run never leaves a truncated model behind.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from specmodel.exceptions import ConfigError
from specmodel.model.override import ModelOverride
from specmodel.models import BuildConfig

logger = logging.getLogger(__name__)

_APP_NAME = "specmodel"
_PROJECT_CONFIG_FILENAME = "specmodel.json"

ENV_SPEC = "SPECMODEL_SPEC"
ENV_OVERRIDE = "SPECMODEL_OVERRIDE"
ENV_OUTPUT = "SPECMODEL_OUTPUT"


# --- Paths ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory, creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/specmodel/`` (default
    ``~/.local/share/specmodel/``). Elsewhere: ``~/.specmodel/``.
    """
    if _is_xdg_platform():
        xdg_data_home = os.environ.get("XDG_DATA_HOME", "")
        base = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_logs_dir() -> Path:
    """Return ``<data dir>/logs``, creating it if necessary."""
    path = get_data_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def write_output(path: Path, data: str) -> None:
    """Write *data* to *path* atomically.

    The temp file lives in the target directory so that ``os.replace`` is a
    rename on the same filesystem. It is removed if anything fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path: Optional[str] = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as handle:
            tmp_path = handle.name
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


# --- Model overrides ---


def load_model_override(path: Optional[str]) -> ModelOverride:
    """Load a :class:`ModelOverride` from a JSON or YAML file.

    ``None`` yields an empty override. Files ending in ``.yaml``/``.yml``
    are read as YAML, everything else as JSON.

    Raises:
        ConfigError: If the file is missing, does not parse, or does not
            validate.
    """
    if path is None:
        return ModelOverride()

    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise ConfigError(f"Override file not found: {file_path}")

    try:
        text = file_path.read_text(encoding="utf-8")
        if file_path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
        override = ModelOverride.model_validate(data)
    except (OSError, json.JSONDecodeError, yaml.YAMLError, ValidationError) as exc:
        raise ConfigError(f"Invalid override file {file_path}: {exc}") from exc

    logger.debug("Loaded model override from %s", file_path)
    return override


# --- Project config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load ``./specmodel.json`` if it exists.

    Recognised keys are ``spec``, ``override`` and ``output``; relative
    paths are kept as written.

    Raises:
        ConfigError: If the file is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Project config at {path} must be a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(
    cli_spec: Optional[str] = None,
    cli_override: Optional[str] = None,
    cli_output: Optional[str] = None,
) -> BuildConfig:
    """Resolve the build settings.

    Precedence (high to low):
        1. CLI arguments
        2. Environment (``SPECMODEL_SPEC``, ``SPECMODEL_OVERRIDE``,
           ``SPECMODEL_OUTPUT``)
        3. Project config (``./specmodel.json``)
        4. Defaults (all unset)
    """
    project = load_project_config() or {}
    resolved: dict[str, Optional[str]] = {}

    for key, cli_value, env_var in (
        ("spec", cli_spec, ENV_SPEC),
        ("override", cli_override, ENV_OVERRIDE),
        ("output", cli_output, ENV_OUTPUT),
    ):
        value: Optional[str] = project.get(key)
        env_value = os.environ.get(env_var)
        if env_value:
            value = env_value
        if cli_value is not None:
            value = cli_value
        resolved[key] = value

    return BuildConfig(**resolved)
