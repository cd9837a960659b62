"""Shared test fixtures for specmodel.

Provides document fixtures (raw and parsed), compiled models, isolated
config environments, output state management and a CLI runner. These are
discovered by pytest and available to every test module.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from specmodel.model import ModelOverride, ServiceModel
from specmodel.models import ParsedSpec
from specmodel.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The manager keeps references to the streams that were current when it
    was created; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def widget_store_raw() -> dict[str, Any]:
    """Raw OpenAPI 3.0 widget store document."""
    with open(FIXTURES_DIR / "widget_store_3.0.json") as f:
        return json.load(f)


@pytest.fixture
def swagger_widget_store_raw() -> dict[str, Any]:
    """Raw Swagger 2.0 widget store document."""
    with open(FIXTURES_DIR / "widget_store_2.0.yaml") as f:
        return yaml.safe_load(f)


@pytest.fixture
def widget_store_spec(widget_store_raw: dict[str, Any]) -> ParsedSpec:
    from specmodel.parser.extractor import extract_spec

    return extract_spec(widget_store_raw, "3.0.3")


@pytest.fixture
def widget_store_model(widget_store_spec: ParsedSpec) -> ServiceModel:
    """The widget store compiled with no overrides."""
    from specmodel.compiler import build_service_model

    return build_service_model(widget_store_spec)


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def empty_model() -> ServiceModel:
    return ServiceModel()


@pytest.fixture
def default_override() -> ModelOverride:
    return ModelOverride()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_DATA_HOME into tmp_path, clears SPECMODEL_* variables and
    changes the working directory to tmp_path.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["SPECMODEL_SPEC", "SPECMODEL_OVERRIDE", "SPECMODEL_OUTPUT"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN output manager."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
