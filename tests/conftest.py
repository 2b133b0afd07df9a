"""Shared test fixtures for oasgen.

Provides reusable fixtures for loading OpenAPI documents, building IRs,
isolating configuration, managing output state and running CLI commands.
These fixtures are automatically discovered by pytest and available to
all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from oasgen.ir import build_ir
from oasgen.models import BuildResult, GenerateConfig
from oasgen.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict[str, Any]:
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The CLI callback installs a manager on each invocation; without this
    a test could observe the flags of the previous one.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Raw document fixtures (plain dicts loaded from JSON files)
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Petstore 3.0 document: Pet, NewPet, Error and five operations."""
    return load_fixture("petstore.json")


@pytest.fixture
def recursive_raw() -> dict[str, Any]:
    """3.1 document with a self-recursive Node and mutually recursive A/B."""
    return load_fixture("recursive.json")


@pytest.fixture
def composition_raw() -> dict[str, Any]:
    """3.1 document exercising allOf, oneOf and nullable forms."""
    return load_fixture("composition.json")


# ---------------------------------------------------------------------------
# Built IR fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_result(petstore_raw: dict[str, Any]) -> BuildResult:
    """BuildResult for the petstore document with default settings."""
    return build_ir(petstore_raw, GenerateConfig())


@pytest.fixture
def petstore_spec_file(tmp_path: Path) -> Path:
    """The petstore fixture copied into tmp_path."""
    spec_path = tmp_path / "petstore.json"
    spec_path.write_text((FIXTURES_DIR / "petstore.json").read_text())
    return spec_path


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Clears all OASGEN_* environment variables and changes the working
    directory to tmp_path so no real ``oasgen.json`` is picked up.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    for var in ["OASGEN_OUTPUT_DIR", "OASGEN_SERVICE_STYLE", "OASGEN_INCLUDE_DOCS"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
