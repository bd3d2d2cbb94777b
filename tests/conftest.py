"""Shared test fixtures for specsplit.

Provides reusable fixtures for loading document fixtures, creating isolated
config environments, managing output state, and running CLI commands.
These fixtures are automatically discovered by pytest and available to
all test modules without explicit imports.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest
import yaml

from specsplit.models import ModularizeConfig, OpenAPIDocument
from specsplit.naming import NameNormalizer
from specsplit.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_path() -> Path:
    return FIXTURES_DIR / "petstore.yaml"


@pytest.fixture
def petstore_raw(petstore_path: Path) -> dict[str, Any]:
    """Load the raw petstore document dict."""
    with open(petstore_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def petstore(petstore_raw: dict[str, Any]) -> OpenAPIDocument:
    """Validated petstore document."""
    return OpenAPIDocument.from_dict(copy.deepcopy(petstore_raw))


@pytest.fixture
def minimal_raw() -> dict[str, Any]:
    """Smallest document accepted by the loader."""
    return {
        "openapi": "3.0.3",
        "info": {"title": "Minimal", "version": "1.0.0"},
        "paths": {},
    }


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture
def normalizer() -> NameNormalizer:
    return NameNormalizer()


@pytest.fixture
def config() -> ModularizeConfig:
    """Built-in default configuration."""
    return ModularizeConfig()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_DATA_HOME to a subdirectory of tmp_path so that crash logs
    never touch the real user directories, clears SPECSPLIT_CONFIG, and
    changes the working directory to tmp_path so that config discovery
    starts from an empty project.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("SPECSPLIT_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output.

    Installs a PLAIN-format, quiet OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Uncoloured, unwrapped diagnostics, for tests that inspect stderr."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
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
