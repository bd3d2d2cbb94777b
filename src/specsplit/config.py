"""Configuration loading with file discovery, atomic writes, and XDG paths.

This module handles everything persistent about specsplit's configuration:

* **Discovery** -- :func:`find_config_file` applies the precedence chain
  explicit path > ``$SPECSPLIT_CONFIG`` > ``./specsplit.yaml`` >
  ``./config/modularize.yaml``. When nothing is found the built-in
  defaults of :class:`~specsplit.models.ModularizeConfig` are used.
* **Loading** -- :func:`load_modularize_config` parses YAML (or JSON),
  checks that the required sections are declared, and validates the result
  with Pydantic. Every failure surfaces as
  :class:`~specsplit.exceptions.ConfigError` before the source document is
  read.
* **Saving** -- :func:`save_modularize_config` writes through
  :func:`_atomic_write` (temp file in the same directory, then rename).
* **Data directory** -- :func:`get_data_dir` for crash logs.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from specsplit.exceptions import ConfigError
from specsplit.models import ModularizeConfig

_APP_NAME = "specsplit"
_ENV_CONFIG = "SPECSPLIT_CONFIG"
_PROJECT_CONFIG_CANDIDATES = ("specsplit.yaml", "config/modularize.yaml")


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/specsplit/`` (default
    ``~/.local/share/specsplit/``). Elsewhere: ``~/.specsplit/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and the original exception propagates.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Discovery and loading ---


def find_config_file(explicit: Optional[str | Path] = None) -> Optional[Path]:
    """Locate the config file to use, following the precedence chain.

    Args:
        explicit: A path given on the command line. It must exist.

    Returns:
        The config file path, or ``None`` when defaults should be used.

    Raises:
        ConfigError: If *explicit* or ``$SPECSPLIT_CONFIG`` names a file
            that does not exist.
    """
    if explicit is not None:
        path = Path(explicit)
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        return path

    env_value = os.environ.get(_ENV_CONFIG, "")
    if env_value:
        path = Path(env_value)
        if not path.is_file():
            raise ConfigError(f"Config file from ${_ENV_CONFIG} not found: {path}")
        return path

    for candidate in _PROJECT_CONFIG_CANDIDATES:
        path = Path.cwd() / candidate
        if path.is_file():
            return path
    return None


def parse_modularize_config(data: Any, source: str = "<config>") -> ModularizeConfig:
    """Validate an already-parsed config mapping.

    Args:
        data: The mapping loaded from YAML/JSON.
        source: Label used in error messages (usually the file path).

    Raises:
        ConfigError: If *data* is not a mapping, omits a required section,
            or fails Pydantic validation.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {source}: expected a mapping")

    missing = [s for s in ModularizeConfig.REQUIRED_SECTIONS if s not in data]
    if missing:
        raise ConfigError(
            f"Invalid config at {source}: missing required section(s): {', '.join(missing)}"
        )

    try:
        return ModularizeConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {source}: {exc}") from exc


def load_modularize_config(path: Optional[str | Path] = None) -> ModularizeConfig:
    """Load the effective modularization config.

    Args:
        path: Explicit config file; see :func:`find_config_file` for the
            fallback chain when omitted.

    Returns:
        The validated :class:`~specsplit.models.ModularizeConfig`, or the
        defaults when no config file is found.

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML, lacks a
            required section, or fails validation.
    """
    config_path = find_config_file(path)
    if config_path is None:
        return ModularizeConfig()

    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config at {config_path}: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in config at {config_path}: {exc}") from exc

    return parse_modularize_config(data, str(config_path))


def save_modularize_config(config: ModularizeConfig, path: Path) -> None:
    """Persist *config* as YAML at *path* atomically."""
    data = config.model_dump(mode="json")
    _atomic_write(path, yaml.safe_dump(data, sort_keys=False, allow_unicode=True))
