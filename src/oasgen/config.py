"""Configuration loading, precedence resolution and atomic writes.

A generation run is configured by a single
:class:`~oasgen.models.GenerateConfig`. :func:`resolve_config` builds it from
four layers, high to low:

1. CLI flags
2. Environment variables (``OASGEN_OUTPUT_DIR``, ``OASGEN_SERVICE_STYLE``,
   ``OASGEN_INCLUDE_DOCS``)
3. The project file ``./oasgen.json``
4. Model defaults

``lang_options`` merge per key across the project file and ``--option``
flags instead of replacing each other.

Writes of the project file go through :func:`_atomic_write` (temp file then
rename) so an interrupted save never leaves a truncated file behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from oasgen.exceptions import ConfigError, InvalidUsageError
from oasgen.models import GenerateConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILENAME = "oasgen.json"

ENV_OUTPUT_DIR = "OASGEN_OUTPUT_DIR"
ENV_SERVICE_STYLE = "OASGEN_SERVICE_STYLE"
ENV_INCLUDE_DOCS = "OASGEN_INCLUDE_DOCS"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


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
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


# --- Project file ---


def project_config_path(directory: Optional[Path] = None) -> Path:
    """Path of ``oasgen.json`` in *directory* (default: the working directory)."""
    return (directory or Path.cwd()) / PROJECT_CONFIG_FILENAME


def load_project_config(path: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load the project configuration file.

    Args:
        path: Explicit file path. Defaults to ``./oasgen.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a valid JSON object.
    """
    path = path or project_config_path()
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    logger.debug("Loaded project config from %s", path)
    return data


def save_project_config(config: GenerateConfig, path: Optional[Path] = None) -> Path:
    """Persist *config* atomically as a project file and return its path.

    ``strict`` is a per-run switch and is not saved.
    """
    path = path or project_config_path()
    data = config.model_dump(mode="json", exclude={"strict"})
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


# --- CLI helpers ---


def parse_lang_options(entries: Optional[list[str]]) -> dict[str, str]:
    """Parse repeated ``--option key=value`` flags.

    Later entries win over earlier ones with the same key.

    Raises:
        InvalidUsageError: If an entry has no ``=`` or an empty key.
    """
    options: dict[str, str] = {}
    for entry in entries or []:
        key, sep, value = entry.partition("=")
        key = key.strip()
        if not sep or not key:
            raise InvalidUsageError(f"Invalid option '{entry}': expected KEY=VALUE")
        options[key] = value
    return options


def _parse_bool(value: str, source: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean '{value}' in {source}")


# --- Precedence resolution ---


def resolve_config(
    cli_output_dir: Optional[str] = None,
    cli_service_style: Optional[str] = None,
    cli_include_docs: Optional[bool] = None,
    cli_lang_options: Optional[Mapping[str, str]] = None,
    cli_strict: Optional[bool] = None,
    project_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> GenerateConfig:
    """Resolve the effective :class:`~oasgen.models.GenerateConfig`.

    Precedence (high to low):
        1. CLI flags (``cli_*`` arguments; ``None`` means "not given")
        2. Environment variables
        3. Project file (``./oasgen.json`` or *project_path*)
        4. Defaults

    Args:
        environ: Environment mapping, defaults to ``os.environ``.

    Raises:
        ConfigError: If the project file is invalid or the merged values
            fail validation.
    """
    env = os.environ if environ is None else environ
    merged: dict[str, Any] = {}

    # 3. Project file
    project = load_project_config(project_path)
    if project is not None:
        merged.update(project)
    project_options = merged.get("lang_options") or {}
    if not isinstance(project_options, dict):
        raise ConfigError("Invalid project config: 'lang_options' must be an object")
    lang_options = dict(project_options)

    # 2. Environment variables
    if env.get(ENV_OUTPUT_DIR):
        merged["output_dir"] = env[ENV_OUTPUT_DIR]
    if env.get(ENV_SERVICE_STYLE):
        merged["service_style"] = env[ENV_SERVICE_STYLE]
    if env.get(ENV_INCLUDE_DOCS):
        merged["include_docs"] = _parse_bool(env[ENV_INCLUDE_DOCS], ENV_INCLUDE_DOCS)

    # 1. CLI flags
    if cli_output_dir is not None:
        merged["output_dir"] = cli_output_dir
    if cli_service_style is not None:
        merged["service_style"] = cli_service_style
    if cli_include_docs is not None:
        merged["include_docs"] = cli_include_docs
    if cli_strict is not None:
        merged["strict"] = cli_strict
    if cli_lang_options:
        lang_options.update(cli_lang_options)
    merged["lang_options"] = lang_options

    try:
        return GenerateConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
