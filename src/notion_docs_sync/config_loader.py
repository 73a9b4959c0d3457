"""
Config file discovery and loading for notion_docs_sync.

Provides convention-based config file discovery, env var interpolation,
and a shallow "project wins" merge.

Usage:
    from notion_docs_sync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

# Matches ${VAR} and ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` patterns with env values.

    * ``${VAR}`` becomes ``os.environ.get(VAR, "")``.
    * ``${VAR:-default}`` uses *default* when VAR is unset or empty.
    """

    def _replace(match: re.Match) -> str:
        env_val = os.environ.get(match.group(1))
        if env_val:
            return env_val
        default = match.group(2)
        return default if default is not None else ""

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _interpolate_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


def discover_config_files() -> list[Path]:
    """Return existing config file paths, highest precedence first.

    Search order:
        1. ``NOTION_SYNC_CONFIG`` env var (explicit single path)
        2. ``.notion_sync/config.yml`` in CWD
        3. ``.notion_sync/config.yaml`` in CWD
        4. ``~/.config/notion_sync/config.yml``
    """
    candidates: list[Path] = []

    env_path = os.environ.get("NOTION_SYNC_CONFIG")
    if env_path:
        candidates.append(Path(env_path).expanduser().resolve())

    cwd = Path.cwd()
    candidates.append(cwd / ".notion_sync" / "config.yml")
    candidates.append(cwd / ".notion_sync" / "config.yaml")
    candidates.append(
        Path.home() / ".config" / "notion_sync" / "config.yml"
    )

    return [p for p in candidates if p.exists()]


def load_hierarchical_config(paths: list[Path] | None = None) -> dict[str, Any]:
    """Load and merge config files (discovered ones when *paths* is None).

    *paths* is ordered highest precedence first, as returned by
    ``discover_config_files()``.  Files are loaded from lowest precedence
    to highest; each file's top-level keys replace those from earlier
    files.  Env var interpolation runs after the merge.

    Returns an empty dict when there are no config files.

    Raises:
        ConfigError: If a file cannot be read or is not valid YAML.
    """
    if paths is None:
        paths = discover_config_files()

    if not paths:
        logger.debug("No config files found, using zero-config defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )

    return _interpolate_recursive(merged)  # type: ignore[no-any-return]
