"""
YAML → config override loader.

Loads optional user overrides from ``$LIFT_SIGNALS_HOME/config.yaml``
(default ``~/.lift-signals/config.yaml``) and merges them over the Python
defaults in config.py.

Usage:
    from lift_signals.core.engine.config_loader import load_user_config
    cfg = load_user_config()
    chest = cfg.get("volume_landmarks", {}).get("chest")

If the user override file exists but cannot be parsed, a warning is logged
and the file is ignored.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from ..config import DEFAULT_HOME_DIRNAME, HOME_ENV_VAR

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; return {} (with a warning) on parse or read errors."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level must be a mapping", path)
        return {}
    return data


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_home_dir() -> Path:
    """Return the lift-signals home directory (``$LIFT_SIGNALS_HOME`` or ``~/.lift-signals``)."""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / DEFAULT_HOME_DIRNAME


def get_user_config_path() -> Path | None:
    """Return the user config.yaml if it exists, else None."""
    p = get_home_dir() / "config.yaml"
    return p if p.exists() else None


def load_user_config() -> dict[str, Any]:
    """
    Load the user override config.

    Returns:
        Dict of config sections.  Empty dict if no override file exists.
    """
    path = get_user_config_path()
    if path is None:
        return {}
    return _load_yaml_file(path)
