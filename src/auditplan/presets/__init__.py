"""Bundled config templates."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from auditplan.models import ConfigError

PRESETS_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = PRESETS_DIR / "default.yaml"
FULL_CONFIG_PATH = PRESETS_DIR / "full.yaml"


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML (or JSON) config file into a plain dict."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"File not found: {path}")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed parsing config '{path}': {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigError(f"{path}: config root must be a mapping")
    return dict(raw)


def load_default_config() -> dict[str, Any]:
    return load_config_file(DEFAULT_CONFIG_PATH)


def load_full_config() -> dict[str, Any]:
    return load_config_file(FULL_CONFIG_PATH)
