"""
LEVELCURVE - CONFIGURATION
==========================

Loads config.yaml once into an immutable Settings object.

Lookup order:
- $LEVELCURVE_CONFIG if set
- config.yaml next to the app/ package

Missing file or keys fall back to the defaults below.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"


@dataclass(frozen=True)
class Settings:
    # server
    host: str = "0.0.0.0"
    port: int = 8000

    # progression
    default_max_level: int = 100
    default_preset: str = "player"

    # editor
    max_segments: int = 10
    append_span: int = 10
    append_exp_growth: float = 1.1
    snap_level_threshold: float = 1
    snap_exp_ratio: float = 0.05
    continuity_epsilon: float = 1.0

    @classmethod
    def from_mapping(cls, config: Dict[str, Any]) -> "Settings":
        """
        Flatten the server/progression/editor sections into Settings.

        Unknown keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}

        for section in ("server", "progression", "editor"):
            for key, value in (config.get(section) or {}).items():
                if key in known and value is not None:
                    values[key] = value

        return cls(**values)


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Read settings from YAML.

    Raises:
        yaml.YAMLError: Malformed YAML
    """
    if path is None:
        path = Path(os.environ.get("LEVELCURVE_CONFIG", DEFAULT_CONFIG_PATH))

    if not path.exists():
        print(f"[Config] {path} not found, using defaults")
        return Settings()

    with open(path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    return Settings.from_mapping(config)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings

    if _settings is None:
        _settings = load_settings()

    return _settings


def reset_settings() -> None:
    """Forget cached settings (tests, config reload)."""
    global _settings
    _settings = None
