"""Avalanche center registry loading from YAML."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml

CONFIG_DIR = Path(__file__).resolve().parent / "configs"


@lru_cache(maxsize=4)
def load_centers(config_dir: Path | None = None) -> dict[str, str]:
    """Load the center name -> avalanche.org center_id mapping.

    Args:
        config_dir: Override for config directory (testing).
    """
    config_dir = config_dir or CONFIG_DIR
    centers_file = config_dir / "centers.yaml"

    with open(centers_file) as f:
        data = yaml.safe_load(f) or {}

    return {str(name): str(code) for name, code in (data.get("centers") or {}).items()}


def center_id_for(center: str, config_dir: Path | None = None) -> str | None:
    """Return the center_id for a display name, or None if unmapped."""
    return load_centers(config_dir).get(center)


def list_centers(config_dir: Path | None = None) -> list[str]:
    """List known center display names."""
    return list(load_centers(config_dir).keys())
