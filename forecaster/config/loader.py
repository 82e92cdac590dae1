"""YAML config loader with default city injection and config hashing."""

import hashlib
from pathlib import Path
from typing import Any

import yaml

from forecaster.config.defaults import DEFAULT_CITIES
from forecaster.config.schema import ForecasterConfig


def load_config(path: str | Path) -> ForecasterConfig:
    """Load and validate config from a YAML file.

    A missing file yields the defaults. If no cities are specified in the
    YAML, injects DEFAULT_CITIES.
    """
    path = Path(path)
    raw: dict[str, Any] = {}
    if path.exists():
        with open(path) as f:
            raw = yaml.safe_load(f) or {}

    if "cities" not in raw or not raw["cities"]:
        raw["cities"] = [c.model_dump() for c in DEFAULT_CITIES]

    return ForecasterConfig(**raw)


def config_hash(config: ForecasterConfig) -> str:
    """Compute a deterministic SHA256 hash of the config (API key excluded)."""
    data = config.model_dump_json(indent=None, exclude={"provider": {"api_key"}})
    return hashlib.sha256(data.encode()).hexdigest()[:16]

