"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. _DEFAULTS           - built-in pipeline tuning values
#   2. config/config.yaml  - checked-in overrides of those values
#   3. Settings            - .env / .env.local / environment variables
#                            (secrets, paths, log level)
#
# _deep_merge does recursive dict merging:
#   base = {"pdf": {"render_scale": 1.5}}
#   overrides = {"pdf": {"spread_threshold": 1.3}}
#   result = {"pdf": {"render_scale": 1.5, "spread_threshold": 1.3}}
# ──────────────────────────────────────────────────────────────────────
"""

import copy
from pathlib import Path

import yaml

from src.config.settings import Settings

_DEFAULTS: dict = {
    "pdf": {
        "render_scale": 1.5,
        # width / height above this ratio means a two-page spread
        "spread_threshold": 1.2,
        "pages_subdir": "pages",
        "ocr_language": "eng",
    },
    "extraction": {
        "concurrency": 3,
        "vision_concurrency": 2,
        "confidence": 0.8,
        "max_tokens": 2048,
        "temperature": 0.2,
    },
    "duplicates": {
        "threshold": 0.7,
    },
    "geocoding": {
        "delay_seconds": 1.1,
        "timeout_seconds": 10.0,
    },
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read otherwise.

    Returns:
        Fully resolved configuration dictionary.
    """
    config = copy.deepcopy(_DEFAULTS)

    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
        _deep_merge(config, yaml_config)

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "env": settings.app_env,
        },
        "llm": {
            "anthropic_model": settings.anthropic_model,
            "available_providers": settings.get_available_llm_providers(),
        },
        "storage": {
            "database_path": settings.database_path,
            "public_dir": settings.public_dir,
        },
        "geocoding": {
            "url": settings.nominatim_url,
            "user_agent": settings.nominatim_user_agent,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(config, env_overrides)
    return config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
