"""Secrets and IDs from config/config.json, with environment fallbacks."""

import json
import os
from pathlib import Path

_CONFIG_DIR = Path(__file__).parent.parent / "config"
_CONFIG_FILE = _CONFIG_DIR / "config.json"


class ConfigurationError(ValueError):
    """Required startup configuration is missing."""


def load_config(config_path: Path | None = None) -> dict:
    """Load config.json, or an empty dict when absent."""
    path = config_path or _CONFIG_FILE
    if path.exists():
        with open(path) as f:
            return json.load(f)
    return {}


def get_gemini_api_key() -> str | None:
    """Gemini key from config file first, then environment variables."""
    return (
        load_config().get("gemini", {}).get("api_key")
        or os.environ.get("GOOGLE_API_KEY")
        or os.environ.get("GEMINI_API_KEY")
    )


def get_spreadsheet_id() -> str | None:
    """Spreadsheet holding the Trucks, Venues and Events tabs."""
    return (
        load_config().get("sheets", {}).get("spreadsheet_id")
        or os.environ.get("SPREADSHEET_ID")
    )


def require(value: str | None, what: str) -> str:
    """Return value or raise ConfigurationError naming the missing setting."""
    if not value:
        raise ConfigurationError(
            f"{what} not found. Add it to config/config.json or set the environment variable."
        )
    return value
