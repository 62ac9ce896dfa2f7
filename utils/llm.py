"""Shared LLM utilities."""

import importlib.util
from pathlib import Path

from google import genai

from .config import get_gemini_api_key, require

_client = None


def _load_settings():
    """Load settings module directly to avoid circular imports."""
    settings_path = Path(__file__).parent.parent / "settings.py"
    spec = importlib.util.spec_from_file_location("settings", settings_path)
    settings = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(settings)
    return settings


_settings = _load_settings()


def get_gemini_client():
    """Get Gemini client (singleton to avoid repeated setup)."""
    global _client

    if _client is not None:
        return _client

    api_key = require(get_gemini_api_key(), "Gemini API key")
    _client = genai.Client(api_key=api_key)
    return _client


def generate_content(prompt: str, json_mode: bool = True) -> str:
    """
    Single Gemini call. Raises on any provider error.

    Retries are the caller's job (see utils.retry.RetryPolicy) so the
    attempt budget can differ per use.
    """
    client = get_gemini_client()
    config = {
        "temperature": float(getattr(_settings, "GEMINI_TEMPERATURE", 0.0)),
    }
    if json_mode:
        config["response_mime_type"] = "application/json"

    response = client.models.generate_content(
        model=str(getattr(_settings, "GEMINI_MODEL", "gemini-2.5-flash-lite")),
        contents=prompt,
        config=config,
    )
    return response.text or ""
