"""Shared utilities."""

from .llm import get_gemini_client, generate_content
from .retry import RetryPolicy

__all__ = ["get_gemini_client", "generate_content", "RetryPolicy"]
