"""Exceptions raised by the scraper pipeline."""

from utils.config import ConfigurationError


class NavigationTimeout(Exception):
    """A page did not finish loading within its ceiling. Recovered locally."""


class ExtractionError(Exception):
    """The LLM call or its JSON could not be used after all retries."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


__all__ = ["ConfigurationError", "ExtractionError", "NavigationTimeout"]
