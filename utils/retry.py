"""Bounded retry policy shared by remote calls."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry a callable a fixed number of times.

    Delay before retry ``n`` (0-based) is
    ``min(delay_sec * backoff_multiplier ** n, max_delay_sec)``.
    A multiplier of 1.0 gives a fixed delay.
    """
    max_attempts: int = 3
    delay_sec: float = 5.0
    backoff_multiplier: float = 1.0
    max_delay_sec: float = 60.0

    def delay_for(self, attempt: int) -> float:
        delay = self.delay_sec * (self.backoff_multiplier ** attempt)
        return min(delay, self.max_delay_sec)

    def call(
        self,
        fn: Callable[[], T],
        label: str = "call",
        sleep: Callable[[float], None] = time.sleep,
    ) -> T:
        """Run ``fn`` until it succeeds or attempts run out; re-raise the last error."""
        attempts = max(1, int(self.max_attempts))
        for attempt in range(attempts):
            try:
                return fn()
            except Exception as e:
                if attempt >= attempts - 1:
                    raise
                wait_time = self.delay_for(attempt)
                print(
                    f"    {label} failed ({e}), retrying in {wait_time:.1f}s "
                    f"(attempt {attempt + 1}/{attempts})...",
                    flush=True,
                )
                sleep(wait_time)

        raise RuntimeError("Max retries exceeded")
