"""Run-scoped counters and structured log lines for the scraper.

Everything here is in memory and reset at the start of each run. Log lines
are single JSON objects on stdout so a scheduler can grep them.
"""

from __future__ import annotations

import json
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from zoneinfo import ZoneInfo

_TIMEZONE = "Europe/London"
_BUFFER_SIZE = 200


@dataclass
class _RunState:
    started: str = ""
    counters: Counter = field(default_factory=Counter)
    failures: deque = field(default_factory=lambda: deque(maxlen=_BUFFER_SIZE))
    events: deque = field(default_factory=lambda: deque(maxlen=_BUFFER_SIZE))


_state = _RunState()
_lock = Lock()


def _now() -> str:
    return datetime.now(ZoneInfo(_TIMEZONE)).isoformat(timespec="seconds")


def _emit(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False), flush=True)


def increment(metric: str, value: int = 1) -> None:
    """Add ``value`` to a named counter (e.g. "sources.skipped")."""
    if not value:
        return
    with _lock:
        _state.counters[metric] += value


def log_event(kind: str, **fields) -> None:
    """Emit a structured event line and keep it in the recent buffer."""
    payload = {"ts": _now(), "kind": kind, **fields}
    with _lock:
        _state.events.append(payload)
    _emit(payload)


def record_failure(component: str, reason: str, **fields) -> None:
    """
    Record a recovered failure.

    Bumps ``<component>.failures`` and emits a ``failure`` line carrying
    the component, reason and any context fields (source name, mode...).
    """
    payload = {"ts": _now(), "component": component, "reason": reason, **fields}
    with _lock:
        _state.failures.append(payload)
        _state.counters[f"{component}.failures"] += 1
    _emit({"kind": "failure", **payload})


def snapshot() -> dict:
    """Counters plus recent failures and events, as plain data."""
    with _lock:
        return {
            "ts": _now(),
            "run_started": _state.started,
            "counters": dict(_state.counters),
            "recent_failures": list(_state.failures),
            "recent_events": list(_state.events),
        }


def reset() -> None:
    """Start a fresh run."""
    global _state
    with _lock:
        _state = _RunState(started=_now())
