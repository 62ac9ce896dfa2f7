"""Fuzzy matching of extracted truck and venue names against the registry."""

import importlib.util
import re
from pathlib import Path

from .dedup import standardize_date
from .models import CandidateEvent, CanonicalRegistry, ResolvedEvent
from .observability import increment, log_event
from .time_parser import parse_time


def _load_settings():
    """Load settings module directly to avoid circular imports."""
    settings_path = Path(__file__).parent.parent / "settings.py"
    spec = importlib.util.spec_from_file_location("settings", settings_path)
    settings = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(settings)
    return settings


_settings = _load_settings()


def normalize_name(name: str | None) -> str:
    """Normalize a truck or venue name for fuzzy matching."""
    if not name:
        return ""
    name = name.lower()
    name = re.sub(r"^the\s+", "", name)
    name = re.sub(r"\bst\b", "street", name)
    name = re.sub(r"\brd\b", "road", name)
    name = name.replace("&", "and")
    return re.sub(r"[^a-z0-9]", "", name)


def names_match(a: str, b: str) -> bool:
    """Mutual substring match on already-normalized names."""
    if not a or not b:
        return False
    return a in b or b in a


def resolve_times(raw_start: str | None, raw_end: str | None) -> tuple[str, str]:
    """
    Parse start/end times, falling back to the "Contact Venue" placeholder.

    When the start time is unknown the end time is left blank.
    """
    start = parse_time(raw_start) or _settings.CONTACT_VENUE
    end = parse_time(raw_end) or _settings.CONTACT_VENUE
    if start == _settings.CONTACT_VENUE:
        end = ""
    return start, end


class EntityResolver:
    """Maps extracted names onto canonical registry names."""

    def __init__(self, registry: CanonicalRegistry):
        self.registry = registry
        self._trucks = [(normalize_name(t), t) for t in registry.trucks]
        self._venues = [(normalize_name(v), v) for v in registry.venues]

    @staticmethod
    def _find(candidate: str, index: list[tuple[str, str]]) -> str | None:
        key = normalize_name(candidate)
        for normalized, original in index:
            if names_match(key, normalized):
                return original
        return None

    def match_truck(self, name: str) -> str | None:
        return self._find(name, self._trucks)

    def match_venue(self, name: str) -> str | None:
        return self._find(name, self._venues)

    def resolve_truck(self, raw_name: str, source_name: str) -> tuple[str, bool]:
        """
        Canonical truck name and whether it is new to the registry.

        An unmatched name that contains the source's own name is taken to be
        the source (a truck's site calling itself "Cheese Wagon Street Food").
        """
        raw_name = (raw_name or "").strip()
        matched = self.match_truck(raw_name)
        if matched:
            return matched, False

        source_key = normalize_name(source_name)
        if source_key and source_key in raw_name.lower():
            return source_name, False

        return raw_name, True

    def resolve_venue(self, raw_name: str) -> str:
        raw_name = (raw_name or "").strip()
        return self.match_venue(raw_name) or raw_name or _settings.UNKNOWN_VENUE

    def resolve(self, candidate: CandidateEvent, source_name: str) -> ResolvedEvent | None:
        """
        Resolve names, times and the date format for one candidate.

        Returns None when the candidate has no truck name or no date.
        """
        truck_raw = (candidate.truck_name or "").strip()
        date_start = (candidate.date_start or "").strip()
        if not truck_raw or not date_start:
            return None

        truck, is_new = self.resolve_truck(truck_raw, source_name)
        venue = self.resolve_venue(candidate.venue_name)
        time_start, time_end = resolve_times(candidate.time_start, candidate.time_end)

        notes = (candidate.notes or "").strip()
        if is_new:
            notes = f"{_settings.NEW_TRUCK_FLAG} {notes}".strip()
            increment("resolver.new_trucks")
            log_event("new_truck", truck=truck, source=source_name)
            print(f"      ALERT: New truck discovered: \"{truck}\"", flush=True)

        return ResolvedEvent(
            date_start=standardize_date(date_start),
            time_start=time_start,
            time_end=time_end,
            truck_name=truck,
            venue_name=venue,
            notes=notes,
            is_new_truck=is_new,
        )
