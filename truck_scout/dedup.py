"""Duplicate suppression against the Events tab.

An event's identity is (date, truck, venue). Time is not part of it:
a venue correcting a start time must not produce a second row.
"""

import re
from threading import Lock
from typing import Iterable, NamedTuple

from .models import ResolvedEvent


def standardize_date(text: str | None) -> str:
    """Zero-pad day and month of a D/M/YYYY date ("1/2/2024" -> "01/02/2024")."""
    if not text:
        return ""
    parts = text.strip().split("/")
    if len(parts) != 3:
        return text
    day, month, year = parts
    return f"{day.zfill(2)}/{month.zfill(2)}/{year}"


def dedup_key(name: str | None) -> str:
    """Coarse key for stored names: lower-case, alphanumerics only."""
    return re.sub(r"[^a-z0-9]", "", (name or "").lower())


class Fingerprint(NamedTuple):
    date: str
    truck: str
    venue: str

    @classmethod
    def for_event(cls, date_start: str, truck_name: str, venue_name: str) -> "Fingerprint":
        return cls(standardize_date(date_start), dedup_key(truck_name), dedup_key(venue_name))

    @classmethod
    def parse(cls, key: str) -> "Fingerprint":
        """Inverse of ``key``: "01/02/2024|cheesewagon|thepub"."""
        parts = key.split("|", 2)
        if len(parts) != 3:
            raise ValueError(f"not a fingerprint key: {key!r}")
        date_part, truck, venue = parts
        return cls(date_part, truck, venue)

    @property
    def key(self) -> str:
        return f"{self.date}|{self.truck}|{self.venue}"


class EventIndex:
    """
    Fingerprints of every known event.

    Seeded from the store at run start and only ever grows, so two sources
    reporting the same event in one run still produce a single row.
    """

    def __init__(self, fingerprints: Iterable[Fingerprint] = ()):
        self._seen: set[Fingerprint] = set(fingerprints)
        self._lock = Lock()

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[list[str]],
        date_col: int = 0,
        truck_col: int = 3,
        venue_col: int = 4,
    ) -> "EventIndex":
        """Build from Events tab rows; rows missing a date or truck are ignored."""
        fingerprints = []
        for row in rows:
            cells = list(row) + [""] * (max(date_col, truck_col, venue_col) + 1 - len(row))
            fp = Fingerprint.for_event(cells[date_col], cells[truck_col], cells[venue_col])
            if fp.date and fp.truck:
                fingerprints.append(fp)
        return cls(fingerprints)

    def __contains__(self, item) -> bool:
        if isinstance(item, str):
            try:
                item = Fingerprint.parse(item)
            except ValueError:
                return False
        return item in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def is_duplicate(self, event: ResolvedEvent) -> bool:
        return Fingerprint.for_event(event.date_start, event.truck_name, event.venue_name) in self._seen

    def admit(self, event: ResolvedEvent) -> bool:
        """
        Record the event's fingerprint if it is new.

        Returns False for a duplicate. Check and insert happen under one lock.
        """
        fp = Fingerprint.for_event(event.date_start, event.truck_name, event.venue_name)
        with self._lock:
            if fp in self._seen:
                return False
            self._seen.add(fp)
            return True
