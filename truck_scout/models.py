"""Data models for food truck event scraping."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Source:
    """A page or schedule note to pull events from."""
    name: str
    url: str
    strategy_key: str = ""
    instructions: str = ""
    origin: str = "truck"  # "truck" or "venue" tab


@dataclass(frozen=True)
class CanonicalRegistry:
    """Known truck and venue names, in sheet order."""
    trucks: tuple[str, ...] = ()
    venues: tuple[str, ...] = ()


@dataclass(frozen=True)
class RecurrenceRule:
    """A schedule pattern such as "every Friday" or "last Monday of the month"."""
    day: str
    freq: str
    pos: str = ""
    raw_time_start: str = ""
    raw_time_end: str = ""
    venue: str = ""
    proof: str = ""


@dataclass
class CandidateEvent:
    """One event as extracted, before name resolution."""
    date_start: str
    time_start: str = ""
    time_end: str = ""
    truck_name: str = ""
    venue_name: str = ""
    notes: str = ""


@dataclass
class ResolvedEvent:
    """An event with canonical names and normalized times, ready to append."""
    date_start: str
    time_start: str
    time_end: str
    truck_name: str
    venue_name: str
    notes: str = ""
    is_new_truck: bool = False

    def as_row(self) -> list[str]:
        """Events tab row: DateStart, TimeStart, TimeEnd, Truck, Venue, Notes."""
        return [
            self.date_start,
            self.time_start,
            self.time_end,
            self.truck_name,
            self.venue_name,
            self.notes,
        ]


@dataclass
class SourceResult:
    """Outcome of processing one source."""
    source_name: str
    strategy: str = ""
    mode: str = ""  # "rules", "events" or "" when skipped before extraction
    candidates: int = 0
    accepted: list[ResolvedEvent] = field(default_factory=list)
    duplicates: int = 0
    rejected: int = 0
    new_trucks: list[str] = field(default_factory=list)
    error: str | None = None
    skipped: bool = False
    skip_reason: str = ""


@dataclass
class RunReport:
    """Aggregate of a full scrape run."""
    results: list[SourceResult] = field(default_factory=list)
    existing_events: int = 0
    appended: int = 0
    dry_run: bool = False

    @property
    def batch(self) -> list[ResolvedEvent]:
        return [event for result in self.results for event in result.accepted]

    @property
    def errors(self) -> list[SourceResult]:
        return [r for r in self.results if r.error]

    @property
    def skipped(self) -> list[SourceResult]:
        return [r for r in self.results if r.skipped]

    @property
    def duplicates(self) -> int:
        return sum(r.duplicates for r in self.results)
