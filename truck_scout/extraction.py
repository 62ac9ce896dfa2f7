"""LLM extraction of schedule rules and concrete events."""

from __future__ import annotations

import importlib.util
import json
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Callable

from utils.llm import generate_content
from utils.retry import RetryPolicy

from .errors import ExtractionError
from .models import CandidateEvent, CanonicalRegistry, RecurrenceRule, Source
from .observability import increment, record_failure


def _load_settings():
    """Load settings module directly to avoid circular imports."""
    settings_path = Path(__file__).parent.parent / "settings.py"
    spec = importlib.util.spec_from_file_location("settings", settings_path)
    settings = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(settings)
    return settings


_settings = _load_settings()


RULE_PROMPT = """You are a schedule logic extractor. Parse the truck's scheduling rules.

USER RULES: "{instructions}"
TRUCK NAME: "{truck_name}"

CRITICAL INSTRUCTIONS:
1. Extract EACH venue as a separate rule.
2. Copy the EXACT time text you see into "rawTimeStart" and "rawTimeEnd".
3. "day" is the full English weekday name in lower case.
4. "freq" is "weekly" or "monthly".
5. "pos" is the position in the month ("1st", "2nd", "3rd", "4th", "last"), or "" for every week.
6. Specific dates: if the text says "Mon 2nd", put "2nd" in "pos".
7. "proof" is the fragment of text the rule came from.

Return ONLY a JSON array. Example:
[{{"venue": "The Railway Tavern", "proof": "Mon 2nd - The Railway Tavern", "rawTimeStart": "5pm", "rawTimeEnd": "7ish", "freq": "weekly", "day": "monday", "pos": "2nd"}}]
"""

EVENT_PROMPT = """You are extracting food truck events for: "{source_name}".
Current Date: {today_long}.
Current Year: {year}.

TASK: Extract ALL upcoming food truck events from the website text below.

CRITICAL RULES:
1. DEEP SCAN: The text can cover several days or months. Scan the ENTIRE text.
2. TODAY/TOMORROW: Convert "Tonight" or "Tomorrow" into dates using the Current Date.
3. DateStart MUST be "DD/MM/YYYY". Use the Current Year ({year}) unless the text states another year.
4. If a truck name appears in the text, use it. Otherwise default to "{source_name}".
5. Truck names to fuzzy match against: {trucks}.
6. Venue names to fuzzy match against: {venues}.
7. TimeStart/TimeEnd as "HH:MM" (24 hour) when known, otherwise "".

Return ONLY a JSON array:
[{{"DateStart": "DD/MM/YYYY", "TimeStart": "HH:MM", "TimeEnd": "HH:MM", "Truck Name": "Name", "Venue Name": "Name", "Notes": "..."}}]
If no events are found, return: []

WEBSITE TEXT:
{corpus}
"""


class ExtractionMode(str, Enum):
    RULES = "rules"
    EVENTS = "events"


@dataclass
class RuleExtraction:
    rules: list[RecurrenceRule] = field(default_factory=list)
    rejected: int = 0


@dataclass
class EventExtraction:
    events: list[CandidateEvent] = field(default_factory=list)
    rejected: int = 0


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_json_array(response_text: str) -> list:
    """
    Parse a JSON array from an LLM response.

    Tolerates a markdown fence around the array. Raises ValueError for
    anything that is not an array.
    """
    text = (response_text or "").strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        match = re.search(r"\[[\s\S]*\]", text)
        if not match:
            raise
        data = json.loads(match.group())

    if not isinstance(data, list):
        raise ValueError(f"expected a JSON array, got {type(data).__name__}")
    return data


def validate_rule(item) -> tuple[RecurrenceRule | None, str | None]:
    """Check one rule object. Returns (rule, None) or (None, error)."""
    if not isinstance(item, dict):
        return None, "rule is not an object"
    day = _text(item.get("day")).lower()
    if not day:
        return None, "rule has no day"
    freq = _text(item.get("freq")).lower()
    if freq not in ("weekly", "monthly"):
        return None, f"rule has invalid freq {freq!r}"
    return RecurrenceRule(
        day=day,
        freq=freq,
        pos=_text(item.get("pos")),
        raw_time_start=_text(item.get("rawTimeStart")),
        raw_time_end=_text(item.get("rawTimeEnd")),
        venue=_text(item.get("venue")),
        proof=_text(item.get("proof")),
    ), None


def validate_event(item) -> tuple[CandidateEvent | None, str | None]:
    """Check one event object. Returns (event, None) or (None, error)."""
    if not isinstance(item, dict):
        return None, "event is not an object"
    date_start = _text(item.get("DateStart"))
    if not date_start:
        return None, "event has no DateStart"
    return CandidateEvent(
        date_start=date_start,
        time_start=_text(item.get("TimeStart")),
        time_end=_text(item.get("TimeEnd")),
        truck_name=_text(item.get("Truck Name")),
        venue_name=_text(item.get("Venue Name")),
        notes=_text(item.get("Notes")),
    ), None


def render_rule_prompt(source: Source) -> str:
    return RULE_PROMPT.format(instructions=source.instructions, truck_name=source.name)


def render_event_prompt(
    source: Source,
    corpus: str,
    registry: CanonicalRegistry,
    today: date,
) -> str:
    max_chars = int(_settings.EXTRACTION_MAX_CORPUS_CHARS)
    return EVENT_PROMPT.format(
        source_name=source.name,
        today_long=today.strftime("%a %b %d %Y"),
        year=today.year,
        trucks=json.dumps(list(registry.trucks), ensure_ascii=False),
        venues=json.dumps(list(registry.venues), ensure_ascii=False),
        corpus=corpus[:max_chars],
    )


def default_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=int(_settings.GEMINI_MAX_RETRIES),
        delay_sec=float(_settings.GEMINI_RETRY_DELAY_SEC),
        backoff_multiplier=float(_settings.GEMINI_RETRY_BACKOFF_MULTIPLIER),
    )


class ExtractionClient:
    """
    Calls the LLM and validates its JSON against the requested mode.

    ``generate`` takes a prompt and returns the raw response text. Call
    failures and unparsable JSON are both retried under ``retry_policy``.
    """

    def __init__(
        self,
        generate: Callable[[str], str] | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] | None = None,
    ):
        self._generate = generate or generate_content
        self.retry_policy = retry_policy or default_retry_policy()
        self._sleep = sleep

    def _call(self, prompt: str) -> list:
        increment("extraction.calls")
        return parse_json_array(self._generate(prompt))

    def extract(self, mode: ExtractionMode, prompt: str) -> RuleExtraction | EventExtraction:
        kwargs = {"label": f"LLM {mode.value} extraction"}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        try:
            items = self.retry_policy.call(lambda: self._call(prompt), **kwargs)
        except Exception as e:
            record_failure("extraction", str(e), mode=mode.value)
            raise ExtractionError(
                f"{mode.value} extraction failed: {e}",
                attempts=self.retry_policy.max_attempts,
            ) from e

        validate = validate_rule if mode is ExtractionMode.RULES else validate_event
        valid, rejected = [], 0
        for item in items:
            parsed, error = validate(item)
            if parsed is None:
                rejected += 1
                print(f"      Dropping invalid {mode.value[:-1]}: {error}", flush=True)
                continue
            valid.append(parsed)

        if rejected:
            increment(f"extraction.{mode.value}.rejected", rejected)

        if mode is ExtractionMode.RULES:
            return RuleExtraction(rules=valid, rejected=rejected)
        return EventExtraction(events=valid, rejected=rejected)

    def extract_rules(self, source: Source) -> RuleExtraction:
        return self.extract(ExtractionMode.RULES, render_rule_prompt(source))

    def extract_events(
        self,
        source: Source,
        corpus: str,
        registry: CanonicalRegistry,
        today: date,
    ) -> EventExtraction:
        prompt = render_event_prompt(source, corpus, registry, today)
        return self.extract(ExtractionMode.EVENTS, prompt)
