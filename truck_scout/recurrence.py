"""Expand recurrence rules into concrete dates.

Rules come from free-text schedule notes ("every Friday", "last Monday of
the month", "Mon 2nd"). Expansion is deterministic and only looks a fixed
number of days ahead, so re-running it never invents far-future events.
"""

import importlib.util
import math
import re
from datetime import date, datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from .models import RecurrenceRule


def _load_settings():
    """Load settings module directly to avoid circular imports."""
    settings_path = Path(__file__).parent.parent / "settings.py"
    spec = importlib.util.spec_from_file_location("settings", settings_path)
    settings = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(settings)
    return settings


_settings = _load_settings()

WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

ORDINALS = {"1st": 1, "2nd": 2, "3rd": 3, "4th": 4}

# Ordinal weeks only go up to 5, so any larger number must be a day of month.
MAX_ORDINAL = 5


def local_today() -> date:
    """Today in the configured timezone."""
    return datetime.now(ZoneInfo(_settings.TIMEZONE)).date()


def format_date(d: date) -> str:
    return d.strftime("%d/%m/%Y")


def _pos_number(pos: str) -> int | None:
    digits = re.sub(r"\D", "", pos)
    return int(digits) if digits else None


def is_single_occurrence(rule: RecurrenceRule, today: date) -> bool:
    """
    True when ``pos`` names a calendar day ("2nd" meaning the 2nd) rather
    than an ordinal week ("2nd" meaning the second Monday).

    Numbers above 5 are always days. Smaller numbers are days only if that
    day of the current month falls on the rule's weekday.
    """
    target = WEEKDAYS.get(rule.day.strip().lower())
    number = _pos_number(rule.pos or "")
    if number is None or number <= 0:
        return False
    if number > MAX_ORDINAL:
        return True
    probe = today + relativedelta(day=number)
    return probe.weekday() == target


def _monthly_match(day: date, pos: str) -> bool:
    week_of_month = math.ceil(day.day / 7)
    is_last = (day + timedelta(days=7)).month != day.month
    if "last" in pos and is_last:
        return True
    for label, week in ORDINALS.items():
        if label in pos and week_of_month == week:
            return True
    return False


def expand_rule(
    rule: RecurrenceRule,
    today: date | None = None,
    window_days: int | None = None,
) -> list[str]:
    """
    Return DD/MM/YYYY dates for ``rule`` within the window starting today.

    Dates are in ascending order. A single-occurrence rule returns at most
    one date. An unknown weekday name returns an empty list.
    """
    target = WEEKDAYS.get((rule.day or "").strip().lower())
    if target is None:
        return []

    today = today or local_today()
    window = window_days if window_days is not None else _settings.RECURRENCE_WINDOW_DAYS
    pos = (rule.pos or "").strip().lower()
    freq = (rule.freq or "").strip().lower()
    number = _pos_number(pos)
    single = is_single_occurrence(rule, today)

    dates = []
    for offset in range(window):
        day = today + timedelta(days=offset)
        if day.weekday() != target:
            continue

        if single:
            matched = freq in ("weekly", "monthly") and day.day == number
        elif freq == "weekly":
            matched = True
        elif freq == "monthly":
            matched = _monthly_match(day, pos)
        else:
            matched = False

        if matched:
            dates.append(format_date(day))
            if single:
                return dates

    return dates
