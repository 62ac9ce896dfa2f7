"""Build the source manifest and name registry from the Trucks/Venues tabs."""

import importlib.util
from pathlib import Path

from .models import CanonicalRegistry, Source


def _load_settings():
    """Load settings module directly to avoid circular imports."""
    settings_path = Path(__file__).parent.parent / "settings.py"
    spec = importlib.util.spec_from_file_location("settings", settings_path)
    settings = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(settings)
    return settings


_settings = _load_settings()


def _cell(row: list, index: int) -> str:
    if index < len(row) and row[index] is not None:
        return str(row[index]).strip()
    return ""


def build_registry(truck_rows: list[list], venue_rows: list[list]) -> CanonicalRegistry:
    """Column A of each tab, blanks dropped, order kept."""
    trucks = tuple(n for n in (_cell(r, _settings.TRUCK_NAME_COL) for r in truck_rows) if n)
    venues = tuple(n for n in (_cell(r, _settings.VENUE_NAME_COL) for r in venue_rows) if n)
    return CanonicalRegistry(trucks=trucks, venues=venues)


def build_sources(truck_rows: list[list], venue_rows: list[list]) -> list[Source]:
    """
    Sources to scrape this run.

    A truck qualifies with an http(s) URL or usable schedule notes; truck
    rows with notes but no URL are scraped in rule mode only. A venue
    qualifies only with an http(s) URL.
    """
    sources = []
    min_instructions = int(_settings.MIN_INSTRUCTION_CHARS)

    for row in truck_rows:
        name = _cell(row, _settings.TRUCK_NAME_COL)
        url = _cell(row, _settings.TRUCK_URL_COL)
        instructions = _cell(row, _settings.INSTRUCTIONS_COL)
        has_url = url.startswith("http")
        has_instructions = len(instructions) > min_instructions
        if not name or not (has_url or has_instructions):
            continue
        sources.append(Source(
            name=name,
            url=url if has_url else "about:blank",
            strategy_key=_cell(row, _settings.STRATEGY_COL) or "scroll_lazy",
            instructions=instructions,
            origin="truck",
        ))

    for row in venue_rows:
        name = _cell(row, _settings.VENUE_NAME_COL)
        url = _cell(row, _settings.VENUE_URL_COL)
        if not name or not url.startswith("http"):
            continue
        sources.append(Source(
            name=name,
            url=url,
            strategy_key=_cell(row, _settings.STRATEGY_COL) or "scroll_lazy",
            instructions=_cell(row, _settings.INSTRUCTIONS_COL),
            origin="venue",
        ))

    return sources
