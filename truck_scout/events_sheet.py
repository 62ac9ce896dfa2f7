"""Google Sheets storage for trucks, venues and events."""

import importlib.util
from pathlib import Path

from utils.config import get_spreadsheet_id, require
from utils.sheets_core import append_values, get_sheets_service, read_values

from .errors import ConfigurationError
from .models import ResolvedEvent


def _load_settings():
    """Load settings module directly to avoid circular imports."""
    settings_path = Path(__file__).parent.parent / "settings.py"
    spec = importlib.util.spec_from_file_location("settings", settings_path)
    settings = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(settings)
    return settings


_settings = _load_settings()


class SheetStore:
    """The spreadsheet holding the Trucks, Venues and Events tabs."""

    def __init__(self, service, spreadsheet_id: str):
        self.service = service
        self.spreadsheet_id = spreadsheet_id

    @classmethod
    def from_config(cls) -> "SheetStore":
        """Authenticate and open the configured spreadsheet, or fail fast."""
        spreadsheet_id = require(get_spreadsheet_id(), "Spreadsheet ID")
        service = get_sheets_service()
        if not service:
            raise ConfigurationError(
                "Google credentials not found. Set GOOGLE_SHEETS_CREDENTIALS / "
                "GOOGLE_APPLICATION_CREDENTIALS or run: truck-scout auth"
            )
        return cls(service, spreadsheet_id)

    def read_rows(self, tab: str) -> list[list[str]]:
        """Data rows of a tab (header skipped)."""
        return read_values(
            self.service,
            self.spreadsheet_id,
            f"{tab}!{_settings.SHEET_READ_RANGE}",
        )

    def append_rows(self, tab: str, rows: list[list[str]]) -> dict:
        if not rows:
            return {}
        return append_values(
            self.service,
            self.spreadsheet_id,
            f"{tab}!{_settings.EVENTS_APPEND_RANGE}",
            rows,
        )

    def append_events(self, events: list[ResolvedEvent]) -> int:
        """Append events to the Events tab in one request. Returns rows written."""
        rows = [event.as_row() for event in events]
        if not rows:
            return 0
        self.append_rows(_settings.EVENTS_TAB, rows)
        return len(rows)
