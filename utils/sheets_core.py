"""Shared Google Sheets helpers."""

from __future__ import annotations

from googleapiclient.discovery import build

from .google_auth import get_credentials


def get_sheets_service():
    """Return authenticated Google Sheets service or None."""
    creds = get_credentials()
    if not creds:
        return None
    return build("sheets", "v4", credentials=creds, cache_discovery=False)


def read_values(service, spreadsheet_id: str, range_name: str) -> list[list[str]]:
    """Read a range; missing values come back as an empty list."""
    result = service.spreadsheets().values().get(
        spreadsheetId=spreadsheet_id,
        range=range_name,
    ).execute()
    return result.get("values", [])


def append_values(
    service,
    spreadsheet_id: str,
    range_name: str,
    rows: list[list[str]],
) -> dict:
    """Append rows below the last row of a range, parsed as if typed by a user."""
    return service.spreadsheets().values().append(
        spreadsheetId=spreadsheet_id,
        range=range_name,
        valueInputOption="USER_ENTERED",
        body={"values": rows},
    ).execute()
