"""Google OAuth2 / service account authentication for the Sheets API."""

import json
import os
from pathlib import Path

from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

# Paths for credentials
_CONFIG_DIR = Path(__file__).parent.parent / "config"
_CREDENTIALS_FILE = _CONFIG_DIR / "google_credentials.json"
_TOKEN_FILE = _CONFIG_DIR / "google_token.json"


def _service_account_credentials():
    """Service account from inline JSON or a key file path, if configured."""
    inline = os.environ.get("GOOGLE_SHEETS_CREDENTIALS", "").strip()
    if inline:
        return service_account.Credentials.from_service_account_info(
            json.loads(inline), scopes=SCOPES
        )

    sa_env = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS", "")
    if sa_env:
        sa_path = Path(sa_env)
        if sa_path.exists():
            return service_account.Credentials.from_service_account_file(
                str(sa_path), scopes=SCOPES
            )
    return None


def get_credentials(interactive: bool = False):
    """
    Get valid Google credentials.

    Service accounts (scheduled runs) win over the OAuth desktop token.
    The browser consent flow only runs when ``interactive`` is set.
    """
    sa_creds = _service_account_credentials()
    if sa_creds is not None:
        return sa_creds

    creds = None
    if _TOKEN_FILE.exists():
        creds = Credentials.from_authorized_user_file(str(_TOKEN_FILE), SCOPES)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except Exception as e:
            print(f"Token refresh failed: {e}")
            creds = None

    if not creds:
        if not interactive or not _CREDENTIALS_FILE.exists():
            return None
        flow = InstalledAppFlow.from_client_secrets_file(str(_CREDENTIALS_FILE), SCOPES)
        creds = flow.run_local_server(port=0)

    # Save token for future use
    _CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with open(_TOKEN_FILE, "w") as token:
        token.write(creds.to_json())

    return creds


def setup_auth() -> bool:
    """Interactive setup for Google authentication."""
    print("Setting up Google Sheets authentication...")
    print()

    if not _CREDENTIALS_FILE.exists():
        print("Download OAuth credentials first:")
        print("  1. Go to https://console.cloud.google.com/apis/credentials")
        print("  2. Create an OAuth 2.0 Client ID (Desktop app)")
        print("  3. Download the JSON file")
        print(f"  4. Save it as: {_CREDENTIALS_FILE}")
        return False

    print("A browser window will open for you to authorize access...")
    creds = get_credentials(interactive=True)
    if creds:
        print("\nGoogle authentication successful!")
        return True
    print("\nGoogle authentication failed.")
    return False


if __name__ == "__main__":
    setup_auth()
