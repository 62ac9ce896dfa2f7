"""Playwright browser session and page adapter."""

import importlib.util
from contextlib import contextmanager
from pathlib import Path

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from .errors import NavigationTimeout


def _load_settings():
    """Load settings module directly to avoid circular imports."""
    settings_path = Path(__file__).parent.parent / "settings.py"
    spec = importlib.util.spec_from_file_location("settings", settings_path)
    settings = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(settings)
    return settings


_settings = _load_settings()


def navigation_timeout_ms(url: str) -> int:
    """Plain http sites get a shorter ceiling; they are the ones that hang."""
    if url.lower().startswith("http:"):
        return int(_settings.INSECURE_NAVIGATION_CEILING_MS)
    return int(_settings.NAVIGATION_TIMEOUT_MS)


class PlaywrightPage:
    """The page operations acquisition strategies rely on."""

    def __init__(self, page):
        self._page = page

    def navigate(self, url: str, timeout_ms: int):
        try:
            self._page.goto(url, timeout=timeout_ms, wait_until="domcontentloaded")
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(f"{url} did not load within {timeout_ms}ms") from e
        except PlaywrightError as e:
            raise NavigationTimeout(f"{url}: {e}") from e

    def evaluate(self, script: str, arg=None):
        if arg is None:
            return self._page.evaluate(script)
        return self._page.evaluate(script, arg)

    def content(self) -> str:
        return self._page.content()

    def frames(self) -> list:
        """Embedded frames only; the main frame is covered by content()."""
        main = self._page.main_frame
        return [frame for frame in self._page.frames if frame != main]

    def wait(self, ms: int):
        self._page.wait_for_timeout(ms)

    def close(self):
        self._page.close()


class BrowserSession:
    """One headless Chromium for the whole run; one page open at a time."""

    def __init__(self, context):
        self._context = context

    @contextmanager
    def open_page(self):
        page = PlaywrightPage(self._context.new_page())
        try:
            yield page
        finally:
            try:
                page.close()
            except PlaywrightError as e:
                print(f"    Page close failed: {e}", flush=True)


@contextmanager
def open_browser():
    """Launch Chromium with the scraper's user agent and lax TLS settings."""
    with sync_playwright() as p:
        browser = p.chromium.launch(headless=True, args=list(_settings.BROWSER_ARGS))
        try:
            context = browser.new_context(
                viewport={"width": 1920, "height": 1080},
                user_agent=_settings.BROWSER_USER_AGENT,
                ignore_https_errors=True,
            )
            yield BrowserSession(context)
        finally:
            browser.close()
