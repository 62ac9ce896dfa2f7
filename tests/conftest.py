"""
Pytest fixtures for testing

Fakes stand in for the browser, the spreadsheet and the LLM so no test
touches the network.
"""
import json
import sys
from contextlib import contextmanager
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from truck_scout import observability
from truck_scout.acquisition import CLICK_CONTROL_JS, CONTROL_TEXTS_JS, READ_TEXT_JS, SCROLL_JS
from truck_scout.errors import NavigationTimeout


class FakeFrame:
    def __init__(self, text="", error=None):
        self.text = text
        self.error = error

    def evaluate(self, script, arg=None):
        if self.error:
            raise self.error
        return self.text


class FakePage:
    """
    Page provider double.

    ``texts`` are the successive visible texts; each successful pagination
    click moves to the next one. ``controls`` are the labels of the
    page's clickable elements while ``clicks`` clicks remain.
    """

    def __init__(
        self,
        texts=("",),
        clicks=0,
        controls=("Next",),
        html="",
        frames=(),
        frames_error=None,
        nav_error=False,
        evaluate_error=None,
        fail_on_click=None,
    ):
        self.texts = list(texts)
        self.clicks_available = clicks
        self.controls = list(controls)
        self.html = html
        self._frames = list(frames)
        self.frames_error = frames_error
        self.nav_error = nav_error
        self.evaluate_error = evaluate_error
        self.fail_on_click = fail_on_click
        self.current = 0
        self.clicks = 0
        self.clicked = []
        self.scrolls = 0
        self.waits = []
        self.navigations = []
        self.closed = False

    def navigate(self, url, timeout_ms):
        self.navigations.append((url, timeout_ms))
        if self.nav_error:
            raise NavigationTimeout(f"{url} did not load within {timeout_ms}ms")

    def evaluate(self, script, arg=None):
        if self.evaluate_error:
            raise self.evaluate_error
        if script == READ_TEXT_JS:
            return self.texts[min(self.current, len(self.texts) - 1)]
        if script == SCROLL_JS:
            self.scrolls += 1
            return 0
        if script == CONTROL_TEXTS_JS:
            if self.clicks >= self.clicks_available:
                return []
            return list(self.controls)
        if script == CLICK_CONTROL_JS:
            if self.fail_on_click is not None and self.clicks + 1 == self.fail_on_click:
                raise RuntimeError("element detached")
            self.clicked.append(arg)
            self.clicks += 1
            self.current += 1
            return True
        raise AssertionError(f"unexpected script: {script[:40]}")

    def content(self):
        return self.html

    def frames(self):
        if self.frames_error:
            raise self.frames_error
        return self._frames

    def wait(self, ms):
        self.waits.append(ms)

    def close(self):
        self.closed = True


class FakeBrowser:
    """Hands out a configured FakePage per URL and tracks open pages."""

    def __init__(self, pages=None):
        self.pages = pages or {}
        self.opened = []

    @contextmanager
    def open_page(self):
        page = _LazyPage(self)
        self.opened.append(page)
        try:
            yield page
        finally:
            page.close()


class _LazyPage:
    """Binds to the FakePage for a URL on navigate()."""

    def __init__(self, browser):
        self._browser = browser
        self._page = None
        self.closed = False

    def navigate(self, url, timeout_ms):
        self._page = self._browser.pages.get(url) or FakePage()
        self._page.navigate(url, timeout_ms)

    def __getattr__(self, name):
        return getattr(self._page, name)

    def close(self):
        self.closed = True
        if self._page is not None:
            self._page.close()


class FakeStore:
    def __init__(self, trucks=(), venues=(), events=()):
        self.tabs = {
            "Trucks": [list(r) for r in trucks],
            "Venues": [list(r) for r in venues],
            "Events": [list(r) for r in events],
        }
        self.appends = []

    def read_rows(self, tab):
        return [list(r) for r in self.tabs[tab]]

    def append_events(self, events):
        rows = [e.as_row() for e in events]
        self.appends.append(rows)
        self.tabs["Events"].extend(rows)
        return len(rows)


class FakeLLM:
    """
    Returns canned JSON by source name.

    ``responses`` maps a source name to a list, a raw string or an
    exception. The source is read from the prompt header line, since the
    registry lists quote every known name.
    """

    def __init__(self, responses):
        self.responses = responses
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        for name, response in self.responses.items():
            if f'for: "{name}"' in prompt or f'TRUCK NAME: "{name}"' in prompt:
                if isinstance(response, Exception):
                    raise response
                if isinstance(response, str):
                    return response
                return json.dumps(response)
        return "[]"


def truck_row(name, url="", instructions="", strategy=""):
    """Trucks tab row: name in A, URL in E, notes in K, strategy in L."""
    row = [""] * 12
    row[0], row[4], row[10], row[11] = name, url, instructions, strategy
    return row


def venue_row(name, url="", instructions="", strategy=""):
    """Venues tab row: name in A, URL in J, notes in K, strategy in L."""
    row = [""] * 12
    row[0], row[9], row[10], row[11] = name, url, instructions, strategy
    return row


@pytest.fixture(autouse=True)
def clean_observability():
    observability.reset()
    yield
    observability.reset()


@pytest.fixture
def no_sleep():
    calls = []
    return calls.append, calls
