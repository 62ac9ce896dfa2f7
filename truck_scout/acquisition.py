"""Content acquisition strategies.

Each source declares how its page should be read. Every strategy takes a
loaded page (see ``browser.PlaywrightPage``) and returns plain text for the
LLM. Strategies never raise: a broken page yields whatever text was
gathered, or an empty string.
"""

from __future__ import annotations

import importlib.util
from enum import Enum
from pathlib import Path

from .observability import increment, record_failure


def _load_settings():
    """Load settings module directly to avoid circular imports."""
    settings_path = Path(__file__).parent.parent / "settings.py"
    spec = importlib.util.spec_from_file_location("settings", settings_path)
    settings = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(settings)
    return settings


_settings = _load_settings()


READ_TEXT_JS = "() => document.body ? document.body.innerText : ''"

# Resolves once scrolled past factor x page height or after max_ms.
SCROLL_JS = """
({step, interval, factor, maxMs}) => new Promise((resolve) => {
    let scrolled = 0;
    const timer = setInterval(() => {
        const height = document.body.scrollHeight;
        window.scrollBy(0, step);
        scrolled += step;
        if (scrolled >= height * factor) { clearInterval(timer); resolve(scrolled); }
    }, interval);
    setTimeout(() => { clearInterval(timer); resolve(scrolled); }, maxMs);
})
"""

# Visible clickable elements, in document order. Both snippets below must
# select the same list so an index from one is valid in the other.
_CLICKABLES_JS = (
    "Array.from(document.querySelectorAll('*')).filter((el) => el.offsetParent"
    " && (el.tagName === 'BUTTON' || el.tagName === 'A'"
    " || el.onclick !== null || el.getAttribute('role') === 'button'))"
)

CONTROL_TEXTS_JS = f"() => {_CLICKABLES_JS}.map((el) => (el.innerText || '').trim())"

CLICK_CONTROL_JS = f"""
(index) => {{
    const el = {_CLICKABLES_JS}[index];
    if (!el) return false;
    el.click();
    return true;
}}
"""

PAGINATION_LABELS = ("more events", "load more", "older entries", "next", ">", "›", "»")
BACKWARD_WORDS = ("prev", "back", "newer")


def is_pagination_label(text: str | None) -> bool:
    """True for a short control label that moves forward through listings."""
    label = (text or "").strip().lower()
    if not label or len(label) > int(_settings.CLICK_NEXT_MAX_LABEL_CHARS):
        return False
    if any(word in label for word in BACKWARD_WORDS):
        return False
    return label in PAGINATION_LABELS


def pick_pagination_control(texts: list[str]) -> int | None:
    """Index of the last forward control in ``texts``, or None."""
    for index in range(len(texts) - 1, -1, -1):
        if is_pagination_label(texts[index]):
            return index
    return None


class Strategy(str, Enum):
    SCROLL_LAZY = "scroll_lazy"
    CLICK_NEXT = "click_next"
    FRAMES = "frames"
    MANUAL = "manual"

    @property
    def acquirer(self) -> "ContentAcquirer":
        return _ACQUIRERS[self]

    @property
    def needs_page(self) -> bool:
        return self is not Strategy.MANUAL


DEFAULT_STRATEGY = Strategy.SCROLL_LAZY


def select_strategy(key: str | None) -> Strategy:
    """Strategy for a sheet key; blank or unknown keys get the default."""
    normalized = (key or "").strip().lower()
    try:
        return Strategy(normalized)
    except ValueError:
        return DEFAULT_STRATEGY


class ContentAcquirer:
    """Reads text from a loaded page. Subclasses implement ``_collect``."""

    name = "base"

    def acquire(self, page) -> str:
        try:
            return self._collect(page) or ""
        except Exception as e:
            increment(f"acquire.{self.name}.errors")
            record_failure("acquire", str(e), strategy=self.name)
            return ""

    def _collect(self, page) -> str:
        raise NotImplementedError


class ScrollLazyAcquirer(ContentAcquirer):
    """Scroll to trigger lazy-loaded listings, then read the page."""

    name = Strategy.SCROLL_LAZY.value

    def _collect(self, page) -> str:
        print("   Strategy: scroll lazy...", flush=True)
        page.evaluate(SCROLL_JS, {
            "step": _settings.SCROLL_STEP_PX,
            "interval": _settings.SCROLL_INTERVAL_MS,
            "factor": _settings.SCROLL_HEIGHT_FACTOR,
            "maxMs": _settings.SCROLL_MAX_MS,
        })
        page.wait(_settings.SCROLL_SETTLE_MS)
        return page.evaluate(READ_TEXT_JS)


class ClickNextAcquirer(ContentAcquirer):
    """Follow "next" / "load more" controls, collecting each page's text."""

    name = Strategy.CLICK_NEXT.value

    def _collect(self, page) -> str:
        print("   Strategy: click next...", flush=True)
        combined = page.evaluate(READ_TEXT_JS) or ""
        for i in range(_settings.CLICK_NEXT_MAX_PAGES):
            try:
                index = pick_pagination_control(page.evaluate(CONTROL_TEXTS_JS) or [])
                if index is None or not page.evaluate(CLICK_CONTROL_JS, index):
                    break
                page.wait(_settings.CLICK_NEXT_WAIT_MS)
                new_text = page.evaluate(READ_TEXT_JS) or ""
            except Exception as e:
                # Keep the pages we already have
                record_failure("acquire", str(e), strategy=self.name, page=i + 2)
                break
            combined += f"\n\n--- PAGE {i + 2} START ---\n{new_text}"
        return combined


class FrameDumpAcquirer(ContentAcquirer):
    """Main document HTML plus the text of every embedded frame."""

    name = Strategy.FRAMES.value

    def _collect(self, page) -> str:
        print("   Strategy: frame dump...", flush=True)
        combined = ""
        try:
            combined += page.content() or ""
        except Exception as e:
            record_failure("acquire", str(e), strategy=self.name, frame="main")

        try:
            frames = page.frames()
        except Exception as e:
            record_failure("acquire", str(e), strategy=self.name, frame="list")
            return combined

        for frame in frames:
            try:
                text = frame.evaluate(READ_TEXT_JS) or ""
            except Exception:
                # Cross-origin and detached frames are expected
                increment("acquire.frames.skipped")
                continue
            if len(text) > _settings.FRAME_MIN_TEXT_CHARS:
                combined += f"\n --- FRAME DATA --- \n{text}\n"
        return combined


class ManualAcquirer(ContentAcquirer):
    """No page at all; the source's schedule notes are the only input."""

    name = Strategy.MANUAL.value

    def _collect(self, page) -> str:
        print("   Strategy: manual (skipping network)...", flush=True)
        return ""


_ACQUIRERS = {
    Strategy.SCROLL_LAZY: ScrollLazyAcquirer(),
    Strategy.CLICK_NEXT: ClickNextAcquirer(),
    Strategy.FRAMES: FrameDumpAcquirer(),
    Strategy.MANUAL: ManualAcquirer(),
}
