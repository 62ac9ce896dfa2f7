"""
Unit tests for content acquisition strategies
"""

import pytest

from conftest import FakeFrame, FakePage
from truck_scout.acquisition import (
    DEFAULT_STRATEGY,
    PAGINATION_LABELS,
    ClickNextAcquirer,
    FrameDumpAcquirer,
    ManualAcquirer,
    ScrollLazyAcquirer,
    Strategy,
    is_pagination_label,
    pick_pagination_control,
    select_strategy,
)
from truck_scout.observability import snapshot


class TestSelectStrategy:
    """Test select_strategy function"""

    @pytest.mark.parametrize("key,expected", [
        ("scroll_lazy", Strategy.SCROLL_LAZY),
        ("click_next", Strategy.CLICK_NEXT),
        ("frames", Strategy.FRAMES),
        ("manual", Strategy.MANUAL),
        (" Click_Next ", Strategy.CLICK_NEXT),
        ("MANUAL", Strategy.MANUAL),
    ])
    def test_known_keys(self, key, expected):
        assert select_strategy(key) is expected

    @pytest.mark.parametrize("key", [None, "", "default", "infinite_scroll"])
    def test_unknown_keys_fall_back_to_default(self, key):
        assert select_strategy(key) is DEFAULT_STRATEGY is Strategy.SCROLL_LAZY

    def test_each_strategy_has_an_acquirer(self):
        assert isinstance(Strategy.SCROLL_LAZY.acquirer, ScrollLazyAcquirer)
        assert isinstance(Strategy.CLICK_NEXT.acquirer, ClickNextAcquirer)
        assert isinstance(Strategy.FRAMES.acquirer, FrameDumpAcquirer)
        assert isinstance(Strategy.MANUAL.acquirer, ManualAcquirer)

    def test_only_manual_skips_the_page(self):
        assert not Strategy.MANUAL.needs_page
        assert all(s.needs_page for s in Strategy if s is not Strategy.MANUAL)


class TestScrollLazy:
    def test_scrolls_settles_and_reads(self):
        page = FakePage(texts=["Friday 5pm Cheese Wagon"])
        text = ScrollLazyAcquirer().acquire(page)

        assert text == "Friday 5pm Cheese Wagon"
        assert page.scrolls == 1
        assert page.waits == [3000]

    def test_failure_returns_empty_text(self):
        page = FakePage(evaluate_error=RuntimeError("page crashed"))
        assert ScrollLazyAcquirer().acquire(page) == ""
        assert snapshot()["counters"]["acquire.failures"] == 1


class TestPaginationLabels:
    """Test is_pagination_label and pick_pagination_control"""

    @pytest.mark.parametrize("text", ["Load More", "  next ", "More Events", "Older entries", ">", "›", "»"])
    def test_forward_labels(self, text):
        assert is_pagination_label(text)

    @pytest.mark.parametrize("text", [
        "« previous",
        "back to top",
        "newer entries",
        "next page",
        "Home",
        "",
        None,
    ])
    def test_other_labels(self, text):
        assert not is_pagination_label(text)

    def test_label_length_cap(self, monkeypatch):
        import truck_scout.acquisition as acquisition

        long_label = "n" * 51
        monkeypatch.setattr(acquisition, "PAGINATION_LABELS", PAGINATION_LABELS + (long_label,))
        assert not is_pagination_label(long_label)
        assert is_pagination_label("next")

    def test_backward_words_win_over_labels(self, monkeypatch):
        import truck_scout.acquisition as acquisition

        monkeypatch.setattr(acquisition, "PAGINATION_LABELS", PAGINATION_LABELS + ("go back",))
        assert not is_pagination_label("go back")

    def test_last_match_is_chosen(self):
        texts = ["Home", "Next", "Events", "Load more", "« Prev", "Contact"]
        assert pick_pagination_control(texts) == 3

    def test_no_match(self):
        assert pick_pagination_control(["Home", "« Previous", "Back"]) is None
        assert pick_pagination_control([]) is None


class TestClickNext:
    def test_clicks_the_last_forward_control(self):
        page = FakePage(
            texts=["page one", "page two"],
            clicks=1,
            controls=["Previous", "Next", "Back", "Load more", "About"],
        )
        text = ClickNextAcquirer().acquire(page)

        assert page.clicked == [3]
        assert text.endswith("--- PAGE 2 START ---\npage two")

    def test_no_forward_control_means_no_click(self):
        page = FakePage(texts=["only page"], clicks=3, controls=["« previous", "back to top", "newer entries"])
        assert ClickNextAcquirer().acquire(page) == "only page"
        assert page.clicked == []

    def test_collects_each_page(self):
        page = FakePage(texts=["page one", "page two", "page three"], clicks=2)
        text = ClickNextAcquirer().acquire(page)

        assert text == (
            "page one"
            "\n\n--- PAGE 2 START ---\npage two"
            "\n\n--- PAGE 3 START ---\npage three"
        )
        assert page.waits == [5000, 5000]

    def test_stops_when_no_control_found(self):
        page = FakePage(texts=["only page"], clicks=0)
        assert ClickNextAcquirer().acquire(page) == "only page"

    def test_at_most_four_clicks(self):
        page = FakePage(texts=[f"p{i}" for i in range(10)], clicks=10)
        text = ClickNextAcquirer().acquire(page)

        assert page.clicks == 4
        assert "--- PAGE 5 START ---\np4" in text
        assert "PAGE 6" not in text

    def test_keeps_text_gathered_before_a_failure(self):
        page = FakePage(texts=["first", "second", "third"], clicks=5, fail_on_click=2)
        text = ClickNextAcquirer().acquire(page)

        assert text == "first\n\n--- PAGE 2 START ---\nsecond"

    def test_initial_read_failure_returns_empty(self):
        page = FakePage(evaluate_error=RuntimeError("detached"))
        assert ClickNextAcquirer().acquire(page) == ""


class TestFrameDump:
    def test_main_html_plus_frame_text(self):
        long_text = "Saturday 14th - Cheese Wagon at the Railway Tavern from 5pm"
        page = FakePage(
            html="<html><body>Main</body></html>",
            frames=[
                FakeFrame(long_text),
                FakeFrame(error=RuntimeError("cross-origin")),
                FakeFrame("too short"),
            ],
        )
        text = FrameDumpAcquirer().acquire(page)

        assert text.startswith("<html><body>Main</body></html>")
        assert text.count("--- FRAME DATA ---") == 1
        assert long_text in text
        assert "too short" not in text
        assert snapshot()["counters"]["acquire.frames.skipped"] == 1

    def test_frame_listing_failure_keeps_main_html(self):
        page = FakePage(html="<p>Cheese Wagon, Friday 5pm</p>", frames_error=RuntimeError("target closed"))
        assert FrameDumpAcquirer().acquire(page) == "<p>Cheese Wagon, Friday 5pm</p>"
        assert snapshot()["counters"]["acquire.failures"] == 1

    def test_no_frames(self):
        page = FakePage(html="<p>hello</p>")
        assert FrameDumpAcquirer().acquire(page) == "<p>hello</p>"


class TestManual:
    def test_returns_empty_without_touching_the_page(self):
        assert ManualAcquirer().acquire(None) == ""
