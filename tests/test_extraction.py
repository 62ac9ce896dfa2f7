"""
Unit tests for LLM extraction

The LLM is replaced with canned responses; no API calls are made.
"""

import json
from datetime import date

import pytest

from truck_scout.errors import ExtractionError
from truck_scout.extraction import (
    EventExtraction,
    ExtractionClient,
    ExtractionMode,
    RuleExtraction,
    parse_json_array,
    render_event_prompt,
    render_rule_prompt,
    validate_event,
    validate_rule,
)
from truck_scout.models import CanonicalRegistry, RecurrenceRule, Source
from utils.retry import RetryPolicy

SOURCE = Source(name="Cheese Wagon", url="https://cheesewagon.example", instructions="Fridays at The Pub 5pm-9pm")

RULE_JSON = [{
    "venue": "The Pub",
    "proof": "Fridays at The Pub 5pm-9pm",
    "rawTimeStart": "5pm",
    "rawTimeEnd": "9pm",
    "freq": "weekly",
    "day": "Friday",
    "pos": "",
}]

EVENT_JSON = [{
    "DateStart": "15/03/2024",
    "TimeStart": "17:00",
    "TimeEnd": "21:00",
    "Truck Name": "Cheese Wagon",
    "Venue Name": "The Pub",
    "Notes": "",
}]


class Scripted:
    """Returns (or raises) each scripted item in turn."""

    def __init__(self, *outputs):
        self.outputs = list(outputs)
        self.calls = 0

    def __call__(self, prompt):
        self.calls += 1
        out = self.outputs.pop(0)
        if isinstance(out, Exception):
            raise out
        return out


def _client(generate, sleeps=None):
    return ExtractionClient(
        generate=generate,
        retry_policy=RetryPolicy(max_attempts=3, delay_sec=5.0),
        sleep=(sleeps.append if sleeps is not None else (lambda s: None)),
    )


class TestParseJsonArray:
    def test_plain_array(self):
        assert parse_json_array('[{"a": 1}]') == [{"a": 1}]

    def test_markdown_fenced_array(self):
        assert parse_json_array('```json\n[{"a": 1}]\n```') == [{"a": 1}]

    def test_empty_array(self):
        assert parse_json_array("[]") == []

    def test_object_is_rejected(self):
        with pytest.raises(ValueError):
            parse_json_array('{"events": []}')

    def test_garbage_is_rejected(self):
        with pytest.raises(ValueError):
            parse_json_array("Sorry, I could not find any events.")


class TestValidation:
    def test_valid_rule(self):
        rule, error = validate_rule(RULE_JSON[0])
        assert error is None
        assert rule == RecurrenceRule(
            day="friday",
            freq="weekly",
            pos="",
            raw_time_start="5pm",
            raw_time_end="9pm",
            venue="The Pub",
            proof="Fridays at The Pub 5pm-9pm",
        )

    @pytest.mark.parametrize("item,fragment", [
        ("friday", "object"),
        ({"freq": "weekly"}, "day"),
        ({"day": "friday", "freq": "daily"}, "freq"),
    ])
    def test_invalid_rule(self, item, fragment):
        rule, error = validate_rule(item)
        assert rule is None
        assert fragment in error

    def test_valid_event(self):
        event, error = validate_event(EVENT_JSON[0])
        assert error is None
        assert event.truck_name == "Cheese Wagon"
        assert event.date_start == "15/03/2024"

    def test_event_without_date(self):
        event, error = validate_event({"Truck Name": "Cheese Wagon"})
        assert event is None
        assert "DateStart" in error

    def test_null_fields_become_empty(self):
        event, _ = validate_event({"DateStart": "1/2/2024", "Notes": None, "Venue Name": None})
        assert event.notes == ""
        assert event.venue_name == ""


class TestExtractionClient:
    """Test ExtractionClient retry and result variants"""

    def test_rule_mode_returns_rules(self):
        result = _client(Scripted(json.dumps(RULE_JSON))).extract_rules(SOURCE)
        assert isinstance(result, RuleExtraction)
        assert [r.day for r in result.rules] == ["friday"]
        assert result.rejected == 0

    def test_event_mode_returns_events(self):
        result = _client(Scripted(json.dumps(EVENT_JSON))).extract_events(
            SOURCE, "x" * 100, CanonicalRegistry(), date(2024, 3, 15)
        )
        assert isinstance(result, EventExtraction)
        assert [e.venue_name for e in result.events] == ["The Pub"]

    def test_invalid_items_are_dropped_and_counted(self):
        payload = json.dumps(EVENT_JSON + [{"Truck Name": "No Date"}, "junk"])
        result = _client(Scripted(payload)).extract(ExtractionMode.EVENTS, "prompt")
        assert len(result.events) == 1
        assert result.rejected == 2

    def test_transport_error_is_retried(self):
        sleeps = []
        generate = Scripted(RuntimeError("503 unavailable"), json.dumps(RULE_JSON))
        result = _client(generate, sleeps).extract(ExtractionMode.RULES, "prompt")

        assert len(result.rules) == 1
        assert generate.calls == 2
        assert sleeps == [5.0]

    def test_bad_json_is_retried(self):
        sleeps = []
        generate = Scripted("not json", '{"oops": true}', json.dumps(RULE_JSON))
        result = _client(generate, sleeps).extract(ExtractionMode.RULES, "prompt")

        assert len(result.rules) == 1
        assert generate.calls == 3
        assert sleeps == [5.0, 5.0]

    def test_gives_up_after_three_attempts(self):
        sleeps = []
        generate = Scripted(RuntimeError("a"), "nope", RuntimeError("c"), json.dumps(RULE_JSON))

        with pytest.raises(ExtractionError) as exc_info:
            _client(generate, sleeps).extract(ExtractionMode.RULES, "prompt")

        assert generate.calls == 3
        assert sleeps == [5.0, 5.0]
        assert exc_info.value.attempts == 3

    def test_defaults_to_gemini_generate_content(self):
        from utils.llm import generate_content

        assert ExtractionClient()._generate is generate_content

    def test_default_policy_from_settings(self):
        client = ExtractionClient(generate=Scripted())
        assert client.retry_policy.max_attempts == 3
        assert client.retry_policy.delay_for(0) == 5.0
        assert client.retry_policy.delay_for(1) == 5.0


class TestPrompts:
    def test_rule_prompt_carries_instructions_and_name(self):
        prompt = render_rule_prompt(SOURCE)
        assert '"Fridays at The Pub 5pm-9pm"' in prompt
        assert '"Cheese Wagon"' in prompt

    def test_event_prompt_has_date_registry_and_truncated_corpus(self, monkeypatch):
        import truck_scout.extraction as extraction

        monkeypatch.setattr(extraction._settings, "EXTRACTION_MAX_CORPUS_CHARS", 20)
        registry = CanonicalRegistry(trucks=("Cheese Wagon",), venues=("The Pub",))
        prompt = render_event_prompt(SOURCE, "A" * 20 + "TAIL", registry, date(2024, 3, 15))

        assert "Current Year: 2024" in prompt
        assert "Fri Mar 15 2024" in prompt
        assert '["Cheese Wagon"]' in prompt
        assert '["The Pub"]' in prompt
        assert "A" * 20 in prompt
        assert "TAIL" not in prompt
