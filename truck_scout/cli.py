#!/usr/bin/env python3
"""CLI entry point for the food truck event scraper.

Usage:
    # Scrape every source and append new events
    python -m truck_scout.cli run

    # Scrape without writing to the sheet
    python -m truck_scout.cli run --dry-run

    # Scrape named sources only
    python -m truck_scout.cli run --only "Cheese Wagon" "The Railway Tavern"

    # Show the source manifest
    python -m truck_scout.cli sources

    # Try a recurrence rule
    python -m truck_scout.cli expand --day friday --freq monthly --pos last

    # Try the time parser
    python -m truck_scout.cli parse-time "7ish"

    # Set up Google authentication
    python -m truck_scout.cli auth
"""

import argparse
import importlib.util
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from truck_scout.acquisition import select_strategy
from truck_scout.errors import ConfigurationError
from truck_scout.models import RecurrenceRule
from truck_scout.observability import reset, snapshot
from truck_scout.recurrence import expand_rule
from truck_scout.time_parser import parse_time


def _load_settings():
    """Load settings module directly to avoid circular imports."""
    settings_path = Path(__file__).parent.parent / "settings.py"
    spec = importlib.util.spec_from_file_location("settings", settings_path)
    settings = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(settings)
    return settings


_settings = _load_settings()


def _print_report(report):
    print()
    print("=" * 60)
    print(f"Sources processed: {len(report.results)}")
    print(f"Existing events:   {report.existing_events}")
    print(f"New events:        {len(report.batch)}")
    print(f"Duplicates:        {report.duplicates}")
    print(f"Appended:          {report.appended}{' (dry run)' if report.dry_run else ''}")

    if report.skipped:
        print(f"\nSkipped ({len(report.skipped)}):")
        for r in report.skipped:
            print(f"  - {r.source_name}: {r.skip_reason}")

    if report.errors:
        print(f"\nErrors ({len(report.errors)}):")
        for r in report.errors:
            print(f"  - {r.source_name}: {r.error}")

    new_trucks = sorted({t for r in report.results for t in r.new_trucks})
    if new_trucks:
        print(f"\nNew trucks to review ({len(new_trucks)}):")
        for name in new_trucks:
            print(f"  - {name}")
    print("=" * 60)


def cmd_run(args):
    """Scrape all sources and append new events."""
    from truck_scout.browser import open_browser
    from truck_scout.events_sheet import SheetStore
    from truck_scout.extraction import ExtractionClient
    from truck_scout.pipeline import run_scrape
    from utils.config import get_gemini_api_key, require

    print("Starting scrape (strict deduplication)...")
    reset()

    # Fail before any source is touched
    require(get_gemini_api_key(), "Gemini API key")
    store = SheetStore.from_config()

    with open_browser() as browser:
        report = run_scrape(
            store,
            ExtractionClient(),
            browser,
            dry_run=args.dry_run,
            only=args.only,
            limit=args.limit,
        )

    _print_report(report)
    if args.stats:
        print(json.dumps(snapshot()["counters"], indent=2, sort_keys=True))


def cmd_sources(args):
    """List the sources the next run would scrape."""
    from truck_scout.events_sheet import SheetStore
    from truck_scout.sources import build_registry, build_sources

    store = SheetStore.from_config()
    truck_rows = store.read_rows(_settings.TRUCKS_TAB)
    venue_rows = store.read_rows(_settings.VENUES_TAB)
    registry = build_registry(truck_rows, venue_rows)
    sources = build_sources(truck_rows, venue_rows)

    print(f"Registry: {len(registry.trucks)} trucks, {len(registry.venues)} venues")
    print(f"Sources:  {len(sources)}\n")
    for source in sources:
        strategy = select_strategy(source.strategy_key).value
        notes = " [notes]" if source.instructions else ""
        print(f"  {source.origin:5}  {strategy:11}  {source.name}  {source.url}{notes}")


def cmd_expand(args):
    """Print the dates a rule expands to."""
    rule = RecurrenceRule(day=args.day, freq=args.freq, pos=args.pos or "")
    dates = expand_rule(rule)
    if not dates:
        print("No dates in the window.")
        return
    for d in dates:
        print(d)


def cmd_parse_time(args):
    """Print the canonical form of a raw time string."""
    parsed = parse_time(args.text)
    print(parsed if parsed is not None else "(unparsable)")


def cmd_auth(args):
    """Interactive Google authentication."""
    from utils.google_auth import setup_auth

    if not setup_auth():
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Food truck event scraper")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Scrape all sources and append new events")
    run.add_argument("--dry-run", action="store_true", help="Do not write to the sheet")
    run.add_argument("--only", nargs="+", metavar="NAME", help="Only scrape these source names")
    run.add_argument("--limit", type=int, help="Scrape at most N sources")
    run.add_argument("--stats", action="store_true", help="Print run counters as JSON")
    run.set_defaults(func=cmd_run)

    sources = sub.add_parser("sources", help="List sources from the Trucks/Venues tabs")
    sources.set_defaults(func=cmd_sources)

    expand = sub.add_parser("expand", help="Expand a recurrence rule into dates")
    expand.add_argument("--day", required=True, help="Weekday name, e.g. friday")
    expand.add_argument("--freq", required=True, choices=["weekly", "monthly"])
    expand.add_argument("--pos", default="", help='"1st".."4th", "last", or a day of month')
    expand.set_defaults(func=cmd_expand)

    parse = sub.add_parser("parse-time", help="Parse a loose time string")
    parse.add_argument("text")
    parse.set_defaults(func=cmd_parse_time)

    auth = sub.add_parser("auth", help="Set up Google authentication")
    auth.set_defaults(func=cmd_auth)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
