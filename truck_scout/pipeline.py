"""Main orchestrator for a scrape run.

Reads the registry and existing events, walks every source in order,
extracts candidate events (directly, or by expanding schedule rules),
resolves names, drops duplicates, and appends the new rows once at the end.
"""

import importlib.util
from datetime import date
from pathlib import Path

from .acquisition import Strategy, select_strategy
from .browser import navigation_timeout_ms
from .dedup import EventIndex
from .entity_resolver import EntityResolver, resolve_times
from .errors import ExtractionError, NavigationTimeout
from .extraction import ExtractionClient
from .models import CandidateEvent, CanonicalRegistry, RecurrenceRule, RunReport, Source, SourceResult
from .observability import increment, log_event, record_failure
from .recurrence import expand_rule, local_today
from .sources import build_registry, build_sources


def _load_settings():
    """Load settings module directly to avoid circular imports."""
    settings_path = Path(__file__).parent.parent / "settings.py"
    spec = importlib.util.spec_from_file_location("settings", settings_path)
    settings = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(settings)
    return settings


_settings = _load_settings()


def has_usable_instructions(source: Source) -> bool:
    return len(source.instructions.strip()) > int(_settings.MIN_INSTRUCTION_CHARS)


def is_empty_corpus(corpus: str) -> bool:
    return len(corpus.strip()) < int(_settings.MIN_CORPUS_CHARS)


def acquire_corpus(source: Source, strategy: Strategy, browser) -> str:
    """
    Load the source's page and run its strategy.

    The page is always closed. A navigation timeout is not fatal: the
    strategy still reads whatever has rendered.
    """
    if not strategy.needs_page:
        return strategy.acquirer.acquire(None)

    with browser.open_page() as page:
        try:
            page.navigate(source.url, navigation_timeout_ms(source.url))
        except NavigationTimeout as e:
            increment("navigation.timeouts")
            print(f"   Navigation warning: {e}", flush=True)
        page.wait(int(_settings.NAVIGATION_SETTLE_MS))
        return strategy.acquirer.acquire(page)


def materialize_rules(
    source: Source,
    rules: list[RecurrenceRule],
    today: date,
) -> list[CandidateEvent]:
    """One candidate per date each rule expands to, at the rule's venue."""
    candidates = []
    for rule in rules:
        dates = expand_rule(rule, today=today)
        if not dates:
            print(f"      Rule produced no dates: {rule.proof or rule.day}", flush=True)
            continue
        time_start, time_end = resolve_times(rule.raw_time_start, rule.raw_time_end)
        for event_date in dates:
            candidates.append(CandidateEvent(
                date_start=event_date,
                time_start=time_start,
                time_end=time_end,
                truck_name=source.name,
                venue_name=rule.venue,
            ))
    return candidates


def process_source(
    source: Source,
    *,
    browser,
    extractor: ExtractionClient,
    resolver: EntityResolver,
    index: EventIndex,
    registry: CanonicalRegistry,
    today: date,
) -> SourceResult:
    """Run one source through acquisition, extraction, resolution and dedup."""
    strategy = select_strategy(source.strategy_key)
    result = SourceResult(source_name=source.name, strategy=strategy.value)

    corpus = acquire_corpus(source, strategy, browser)

    if is_empty_corpus(corpus):
        if not has_usable_instructions(source):
            print("   Empty site and no instructions. Skipping.", flush=True)
            result.skipped = True
            result.skip_reason = "no content and no instructions"
            increment("sources.skipped")
            return result

        print("   Empty/manual: parsing schedule rules...", flush=True)
        result.mode = "rules"
        extraction = extractor.extract_rules(source)
        candidates = materialize_rules(source, extraction.rules, today)
    else:
        result.mode = "events"
        print(f"   Sending {len(corpus)} chars to LLM...", flush=True)
        extraction = extractor.extract_events(source, corpus, registry, today)
        candidates = extraction.events

    result.rejected = extraction.rejected
    result.candidates = len(candidates)
    print(f"   Processing {len(candidates)} events...", flush=True)

    for candidate in candidates:
        resolved = resolver.resolve(candidate, source.name)
        if resolved is None:
            result.rejected += 1
            continue
        if resolved.is_new_truck and resolved.truck_name not in result.new_trucks:
            result.new_trucks.append(resolved.truck_name)
        if index.admit(resolved):
            print(
                f"   ADDING: {resolved.truck_name} @ {resolved.venue_name} ({resolved.date_start})",
                flush=True,
            )
            result.accepted.append(resolved)
        else:
            result.duplicates += 1

    print(
        f"   Summary: {len(result.accepted)} new, {result.duplicates} duplicates skipped.",
        flush=True,
    )
    return result


def _select(sources: list[Source], only: list[str] | None, limit: int | None) -> list[Source]:
    if only:
        wanted = {name.strip().lower() for name in only}
        sources = [s for s in sources if s.name.lower() in wanted]
    if limit is not None:
        sources = sources[:limit]
    return sources


def run_scrape(
    store,
    extractor: ExtractionClient,
    browser,
    today: date | None = None,
    dry_run: bool = False,
    only: list[str] | None = None,
    limit: int | None = None,
) -> RunReport:
    """
    Scrape every source and append new events to the store in one write.

    A failing source is recorded on its result and never stops the run.
    """
    today = today or local_today()
    report = RunReport(dry_run=dry_run)

    print("Reading master data...", flush=True)
    truck_rows = store.read_rows(_settings.TRUCKS_TAB)
    venue_rows = store.read_rows(_settings.VENUES_TAB)
    event_rows = store.read_rows(_settings.EVENTS_TAB)

    registry = build_registry(truck_rows, venue_rows)
    index = EventIndex.from_rows(
        event_rows,
        date_col=_settings.EVENT_DATE_COL,
        truck_col=_settings.EVENT_TRUCK_COL,
        venue_col=_settings.EVENT_VENUE_COL,
    )
    report.existing_events = len(index)
    print(f"   Loaded {len(index)} existing unique events.", flush=True)

    resolver = EntityResolver(registry)
    sources = _select(build_sources(truck_rows, venue_rows), only, limit)
    log_event("run_started", sources=len(sources), existing_events=len(index), dry_run=dry_run)

    for position, source in enumerate(sources, start=1):
        print(
            f"\n[{position}/{len(sources)}] Scraping: {source.name} "
            f"({select_strategy(source.strategy_key).value})...",
            flush=True,
        )
        try:
            result = process_source(
                source,
                browser=browser,
                extractor=extractor,
                resolver=resolver,
                index=index,
                registry=registry,
                today=today,
            )
        except ExtractionError as e:
            print(f"   AI failed: {e}", flush=True)
            result = SourceResult(
                source_name=source.name,
                strategy=select_strategy(source.strategy_key).value,
                error=str(e),
            )
        except Exception as e:
            print(f"   Error on {source.name}: {e}", flush=True)
            record_failure("pipeline", str(e), source=source.name)
            result = SourceResult(
                source_name=source.name,
                strategy=select_strategy(source.strategy_key).value,
                error=str(e),
            )

        increment("sources.processed")
        increment("events.accepted", len(result.accepted))
        increment("events.duplicates", result.duplicates)
        report.results.append(result)

    batch = report.batch
    if not batch:
        print("\nNo new events found.", flush=True)
    elif dry_run:
        print(f"\nDry run: {len(batch)} new events not written.", flush=True)
    else:
        print(f"\nAppending {len(batch)} new events...", flush=True)
        report.appended = store.append_events(batch)
        print("Sheet sync complete.", flush=True)

    log_event(
        "run_finished",
        sources=len(report.results),
        accepted=len(batch),
        appended=report.appended,
        duplicates=report.duplicates,
        errors=len(report.errors),
        skipped=len(report.skipped),
    )
    return report
