"""
Availability pull: one call per user, fanned out per connected provider.

Per provider (independent, in its own thread and DB session):
  cache gateway -> on miss, adapter fetch under a deadline -> dedupe -> daily summaries
  + capacity buckets -> persist -> cleanup (skipped in update mode, everything skipped in dry run).
A provider's failure is captured into sources[name].errors and never aborts the others.
Results are merged in configured order once every provider has finished.

Pulls for the same (user, source) are serialized with a process-wide lock so cleanup
never races another pull's writes.
"""
import logging
import threading
import weakref
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy.orm import Session

from chairtime.config import settings
from chairtime.core.constants import NO_SOURCES_CONNECTED
from chairtime.core.errors import AvailabilityError, ProviderTimeoutError, format_error_message
from chairtime.core.times import as_utc
from chairtime.db.session import SessionLocal
from chairtime.services.availability import store
from chairtime.services.availability.buckets import build_capacity_buckets, build_hourly_buckets
from chairtime.services.availability.cache import get_cached_availability
from chairtime.services.availability.dedupe import dedupe_slots
from chairtime.services.availability.pricing import resolve_default_service, resolve_haircut_fallback_price
from chairtime.services.availability.slot_length import resolve_slot_length
from chairtime.services.availability.summaries import build_daily_summaries
from chairtime.services.availability.types import (
    AvailabilityPullResult,
    PullOptions,
    SourceConfig,
    SourcePullResult,
    SourceResult,
)
from chairtime.services.availability.window import resolve_week_range
from chairtime.services.providers import get_adapter, list_adapters
from chairtime.services.providers.types import DateRange, ProviderContext, Slot

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]

# Entries disappear once no pull holds or waits on the lock
_source_locks: "weakref.WeakValueDictionary[tuple[str, str], threading.Lock]" = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


def _source_lock(user_id: str, source: str) -> threading.Lock:
    with _locks_guard:
        lock = _source_locks.get((user_id, source))
        if lock is None:
            lock = _source_locks[(user_id, source)] = threading.Lock()
        return lock


def fetch_with_deadline(src: SourceConfig, date_range: DateRange, timeout: float | None = None) -> list[Slot]:
    """
    Adapter call bounded by the per-provider timeout; expiry is that provider's error.

    Each call gets its own worker, so the clock starts when the adapter does and a hung
    provider only ever occupies its own thread. On timeout the worker is abandoned, not joined.
    """
    timeout = settings.provider_timeout_seconds if timeout is None else timeout
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"availability_fetch_{src.name}")
    try:
        future = executor.submit(src.adapter.fetch_availability_slots, src.ctx, date_range)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as e:
            raise ProviderTimeoutError(src.name, f"Timed out after {timeout:g}s") from e
    finally:
        executor.shutdown(wait=False)


def build_source_configs(db: Session, user_id: str, adapters: list[Any] | None = None) -> list[SourceConfig]:
    """Adapters with a stored connection for this user, in adapter order."""
    if adapters is None:
        adapters = [get_adapter(name) for name in list_adapters()]
    connections = store.get_connections(db, user_id)
    profile = store.get_profile(db, user_id)
    calendar = profile.calendar if profile else None
    configs = []
    for adapter in adapters:
        conn = connections.get(adapter.name)
        if conn is None:
            continue
        ctx = ProviderContext(user_id=user_id, access_token=conn.access_token.strip(), calendar=calendar)
        configs.append(SourceConfig(adapter=adapter, ctx=ctx))
    return configs


def summarize_source(
    source: str, slots: list[Slot], *, slot_length: int, fetched_at: datetime, cache_hit: bool
) -> SourcePullResult:
    """Pure in-memory part of a provider pull: runs the same way on fresh and cached slots."""
    deduped = dedupe_slots(slots)
    default_service = resolve_default_service(deduped)
    fallback_price = resolve_haircut_fallback_price(deduped) or default_service.price
    return SourcePullResult(
        source=source,
        slots=deduped,
        summaries=build_daily_summaries(
            deduped, slot_length=slot_length, fetched_at=fetched_at, fallback_price=fallback_price
        ),
        capacity_buckets=build_capacity_buckets(deduped),
        fetched_at=fetched_at,
        cache_hit=cache_hit,
        default_service=default_service.to_dict(),
    )


def persist_source(
    db: Session, user_id: str, result: SourcePullResult, date_range: DateRange, options: PullOptions
) -> None:
    if options.update_mode:
        store.patch_summary_counters(db, result.summaries)
        return
    store.upsert_slots(db, result.slots)
    store.upsert_summaries(db, result.summaries)
    store.commit(db)
    store.cleanup_availability(db, user_id, result.source, date_range, result.fetched_at)


def pull_source(
    session_factory: SessionFactory,
    src: SourceConfig,
    date_range: DateRange,
    *,
    slot_length: int,
    fetched_at: datetime,
    options: PullOptions,
) -> SourcePullResult:
    user_id = src.ctx.user_id
    with _source_lock(user_id, src.name):
        db = session_factory()
        try:
            if not options.force_refresh:
                cached = get_cached_availability(db, user_id, src.name, date_range, now=fetched_at)
                if cached is not None:
                    logger.debug("Availability cache hit user=%s source=%s", user_id, src.name)
                    return summarize_source(
                        src.name, cached.slots, slot_length=slot_length, fetched_at=cached.fetched_at, cache_hit=True
                    )

            raw = fetch_with_deadline(src, date_range)
            stamped = [s.with_fetched_at(fetched_at) for s in raw if s.slot_date in date_range]
            result = summarize_source(src.name, stamped, slot_length=slot_length, fetched_at=fetched_at, cache_hit=False)
            if not options.dry_run:
                persist_source(db, user_id, result, date_range, options)
            return result
        finally:
            db.close()


def pull_availability(
    user_id: str,
    options: PullOptions | None = None,
    *,
    session_factory: SessionFactory = SessionLocal,
    adapters: list[Any] | None = None,
    now: datetime | None = None,
) -> AvailabilityPullResult:
    """
    Pull one business week of availability for a user across every connected provider.
    Provider failures are reported in the result; only window, source lookup or slot-length
    failures raise.
    """
    options = options or PullOptions()
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    date_range = resolve_week_range(options.week_offset, now=now)

    db = session_factory()
    try:
        sources = build_source_configs(db, user_id, adapters)
        slot_length = resolve_slot_length(db, user_id, sources)
    finally:
        db.close()

    outcomes: list[tuple[SourceConfig, SourcePullResult | Exception]] = []
    if sources:
        workers = min(len(sources), settings.max_concurrent_sources)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="availability_source") as pool:
            futures = [
                (
                    src,
                    pool.submit(
                        pull_source,
                        session_factory,
                        src,
                        date_range,
                        slot_length=slot_length,
                        fetched_at=now,
                        options=options,
                    ),
                )
                for src in sources
            ]
            for src, future in futures:
                try:
                    outcomes.append((src, future.result()))
                except Exception as e:
                    if isinstance(e, AvailabilityError):
                        logger.warning("Availability pull failed user=%s source=%s: %s", user_id, src.name, e)
                    else:
                        logger.warning("Availability pull failed user=%s source=%s", user_id, src.name, exc_info=True)
                    outcomes.append((src, e))

    result = merge_source_results(outcomes, date_range=date_range, slot_length=slot_length, now=now)
    logger.info(
        "Availability pull user=%s week=%s..%s: %s slots, %s days, cache_hit=%s, errors=%s",
        user_id,
        date_range.start_date,
        date_range.end_date,
        result.total_slots,
        len(result.summaries),
        result.cache_hit,
        len(result.errors),
    )
    return result


def merge_source_results(
    outcomes: list[tuple[SourceConfig, SourcePullResult | Exception]],
    *,
    date_range: DateRange,
    slot_length: int,
    now: datetime,
) -> AvailabilityPullResult:
    slots: list[Slot] = []
    summaries = []
    capacity = []
    sources: dict[str, SourceResult] = {}
    errors: list[str] = []
    cache_hits: list[bool] = []
    fetched_ats: list[datetime] = []

    for src, outcome in outcomes:
        if isinstance(outcome, Exception):
            message = format_error_message(outcome)
            errors.append(f"{src.name.capitalize()}: {message}")
            sources[src.name] = SourceResult(errors=[message])
            continue
        slots.extend(outcome.slots)
        summaries.extend(outcome.summaries)
        capacity.extend(outcome.capacity_buckets)
        cache_hits.append(outcome.cache_hit)
        fetched_ats.append(outcome.fetched_at)
        sources[src.name] = SourceResult(
            slot_count=len(outcome.slots),
            day_count=len(outcome.summaries),
            estimated_revenue=round(sum(s.estimated_revenue for s in outcome.summaries), 2),
            fetched_at=outcome.fetched_at,
            cache_hit=outcome.cache_hit,
            default_service=outcome.default_service,
        )

    success = not errors
    if not outcomes:
        errors.append(NO_SOURCES_CONNECTED)

    return AvailabilityPullResult(
        success=success,
        fetched_at=max(fetched_ats) if fetched_ats else now,
        cache_hit=bool(cache_hits) and all(cache_hits),
        range=date_range,
        slot_length_minutes=slot_length,
        slots=slots,
        summaries=summaries,
        hourly_buckets=build_hourly_buckets(slots),
        capacity_buckets=capacity,
        sources=sources,
        errors=errors,
    )
