"""Decides when and how much market history to pull into the cache.

Three triggers share the same batching rule, the whole universe per call:
game creation pulls the trailing window before the start date, a day advance
pulls one date, and a chart lookup pulls one symbol over a range. Provider
failures are logged and reported as zero records so the caller's flow
(game creation, next day, cron) carries on.
"""

import datetime as dt
import logging
import os
import time
from dataclasses import asdict, dataclass
from typing import Sequence

from sqlalchemy.orm import Session

from .assets import ALL_SYMBOLS
from .cache import estimate_coverage, store_prices
from .dates import subtract_days, today as real_today
from .errors import ExternalApiError, RateLimited
from .marketstack import MarketStackClient

logger = logging.getLogger(__name__)

PREFETCH_HISTORY_DAYS = int(os.environ.get("PREFETCH_HISTORY_DAYS", "30"))
PREFETCH_SAMPLE_SIZE = int(os.environ.get("PREFETCH_SAMPLE_SIZE", "10"))
SKIP_COVERAGE = 0.9


@dataclass
class PrefetchResult:
    success: bool
    records_stored: int
    strategy: str  # full, skip, single_day, symbol, daily
    message: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def history_window(start_date: dt.date, days: int = PREFETCH_HISTORY_DAYS) -> tuple[dt.date, dt.date]:
    return subtract_days(start_date, days), start_date


def _fetch_and_store(
    db: Session,
    client: MarketStackClient,
    symbols: Sequence[str],
    date_from: dt.date,
    date_to: dt.date,
) -> int:
    quotes = client.batch_fetch_eod(list(symbols), date_from, date_to)
    if not quotes:
        return 0
    return store_prices(db, quotes)


def prefetch_game_data(
    db: Session,
    client: MarketStackClient,
    start_date: dt.date,
    universe: Sequence[str] | None = None,
) -> PrefetchResult:
    symbols = list(universe) if universe is not None else ALL_SYMBOLS
    date_from, date_to = history_window(start_date)
    logger.info("Prefetch: %d symbols from %s to %s", len(symbols), date_from, date_to)

    started = time.monotonic()
    try:
        stored = _fetch_and_store(db, client, symbols, date_from, date_to)
    except (RateLimited, ExternalApiError) as exc:
        logger.error("Prefetch failed for window ending %s: %s", start_date, exc)
        return PrefetchResult(success=False, records_stored=0, strategy="full", error=str(exc))
    elapsed_ms = int((time.monotonic() - started) * 1000)

    if stored == 0:
        logger.warning("Prefetch: no data returned for %s to %s", date_from, date_to)
        return PrefetchResult(
            success=False,
            records_stored=0,
            strategy="full",
            error="No data available for this period",
        )

    logger.info("Prefetch: stored %d historical records in %dms", stored, elapsed_ms)
    return PrefetchResult(
        success=True,
        records_stored=stored,
        strategy="full",
        message=f"Prefetched {stored} records for {PREFETCH_HISTORY_DAYS}-day history",
    )


def smart_prefetch(
    db: Session,
    client: MarketStackClient,
    start_date: dt.date,
    universe: Sequence[str] | None = None,
    sample_size: int = PREFETCH_SAMPLE_SIZE,
) -> PrefetchResult:
    """Skip the full prefetch when a sample of the universe is already cached."""
    symbols = list(universe) if universe is not None else ALL_SYMBOLS
    date_from, date_to = history_window(start_date)
    coverage = estimate_coverage(db, date_from, date_to, symbols[:sample_size])
    logger.info("Prefetch: cache coverage %.1f%% for %s to %s", coverage * 100, date_from, date_to)

    if coverage >= SKIP_COVERAGE:
        return PrefetchResult(
            success=True,
            records_stored=0,
            strategy="skip",
            message=f"Cache already has {coverage * 100:.0f}% coverage",
        )
    return prefetch_game_data(db, client, start_date, symbols)


def prefetch_single_day(
    db: Session,
    client: MarketStackClient,
    day: dt.date,
    universe: Sequence[str] | None = None,
) -> int:
    symbols = list(universe) if universe is not None else ALL_SYMBOLS
    try:
        stored = _fetch_and_store(db, client, symbols, day, day)
    except (RateLimited, ExternalApiError) as exc:
        logger.error("Prefetch: fetching %s failed: %s", day, exc)
        return 0
    if stored == 0:
        logger.warning("Prefetch: no data available for %s", day)
    else:
        logger.info("Prefetch: stored %d records for %s", stored, day)
    return stored


def prefetch_symbol_history(
    db: Session,
    client: MarketStackClient,
    symbol: str,
    start: dt.date,
    end: dt.date | None = None,
) -> int:
    end = end or real_today()
    try:
        stored = _fetch_and_store(db, client, [symbol], start, end)
    except (RateLimited, ExternalApiError) as exc:
        logger.error("Prefetch: history for %s failed: %s", symbol, exc)
        return 0
    if stored == 0:
        logger.warning("Prefetch: no data for %s", symbol)
    return stored


def daily_prefetch_update(
    db: Session,
    client: MarketStackClient,
    universe: Sequence[str] | None = None,
    today: dt.date | None = None,
) -> PrefetchResult:
    """Cron refresh of yesterday and today for the whole universe."""
    symbols = list(universe) if universe is not None else ALL_SYMBOLS
    day = today or real_today()
    yesterday = subtract_days(day, 1)
    try:
        stored = _fetch_and_store(db, client, symbols, yesterday, day)
    except (RateLimited, ExternalApiError) as exc:
        logger.error("Daily update failed: %s", exc)
        return PrefetchResult(success=False, records_stored=0, strategy="daily", error=str(exc))

    logger.info("Daily update: added %d records", stored)
    return PrefetchResult(
        success=True,
        records_stored=stored,
        strategy="daily",
        message=f"Daily update: {stored} records",
    )
