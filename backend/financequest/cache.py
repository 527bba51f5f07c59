"""Durable (symbol, date) -> EOD bar cache.

Rows are append-only: a second write for the same key is ignored, so the first
value fetched for a day stays authoritative. Read-through helpers at the bottom
fall back to the provider on a miss and degrade to "no price" when it fails.
"""

import datetime as dt
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from .dates import business_days_between
from .errors import ExternalApiError, RateLimited
from .marketstack import EodQuote, MarketStackClient
from .models import MarketDataCache

logger = logging.getLogger(__name__)

COVERAGE_THRESHOLD = 0.9
BYTES_PER_RECORD = 150
INSERT_CHUNK_SIZE = 500


@dataclass
class CacheStats:
    unique_symbols: int
    total_records: int
    oldest_date: dt.date | None
    newest_date: dt.date | None
    estimated_size_bytes: int

    @property
    def estimated_size_mb(self) -> float:
        return round(self.estimated_size_bytes / 1_000_000, 3)


def get_cached_price(db: Session, symbol: str, day: dt.date) -> Decimal | None:
    row = db.get(MarketDataCache, (symbol, day))
    if row is None:
        logger.debug("Cache MISS: %s @ %s", symbol, day)
        return None
    logger.debug("Cache HIT: %s @ %s = %s", symbol, day, row.close)
    return Decimal(str(row.close))


def get_cached_prices(db: Session, symbols: Iterable[str], day: dt.date) -> dict[str, Decimal]:
    """Closes for the cached subset of `symbols`. Absent keys are misses."""
    wanted = sorted(set(symbols))
    if not wanted:
        return {}
    rows = db.execute(
        select(MarketDataCache.symbol, MarketDataCache.close).where(
            MarketDataCache.date == day,
            MarketDataCache.symbol.in_(wanted),
        )
    ).all()
    prices = {symbol: Decimal(str(close)) for symbol, close in rows}
    logger.debug("Cache: found %d/%d prices for %s", len(prices), len(wanted), day)
    return prices


def get_cached_range(db: Session, symbol: str, date_from: dt.date, date_to: dt.date) -> list[MarketDataCache]:
    return list(
        db.execute(
            select(MarketDataCache)
            .where(
                MarketDataCache.symbol == symbol,
                MarketDataCache.date >= date_from,
                MarketDataCache.date <= date_to,
            )
            .order_by(MarketDataCache.date.asc())
        ).scalars()
    )


def _insert_for(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise RuntimeError(f"Unsupported database dialect for cache writes: {dialect}")


def store_prices(db: Session, quotes: Iterable[EodQuote], commit: bool = True) -> int:
    """Insert-if-absent. Existing (symbol, date) rows are never overwritten.

    Returns how many distinct rows were handed to the database.
    """
    values: dict[tuple[str, dt.date], dict] = {}
    now = dt.datetime.utcnow()
    for quote in quotes:
        key = (quote.symbol, quote.date)
        if key in values:
            continue
        values[key] = {
            "symbol": quote.symbol,
            "date": quote.date,
            "open": quote.open,
            "high": quote.high,
            "low": quote.low,
            "close": quote.close,
            "volume": quote.volume,
            "cached_at": now,
        }
    if not values:
        return 0

    insert = _insert_for(db)
    rows = list(values.values())
    for start in range(0, len(rows), INSERT_CHUNK_SIZE):
        stmt = insert(MarketDataCache).values(rows[start : start + INSERT_CHUNK_SIZE])
        db.execute(stmt.on_conflict_do_nothing(index_elements=["symbol", "date"]))
    if commit:
        db.commit()

    logger.info("Cache: stored %d record(s)", len(rows))
    return len(rows)


def count_cached_days(db: Session, symbols: Iterable[str], date_from: dt.date, date_to: dt.date) -> dict[str, int]:
    wanted = list(dict.fromkeys(symbols))
    if not wanted:
        return {}
    rows = db.execute(
        select(MarketDataCache.symbol, func.count())
        .where(
            MarketDataCache.symbol.in_(wanted),
            MarketDataCache.date >= date_from,
            MarketDataCache.date <= date_to,
        )
        .group_by(MarketDataCache.symbol)
    ).all()
    counts = {symbol: 0 for symbol in wanted}
    counts.update({symbol: int(n) for symbol, n in rows})
    return counts


def is_cached(
    db: Session,
    symbol: str,
    date_from: dt.date,
    date_to: dt.date,
    threshold: float = COVERAGE_THRESHOLD,
) -> bool:
    """True when at least `threshold` of the expected weekdays are cached."""
    expected = business_days_between(date_from, date_to)
    if expected == 0:
        return True
    cached = count_cached_days(db, [symbol], date_from, date_to)[symbol]
    return cached >= expected * threshold


def estimate_coverage(
    db: Session,
    date_from: dt.date,
    date_to: dt.date,
    sample_symbols: Iterable[str],
    threshold: float = COVERAGE_THRESHOLD,
) -> float:
    """Fraction of sampled symbols that count as cached over the window."""
    sample = list(dict.fromkeys(sample_symbols))
    if not sample:
        return 0.0
    expected = business_days_between(date_from, date_to)
    if expected == 0:
        return 1.0
    counts = count_cached_days(db, sample, date_from, date_to)
    covered = sum(1 for symbol in sample if counts[symbol] >= expected * threshold)
    return covered / len(sample)


def cache_stats(db: Session) -> CacheStats:
    unique_symbols, total, oldest, newest = db.execute(
        select(
            func.count(func.distinct(MarketDataCache.symbol)),
            func.count(),
            func.min(MarketDataCache.date),
            func.max(MarketDataCache.date),
        ).select_from(MarketDataCache)
    ).one()
    total = int(total or 0)
    return CacheStats(
        unique_symbols=int(unique_symbols or 0),
        total_records=total,
        oldest_date=oldest,
        newest_date=newest,
        estimated_size_bytes=total * BYTES_PER_RECORD,
    )


# Read-through lookups used by the API and the ledger.


def get_price(db: Session, client: MarketStackClient | None, symbol: str, day: dt.date) -> Decimal | None:
    cached = get_cached_price(db, symbol, day)
    if cached is not None or client is None:
        return cached

    try:
        quote = client.fetch_price_at_date(symbol, day)
    except (RateLimited, ExternalApiError) as exc:
        logger.warning("Price lookup failed for %s @ %s: %s", symbol, day, exc)
        return None
    if quote is None:
        logger.warning("No data available for %s @ %s", symbol, day)
        return None

    store_prices(db, [quote])
    return get_cached_price(db, symbol, day)


def batch_get_prices(
    db: Session,
    client: MarketStackClient | None,
    symbols: Iterable[str],
    day: dt.date,
) -> dict[str, Decimal]:
    """Cached subset plus one batched provider call for whatever is missing."""
    wanted = list(dict.fromkeys(symbols))
    prices = get_cached_prices(db, wanted, day)
    missing = [s for s in wanted if s not in prices]
    if not missing or client is None:
        return prices

    logger.info("Cache: fetching %d missing symbol(s) for %s", len(missing), day)
    try:
        quotes = client.batch_fetch_eod(missing, day, day)
    except (RateLimited, ExternalApiError) as exc:
        logger.warning("Batch price lookup failed for %s: %s", day, exc)
        return prices

    store_prices(db, [q for q in quotes if q.date == day])
    prices.update(get_cached_prices(db, missing, day))
    return prices


def get_price_history(
    db: Session,
    client: MarketStackClient | None,
    symbol: str,
    date_from: dt.date,
    date_to: dt.date,
) -> list[MarketDataCache]:
    rows = get_cached_range(db, symbol, date_from, date_to)
    if rows or client is None:
        return rows

    logger.info("Cache: fetching history for %s from %s to %s", symbol, date_from, date_to)
    try:
        quotes = client.fetch_eod(symbol, date_from, date_to)
    except (RateLimited, ExternalApiError) as exc:
        logger.warning("History lookup failed for %s: %s", symbol, exc)
        return []
    if not quotes:
        logger.warning("No history from provider for %s", symbol)
        return []

    store_prices(db, quotes)
    return get_cached_range(db, symbol, date_from, date_to)
