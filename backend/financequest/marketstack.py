"""MarketStack end-of-day client with a local rate-insurance counter.

One HTTP call can carry up to 100 symbols, so callers should batch. Every
call that reaches the network counts against the local quota whether it
succeeds or not; calls refused by the local quota never touch the network.
"""

import datetime as dt
import json
import logging
import os
import threading
import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable
from urllib import error, parse, request

from sqlalchemy.orm import Session

from .errors import ExternalApiError, RateLimited
from .models import ApiStat

logger = logging.getLogger(__name__)

MARKETSTACK_API_KEY = os.environ.get("MARKETSTACK_API_KEY", "").strip()
MARKETSTACK_BASE_URL = os.environ.get("MARKETSTACK_BASE_URL", "http://api.marketstack.com/v1").rstrip("/")
MARKETSTACK_MAX_REQUESTS = int(os.environ.get("MARKETSTACK_MAX_REQUESTS", "100"))
MARKETSTACK_WINDOW_SECONDS = float(os.environ.get("MARKETSTACK_WINDOW_SECONDS", "3600"))
MARKETSTACK_TIMEOUT_SECONDS = float(os.environ.get("MARKETSTACK_TIMEOUT_SECONDS", "15"))

PROVIDER = "marketstack"
MAX_SYMBOLS_PER_CALL = 100
DEFAULT_LIMIT = 1000
MAX_PAGES_PER_CHUNK = 10


class RateLimiter:
    """Fixed quota per rolling window. Safe to share between threads."""

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._count = 0
        self._window_start = clock()

    def _roll_window(self) -> None:
        now = self._clock()
        if now - self._window_start >= self.window_seconds:
            self._count = 0
            self._window_start = now

    def can_make_request(self) -> bool:
        with self._lock:
            self._roll_window()
            return self._count < self.max_requests

    def increment(self) -> None:
        with self._lock:
            self._roll_window()
            self._count += 1

    def acquire(self) -> bool:
        with self._lock:
            self._roll_window()
            if self._count >= self.max_requests:
                return False
            self._count += 1
            return True

    def remaining(self) -> int:
        with self._lock:
            self._roll_window()
            return max(0, self.max_requests - self._count)


@dataclass(frozen=True)
class EodQuote:
    symbol: str
    date: dt.date
    close: Decimal
    open: Decimal | None = None
    high: Decimal | None = None
    low: Decimal | None = None
    volume: int | None = None
    exchange: str | None = None


@dataclass(frozen=True)
class QuotaTelemetry:
    remaining: int
    limit: int
    reset_at: dt.datetime | None


StatsSink = Callable[[QuotaTelemetry], None]
Opener = Callable[..., Any]


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _to_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def parse_provider_date(raw: str) -> dt.date:
    """MarketStack dates look like 2023-06-15T00:00:00+0000."""
    return dt.date.fromisoformat(str(raw)[:10])


def parse_eod_row(row: dict[str, Any]) -> EodQuote | None:
    close = _to_decimal(row.get("close"))
    symbol = str(row.get("symbol") or "").strip()
    raw_date = row.get("date")
    if close is None or not symbol or not raw_date:
        return None
    try:
        day = parse_provider_date(raw_date)
    except ValueError:
        return None
    return EodQuote(
        symbol=symbol,
        date=day,
        close=close,
        open=_to_decimal(row.get("open")),
        high=_to_decimal(row.get("high")),
        low=_to_decimal(row.get("low")),
        volume=_to_int(row.get("volume")),
        exchange=row.get("exchange") or None,
    )


def parse_quota_headers(headers: Any) -> QuotaTelemetry | None:
    if headers is None:
        return None
    remaining = _to_int(headers.get("X-RateLimit-Remaining"))
    limit = _to_int(headers.get("X-RateLimit-Limit"))
    if remaining is None or limit is None:
        return None
    reset_epoch = _to_int(headers.get("X-RateLimit-Reset"))
    reset_at = None
    if reset_epoch is not None:
        reset_at = dt.datetime.fromtimestamp(reset_epoch, tz=dt.timezone.utc).replace(tzinfo=None)
    return QuotaTelemetry(remaining=remaining, limit=limit, reset_at=reset_at)


def chunked(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class MarketStackClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        rate_limiter: RateLimiter | None = None,
        timeout: float | None = None,
        opener: Opener | None = None,
        stats_sink: StatsSink | None = None,
    ) -> None:
        self.api_key = MARKETSTACK_API_KEY if api_key is None else api_key
        self.base_url = (base_url or MARKETSTACK_BASE_URL).rstrip("/")
        self.rate_limiter = rate_limiter or RateLimiter(MARKETSTACK_MAX_REQUESTS, MARKETSTACK_WINDOW_SECONDS)
        self.timeout = MARKETSTACK_TIMEOUT_SECONDS if timeout is None else timeout
        self._opener = opener or request.urlopen
        self._stats_sink = stats_sink

    def remaining_requests(self) -> int:
        return self.rate_limiter.remaining()

    def _build_url(
        self,
        symbols: list[str],
        date_from: dt.date,
        date_to: dt.date | None,
        limit: int,
        offset: int,
    ) -> str:
        params = {
            "access_key": self.api_key,
            "symbols": ",".join(symbols),
            "date_from": date_from.isoformat(),
            "limit": str(limit),
        }
        if date_to is not None:
            params["date_to"] = date_to.isoformat()
        if offset:
            params["offset"] = str(offset)
        return f"{self.base_url}/eod?{parse.urlencode(params, safe=',^')}"

    def _report_quota(self, headers: Any) -> None:
        if self._stats_sink is None:
            return
        try:
            telemetry = parse_quota_headers(headers)
            if telemetry is not None:
                self._stats_sink(telemetry)
        except Exception:
            logger.exception("Failed to store MarketStack quota telemetry")

    def _send(self, url: str) -> tuple[int, Any, bytes]:
        req = request.Request(url, method="GET", headers={"Accept": "application/json"})
        try:
            with self._opener(req, timeout=self.timeout) as response:
                status = int(getattr(response, "status", None) or response.getcode())
                return status, response.headers, response.read()
        except error.HTTPError as exc:
            return int(exc.code), exc.headers, exc.read() or b""
        except (error.URLError, TimeoutError, OSError) as exc:
            logger.error("MarketStack request failed: %s", exc)
            raise ExternalApiError("MarketStack", f"Request failed: {exc}", code="network_error") from exc

    def _fetch_page(
        self,
        symbols: list[str],
        date_from: dt.date,
        date_to: dt.date | None,
        limit: int,
        offset: int = 0,
    ) -> tuple[list[EodQuote], dict[str, Any]]:
        if not self.api_key:
            raise ExternalApiError("MarketStack", "MARKETSTACK_API_KEY is not set", code="missing_api_key")
        if not self.rate_limiter.acquire():
            logger.warning("MarketStack local rate limit reached, blocking request")
            raise RateLimited(remaining=0, window_seconds=self.rate_limiter.window_seconds)

        url = self._build_url(symbols, date_from, date_to, limit, offset)
        logger.info(
            "Fetching EOD: %d symbol(s) from %s to %s",
            len(symbols),
            date_from.isoformat(),
            date_to.isoformat() if date_to else "now",
        )
        status, headers, body = self._send(url)
        self._report_quota(headers)
        logger.debug("MarketStack local quota remaining: %d", self.rate_limiter.remaining())

        try:
            payload = json.loads(body.decode("utf-8")) if body else None
        except (UnicodeDecodeError, ValueError) as exc:
            raise ExternalApiError(
                "MarketStack", "Malformed response payload", code="invalid_payload", status_code=status
            ) from exc

        if not (200 <= status < 300) or (isinstance(payload, dict) and payload.get("error")):
            err = payload.get("error") if isinstance(payload, dict) else None
            if not isinstance(err, dict):
                err = {"code": "unknown", "message": f"HTTP {status}"}
            logger.error("MarketStack API error (status=%s): %s", status, err)
            raise ExternalApiError(
                "MarketStack",
                str(err.get("message") or "Unknown error"),
                code=str(err.get("code") or "unknown"),
                status_code=status,
            )

        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise ExternalApiError("MarketStack", "Malformed response payload", code="invalid_payload", status_code=status)

        rows = payload["data"]
        quotes = [q for q in (parse_eod_row(row) for row in rows if isinstance(row, dict)) if q is not None]
        dropped = len(rows) - len(quotes)
        if dropped:
            logger.debug("Dropped %d EOD row(s) without a usable close", dropped)
        logger.info("Fetched %d EOD records", len(quotes))
        pagination = payload.get("pagination") if isinstance(payload.get("pagination"), dict) else {}
        return quotes, pagination

    def fetch_eod(
        self,
        symbols: str | Iterable[str],
        date_from: dt.date,
        date_to: dt.date | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[EodQuote]:
        """One provider call. Raises RateLimited or ExternalApiError."""
        symbol_list = [symbols] if isinstance(symbols, str) else list(symbols)
        if not symbol_list:
            return []
        quotes, _ = self._fetch_page(symbol_list[:MAX_SYMBOLS_PER_CALL], date_from, date_to, limit)
        return quotes

    def batch_fetch_eod(
        self,
        symbols: Iterable[str],
        date_from: dt.date,
        date_to: dt.date | None = None,
    ) -> list[EodQuote]:
        """Chunk to the per-call symbol cap and follow pagination, sequentially."""
        symbol_list = list(dict.fromkeys(symbols))
        chunks = chunked(symbol_list, MAX_SYMBOLS_PER_CALL)
        if len(chunks) > 1:
            logger.info("Batch fetching %d symbols in %d chunks", len(symbol_list), len(chunks))

        out: list[EodQuote] = []
        for chunk in chunks:
            offset = 0
            for _ in range(MAX_PAGES_PER_CHUNK):
                quotes, pagination = self._fetch_page(chunk, date_from, date_to, DEFAULT_LIMIT, offset)
                out.extend(quotes)
                count = _to_int(pagination.get("count"))
                total = _to_int(pagination.get("total"))
                if not count or total is None or offset + count >= total:
                    break
                offset += count
            else:
                logger.warning("Stopped paging after %d pages for chunk starting %s", MAX_PAGES_PER_CHUNK, chunk[0])
        return out

    def fetch_price_at_date(self, symbol: str, day: dt.date) -> EodQuote | None:
        quotes = self.fetch_eod(symbol, day, day, limit=1)
        return quotes[0] if quotes else None


def store_api_stats(session_factory: Callable[[], Session]) -> StatsSink:
    """Sink that upserts the single api_stats row for this provider."""

    def sink(telemetry: QuotaTelemetry) -> None:
        db = session_factory()
        try:
            row = db.get(ApiStat, PROVIDER)
            if row is None:
                row = ApiStat(provider=PROVIDER)
                db.add(row)
            row.requests_remaining = telemetry.remaining
            row.requests_limit = telemetry.limit
            row.reset_date = telemetry.reset_at
            row.last_updated = dt.datetime.utcnow()
            db.commit()
            logger.debug("API stats stored: %d/%d remaining", telemetry.remaining, telemetry.limit)
        finally:
            db.close()

    return sink
