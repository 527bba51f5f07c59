import datetime as dt
from decimal import Decimal
from unittest.mock import Mock

from conftest import FakeOpener, cache_price, make_client
from financequest.cache import (
    batch_get_prices,
    cache_stats,
    estimate_coverage,
    get_cached_price,
    get_cached_prices,
    get_cached_range,
    get_price,
    get_price_history,
    is_cached,
    store_prices,
)
from financequest.dates import business_days
from financequest.errors import ExternalApiError
from financequest.marketstack import EodQuote, MarketStackClient

DAY = dt.date(2024, 1, 5)


def test_first_write_wins(db):
    assert store_prices(db, [EodQuote("AAPL", DAY, Decimal("181.25"))]) == 1
    store_prices(db, [EodQuote("AAPL", DAY, Decimal("999.00"))])

    assert get_cached_price(db, "AAPL", DAY) == Decimal("181.25")


def test_store_prices_dedupes_within_batch(db):
    quotes = [
        EodQuote("AAPL", DAY, Decimal("181.25")),
        EodQuote("AAPL", DAY, Decimal("1.00")),
        EodQuote("MSFT", DAY, Decimal("367.75")),
    ]
    assert store_prices(db, quotes) == 2
    assert get_cached_price(db, "AAPL", DAY) == Decimal("181.25")
    assert store_prices(db, []) == 0


def test_get_cached_prices_returns_only_hits(db):
    cache_price(db, "AAPL", DAY, "181.25")
    cache_price(db, "MSFT", DAY, "367.75")
    cache_price(db, "AAPL", dt.date(2024, 1, 4), "180.00")

    prices = get_cached_prices(db, ["AAPL", "MSFT", "TSLA"], DAY)

    assert prices == {"AAPL": Decimal("181.25"), "MSFT": Decimal("367.75")}
    assert get_cached_prices(db, [], DAY) == {}


def test_batch_lookup_agrees_with_single_lookups(db):
    for symbol, close in (("AAPL", "181.25"), ("MSFT", "367.75"), ("^GSPC", "4697.25")):
        cache_price(db, symbol, DAY, close)

    batch = get_cached_prices(db, ["AAPL", "MSFT", "^GSPC", "NVDA"], DAY)
    for symbol in ("AAPL", "MSFT", "^GSPC", "NVDA"):
        assert batch.get(symbol) == get_cached_price(db, symbol, DAY)


def test_cached_range_is_inclusive_and_ordered(db):
    for day, close in ((dt.date(2024, 1, 4), "2"), (dt.date(2024, 1, 2), "1"), (dt.date(2024, 1, 5), "3")):
        cache_price(db, "AAPL", day, close)

    rows = get_cached_range(db, "AAPL", dt.date(2024, 1, 2), dt.date(2024, 1, 4))

    assert [r.date for r in rows] == [dt.date(2024, 1, 2), dt.date(2024, 1, 4)]


def test_get_price_hit_does_not_call_provider(db):
    cache_price(db, "AAPL", DAY, "181.25")
    opener = FakeOpener()

    assert get_price(db, make_client(opener), "AAPL", DAY) == Decimal("181.25")
    assert opener.calls == 0


def test_get_price_miss_reads_through_once(db):
    opener = FakeOpener(prices={("AAPL", DAY): 181.25})
    client = make_client(opener)

    assert get_price(db, client, "AAPL", DAY) == Decimal("181.25")
    assert get_price(db, client, "AAPL", DAY) == Decimal("181.25")
    assert opener.calls == 1
    assert get_cached_price(db, "AAPL", DAY) == Decimal("181.25")


def test_get_price_degrades_to_none_when_provider_unavailable(db):
    opener = FakeOpener()
    assert get_price(db, make_client(opener, max_requests=0), "AAPL", DAY) is None
    assert get_price(db, None, "AAPL", DAY) is None
    assert opener.calls == 0


def test_batch_get_prices_fetches_only_missing(db):
    cache_price(db, "AAPL", DAY, "181.25")
    opener = FakeOpener(prices={("MSFT", DAY): 367.75, ("AAPL", DAY): 1.0})

    prices = batch_get_prices(db, make_client(opener), ["AAPL", "MSFT", "TSLA"], DAY)

    assert prices == {"AAPL": Decimal("181.25"), "MSFT": Decimal("367.75")}
    assert opener.calls == 1
    assert opener.params()["symbols"] == "MSFT,TSLA"


def test_price_history_fills_empty_range_from_provider(db):
    days = business_days(dt.date(2024, 1, 2), DAY)
    opener = FakeOpener(prices={("AAPL", day): 180 + i for i, day in enumerate(days)})
    client = make_client(opener)

    rows = get_price_history(db, client, "AAPL", days[0], DAY)
    assert [r.date for r in rows] == days

    get_price_history(db, client, "AAPL", days[0], DAY)
    assert opener.calls == 1


def test_coverage_with_empty_sample_is_zero(db):
    assert estimate_coverage(db, dt.date(2024, 1, 1), DAY, []) == 0.0


def test_coverage_counts_symbols_above_threshold(db):
    start, end = dt.date(2024, 1, 1), dt.date(2024, 1, 12)
    days = business_days(start, end)
    for day in days:
        cache_price(db, "AAPL", day, "100")
    for day in days[:5]:
        cache_price(db, "MSFT", day, "100")

    assert is_cached(db, "AAPL", start, end)
    assert not is_cached(db, "MSFT", start, end)
    assert estimate_coverage(db, start, end, ["AAPL", "MSFT"]) == 0.5


def test_cache_stats(db):
    cache_price(db, "AAPL", dt.date(2024, 1, 2), "1")
    cache_price(db, "AAPL", DAY, "2")
    cache_price(db, "MSFT", DAY, "3")

    stats = cache_stats(db)

    assert stats.unique_symbols == 2
    assert stats.total_records == 3
    assert stats.oldest_date == dt.date(2024, 1, 2)
    assert stats.newest_date == DAY
    assert stats.estimated_size_bytes == 450


def test_get_price_swallows_provider_errors():
    client = Mock(spec=MarketStackClient)
    client.fetch_price_at_date.side_effect = ExternalApiError("MarketStack", "boom", code="server_error", status_code=500)
    db = Mock()
    db.get.return_value = None

    assert get_price(db, client, "AAPL", DAY) is None
    client.fetch_price_at_date.assert_called_once_with("AAPL", DAY)


def test_batch_get_prices_makes_one_batched_call_for_misses(db):
    cache_price(db, "AAPL", DAY, "181.25")
    client = Mock(spec=MarketStackClient)
    client.batch_fetch_eod.return_value = [
        EodQuote("MSFT", DAY, Decimal("367.75")),
        EodQuote("MSFT", dt.date(2024, 1, 4), Decimal("370.00")),
    ]

    prices = batch_get_prices(db, client, ["AAPL", "MSFT", "NVDA"], DAY)

    client.batch_fetch_eod.assert_called_once_with(["MSFT", "NVDA"], DAY, DAY)
    assert prices == {"AAPL": Decimal("181.25"), "MSFT": Decimal("367.75")}
    assert get_cached_price(db, "MSFT", dt.date(2024, 1, 4)) is None
