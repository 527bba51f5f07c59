import datetime as dt
import json
from decimal import Decimal
from urllib import parse

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from financequest.cache import store_prices
from financequest.db import Base
from financequest.marketstack import EodQuote, MarketStackClient, RateLimiter
from financequest.models import Game, Holding, User

FRIDAY = dt.date(2024, 1, 5)
MONDAY = dt.date(2024, 1, 8)


class FakeResponse:
    def __init__(self, payload, status: int = 200, headers: dict | None = None):
        self.status = status
        self.headers = headers or {}
        self._body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def eod_payload(rows: list[dict], total: int | None = None, offset: int = 0) -> dict:
    return {
        "pagination": {"limit": 1000, "offset": offset, "count": len(rows), "total": len(rows) if total is None else total},
        "data": rows,
    }


def eod_row(symbol: str, day: dt.date, close, **extra) -> dict:
    row = {"symbol": symbol, "date": f"{day.isoformat()}T00:00:00+0000", "close": close, "exchange": "XNAS"}
    row.update(extra)
    return row


class FakeOpener:
    """Stands in for urlopen. Replays queued responses or serves from a price table."""

    def __init__(self, responses=None, prices: dict[tuple[str, dt.date], float] | None = None, headers=None):
        self.responses = list(responses or [])
        self.prices = prices
        self.headers = headers or {}
        self.urls: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.urls)

    def params(self, index: int = -1) -> dict[str, str]:
        query = parse.urlsplit(self.urls[index]).query
        return {k: v[0] for k, v in parse.parse_qs(query).items()}

    def __call__(self, req, timeout=None):
        self.urls.append(req.full_url)
        if self.responses:
            item = self.responses.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        if self.prices is None:
            return FakeResponse(eod_payload([]), headers=self.headers)

        params = self.params()
        symbols = params["symbols"].split(",")
        date_from = dt.date.fromisoformat(params["date_from"])
        date_to = dt.date.fromisoformat(params.get("date_to", params["date_from"]))
        rows = [
            eod_row(symbol, day, close)
            for (symbol, day), close in sorted(self.prices.items(), key=lambda kv: (kv[0][1], kv[0][0]))
            if symbol in symbols and date_from <= day <= date_to
        ]
        return FakeResponse(eod_payload(rows), headers=self.headers)


def make_client(opener=None, max_requests: int = 100, **kwargs) -> MarketStackClient:
    return MarketStackClient(
        api_key=kwargs.pop("api_key", "test-key"),
        base_url="http://marketstack.test/v1",
        rate_limiter=RateLimiter(max_requests=max_requests, window_seconds=3600),
        opener=opener or FakeOpener(),
        **kwargs,
    )


def cache_price(db, symbol: str, day: dt.date, close) -> None:
    store_prices(db, [EodQuote(symbol=symbol, date=day, close=Decimal(str(close)))])


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db):
    row = User(email="trader@example.com", name="Trader")
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def factory(name: str | None = None) -> User:
        counter["n"] += 1
        row = User(email=f"user{counter['n']}@example.com", name=name or f"User {counter['n']}")
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return factory


@pytest.fixture
def make_game(db):
    def factory(
        owner: User,
        current_date: dt.date = FRIDAY,
        balance: str = "10000.00",
        initial: str = "10000.00",
        fees: str = "0",
        status: str = "active",
        allow_shorting: bool = True,
        **extra,
    ) -> Game:
        game = Game(
            user_id=owner.id,
            start_date=extra.pop("start_date", current_date),
            current_date=current_date,
            initial_balance=Decimal(initial),
            current_balance=Decimal(balance),
            status=status,
            transaction_fees=Decimal(fees),
            allow_shorting=allow_shorting,
            allow_leverage=False,
            **extra,
        )
        db.add(game)
        db.commit()
        db.refresh(game)
        return game

    return factory


@pytest.fixture
def add_holding(db):
    def factory(game: Game, symbol: str, quantity: str, average_cost: str, is_short: bool = False) -> Holding:
        holding = Holding(
            game_id=game.id,
            symbol=symbol,
            quantity=Decimal(quantity),
            average_cost=Decimal(average_cost),
            is_short=is_short,
        )
        db.add(holding)
        db.commit()
        db.refresh(holding)
        return holding

    return factory
