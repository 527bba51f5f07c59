import datetime as dt
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from conftest import FakeOpener, make_client
from financequest.errors import ForbiddenError, NotFoundError, ValidationError
from financequest.games import (
    MAX_ACTIVE_GAMES,
    GameSettings,
    cleanup_inactive_games,
    create_game,
    list_games,
    set_game_status,
)
from financequest.models import Game, Holding, Transaction

TODAY = dt.date(2024, 6, 3)


def test_create_game_starts_with_full_balance(db, user):
    opener = FakeOpener(prices={("AAPL", dt.date(2024, 5, 31)): 191.25})

    game, prefetch = create_game(db, make_client(opener), user.id, "2024-05-31", today=TODAY)

    assert game.start_date == game.current_date == dt.date(2024, 5, 31)
    assert game.current_balance == game.initial_balance == Decimal("10000.00")
    assert game.status == "active"
    assert game.transaction_fees == Decimal("0.25")
    assert prefetch.strategy == "full"
    assert prefetch.records_stored == 1


def test_failed_prefetch_does_not_undo_game(db, user):
    game, prefetch = create_game(db, make_client(FakeOpener(), max_requests=0), user.id, "2024-05-31", today=TODAY)

    assert not prefetch.success
    assert db.get(Game, game.id) is not None


def test_create_game_custom_settings(db, user):
    settings = GameSettings(transaction_fees=Decimal("1.5"), allow_shorting=False)
    game, _ = create_game(db, make_client(), user.id, "2024-05-31", settings=settings, today=TODAY)

    assert game.transaction_fees == Decimal("1.5")
    assert not game.allow_shorting


def test_create_game_rejects_bad_fees(db, user):
    with pytest.raises(ValidationError) as excinfo:
        create_game(db, make_client(), user.id, "2024-05-31", GameSettings(transaction_fees=Decimal("6")), today=TODAY)
    assert excinfo.value.code == "invalid_settings"


def test_create_game_rejects_future_date(db, user):
    with pytest.raises(ValidationError) as excinfo:
        create_game(db, make_client(), user.id, "2024-06-04", today=TODAY)
    assert excinfo.value.code == "invalid_date"


def test_create_game_unknown_user(db):
    with pytest.raises(NotFoundError):
        create_game(db, make_client(), 999, "2024-05-31", today=TODAY)


def test_active_game_limit(db, user, make_game):
    for _ in range(MAX_ACTIVE_GAMES):
        make_game(user)

    with pytest.raises(ValidationError) as excinfo:
        create_game(db, make_client(), user.id, "2024-05-31", today=TODAY)
    assert excinfo.value.code == "too_many_games"


def test_status_changes(db, user, make_user, make_game):
    game = make_game(user)

    assert set_game_status(db, game.id, user.id, "paused").status == "paused"
    assert set_game_status(db, game.id, user.id, "active").status == "active"
    assert set_game_status(db, game.id, user.id, "completed").status == "completed"

    with pytest.raises(ValidationError):
        set_game_status(db, game.id, user.id, "active")
    with pytest.raises(ValidationError):
        set_game_status(db, game.id, user.id, "archived")
    with pytest.raises(ForbiddenError):
        set_game_status(db, game.id, make_user().id, "paused")


def test_list_games_only_returns_own(db, user, make_user, make_game):
    mine = make_game(user)
    make_game(make_user())

    assert [g.id for g in list_games(db, user.id)] == [mine.id]


def test_cleanup_removes_old_completed_games_only(db, user, make_game, add_holding):
    now = dt.datetime(2024, 6, 1, 12, 0)
    old = now - dt.timedelta(days=120)
    stale = make_game(user, status="completed", updated_at=old)
    paused = make_game(user, status="paused", updated_at=old)
    recent = make_game(user, status="completed", updated_at=now - dt.timedelta(days=10))
    add_holding(stale, "AAPL", "1", "100")
    db.add(
        Transaction(
            game_id=stale.id,
            symbol="AAPL",
            type="buy",
            quantity=Decimal("1"),
            price=Decimal("100"),
            fee=Decimal("0"),
            total=Decimal("100"),
            transaction_date=stale.current_date,
        )
    )
    db.commit()

    assert cleanup_inactive_games(db, now=now) == 1

    remaining = set(db.execute(select(Game.id)).scalars())
    assert remaining == {paused.id, recent.id}
    assert db.execute(select(func.count()).select_from(Holding)).scalar_one() == 0
    assert db.execute(select(func.count()).select_from(Transaction)).scalar_one() == 0
    assert cleanup_inactive_games(db, now=now) == 0
