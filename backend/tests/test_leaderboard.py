import datetime as dt

import pytest

from conftest import FRIDAY, cache_price
from financequest.errors import ValidationError
from financequest.leaderboard import build_leaderboard, period_cutoff

NOW = dt.datetime(2024, 1, 10, 12, 0)


def test_ranks_by_score_with_ties_to_earlier_update(db, make_user, make_game, add_holding):
    alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
    late = make_game(alice, balance="9000.00", updated_at=dt.datetime(2024, 1, 9))
    early = make_game(bob, balance="9000.00", updated_at=dt.datetime(2024, 1, 8))
    leader = make_game(carol, balance="9000.00", updated_at=dt.datetime(2024, 1, 9))
    add_holding(late, "AAPL", "10", "100")
    add_holding(early, "AAPL", "10", "100")
    add_holding(leader, "MSFT", "10", "100")
    cache_price(db, "AAPL", FRIDAY, "100")
    cache_price(db, "MSFT", FRIDAY, "200")

    entries = build_leaderboard(db, now=NOW)

    assert [e.game_id for e in entries] == [leader.id, early.id, late.id]
    assert [e.rank for e in entries] == [1, 2, 3]
    assert entries[0].user_name == "Carol"
    assert entries[0].score == 100


def test_identical_timestamps_fall_back_to_game_id(db, make_user, make_game):
    stamp = dt.datetime(2024, 1, 9)
    first = make_game(make_user(), updated_at=stamp)
    second = make_game(make_user(), updated_at=stamp)

    entries = build_leaderboard(db, now=NOW)

    assert [e.game_id for e in entries] == [first.id, second.id]


def test_only_active_games_are_ranked(db, make_user, make_game):
    active = make_game(make_user(), updated_at=dt.datetime(2024, 1, 9))
    make_game(make_user(), status="paused", updated_at=dt.datetime(2024, 1, 9))
    make_game(make_user(), status="completed", updated_at=dt.datetime(2024, 1, 9))

    assert [e.game_id for e in build_leaderboard(db, now=NOW)] == [active.id]


def test_cash_only_game_scores_zero(db, make_user, make_game, add_holding):
    cash = make_game(make_user(), balance="10100.00", updated_at=dt.datetime(2024, 1, 9))
    invested = make_game(make_user(), balance="9000.00", updated_at=dt.datetime(2024, 1, 9))
    add_holding(invested, "AAPL", "10", "100")
    cache_price(db, "AAPL", FRIDAY, "130")

    entries = build_leaderboard(db, now=NOW)

    assert [e.game_id for e in entries] == [invested.id, cash.id]
    assert [e.score for e in entries] == [30, 0]


def test_weekly_period_drops_stale_games(db, make_user, make_game):
    fresh = make_game(make_user(), updated_at=dt.datetime(2024, 1, 9))
    make_game(make_user(), updated_at=dt.datetime(2024, 1, 1))

    assert [e.game_id for e in build_leaderboard(db, period="weekly", now=NOW)] == [fresh.id]
    assert len(build_leaderboard(db, period="all_time", now=NOW)) == 2


def test_limit_truncates(db, make_user, make_game):
    for _ in range(3):
        make_game(make_user(), updated_at=dt.datetime(2024, 1, 9))
    assert len(build_leaderboard(db, limit=2, now=NOW)) == 2


@pytest.mark.parametrize("kwargs,code", [({"period": "daily"}, "invalid_period"), ({"limit": 0}, "invalid_limit"), ({"limit": 101}, "invalid_limit")])
def test_invalid_arguments(db, kwargs, code):
    with pytest.raises(ValidationError) as excinfo:
        build_leaderboard(db, **kwargs)
    assert excinfo.value.code == code


def test_monthly_cutoff_clamps_to_month_end():
    assert period_cutoff("monthly", dt.datetime(2024, 3, 31, 8, 0)) == dt.datetime(2024, 2, 29, 8, 0)
    assert period_cutoff("monthly", dt.datetime(2024, 1, 15)) == dt.datetime(2023, 12, 15)
    assert period_cutoff("all_time", NOW) is None
