from decimal import Decimal

import pytest

from conftest import FRIDAY, cache_price
from financequest.achievements import (
    AssetCount,
    FirstTransaction,
    GameFacts,
    PortfolioValue,
    ReturnPercentage,
    SpecificAssetType,
    check_and_unlock_achievements,
    criteria_met,
    parse_criteria,
    available_achievements,
    total_achievement_points,
    unlocked_achievements,
)
from financequest.calculations import value_holdings
from financequest.models import Achievement
from financequest.seed import ACHIEVEMENT_CATALOG, seed


def facts(transactions=0, symbols=(), total="10000", initial="10000") -> GameFacts:
    portfolio = value_holdings(Decimal(total), Decimal(initial), [], {})
    return GameFacts(transaction_count=transactions, long_symbols=set(symbols), portfolio=portfolio)


def test_parse_criteria_variants():
    assert parse_criteria("first_transaction", {}) == FirstTransaction()
    assert parse_criteria("asset_count", {"min_count": 5}) == AssetCount(min_count=5)
    assert parse_criteria("portfolio_value", {"min_value": 11000}) == PortfolioValue(min_value=Decimal("11000"))
    assert parse_criteria("return_percentage", {"min_return": 5}) == ReturnPercentage(min_return=Decimal("5"))
    assert parse_criteria("specific_trade", {"asset_type": "bond", "min_count": 1}) == SpecificAssetType("bond", 1)


def test_parse_criteria_rejects_unknown_type():
    with pytest.raises(ValueError):
        parse_criteria("moon_landing", {})
    with pytest.raises(KeyError):
        parse_criteria("asset_count", {})


def test_every_catalog_entry_parses():
    for row in ACHIEVEMENT_CATALOG:
        parse_criteria(row["criteria_type"], row["criteria_value"])


def test_criteria_evaluation():
    assert criteria_met(FirstTransaction(), facts(transactions=1))
    assert not criteria_met(FirstTransaction(), facts())
    assert criteria_met(AssetCount(2), facts(symbols=["AAPL", "MSFT"]))
    assert not criteria_met(AssetCount(3), facts(symbols=["AAPL", "MSFT"]))
    assert criteria_met(PortfolioValue(Decimal("11000")), facts(total="11000"))
    assert criteria_met(ReturnPercentage(Decimal("5")), facts(total="10500"))
    assert not criteria_met(ReturnPercentage(Decimal("5")), facts(total="10499"))
    assert criteria_met(SpecificAssetType("bond", 1), facts(symbols=["AAPL", "TLT"]))
    assert not criteria_met(SpecificAssetType("index", 1), facts(symbols=["AAPL", "TLT"]))


def test_unknown_criteria_variant_raises():
    with pytest.raises(TypeError):
        criteria_met(object(), facts())


def test_unlock_is_idempotent(db, user, make_game, add_holding):
    seed(db)
    game = make_game(user, balance="10000.00")
    add_holding(game, "TLT", "10", "95")
    add_holding(game, "^GSPC", "1", "4000")
    cache_price(db, "TLT", FRIDAY, "100")
    cache_price(db, "^GSPC", FRIDAY, "5000")

    first = {a.name for a in check_and_unlock_achievements(db, game.id)}
    second = check_and_unlock_achievements(db, game.id)

    # 10000 cash + 1000 + 5000 = 16000
    assert first == {"Bond Curious", "Index Tracker", "Eleven Grand", "Fifteen Grand", "In the Green", "Market Beater"}
    assert second == []
    assert {a.name for a in unlocked_achievements(db, game.id)} == first
    assert total_achievement_points(db, game.id) == 15 + 15 + 25 + 100 + 25 + 100


def test_bad_criteria_row_is_skipped(db, user, make_game):
    db.add(Achievement(name="Broken", description="x", criteria_type="asset_count", criteria_value={}, points=1))
    db.add(Achievement(name="Anything", description="x", criteria_type="portfolio_value", criteria_value={"min_value": 0}, points=1))
    db.commit()
    game = make_game(user)

    unlocked = check_and_unlock_achievements(db, game.id)

    assert [a.name for a in unlocked] == ["Anything"]


def test_unknown_game_unlocks_nothing(db):
    assert check_and_unlock_achievements(db, 4242) == []


def test_available_achievements_excludes_unlocked(db, user, make_game, add_holding):
    seed(db)
    game = make_game(user)
    assert len(available_achievements(db, game.id)) == len(ACHIEVEMENT_CATALOG)

    add_holding(game, "TLT", "10", "95")
    cache_price(db, "TLT", FRIDAY, "100")
    unlocked = {a.name for a in check_and_unlock_achievements(db, game.id)}
    available = {a.name for a in available_achievements(db, game.id)}

    assert "Bond Curious" in unlocked
    assert not unlocked & available
    assert len(unlocked) + len(available) == len(ACHIEVEMENT_CATALOG)
