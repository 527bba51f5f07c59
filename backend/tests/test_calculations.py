import datetime as dt
from decimal import Decimal

import pytest

from conftest import FRIDAY, cache_price
from financequest.calculations import (
    calculate_holdings_values,
    calculate_portfolio,
    calculate_transaction_preview,
    compute_return_percentage,
    compute_score,
    value_holdings,
)
from financequest.models import Holding


def holding(symbol: str, quantity: str, average_cost: str, is_short: bool = False) -> Holding:
    return Holding(symbol=symbol, quantity=Decimal(quantity), average_cost=Decimal(average_cost), is_short=is_short)


@pytest.mark.parametrize("price,expected", [("98", Decimal("200")), ("102", Decimal("-200"))])
def test_short_position_pnl_direction(price, expected):
    snapshot = value_holdings(
        Decimal("10000"),
        Decimal("10000"),
        [holding("TSLA", "100", "100", is_short=True)],
        {"TSLA": Decimal(price)},
    )
    assert snapshot.short_positions_pnl == expected
    assert snapshot.portfolio_value_long == 0
    assert snapshot.total_value == Decimal("10000") + expected


def test_missing_price_excludes_holding():
    snapshot = value_holdings(
        Decimal("5000"),
        Decimal("10000"),
        [holding("AAPL", "10", "150"), holding("MSFT", "5", "300")],
        {"AAPL": Decimal("160")},
    )
    assert snapshot.portfolio_value_long == Decimal("1600")
    assert snapshot.total_value == Decimal("6600")
    assert snapshot.skipped_holdings == 1
    assert snapshot.missing_symbols == ["MSFT"]


def test_total_value_combines_cash_longs_and_shorts():
    snapshot = value_holdings(
        Decimal("9000"),
        Decimal("10000"),
        [holding("AAPL", "10", "100"), holding("TSLA", "5", "200", is_short=True)],
        {"AAPL": Decimal("110"), "TSLA": Decimal("180")},
    )
    assert snapshot.portfolio_value_long == Decimal("1100")
    assert snapshot.short_positions_pnl == Decimal("100")
    assert snapshot.total_value == Decimal("10200")
    assert snapshot.return_percentage == Decimal("2")
    assert snapshot.score == 20


@pytest.mark.parametrize(
    "pct,score",
    [(Decimal("5.55"), 55), (Decimal("0"), 0), (Decimal("-1.23"), -13), (Decimal("12.349"), 123)],
)
def test_score_is_floor_of_ten_times_return(pct, score):
    assert compute_score(pct) == score


def test_return_percentage_with_zero_initial_balance():
    assert compute_return_percentage(Decimal("100"), Decimal("0")) == 0


def test_preview_buy_adds_fee():
    preview = calculate_transaction_preview("buy", Decimal("5"), Decimal("100"), Decimal("1"))
    assert preview.subtotal == Decimal("500")
    assert preview.fee_amount == Decimal("5")
    assert preview.total == Decimal("505")
    assert preview.balance_change == Decimal("-505")


def test_preview_sell_deducts_fee():
    preview = calculate_transaction_preview("sell", Decimal("5"), Decimal("100"), Decimal("1"))
    assert preview.total == Decimal("495")
    assert preview.balance_change == Decimal("495")


def test_preview_short_and_cover_mirror_sell_and_buy():
    short = calculate_transaction_preview("short", Decimal("2"), Decimal("50"), Decimal("0.25"))
    cover = calculate_transaction_preview("cover", Decimal("2"), Decimal("50"), Decimal("0.25"))
    assert short.balance_change == Decimal("99.75")
    assert cover.balance_change == Decimal("-100.25")


def test_preview_rejects_unknown_type():
    with pytest.raises(ValueError):
        calculate_transaction_preview("hold", Decimal("1"), Decimal("1"), Decimal("0"))


def test_calculate_portfolio_reads_cached_closes(db, user, make_game, add_holding):
    game = make_game(user, balance="5000.00")
    add_holding(game, "AAPL", "10", "150")
    add_holding(game, "TSLA", "4", "250", is_short=True)
    cache_price(db, "AAPL", FRIDAY, "160")
    cache_price(db, "TSLA", FRIDAY, "237.5")

    snapshot = calculate_portfolio(db, game.id, FRIDAY)

    assert snapshot.portfolio_value_long == Decimal("1600")
    assert snapshot.short_positions_pnl == Decimal("50")
    assert snapshot.total_value == Decimal("6650")
    assert snapshot.return_percentage == Decimal("-33.5")
    assert snapshot.score == -335


def test_calculate_portfolio_without_holdings(db, user, make_game):
    game = make_game(user, balance="10000.00")
    snapshot = calculate_portfolio(db, game.id, FRIDAY)
    assert snapshot.total_value == Decimal("10000")
    assert snapshot.score == 0


def test_calculate_portfolio_unknown_game(db):
    assert calculate_portfolio(db, 12345, FRIDAY) is None


def test_holdings_values(db, user, make_game, add_holding):
    game = make_game(user)
    add_holding(game, "AAPL", "10", "150")
    add_holding(game, "TSLA", "4", "250", is_short=True)
    add_holding(game, "MSFT", "1", "300")
    cache_price(db, "AAPL", FRIDAY, "165")
    cache_price(db, "TSLA", FRIDAY, "275")

    values = {v.symbol: v for v in calculate_holdings_values(db, game.id, FRIDAY)}

    assert set(values) == {"AAPL", "TSLA"}
    assert values["AAPL"].current_value == Decimal("1650")
    assert values["AAPL"].profit_loss == Decimal("150")
    assert values["AAPL"].profit_loss_percentage == Decimal("10")
    assert values["TSLA"].profit_loss == Decimal("-100")
    assert values["TSLA"].profit_loss_percentage == Decimal("-10")
    assert calculate_holdings_values(db, game.id, dt.date(2024, 1, 8)) == []
