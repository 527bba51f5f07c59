import datetime as dt
import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from .cache import get_cached_prices
from .models import Game, Holding

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass
class PortfolioSnapshot:
    current_balance: Decimal
    portfolio_value_long: Decimal
    short_positions_pnl: Decimal
    total_value: Decimal
    return_percentage: Decimal
    score: int
    skipped_holdings: int = 0
    missing_symbols: list[str] = field(default_factory=list)


@dataclass
class HoldingValue:
    holding_id: int
    symbol: str
    quantity: Decimal
    average_cost: Decimal
    is_short: bool
    current_price: Decimal
    current_value: Decimal
    profit_loss: Decimal
    profit_loss_percentage: Decimal


@dataclass
class TransactionPreview:
    subtotal: Decimal
    fee_amount: Decimal
    total: Decimal
    balance_change: Decimal


def compute_score(return_percentage: Decimal) -> int:
    """Leaderboard score: floor(return% * 10)."""
    return math.floor(Decimal(return_percentage) * 10)


def compute_return_percentage(total_value: Decimal, initial_balance: Decimal) -> Decimal:
    if initial_balance == 0:
        return ZERO
    return (total_value - initial_balance) / initial_balance * HUNDRED


def short_pnl(average_cost: Decimal, price: Decimal, quantity: Decimal) -> Decimal:
    """Profit on a short: positive when the price fell below the entry."""
    return (average_cost - price) * quantity


def _load_holdings(db: Session, game_id: int) -> list[Holding]:
    return list(db.execute(select(Holding).where(Holding.game_id == game_id).order_by(Holding.id)).scalars())


def value_holdings(
    current_balance: Decimal,
    initial_balance: Decimal,
    holdings: list[Holding],
    prices: dict[str, Decimal],
) -> PortfolioSnapshot:
    """Pure valuation over already-resolved prices. Unpriced holdings are left out."""
    long_value = ZERO
    shorts = ZERO
    skipped = 0
    missing: list[str] = []

    for holding in holdings:
        price = prices.get(holding.symbol)
        if price is None:
            skipped += 1
            if holding.symbol not in missing:
                missing.append(holding.symbol)
            continue
        quantity = Decimal(str(holding.quantity))
        if holding.is_short:
            shorts += short_pnl(Decimal(str(holding.average_cost)), price, quantity)
        else:
            long_value += quantity * price

    total_value = current_balance + long_value + shorts
    return_pct = compute_return_percentage(total_value, initial_balance)
    return PortfolioSnapshot(
        current_balance=current_balance,
        portfolio_value_long=long_value,
        short_positions_pnl=shorts,
        total_value=total_value,
        return_percentage=return_pct,
        score=compute_score(return_pct),
        skipped_holdings=skipped,
        missing_symbols=missing,
    )


def calculate_portfolio(db: Session, game_id: int, day: dt.date) -> PortfolioSnapshot | None:
    """Value a game at `day` from cached closes only. None if the game is unknown."""
    game = db.get(Game, game_id)
    if game is None:
        logger.error("Portfolio requested for unknown game %s", game_id)
        return None

    current_balance = Decimal(str(game.current_balance))
    initial_balance = Decimal(str(game.initial_balance))
    holdings = _load_holdings(db, game_id)
    if not holdings:
        return PortfolioSnapshot(
            current_balance=current_balance,
            portfolio_value_long=ZERO,
            short_positions_pnl=ZERO,
            total_value=current_balance,
            return_percentage=ZERO,
            score=0,
        )

    prices = get_cached_prices(db, {h.symbol for h in holdings}, day)
    snapshot = value_holdings(current_balance, initial_balance, holdings, prices)
    if snapshot.skipped_holdings:
        logger.warning(
            "Game %s: %d holding(s) without a cached price on %s: %s",
            game_id,
            snapshot.skipped_holdings,
            day,
            ", ".join(snapshot.missing_symbols),
        )
    return snapshot


def calculate_holdings_values(db: Session, game_id: int, day: dt.date) -> list[HoldingValue]:
    holdings = _load_holdings(db, game_id)
    if not holdings:
        return []

    prices = get_cached_prices(db, {h.symbol for h in holdings}, day)
    out: list[HoldingValue] = []
    for holding in holdings:
        price = prices.get(holding.symbol)
        if price is None:
            logger.warning("No cached price for %s on %s", holding.symbol, day)
            continue

        quantity = Decimal(str(holding.quantity))
        average_cost = Decimal(str(holding.average_cost))
        cost_basis = average_cost * quantity
        if holding.is_short:
            # a short's "value" is its floating P&L
            pnl = short_pnl(average_cost, price, quantity)
            value = pnl
        else:
            value = price * quantity
            pnl = value - cost_basis
        pnl_pct = pnl / cost_basis * HUNDRED if cost_basis > 0 else ZERO

        out.append(
            HoldingValue(
                holding_id=holding.id,
                symbol=holding.symbol,
                quantity=quantity,
                average_cost=average_cost,
                is_short=bool(holding.is_short),
                current_price=price,
                current_value=value,
                profit_loss=pnl,
                profit_loss_percentage=pnl_pct,
            )
        )
    return out


def calculate_transaction_preview(
    trade_type: str,
    quantity: Decimal,
    price: Decimal,
    fee_percent: Decimal,
) -> TransactionPreview:
    """Buy and cover pay subtotal + fee; sell and short receive subtotal - fee."""
    subtotal = Decimal(quantity) * Decimal(price)
    fee_amount = subtotal * Decimal(fee_percent) / HUNDRED

    if trade_type in ("buy", "cover"):
        total = subtotal + fee_amount
        balance_change = -total
    elif trade_type in ("sell", "short"):
        total = subtotal - fee_amount
        balance_change = total
    else:
        raise ValueError(f"Unknown trade type: {trade_type}")

    return TransactionPreview(
        subtotal=subtotal,
        fee_amount=fee_amount,
        total=total,
        balance_change=balance_change,
    )
