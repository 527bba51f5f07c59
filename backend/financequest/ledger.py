"""Trade execution: buy, sell, short and cover against a game's cash and holdings.

Mutations for one game are serialised twice over: an in-process lock per game
id, and row locks on the game and holding rows for deployments running more
than one worker.
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass, field
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Iterator

from sqlalchemy import select
from sqlalchemy.orm import Session

from .achievements import check_and_unlock_achievements
from .assets import is_valid_symbol
from .cache import get_price
from .calculations import PortfolioSnapshot, TransactionPreview, calculate_portfolio, calculate_transaction_preview
from .errors import FinanceQuestError, NotFoundError, ValidationError
from .games import get_game_or_raise
from .marketstack import MarketStackClient
from .models import TRANSACTION_TYPES, Achievement, Game, Holding, Transaction
from .validations import validate_buy, validate_cover, validate_sell, validate_short

logger = logging.getLogger(__name__)

HOLDING_EPSILON = Decimal("0.00000001")
CENT = Decimal("0.01")
PRICE_STEP = Decimal("0.0001")


class GameLocks:
    """One lock per game id, created on first use and dropped once nobody holds a reference."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[int, threading.Lock] = weakref.WeakValueDictionary()

    def lock_for(self, game_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(game_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[game_id] = lock
            return lock

    def __len__(self) -> int:
        return len(self._locks)

    @contextmanager
    def hold(self, game_id: int) -> Iterator[None]:
        with self.lock_for(game_id):
            yield


GAME_LOCKS = GameLocks()


@dataclass
class TradeResult:
    transaction: Transaction
    holding: Holding | None
    new_balance: Decimal
    preview: TransactionPreview
    realized_pnl: Decimal | None = None
    portfolio: PortfolioSnapshot | None = None
    achievements_unlocked: list[Achievement] = field(default_factory=list)


def money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _holding_for_update(db: Session, game_id: int, symbol: str, is_short: bool) -> Holding | None:
    return db.execute(
        select(Holding)
        .where(Holding.game_id == game_id, Holding.symbol == symbol, Holding.is_short.is_(is_short))
        .with_for_update()
    ).scalar_one_or_none()


def _open_or_add(db: Session, game: Game, holding: Holding | None, symbol: str, is_short: bool, quantity: Decimal, price: Decimal) -> Holding:
    if holding is None:
        holding = Holding(
            game_id=game.id,
            symbol=symbol,
            quantity=quantity,
            average_cost=price.quantize(PRICE_STEP, rounding=ROUND_HALF_UP),
            is_short=is_short,
        )
        db.add(holding)
        return holding

    old_qty = Decimal(str(holding.quantity))
    old_avg = Decimal(str(holding.average_cost))
    new_qty = old_qty + quantity
    holding.average_cost = ((old_qty * old_avg + quantity * price) / new_qty).quantize(PRICE_STEP, rounding=ROUND_HALF_UP)
    holding.quantity = new_qty
    return holding


def _reduce(db: Session, holding: Holding, quantity: Decimal) -> Holding | None:
    remaining = Decimal(str(holding.quantity)) - quantity
    if remaining <= HOLDING_EPSILON:
        db.delete(holding)
        return None
    holding.quantity = remaining
    return holding


def execute_trade(
    db: Session,
    client: MarketStackClient | None,
    game_id: int,
    user_id: int,
    trade_type: str,
    symbol: str,
    quantity: Decimal,
    locks: GameLocks = GAME_LOCKS,
) -> TradeResult:
    if trade_type not in TRANSACTION_TYPES:
        raise ValidationError(f"Unknown trade type: {trade_type}", code="invalid_trade_type")
    symbol = symbol.strip().upper()
    quantity = Decimal(quantity).quantize(HOLDING_EPSILON, rounding=ROUND_DOWN)
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than 0", code="invalid_quantity")
    if not is_valid_symbol(symbol):
        raise ValidationError(f"Invalid symbol: {symbol}", code="invalid_symbol")

    with locks.hold(game_id):
        game = get_game_or_raise(db, game_id, user_id)
        day = game.current_date
        # may hit the provider and commit the fetched bar, so it runs before any row lock
        price = get_price(db, client, symbol, day)
        if price is None:
            raise NotFoundError(f"Price for {symbol} on {day.isoformat()}")

        try:
            game = get_game_or_raise(db, game_id, user_id, for_update=True)
            long_holding = _holding_for_update(db, game_id, symbol, is_short=False)
            short_holding = _holding_for_update(db, game_id, symbol, is_short=True)

            if trade_type == "buy":
                check = validate_buy(game, symbol, quantity, price, short_holding)
            elif trade_type == "sell":
                check = validate_sell(game, symbol, quantity, long_holding)
            elif trade_type == "short":
                check = validate_short(game, symbol, quantity, price, long_holding)
            else:
                check = validate_cover(game, symbol, quantity, price, short_holding)
            check.raise_if_invalid()

            preview = calculate_transaction_preview(trade_type, quantity, price, Decimal(str(game.transaction_fees)))
            new_balance = money(Decimal(str(game.current_balance)) + preview.balance_change)
            game.current_balance = new_balance

            realized: Decimal | None = None
            if trade_type == "buy":
                holding = _open_or_add(db, game, long_holding, symbol, False, quantity, price)
            elif trade_type == "short":
                holding = _open_or_add(db, game, short_holding, symbol, True, quantity, price)
            elif trade_type == "sell":
                realized = money((price - Decimal(str(long_holding.average_cost))) * quantity)
                holding = _reduce(db, long_holding, quantity)
            else:
                realized = money((Decimal(str(short_holding.average_cost)) - price) * quantity)
                holding = _reduce(db, short_holding, quantity)

            tx = Transaction(
                game_id=game.id,
                symbol=symbol,
                type=trade_type,
                quantity=quantity,
                price=price,
                fee=money(preview.fee_amount),
                total=money(preview.total),
                transaction_date=day,
            )
            db.add(tx)
            db.commit()
        except FinanceQuestError:
            db.rollback()
            raise

        db.refresh(tx)
        if holding is not None:
            db.refresh(holding)
        logger.info(
            "Game %s: %s %s %s @ %s (fee %s, balance %s)",
            game_id,
            trade_type,
            quantity.normalize(),
            symbol,
            price,
            tx.fee,
            new_balance,
        )

        unlocked = check_and_unlock_achievements(db, game_id)
        try:
            portfolio = calculate_portfolio(db, game_id, day)
        except Exception:
            logger.exception("Game %s: portfolio recompute after trade failed", game_id)
            portfolio = None

    return TradeResult(
        transaction=tx,
        holding=holding,
        new_balance=new_balance,
        preview=preview,
        realized_pnl=realized,
        portfolio=portfolio,
        achievements_unlocked=unlocked,
    )
