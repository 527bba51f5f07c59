"""Trade and game-creation preconditions.

Every check here is a pure function over objects the caller already loaded;
nothing reads the database or the provider.
"""

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal

from .assets import is_valid_symbol
from .calculations import calculate_transaction_preview
from .dates import MAX_GAME_LOOKBACK_YEARS, MIN_GAME_DATE, parse_date, years_before
from .errors import ConflictingPosition, ValidationError
from .models import Game, Holding

SHORT_MARGIN_RATIO = Decimal("0.5")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None
    code: str | None = None

    def raise_if_invalid(self) -> None:
        if self.valid:
            return
        if self.code == "conflicting_position":
            raise ConflictingPosition(self.error or "Conflicting position")
        raise ValidationError(self.error or "Validation failed", code=self.code or "validation_error")


OK = ValidationResult(valid=True)


def _fail(code: str, error: str) -> ValidationResult:
    return ValidationResult(valid=False, error=error, code=code)


def _common(game: Game, symbol: str, quantity: Decimal) -> ValidationResult | None:
    if quantity <= 0:
        return _fail("invalid_quantity", "Quantity must be greater than 0")
    if not is_valid_symbol(symbol):
        return _fail("invalid_symbol", f"Invalid symbol: {symbol}")
    if game.status != "active":
        return _fail("game_not_active", "Game is not active")
    return None


def validate_buy(
    game: Game,
    symbol: str,
    quantity: Decimal,
    price: Decimal,
    short_holding: Holding | None,
) -> ValidationResult:
    failure = _common(game, symbol, quantity)
    if failure:
        return failure
    if short_holding is not None:
        return _fail(
            "conflicting_position",
            f"Cannot buy {symbol}: you have an open short position on this asset",
        )

    preview = calculate_transaction_preview("buy", quantity, price, Decimal(str(game.transaction_fees)))
    balance = Decimal(str(game.current_balance))
    if balance < preview.total:
        return _fail(
            "insufficient_balance",
            f"Insufficient balance. Required: {preview.total:.2f}, available: {balance:.2f}",
        )
    return OK


def validate_sell(
    game: Game,
    symbol: str,
    quantity: Decimal,
    long_holding: Holding | None,
) -> ValidationResult:
    failure = _common(game, symbol, quantity)
    if failure:
        return failure
    if long_holding is None:
        return _fail("no_position", f"You do not hold {symbol}")

    owned = Decimal(str(long_holding.quantity))
    if owned < quantity:
        return _fail("insufficient_quantity", f"Insufficient quantity. Held: {owned.normalize()}, requested: {quantity}")
    return OK


def validate_short(
    game: Game,
    symbol: str,
    quantity: Decimal,
    price: Decimal,
    long_holding: Holding | None,
) -> ValidationResult:
    if not game.allow_shorting:
        return _fail("shorting_disabled", "Short selling is not enabled for this game")
    failure = _common(game, symbol, quantity)
    if failure:
        return failure
    if long_holding is not None:
        return _fail(
            "conflicting_position",
            f"Cannot short {symbol}: you already hold a long position on this asset",
        )

    # simplified margin: half of the notional must be covered by cash
    margin_required = Decimal(quantity) * Decimal(price) * SHORT_MARGIN_RATIO
    balance = Decimal(str(game.current_balance))
    if balance < margin_required:
        return _fail(
            "insufficient_margin",
            f"Insufficient margin. Required: {margin_required:.2f}, available: {balance:.2f}",
        )
    return OK


def validate_cover(
    game: Game,
    symbol: str,
    quantity: Decimal,
    price: Decimal,
    short_holding: Holding | None,
) -> ValidationResult:
    failure = _common(game, symbol, quantity)
    if failure:
        return failure
    if short_holding is None:
        return _fail("no_position", f"You have no short position on {symbol}")

    shorted = Decimal(str(short_holding.quantity))
    if shorted < quantity:
        return _fail(
            "insufficient_quantity",
            f"Insufficient quantity. Short position: {shorted.normalize()}, requested: {quantity}",
        )

    preview = calculate_transaction_preview("cover", quantity, price, Decimal(str(game.transaction_fees)))
    balance = Decimal(str(game.current_balance))
    if balance < preview.total:
        return _fail(
            "insufficient_balance",
            f"Insufficient balance to cover. Required: {preview.total:.2f}, available: {balance:.2f}",
        )
    return OK


def validate_game_creation(
    start_date: str | dt.date,
    active_games: int,
    max_active_games: int,
    today: dt.date | None = None,
) -> ValidationResult:
    try:
        start = parse_date(start_date)
    except ValueError:
        return _fail("invalid_date", "Invalid date format (YYYY-MM-DD)")

    now = today or dt.date.today()
    if start < MIN_GAME_DATE:
        return _fail("invalid_date", f"Start date must be on or after {MIN_GAME_DATE.isoformat()}")
    if start > now:
        return _fail("invalid_date", "Start date cannot be in the future")
    if start < years_before(now, MAX_GAME_LOOKBACK_YEARS):
        return _fail("invalid_date", f"Start date must be within the last {MAX_GAME_LOOKBACK_YEARS} years")

    if active_games >= max_active_games:
        return _fail(
            "too_many_games",
            f"Limit of {max_active_games} active games reached. Finish or pause an existing game.",
        )
    return OK
