import datetime as dt
import logging
import os
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .dates import parse_date, today as real_today
from .errors import ForbiddenError, NotFoundError, ValidationError
from .marketstack import MarketStackClient
from .models import GAME_STATUSES, Game, User
from .prefetch import PrefetchResult, smart_prefetch
from .validations import validate_game_creation

logger = logging.getLogger(__name__)

MAX_ACTIVE_GAMES = int(os.environ.get("MAX_ACTIVE_GAMES", "5"))
DEFAULT_INITIAL_BALANCE = Decimal(os.environ.get("DEFAULT_INITIAL_BALANCE", "10000.00"))
DEFAULT_TRANSACTION_FEES = Decimal("0.25")
MAX_TRANSACTION_FEES = Decimal("5")
RETENTION_DAYS = 90


@dataclass
class GameSettings:
    transaction_fees: Decimal = DEFAULT_TRANSACTION_FEES
    allow_shorting: bool = True
    allow_leverage: bool = False


def get_game_or_raise(db: Session, game_id: int, user_id: int | None = None, for_update: bool = False) -> Game:
    stmt = select(Game).where(Game.id == game_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    game = db.execute(stmt).scalar_one_or_none()
    if not game:
        raise NotFoundError("Game")
    if user_id is not None and game.user_id != user_id:
        raise ForbiddenError()
    return game


def count_active_games(db: Session, user_id: int) -> int:
    return int(
        db.execute(
            select(func.count()).select_from(Game).where(Game.user_id == user_id, Game.status == "active")
        ).scalar_one()
    )


def list_games(db: Session, user_id: int) -> list[Game]:
    return list(
        db.execute(select(Game).where(Game.user_id == user_id).order_by(Game.updated_at.desc(), Game.id.desc())).scalars()
    )


def create_game(
    db: Session,
    client: MarketStackClient,
    user_id: int,
    start_date: str | dt.date,
    settings: GameSettings | None = None,
    today: dt.date | None = None,
) -> tuple[Game, PrefetchResult]:
    """Validate, insert the game, then warm the cache for its history window.

    A failed or empty prefetch does not undo the game; it only shows up in the
    returned PrefetchResult.
    """
    settings = settings or GameSettings()
    if settings.transaction_fees < 0 or settings.transaction_fees > MAX_TRANSACTION_FEES:
        raise ValidationError(f"Transaction fees must be between 0 and {MAX_TRANSACTION_FEES}%", code="invalid_settings")

    if db.get(User, user_id) is None:
        raise NotFoundError("User")

    result = validate_game_creation(
        start_date,
        active_games=count_active_games(db, user_id),
        max_active_games=MAX_ACTIVE_GAMES,
        today=today or real_today(),
    )
    result.raise_if_invalid()
    start = parse_date(start_date)

    game = Game(
        user_id=user_id,
        start_date=start,
        current_date=start,
        initial_balance=DEFAULT_INITIAL_BALANCE,
        current_balance=DEFAULT_INITIAL_BALANCE,
        status="active",
        transaction_fees=settings.transaction_fees,
        allow_shorting=settings.allow_shorting,
        allow_leverage=settings.allow_leverage,
    )
    db.add(game)
    db.commit()
    db.refresh(game)
    logger.info("Game %s created for user %s starting %s", game.id, user_id, start)

    prefetch = smart_prefetch(db, client, start)
    logger.info("Game %s prefetch: %s, %d records", game.id, prefetch.strategy, prefetch.records_stored)
    return game, prefetch


def set_game_status(db: Session, game_id: int, user_id: int, status: str) -> Game:
    if status not in GAME_STATUSES:
        raise ValidationError(f"Unknown game status: {status}", code="invalid_status")
    game = get_game_or_raise(db, game_id, user_id, for_update=True)
    if game.status == "completed" and status != "completed":
        raise ValidationError("A completed game can not be reopened", code="game_not_active")
    if status == "active" and game.status != "active" and count_active_games(db, user_id) >= MAX_ACTIVE_GAMES:
        raise ValidationError(f"Limit of {MAX_ACTIVE_GAMES} active games reached", code="too_many_games")
    game.status = status
    db.commit()
    db.refresh(game)
    return game


def cleanup_inactive_games(db: Session, days: int = RETENTION_DAYS, now: dt.datetime | None = None) -> int:
    """Delete completed games untouched for `days`. Paused games are kept."""
    cutoff = (now or dt.datetime.utcnow()) - dt.timedelta(days=days)
    ids = list(
        db.execute(select(Game.id).where(Game.status == "completed", Game.updated_at < cutoff)).scalars()
    )
    if not ids:
        logger.info("Cleanup: no inactive games before %s", cutoff.isoformat())
        return 0

    # ORM cascade removes holdings, transactions and unlocked achievements
    for game in db.execute(select(Game).where(Game.id.in_(ids))).scalars():
        db.delete(game)
    db.commit()
    logger.info("Cleanup: deleted %d inactive games (cutoff %s)", len(ids), cutoff.isoformat())
    return len(ids)
