import datetime as dt
import logging
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from .achievements import check_and_unlock_achievements
from .calculations import PortfolioSnapshot, calculate_portfolio
from .dates import next_business_day, today as real_today
from .errors import ValidationError
from .games import get_game_or_raise
from .ledger import GAME_LOCKS, GameLocks
from .marketstack import MarketStackClient
from .models import Achievement
from .prefetch import prefetch_single_day

logger = logging.getLogger(__name__)

MAX_REMAINING_DAYS = 10000


@dataclass
class NextDayResult:
    new_date: dt.date
    records_prefetched: int
    portfolio: PortfolioSnapshot
    achievements_unlocked: list[Achievement] = field(default_factory=list)


def advance_to_next_day(
    db: Session,
    client: MarketStackClient | None,
    game_id: int,
    user_id: int | None = None,
    today: dt.date | None = None,
    locks: GameLocks = GAME_LOCKS,
) -> NextDayResult:
    """Move the game to its next business day.

    The new day's closes are pulled for the whole universe before revaluing,
    so the valuation reads a warm cache. Raises ValidationError if the game is
    not active or the next business day is past real-world today.
    """
    now = today or real_today()
    with locks.hold(game_id):
        game = get_game_or_raise(db, game_id, user_id)
        if game.status != "active":
            raise ValidationError("Game is not active", code="game_not_active")

        next_date = next_business_day(game.current_date)
        if next_date > now:
            raise ValidationError(
                "You have reached today's date. The game can not advance any further.",
                code="date_limit_reached",
            )
        logger.info("Game %s: advancing %s -> %s", game_id, game.current_date, next_date)

        prefetched = prefetch_single_day(db, client, next_date) if client is not None else 0

        portfolio = calculate_portfolio(db, game_id, next_date)
        if portfolio is None:
            raise ValidationError("Portfolio could not be computed", code="portfolio_error")

        game = get_game_or_raise(db, game_id, user_id, for_update=True)
        game.current_date = next_date
        db.commit()

        unlocked = check_and_unlock_achievements(db, game_id)

    return NextDayResult(
        new_date=next_date,
        records_prefetched=prefetched,
        portfolio=portfolio,
        achievements_unlocked=unlocked,
    )


def advance_multiple_days(
    db: Session,
    client: MarketStackClient | None,
    game_id: int,
    days: int,
    user_id: int | None = None,
    today: dt.date | None = None,
) -> NextDayResult | None:
    """Advance up to `days` times, stopping at the first refusal after progress was made."""
    last: NextDayResult | None = None
    for _ in range(days):
        try:
            last = advance_to_next_day(db, client, game_id, user_id=user_id, today=today)
        except ValidationError as exc:
            if last is None:
                raise
            logger.info("Game %s: stopped fast-forward at %s: %s", game_id, last.new_date, exc)
            break
    return last


def get_remaining_days(current_date: dt.date, today: dt.date | None = None) -> int:
    """Business days the game can still advance before reaching today."""
    now = today or real_today()
    count = 0
    day = next_business_day(current_date)
    while day <= now and count < MAX_REMAINING_DAYS:
        count += 1
        day = next_business_day(day)
    return count
