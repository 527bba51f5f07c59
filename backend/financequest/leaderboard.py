import calendar
import datetime as dt
import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from .calculations import PortfolioSnapshot, calculate_portfolio
from .errors import ValidationError
from .models import Game

logger = logging.getLogger(__name__)

PERIODS = ("all_time", "monthly", "weekly")
MAX_LIMIT = 100


@dataclass
class LeaderboardEntry:
    rank: int
    game_id: int
    user_name: str
    total_value: Decimal
    return_percentage: Decimal
    score: int
    start_date: dt.date
    current_date: dt.date


def _one_month_before(moment: dt.datetime) -> dt.datetime:
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def period_cutoff(period: str, now: dt.datetime) -> dt.datetime | None:
    if period == "weekly":
        return now - dt.timedelta(days=7)
    if period == "monthly":
        return _one_month_before(now)
    return None


def build_leaderboard(
    db: Session,
    period: str = "all_time",
    limit: int = 50,
    now: dt.datetime | None = None,
) -> list[LeaderboardEntry]:
    """Rank active games by score.

    Equal scores go to the game whose state was reached first (older
    updated_at), then to the lower game id. Games whose valuation fails are
    logged and left out.
    """
    if period not in PERIODS:
        raise ValidationError(f"Invalid period: {period}", code="invalid_period")
    if limit < 1 or limit > MAX_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {MAX_LIMIT}", code="invalid_limit")

    stmt = select(Game).options(joinedload(Game.user)).where(Game.status == "active")
    cutoff = period_cutoff(period, now or dt.datetime.utcnow())
    if cutoff is not None:
        stmt = stmt.where(Game.updated_at >= cutoff)
    games = list(db.execute(stmt).scalars())
    logger.info("Leaderboard: %d active games for %s", len(games), period)

    rows: list[tuple[Game, PortfolioSnapshot]] = []
    for game in games:
        try:
            portfolio = calculate_portfolio(db, game.id, game.current_date)
        except Exception:
            logger.exception("Leaderboard: valuation failed for game %s", game.id)
            continue
        if portfolio is None:
            logger.warning("Leaderboard: no portfolio for game %s", game.id)
            continue
        rows.append((game, portfolio))

    rows.sort(key=lambda r: (-r[1].score, r[0].updated_at, r[0].id))
    return [
        LeaderboardEntry(
            rank=i,
            game_id=game.id,
            user_name=game.user.name,
            total_value=portfolio.total_value,
            return_percentage=portfolio.return_percentage,
            score=portfolio.score,
            start_date=game.start_date,
            current_date=game.current_date,
        )
        for i, (game, portfolio) in enumerate(rows[:limit], start=1)
    ]
