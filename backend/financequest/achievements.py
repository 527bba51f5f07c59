"""Achievement criteria and the best-effort unlock pass run after trades and day advances.

Stored criteria are (criteria_type, criteria_value JSON) pairs. They are parsed
into one dataclass per kind so evaluation is an exhaustive dispatch instead of
key lookups on an untyped dict.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Union

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .assets import get_asset
from .calculations import PortfolioSnapshot, calculate_portfolio
from .models import Achievement, Game, Holding, Transaction, UserAchievement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FirstTransaction:
    pass


@dataclass(frozen=True)
class AssetCount:
    min_count: int


@dataclass(frozen=True)
class PortfolioValue:
    min_value: Decimal


@dataclass(frozen=True)
class ReturnPercentage:
    min_return: Decimal


@dataclass(frozen=True)
class SpecificAssetType:
    asset_type: str
    min_count: int


Criteria = Union[FirstTransaction, AssetCount, PortfolioValue, ReturnPercentage, SpecificAssetType]

CRITERIA_TYPES = ("first_transaction", "asset_count", "portfolio_value", "return_percentage", "specific_trade")


def parse_criteria(criteria_type: str, value: dict[str, Any] | None) -> Criteria:
    value = value or {}
    if criteria_type == "first_transaction":
        return FirstTransaction()
    if criteria_type == "asset_count":
        return AssetCount(min_count=int(value["min_count"]))
    if criteria_type == "portfolio_value":
        return PortfolioValue(min_value=Decimal(str(value["min_value"])))
    if criteria_type == "return_percentage":
        return ReturnPercentage(min_return=Decimal(str(value["min_return"])))
    if criteria_type == "specific_trade":
        return SpecificAssetType(asset_type=str(value["asset_type"]), min_count=int(value["min_count"]))
    raise ValueError(f"Unknown achievement criteria type: {criteria_type}")


def _asset_type(symbol: str) -> str | None:
    asset = get_asset(symbol)
    return asset.type if asset else None


@dataclass
class GameFacts:
    transaction_count: int
    long_symbols: set[str]
    portfolio: PortfolioSnapshot | None


def criteria_met(criteria: Criteria, facts: GameFacts) -> bool:
    if isinstance(criteria, FirstTransaction):
        return facts.transaction_count >= 1
    if isinstance(criteria, AssetCount):
        return len(facts.long_symbols) >= criteria.min_count
    if isinstance(criteria, PortfolioValue):
        return facts.portfolio is not None and facts.portfolio.total_value >= criteria.min_value
    if isinstance(criteria, ReturnPercentage):
        return facts.portfolio is not None and facts.portfolio.return_percentage >= criteria.min_return
    if isinstance(criteria, SpecificAssetType):
        held = [s for s in facts.long_symbols if _asset_type(s) == criteria.asset_type]
        return len(held) >= criteria.min_count
    raise TypeError(f"Unhandled achievement criteria: {criteria!r}")


def collect_game_facts(db: Session, game: Game) -> GameFacts:
    tx_count = db.execute(select(func.count()).select_from(Transaction).where(Transaction.game_id == game.id)).scalar_one()
    long_symbols = set(
        db.execute(
            select(Holding.symbol).where(Holding.game_id == game.id, Holding.is_short.is_(False)).distinct()
        ).scalars()
    )
    return GameFacts(
        transaction_count=int(tx_count),
        long_symbols=long_symbols,
        portfolio=calculate_portfolio(db, game.id, game.current_date),
    )


def unlocked_achievements(db: Session, game_id: int) -> list[Achievement]:
    return list(
        db.execute(
            select(Achievement)
            .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
            .where(UserAchievement.game_id == game_id)
            .order_by(UserAchievement.unlocked_at, Achievement.id)
        ).scalars()
    )


def available_achievements(db: Session, game_id: int) -> list[Achievement]:
    """Catalogue entries this game has not unlocked yet."""
    unlocked = select(UserAchievement.achievement_id).where(UserAchievement.game_id == game_id)
    return list(
        db.execute(select(Achievement).where(Achievement.id.not_in(unlocked)).order_by(Achievement.id)).scalars()
    )


def total_achievement_points(db: Session, game_id: int) -> int:
    return sum(a.points for a in unlocked_achievements(db, game_id))


def check_and_unlock_achievements(db: Session, game_id: int) -> list[Achievement]:
    """Unlock whatever the game now qualifies for. Never raises."""
    try:
        game = db.get(Game, game_id)
        if game is None:
            logger.error("Achievements: game %s not found", game_id)
            return []

        already = set(
            db.execute(select(UserAchievement.achievement_id).where(UserAchievement.game_id == game_id)).scalars()
        )
        pending = [a for a in db.execute(select(Achievement).order_by(Achievement.id)).scalars() if a.id not in already]
        if not pending:
            return []

        facts = collect_game_facts(db, game)
        newly: list[Achievement] = []
        for achievement in pending:
            try:
                criteria = parse_criteria(achievement.criteria_type, achievement.criteria_value)
            except (KeyError, TypeError, ValueError):
                logger.warning("Achievements: bad criteria on %r, skipping", achievement.name)
                continue
            if criteria_met(criteria, facts):
                db.add(UserAchievement(user_id=game.user_id, game_id=game_id, achievement_id=achievement.id))
                newly.append(achievement)
                logger.info("Achievements: game %s unlocked %r", game_id, achievement.name)

        if newly:
            db.commit()
        return newly
    except Exception:
        logger.exception("Achievements: check failed for game %s", game_id)
        db.rollback()
        return []
