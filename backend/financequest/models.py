from __future__ import annotations
import datetime as dt
from decimal import Decimal
from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from .db import Base

MONEY = Numeric(15, 2)
PRICE = Numeric(15, 4)
QTY = Numeric(15, 8)

GAME_STATUSES = ("active", "paused", "completed")
TRANSACTION_TYPES = ("buy", "sell", "short", "cover")


class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(128))
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)

    games: Mapped[list["Game"]] = relationship(back_populates="user", cascade="all, delete-orphan")


class Game(Base):
    __tablename__ = "games"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    start_date: Mapped[dt.date] = mapped_column(Date)
    current_date: Mapped[dt.date] = mapped_column("current_game_date", Date, index=True)
    initial_balance: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("10000.00"))
    current_balance: Mapped[Decimal] = mapped_column(MONEY)
    status: Mapped[str] = mapped_column(String(16), default="active", index=True)

    # settings
    transaction_fees: Mapped[Decimal] = mapped_column(Numeric(6, 3), default=Decimal("0.25"))
    allow_shorting: Mapped[bool] = mapped_column(Boolean, default=True)
    allow_leverage: Mapped[bool] = mapped_column(Boolean, default=False)  # not used yet

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime,
        default=dt.datetime.utcnow,
        onupdate=dt.datetime.utcnow,
        index=True,
    )

    user: Mapped["User"] = relationship(back_populates="games")
    holdings: Mapped[list["Holding"]] = relationship(back_populates="game", cascade="all, delete-orphan")
    transactions: Mapped[list["Transaction"]] = relationship(back_populates="game", cascade="all, delete-orphan")
    achievements: Mapped[list["UserAchievement"]] = relationship(back_populates="game", cascade="all, delete-orphan")


class Holding(Base):
    __tablename__ = "holdings"
    __table_args__ = (UniqueConstraint("game_id", "symbol", "is_short", name="uq_game_symbol_side"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), index=True)
    symbol: Mapped[str] = mapped_column(String(20), index=True)
    quantity: Mapped[Decimal] = mapped_column(QTY)
    average_cost: Mapped[Decimal] = mapped_column(PRICE)
    is_short: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow)

    game: Mapped["Game"] = relationship(back_populates="holdings")


class Transaction(Base):
    __tablename__ = "transactions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), index=True)
    symbol: Mapped[str] = mapped_column(String(20))

    type: Mapped[str] = mapped_column(String(8))  # buy, sell, short, cover
    quantity: Mapped[Decimal] = mapped_column(QTY)
    price: Mapped[Decimal] = mapped_column(PRICE)
    fee: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    total: Mapped[Decimal] = mapped_column(MONEY)
    transaction_date: Mapped[dt.date] = mapped_column(Date)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow, index=True)

    game: Mapped["Game"] = relationship(back_populates="transactions")


class MarketDataCache(Base):
    """One end-of-day bar per (symbol, date). Rows are never updated."""

    __tablename__ = "market_data_cache"

    symbol: Mapped[str] = mapped_column(String(20), primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, primary_key=True, index=True)
    open: Mapped[Decimal | None] = mapped_column(PRICE, nullable=True)
    high: Mapped[Decimal | None] = mapped_column(PRICE, nullable=True)
    low: Mapped[Decimal | None] = mapped_column(PRICE, nullable=True)
    close: Mapped[Decimal] = mapped_column(PRICE, nullable=False)
    volume: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    cached_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)


class ApiStat(Base):
    __tablename__ = "api_stats"

    provider: Mapped[str] = mapped_column(String(32), primary_key=True)
    requests_remaining: Mapped[int] = mapped_column(Integer)
    requests_limit: Mapped[int] = mapped_column(Integer)
    reset_date: Mapped[dt.datetime | None] = mapped_column(DateTime, nullable=True)
    last_updated: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)


class Achievement(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), unique=True)
    description: Mapped[str] = mapped_column(Text)
    criteria_type: Mapped[str] = mapped_column(String(32))
    criteria_value: Mapped[dict] = mapped_column(JSON, default=dict)
    points: Mapped[int] = mapped_column(Integer, default=0)
    icon: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)


class UserAchievement(Base):
    __tablename__ = "user_achievements"
    __table_args__ = (UniqueConstraint("game_id", "achievement_id", name="uq_game_achievement"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), index=True)
    achievement_id: Mapped[int] = mapped_column(ForeignKey("achievements.id", ondelete="CASCADE"), index=True)
    unlocked_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)

    game: Mapped["Game"] = relationship(back_populates="achievements")
    achievement: Mapped["Achievement"] = relationship()
