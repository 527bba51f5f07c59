import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field


class AssetOut(BaseModel):
    symbol: str
    name: str
    type: str
    category: str | None = None
    exchange: str | None = None


class PriceOut(BaseModel):
    symbol: str
    date: dt.date
    price: float | None = None


class PriceBarOut(BaseModel):
    symbol: str
    date: dt.date
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float
    volume: int | None = None


class PriceHistoryOut(BaseModel):
    symbol: str
    date_from: dt.date
    date_to: dt.date
    bars: list[PriceBarOut]


class GameSettingsIn(BaseModel):
    transaction_fees: Decimal = Field(default=Decimal("0.25"), ge=0, le=5)
    allow_shorting: bool = True
    allow_leverage: bool = False


class GameCreateIn(BaseModel):
    start_date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    settings: GameSettingsIn | None = None


class GameStatusIn(BaseModel):
    status: str = Field(pattern=r"^(active|paused|completed)$")


class PortfolioOut(BaseModel):
    current_balance: float
    portfolio_value_long: float
    short_positions_pnl: float
    total_value: float
    return_percentage: float
    score: int
    skipped_holdings: int = 0
    missing_symbols: list[str] = []


class HoldingOut(BaseModel):
    id: int
    symbol: str
    quantity: float
    average_cost: float
    is_short: bool


class HoldingValueOut(BaseModel):
    id: int
    symbol: str
    quantity: float
    average_cost: float
    is_short: bool
    current_price: float
    current_value: float
    profit_loss: float
    profit_loss_percentage: float


class TransactionOut(BaseModel):
    id: int
    symbol: str
    type: str
    quantity: float
    price: float
    fee: float
    total: float
    transaction_date: dt.date
    created_at: dt.datetime


class AchievementOut(BaseModel):
    name: str
    description: str
    points: int
    icon: str | None = None


class GameOut(BaseModel):
    id: int
    start_date: dt.date
    current_date: dt.date
    initial_balance: float
    current_balance: float
    status: str
    transaction_fees: float
    allow_shorting: bool
    allow_leverage: bool
    created_at: dt.datetime
    updated_at: dt.datetime
    total_value: float | None = None
    return_percentage: float | None = None
    score: int | None = None
    achievements_unlocked: int = 0
    remaining_days: int = 0


class PrefetchOut(BaseModel):
    success: bool
    strategy: str
    records_stored: int
    message: str | None = None


class GameCreateOut(BaseModel):
    game: GameOut
    prefetch: PrefetchOut


class GameDetailOut(BaseModel):
    game: GameOut
    portfolio: PortfolioOut
    holdings: list[HoldingValueOut]
    recent_transactions: list[TransactionOut]
    achievements: list[AchievementOut]
    available_achievements: list[AchievementOut] = []


class NextDayOut(BaseModel):
    success: bool = True
    new_date: dt.date
    records_prefetched: int
    portfolio: PortfolioOut
    achievements_unlocked: list[AchievementOut] = []


class TradeIn(BaseModel):
    game_id: int
    symbol: str = Field(min_length=1, max_length=20)
    quantity: Decimal = Field(gt=0, max_digits=23, decimal_places=8)


class TradePreviewIn(BaseModel):
    game_id: int
    type: str = Field(pattern=r"^(buy|sell|short|cover)$")
    symbol: str = Field(min_length=1, max_length=20)
    quantity: Decimal = Field(gt=0, max_digits=23, decimal_places=8)


class TradePreviewOut(BaseModel):
    symbol: str
    type: str
    price: float
    subtotal: float
    fee_amount: float
    total: float
    balance_change: float


class TradeOut(BaseModel):
    transaction: TransactionOut
    holding: HoldingOut | None = None
    new_balance: float
    realized_pnl: float | None = None
    portfolio: PortfolioOut | None = None
    achievements_unlocked: list[AchievementOut] = []


class LeaderboardEntryOut(BaseModel):
    rank: int
    game_id: int
    user_name: str
    total_value: float
    return_percentage: float
    score: int
    start_date: dt.date
    current_date: dt.date


class LeaderboardOut(BaseModel):
    period: str
    entries: list[LeaderboardEntryOut]
    total: int


class CacheStatsOut(BaseModel):
    unique_symbols: int
    total_records: int
    oldest_date: dt.date | None = None
    newest_date: dt.date | None = None
    estimated_size_mb: float


class ApiQuotaOut(BaseModel):
    requests_remaining: int
    requests_limit: int
    local_remaining: int
    reset_date: dt.datetime | None = None
    last_updated: dt.datetime | None = None


class MonitoringOut(BaseModel):
    users: int
    games: int
    active_games: int
    cache: CacheStatsOut
    api: ApiQuotaOut


class CronOut(BaseModel):
    success: bool
    records_stored: int = 0
    deleted_count: int = 0
    message: str | None = None
