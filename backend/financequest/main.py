import datetime as dt
import logging
import os
from decimal import Decimal

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .achievements import available_achievements, unlocked_achievements
from .assets import ASSET_TYPES, assets_by_type, get_asset, search_assets
from .auth import get_admin_user_id, get_current_user_id, require_cron_secret
from .cache import cache_stats, get_price, get_price_history
from .calculations import PortfolioSnapshot, calculate_holdings_values, calculate_portfolio, calculate_transaction_preview
from .dates import parse_date, subtract_days, today as real_today
from .db import SessionLocal, get_db
from .errors import (
    ExternalApiError,
    ForbiddenError,
    NotFoundError,
    RateLimited,
    ValidationError,
)
from .games import GameSettings, cleanup_inactive_games, create_game, get_game_or_raise, list_games, set_game_status
from .leaderboard import MAX_LIMIT as LEADERBOARD_MAX_LIMIT, build_leaderboard
from .ledger import TradeResult, execute_trade
from .marketstack import PROVIDER, MarketStackClient, store_api_stats
from .models import Achievement, ApiStat, Game, Holding, Transaction, User
from .next_day import advance_to_next_day, get_remaining_days
from .prefetch import daily_prefetch_update
from .schemas import (
    AchievementOut,
    ApiQuotaOut,
    AssetOut,
    CacheStatsOut,
    CronOut,
    GameCreateIn,
    GameCreateOut,
    GameDetailOut,
    GameOut,
    GameStatusIn,
    HoldingOut,
    HoldingValueOut,
    LeaderboardEntryOut,
    LeaderboardOut,
    MonitoringOut,
    NextDayOut,
    PortfolioOut,
    PrefetchOut,
    PriceBarOut,
    PriceHistoryOut,
    PriceOut,
    TradeIn,
    TradeOut,
    TradePreviewIn,
    TradePreviewOut,
    TransactionOut,
)
from .seed import init_db, seed

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

HISTORY_DEFAULT_DAYS = 30
RECENT_TRANSACTIONS = 20

app = FastAPI(title="FinanceQuest Market API")
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:3001").split(",")
    if origin.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_market_client: MarketStackClient | None = None


def get_market_client() -> MarketStackClient:
    """Process-wide client, so every request shares one rate-insurance counter."""
    global _market_client
    if _market_client is None:
        _market_client = MarketStackClient(stats_sink=store_api_stats(SessionLocal))
    return _market_client


@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message, "code": exc.code})


@app.exception_handler(NotFoundError)
async def handle_not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ForbiddenError)
async def handle_forbidden(request: Request, exc: ForbiddenError):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(RateLimited)
async def handle_rate_limited(request: Request, exc: RateLimited):
    return JSONResponse(status_code=429, content={"detail": str(exc)})


@app.exception_handler(ExternalApiError)
async def handle_external_api_error(request: Request, exc: ExternalApiError):
    logger.error("Upstream failure on %s %s: %s (code=%s)", request.method, request.url.path, exc, exc.code)
    return JSONResponse(
        status_code=502,
        content={"detail": "Market data is temporarily unavailable. Please try again later."},
    )


@app.on_event("startup")
def on_startup():
    init_db()
    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()


@app.get("/")
def root():
    return {"ok": True, "service": "FinanceQuest Market API", "docs": "/docs", "health": "/healthz"}


@app.get("/healthz")
def healthz():
    return {"ok": True}


def parse_date_param(value: str | None, name: str, default: dt.date | None = None) -> dt.date:
    if not value:
        if default is None:
            raise ValidationError(f"{name} is required", code="invalid_date")
        return default
    try:
        return parse_date(value)
    except ValueError:
        raise ValidationError(f"Invalid {name}: {value!r} (expected YYYY-MM-DD)", code="invalid_date") from None


def to_float(value: Decimal | float | int | None) -> float | None:
    if value is None:
        return None
    return float(value)


def portfolio_out(snapshot: PortfolioSnapshot) -> PortfolioOut:
    return PortfolioOut(
        current_balance=float(snapshot.current_balance),
        portfolio_value_long=float(snapshot.portfolio_value_long),
        short_positions_pnl=float(snapshot.short_positions_pnl),
        total_value=float(snapshot.total_value),
        return_percentage=float(snapshot.return_percentage),
        score=snapshot.score,
        skipped_holdings=snapshot.skipped_holdings,
        missing_symbols=list(snapshot.missing_symbols),
    )


def transaction_out(tx: Transaction) -> TransactionOut:
    return TransactionOut(
        id=tx.id,
        symbol=tx.symbol,
        type=tx.type,
        quantity=float(tx.quantity),
        price=float(tx.price),
        fee=float(tx.fee),
        total=float(tx.total),
        transaction_date=tx.transaction_date,
        created_at=tx.created_at,
    )


def achievement_out(achievement: Achievement) -> AchievementOut:
    return AchievementOut(
        name=achievement.name,
        description=achievement.description,
        points=achievement.points,
        icon=achievement.icon,
    )


def game_out(db: Session, game: Game, snapshot: PortfolioSnapshot | None = None) -> GameOut:
    return GameOut(
        id=game.id,
        start_date=game.start_date,
        current_date=game.current_date,
        initial_balance=float(game.initial_balance),
        current_balance=float(game.current_balance),
        status=game.status,
        transaction_fees=float(game.transaction_fees),
        allow_shorting=bool(game.allow_shorting),
        allow_leverage=bool(game.allow_leverage),
        created_at=game.created_at,
        updated_at=game.updated_at,
        total_value=to_float(snapshot.total_value) if snapshot else None,
        return_percentage=to_float(snapshot.return_percentage) if snapshot else None,
        score=snapshot.score if snapshot else None,
        achievements_unlocked=len(unlocked_achievements(db, game.id)),
        remaining_days=get_remaining_days(game.current_date),
    )


def holding_out(holding: Holding | None) -> HoldingOut | None:
    if holding is None:
        return None
    return HoldingOut(
        id=holding.id,
        symbol=holding.symbol,
        quantity=float(holding.quantity),
        average_cost=float(holding.average_cost),
        is_short=bool(holding.is_short),
    )


def trade_out(result: TradeResult) -> TradeOut:
    return TradeOut(
        transaction=transaction_out(result.transaction),
        holding=holding_out(result.holding),
        new_balance=float(result.new_balance),
        realized_pnl=to_float(result.realized_pnl),
        portfolio=portfolio_out(result.portfolio) if result.portfolio else None,
        achievements_unlocked=[achievement_out(a) for a in result.achievements_unlocked],
    )


@app.get("/market/assets", response_model=list[AssetOut])
def market_assets(
    asset_type: str | None = Query(default=None, alias="type"),
    q: str | None = Query(default=None, max_length=64),
    limit: int = Query(default=300, ge=1, le=500),
):
    if asset_type is not None and asset_type not in ASSET_TYPES:
        raise ValidationError(f"Invalid asset type: {asset_type}", code="invalid_asset_type")
    if q:
        rows = search_assets(q, asset_type=asset_type, limit=limit)
    elif asset_type:
        rows = assets_by_type(asset_type)[:limit]
    else:
        rows = search_assets("", limit=limit)
    return [
        AssetOut(symbol=a.symbol, name=a.name, type=a.type, category=a.category, exchange=a.exchange)
        for a in rows
    ]


@app.get("/market/price", response_model=PriceOut)
def market_price(
    symbol: str = Query(min_length=1, max_length=20),
    date: str | None = Query(default=None),
    db: Session = Depends(get_db),
    client: MarketStackClient = Depends(get_market_client),
):
    if get_asset(symbol) is None:
        raise ValidationError(f"Invalid symbol: {symbol}", code="invalid_symbol")
    day = parse_date_param(date, "date", default=real_today())
    price = get_price(db, client, symbol, day)
    return PriceOut(symbol=symbol, date=day, price=to_float(price))


@app.get("/market/history", response_model=PriceHistoryOut)
def market_history(
    symbol: str = Query(min_length=1, max_length=20),
    date_from: str | None = Query(default=None),
    date_to: str | None = Query(default=None),
    db: Session = Depends(get_db),
    client: MarketStackClient = Depends(get_market_client),
):
    if get_asset(symbol) is None:
        raise ValidationError(f"Invalid symbol: {symbol}", code="invalid_symbol")
    end = parse_date_param(date_to, "date_to", default=real_today())
    start = parse_date_param(date_from, "date_from", default=subtract_days(end, HISTORY_DEFAULT_DAYS))
    if start > end:
        raise ValidationError("date_from must be on or before date_to", code="invalid_date")

    rows = get_price_history(db, client, symbol, start, end)
    return PriceHistoryOut(
        symbol=symbol,
        date_from=start,
        date_to=end,
        bars=[
            PriceBarOut(
                symbol=row.symbol,
                date=row.date,
                open=to_float(row.open),
                high=to_float(row.high),
                low=to_float(row.low),
                close=float(row.close),
                volume=row.volume,
            )
            for row in rows
        ],
    )


@app.post("/games", response_model=GameCreateOut)
def games_create(
    payload: GameCreateIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    client: MarketStackClient = Depends(get_market_client),
):
    settings = GameSettings()
    if payload.settings is not None:
        settings = GameSettings(
            transaction_fees=payload.settings.transaction_fees,
            allow_shorting=payload.settings.allow_shorting,
            allow_leverage=payload.settings.allow_leverage,
        )
    game, prefetch = create_game(db, client, user_id, payload.start_date, settings)
    return GameCreateOut(
        game=game_out(db, game, calculate_portfolio(db, game.id, game.current_date)),
        prefetch=PrefetchOut(
            success=prefetch.success,
            strategy=prefetch.strategy,
            records_stored=prefetch.records_stored,
            message=prefetch.message or prefetch.error,
        ),
    )


@app.get("/games", response_model=list[GameOut])
def games_list(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    out: list[GameOut] = []
    for game in list_games(db, user_id):
        out.append(game_out(db, game, calculate_portfolio(db, game.id, game.current_date)))
    return out


@app.get("/games/{game_id}", response_model=GameDetailOut)
def games_detail(game_id: int, user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    game = get_game_or_raise(db, game_id, user_id)
    snapshot = calculate_portfolio(db, game.id, game.current_date)
    holdings = calculate_holdings_values(db, game.id, game.current_date)
    recent = db.execute(
        select(Transaction)
        .where(Transaction.game_id == game.id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(RECENT_TRANSACTIONS)
    ).scalars()
    return GameDetailOut(
        game=game_out(db, game, snapshot),
        portfolio=portfolio_out(snapshot),
        holdings=[
            HoldingValueOut(
                id=h.holding_id,
                symbol=h.symbol,
                quantity=float(h.quantity),
                average_cost=float(h.average_cost),
                is_short=h.is_short,
                current_price=float(h.current_price),
                current_value=float(h.current_value),
                profit_loss=float(h.profit_loss),
                profit_loss_percentage=float(h.profit_loss_percentage),
            )
            for h in holdings
        ],
        recent_transactions=[transaction_out(tx) for tx in recent],
        achievements=[achievement_out(a) for a in unlocked_achievements(db, game.id)],
        available_achievements=[achievement_out(a) for a in available_achievements(db, game.id)],
    )


@app.patch("/games/{game_id}/status", response_model=GameOut)
def games_status(
    game_id: int,
    payload: GameStatusIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    game = set_game_status(db, game_id, user_id, payload.status)
    return game_out(db, game, calculate_portfolio(db, game.id, game.current_date))


@app.post("/games/{game_id}/next-day", response_model=NextDayOut)
def games_next_day(
    game_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    client: MarketStackClient = Depends(get_market_client),
):
    result = advance_to_next_day(db, client, game_id, user_id=user_id)
    return NextDayOut(
        new_date=result.new_date,
        records_prefetched=result.records_prefetched,
        portfolio=portfolio_out(result.portfolio),
        achievements_unlocked=[achievement_out(a) for a in result.achievements_unlocked],
    )


@app.post("/trades/preview", response_model=TradePreviewOut)
def trades_preview(
    payload: TradePreviewIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    client: MarketStackClient = Depends(get_market_client),
):
    game = get_game_or_raise(db, payload.game_id, user_id)
    symbol = payload.symbol.strip().upper()
    if get_asset(symbol) is None:
        raise ValidationError(f"Invalid symbol: {symbol}", code="invalid_symbol")
    price = get_price(db, client, symbol, game.current_date)
    if price is None:
        raise NotFoundError(f"Price for {symbol} on {game.current_date.isoformat()}")
    preview = calculate_transaction_preview(payload.type, payload.quantity, price, Decimal(str(game.transaction_fees)))
    return TradePreviewOut(
        symbol=symbol,
        type=payload.type,
        price=float(price),
        subtotal=float(preview.subtotal),
        fee_amount=float(preview.fee_amount),
        total=float(preview.total),
        balance_change=float(preview.balance_change),
    )


def run_trade(trade_type: str, payload: TradeIn, user_id: int, db: Session, client: MarketStackClient) -> TradeOut:
    result = execute_trade(db, client, payload.game_id, user_id, trade_type, payload.symbol, payload.quantity)
    return trade_out(result)


@app.post("/trades/buy", response_model=TradeOut)
def trades_buy(
    payload: TradeIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    client: MarketStackClient = Depends(get_market_client),
):
    return run_trade("buy", payload, user_id, db, client)


@app.post("/trades/sell", response_model=TradeOut)
def trades_sell(
    payload: TradeIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    client: MarketStackClient = Depends(get_market_client),
):
    return run_trade("sell", payload, user_id, db, client)


@app.post("/trades/short", response_model=TradeOut)
def trades_short(
    payload: TradeIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    client: MarketStackClient = Depends(get_market_client),
):
    return run_trade("short", payload, user_id, db, client)


@app.post("/trades/cover", response_model=TradeOut)
def trades_cover(
    payload: TradeIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    client: MarketStackClient = Depends(get_market_client),
):
    return run_trade("cover", payload, user_id, db, client)


@app.get("/leaderboard", response_model=LeaderboardOut)
def leaderboard(
    period: str = Query(default="all_time"),
    limit: int = Query(default=50, ge=1, le=LEADERBOARD_MAX_LIMIT),
    db: Session = Depends(get_db),
):
    entries = build_leaderboard(db, period=period, limit=limit)
    return LeaderboardOut(
        period=period,
        entries=[
            LeaderboardEntryOut(
                rank=e.rank,
                game_id=e.game_id,
                user_name=e.user_name,
                total_value=float(e.total_value),
                return_percentage=float(e.return_percentage),
                score=e.score,
                start_date=e.start_date,
                current_date=e.current_date,
            )
            for e in entries
        ],
        total=len(entries),
    )


@app.get("/admin/monitoring", response_model=MonitoringOut)
def admin_monitoring(
    _: int = Depends(get_admin_user_id),
    db: Session = Depends(get_db),
    client: MarketStackClient = Depends(get_market_client),
):
    users = db.execute(select(func.count()).select_from(User)).scalar_one()
    games = db.execute(select(func.count()).select_from(Game)).scalar_one()
    active = db.execute(select(func.count()).select_from(Game).where(Game.status == "active")).scalar_one()
    stats = cache_stats(db)
    quota = db.get(ApiStat, PROVIDER)
    local_remaining = client.remaining_requests()
    return MonitoringOut(
        users=int(users),
        games=int(games),
        active_games=int(active),
        cache=CacheStatsOut(
            unique_symbols=stats.unique_symbols,
            total_records=stats.total_records,
            oldest_date=stats.oldest_date,
            newest_date=stats.newest_date,
            estimated_size_mb=stats.estimated_size_mb,
        ),
        api=ApiQuotaOut(
            requests_remaining=quota.requests_remaining if quota else local_remaining,
            requests_limit=quota.requests_limit if quota else client.rate_limiter.max_requests,
            local_remaining=local_remaining,
            reset_date=quota.reset_date if quota else None,
            last_updated=quota.last_updated if quota else None,
        ),
    )


@app.post("/cron/update-cache", response_model=CronOut)
def cron_update_cache(
    _: None = Depends(require_cron_secret),
    db: Session = Depends(get_db),
    client: MarketStackClient = Depends(get_market_client),
):
    result = daily_prefetch_update(db, client)
    return CronOut(
        success=result.success,
        records_stored=result.records_stored,
        message=result.message or result.error,
    )


@app.post("/cron/cleanup-games", response_model=CronOut)
def cron_cleanup_games(_: None = Depends(require_cron_secret), db: Session = Depends(get_db)):
    deleted = cleanup_inactive_games(db)
    return CronOut(success=True, deleted_count=deleted, message=f"Deleted {deleted} inactive games")
