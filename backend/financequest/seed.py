import os
import time

from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from .db import Base, engine
from .models import Achievement, User

SANDBOX_EMAIL = (os.environ.get("SANDBOX_EMAIL") or "sandbox@financequest.local").strip().lower()
SANDBOX_NAME = (os.environ.get("SANDBOX_NAME") or "Sandbox Trader").strip()

ACHIEVEMENT_CATALOG: list[dict[str, object]] = [
    {
        "name": "First Trade",
        "description": "Execute your first transaction.",
        "criteria_type": "first_transaction",
        "criteria_value": {},
        "points": 10,
        "icon": "rocket",
    },
    {
        "name": "Diversified",
        "description": "Hold 5 different assets at once.",
        "criteria_type": "asset_count",
        "criteria_value": {"min_count": 5},
        "points": 25,
        "icon": "layers",
    },
    {
        "name": "Portfolio Builder",
        "description": "Hold 10 different assets at once.",
        "criteria_type": "asset_count",
        "criteria_value": {"min_count": 10},
        "points": 50,
        "icon": "grid",
    },
    {
        "name": "Eleven Grand",
        "description": "Reach a total portfolio value of 11,000.",
        "criteria_type": "portfolio_value",
        "criteria_value": {"min_value": 11000},
        "points": 25,
        "icon": "trending-up",
    },
    {
        "name": "Fifteen Grand",
        "description": "Reach a total portfolio value of 15,000.",
        "criteria_type": "portfolio_value",
        "criteria_value": {"min_value": 15000},
        "points": 100,
        "icon": "trophy",
    },
    {
        "name": "In the Green",
        "description": "Reach a 5% return.",
        "criteria_type": "return_percentage",
        "criteria_value": {"min_return": 5},
        "points": 25,
        "icon": "percent",
    },
    {
        "name": "Market Beater",
        "description": "Reach a 20% return.",
        "criteria_type": "return_percentage",
        "criteria_value": {"min_return": 20},
        "points": 100,
        "icon": "star",
    },
    {
        "name": "Bond Curious",
        "description": "Hold a bond or bond ETF.",
        "criteria_type": "specific_trade",
        "criteria_value": {"asset_type": "bond", "min_count": 1},
        "points": 15,
        "icon": "shield",
    },
    {
        "name": "Index Tracker",
        "description": "Hold a market index.",
        "criteria_type": "specific_trade",
        "criteria_value": {"asset_type": "index", "min_count": 1},
        "points": 15,
        "icon": "globe",
    },
]


def init_db():
    # Wait for Postgres to accept connections
    for attempt in range(30):  # ~30 seconds
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            break
        except OperationalError:
            time.sleep(1)
    else:
        raise RuntimeError("Database not ready after 30 seconds")

    Base.metadata.create_all(bind=engine)


def seed(db: Session):
    user = db.execute(select(User).where(User.email == SANDBOX_EMAIL)).scalar_one_or_none()
    if not user:
        db.add(User(email=SANDBOX_EMAIL, name=SANDBOX_NAME))

    existing_by_name = {a.name: a for a in db.execute(select(Achievement)).scalars().all()}
    for row in ACHIEVEMENT_CATALOG:
        existing = existing_by_name.get(str(row["name"]))
        if existing is not None:
            # Ids are referenced by user_achievements.
            existing.description = str(row["description"])
            existing.criteria_type = str(row["criteria_type"])
            existing.criteria_value = dict(row["criteria_value"])
            existing.points = int(row["points"])
            existing.icon = row["icon"]
            continue
        db.add(
            Achievement(
                name=str(row["name"]),
                description=str(row["description"]),
                criteria_type=str(row["criteria_type"]),
                criteria_value=dict(row["criteria_value"]),
                points=int(row["points"]),
                icon=row["icon"],
            )
        )

    db.commit()
