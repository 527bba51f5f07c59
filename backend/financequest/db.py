"""Engine and session wiring for the market service.

Production runs against Postgres through psycopg v3, where the cache insert
uses `ON CONFLICT DO NOTHING` and trades take row locks. Local runs and the
cron scripts fall back to a SQLite file next to the working directory.
"""

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker


def normalize_database_url(value: str) -> str:
    """Map `postgres://` and bare `postgresql://` URLs onto the psycopg v3 driver."""

    url = value.strip()
    if url.startswith("postgresql+psycopg://"):
        return url
    if url.startswith("postgres://"):
        return "postgresql+psycopg://" + url[len("postgres://") :]
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://") :]
    return url


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # sync routes run on the FastAPI threadpool
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=int(os.environ.get("DB_POOL_SIZE", "5")),
        max_overflow=int(os.environ.get("DB_MAX_OVERFLOW", "10")),
    )


DATABASE_URL = normalize_database_url(os.environ.get("DATABASE_URL", "sqlite:///./financequest.db"))

engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


class Base(DeclarativeBase):
    pass


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
