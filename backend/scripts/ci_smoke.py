import os
import sys
from pathlib import Path


def main() -> int:
    # Ensure `import financequest.*` works when running from repo root in CI.
    backend_dir = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(backend_dir))

    database_url = os.environ.get("DATABASE_URL", "").strip()
    if not database_url:
        raise RuntimeError("DATABASE_URL is required for CI smoke test")

    from sqlalchemy import func, select

    from financequest.db import SessionLocal
    from financequest.models import Achievement, MarketDataCache, User
    from financequest.seed import ACHIEVEMENT_CATALOG, init_db, seed

    safe_url = database_url
    if "://" in safe_url and "@" in safe_url:
        scheme, rest = safe_url.split("://", 1)
        creds, host = rest.split("@", 1)
        if ":" in creds:
            user, _pw = creds.split(":", 1)
            safe_url = f"{scheme}://{user}:***@{host}"
    print("CI smoke DATABASE_URL:", safe_url)

    init_db()

    # Seeding twice covers both a fresh database and a restart.
    db = SessionLocal()
    try:
        seed(db)
        seed(db)
        user_count = int(db.execute(select(func.count()).select_from(User)).scalar_one())
        achievement_count = int(db.execute(select(func.count()).select_from(Achievement)).scalar_one())
        cache_count = int(db.execute(select(func.count()).select_from(MarketDataCache)).scalar_one())
    finally:
        db.close()

    if user_count < 1:
        raise RuntimeError("Expected at least 1 seeded user")
    if achievement_count != len(ACHIEVEMENT_CATALOG):
        raise RuntimeError(f"Expected {len(ACHIEVEMENT_CATALOG)} achievements, found {achievement_count}")

    print(
        "OK create_all + seed",
        {
            "users": user_count,
            "achievements": achievement_count,
            "cached_prices": cache_count,
        },
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
