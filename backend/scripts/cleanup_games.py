import argparse
import logging
import os
import sys
from pathlib import Path


def main() -> int:
    backend_dir = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(backend_dir))

    from financequest.games import RETENTION_DAYS

    parser = argparse.ArgumentParser(description="Delete completed games that have not been touched for a while")
    parser.add_argument(
        "--days",
        type=int,
        default=RETENTION_DAYS,
        help=f"Delete completed games last updated more than this many days ago (default {RETENTION_DAYS})",
    )
    args = parser.parse_args()
    if args.days < 1:
        print("--days must be at least 1", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    from financequest.db import SessionLocal
    from financequest.games import cleanup_inactive_games

    db = SessionLocal()
    try:
        deleted = cleanup_inactive_games(db, days=args.days)
    finally:
        db.close()

    print(f"Deleted {deleted} inactive games")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
