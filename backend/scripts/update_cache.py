"""Warm the market data cache from the command line.

Without arguments this runs the same yesterday+today refresh as the cron
endpoint. `--date` pulls a single day, `--history SYMBOL --from YYYY-MM-DD`
pulls one symbol over a range.
"""

import argparse
import logging
import os
import sys
from pathlib import Path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Prefetch MarketStack end-of-day prices into the cache")
    parser.add_argument("--date", default=None, help="Fetch the whole universe for one day (YYYY-MM-DD)")
    parser.add_argument("--history", default=None, metavar="SYMBOL", help="Fetch one symbol over a date range")
    parser.add_argument("--from", dest="date_from", default=None, help="Range start for --history (YYYY-MM-DD)")
    parser.add_argument("--to", dest="date_to", default=None, help="Range end for --history, default today")
    parser.add_argument(
        "--symbols",
        default=None,
        help="Comma-separated subset of the universe for the daily and --date modes",
    )
    parser.add_argument("--stats", action="store_true", help="Print cache statistics afterwards")
    return parser.parse_args()


def main() -> int:
    backend_dir = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(backend_dir))

    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    args = parse_args()

    from financequest.cache import cache_stats
    from financequest.dates import parse_date
    from financequest.db import SessionLocal
    from financequest.marketstack import MarketStackClient, store_api_stats
    from financequest.prefetch import daily_prefetch_update, prefetch_single_day, prefetch_symbol_history
    from financequest.seed import init_db

    universe = None
    if args.symbols:
        universe = [s.strip().upper() for s in args.symbols.split(",") if s.strip()]

    init_db()
    client = MarketStackClient(stats_sink=store_api_stats(SessionLocal))
    db = SessionLocal()
    try:
        if args.history:
            if not args.date_from:
                print("--history requires --from", file=sys.stderr)
                return 2
            end = parse_date(args.date_to) if args.date_to else None
            stored = prefetch_symbol_history(db, client, args.history.upper(), parse_date(args.date_from), end)
            print(f"Stored {stored} records for {args.history.upper()}")
            ok = stored > 0
        elif args.date:
            stored = prefetch_single_day(db, client, parse_date(args.date), universe)
            print(f"Stored {stored} records for {args.date}")
            ok = stored > 0
        else:
            result = daily_prefetch_update(db, client, universe)
            print(result.message or result.error)
            ok = result.success

        if args.stats:
            stats = cache_stats(db)
            print(
                "Cache:",
                {
                    "unique_symbols": stats.unique_symbols,
                    "total_records": stats.total_records,
                    "oldest_date": stats.oldest_date.isoformat() if stats.oldest_date else None,
                    "newest_date": stats.newest_date.isoformat() if stats.newest_date else None,
                    "estimated_size_mb": stats.estimated_size_mb,
                },
            )
    finally:
        db.close()

    print(f"Local quota remaining: {client.remaining_requests()}")
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
