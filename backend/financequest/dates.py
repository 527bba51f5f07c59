"""Weekend-only business-day calendar.

Public holidays are not modelled: a Monday holiday is still a business day
and simply has no cached prices.
"""

import datetime as dt

MIN_GAME_DATE = dt.date(2020, 1, 1)
MAX_GAME_LOOKBACK_YEARS = 5


def today() -> dt.date:
    return dt.date.today()


def parse_date(value: str | dt.date) -> dt.date:
    """Accept a date or a strict YYYY-MM-DD string. Raises ValueError otherwise."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    text = value.strip()
    if len(text) != 10:
        raise ValueError(f"Invalid date format: {value!r} (expected YYYY-MM-DD)")
    return dt.date.fromisoformat(text)


def is_weekend(day: dt.date) -> bool:
    return day.weekday() >= 5


def next_business_day(day: dt.date) -> dt.date:
    nxt = day + dt.timedelta(days=1)
    while is_weekend(nxt):
        nxt += dt.timedelta(days=1)
    return nxt


def previous_business_day(day: dt.date) -> dt.date:
    prev = day - dt.timedelta(days=1)
    while is_weekend(prev):
        prev -= dt.timedelta(days=1)
    return prev


def business_days(start: dt.date, end: dt.date) -> list[dt.date]:
    """Weekdays in [start, end], inclusive."""
    out: list[dt.date] = []
    cur = start
    while cur <= end:
        if not is_weekend(cur):
            out.append(cur)
        cur += dt.timedelta(days=1)
    return out


def business_days_between(start: dt.date, end: dt.date) -> int:
    if end < start:
        return 0
    # whole weeks contribute five days each, then walk the remainder
    total_days = (end - start).days + 1
    weeks, rest = divmod(total_days, 7)
    count = weeks * 5
    cur = start + dt.timedelta(days=weeks * 7)
    for _ in range(rest):
        if not is_weekend(cur):
            count += 1
        cur += dt.timedelta(days=1)
    return count


def add_days(day: dt.date, days: int) -> dt.date:
    return day + dt.timedelta(days=days)


def subtract_days(day: dt.date, days: int) -> dt.date:
    return day - dt.timedelta(days=days)


def years_before(day: dt.date, years: int) -> dt.date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # Feb 29 -> Feb 28
        return day.replace(year=day.year - years, day=28)


def is_valid_game_date(day: dt.date, now: dt.date | None = None) -> bool:
    """Game start dates live in [2020-01-01, today], and at most five years back."""
    ref = now or today()
    if day < MIN_GAME_DATE or day > ref:
        return False
    return day >= years_before(ref, MAX_GAME_LOOKBACK_YEARS)
