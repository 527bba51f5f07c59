import datetime as dt

import pytest

from financequest.dates import (
    business_days,
    business_days_between,
    is_valid_game_date,
    is_weekend,
    next_business_day,
    parse_date,
    previous_business_day,
    years_before,
)


def test_next_business_day_skips_weekend():
    assert next_business_day(dt.date(2024, 1, 5)) == dt.date(2024, 1, 8)
    assert next_business_day(dt.date(2024, 1, 6)) == dt.date(2024, 1, 8)
    assert next_business_day(dt.date(2024, 1, 8)) == dt.date(2024, 1, 9)


def test_previous_business_day_skips_weekend():
    assert previous_business_day(dt.date(2024, 1, 8)) == dt.date(2024, 1, 5)
    assert previous_business_day(dt.date(2024, 1, 7)) == dt.date(2024, 1, 5)


def test_is_weekend():
    assert is_weekend(dt.date(2024, 1, 6))
    assert is_weekend(dt.date(2024, 1, 7))
    assert not is_weekend(dt.date(2024, 1, 5))


def test_business_days_between_counts_inclusive_weekdays():
    # January 2024 starts on a Monday
    assert business_days_between(dt.date(2024, 1, 1), dt.date(2024, 1, 31)) == 23
    assert business_days_between(dt.date(2024, 1, 5), dt.date(2024, 1, 5)) == 1
    assert business_days_between(dt.date(2024, 1, 6), dt.date(2024, 1, 7)) == 0


def test_business_days_between_reversed_range_is_zero():
    assert business_days_between(dt.date(2024, 1, 10), dt.date(2024, 1, 1)) == 0


@pytest.mark.parametrize(
    "start,end",
    [
        (dt.date(2023, 12, 28), dt.date(2024, 2, 3)),
        (dt.date(2024, 1, 6), dt.date(2024, 1, 20)),
        (dt.date(2024, 2, 26), dt.date(2024, 3, 4)),
    ],
)
def test_business_days_between_matches_enumeration(start, end):
    assert business_days_between(start, end) == len(business_days(start, end))


def test_parse_date_is_strict():
    assert parse_date("2024-01-05") == dt.date(2024, 1, 5)
    assert parse_date(dt.datetime(2024, 1, 5, 13, 30)) == dt.date(2024, 1, 5)
    with pytest.raises(ValueError):
        parse_date("2024-1-5")
    with pytest.raises(ValueError):
        parse_date("2024-02-30")


def test_years_before_handles_leap_day():
    assert years_before(dt.date(2024, 2, 29), 1) == dt.date(2023, 2, 28)
    assert years_before(dt.date(2024, 6, 1), 5) == dt.date(2019, 6, 1)


def test_is_valid_game_date_bounds():
    now = dt.date(2026, 6, 1)
    assert is_valid_game_date(dt.date(2021, 6, 1), now=now)
    assert not is_valid_game_date(dt.date(2021, 5, 31), now=now)
    assert not is_valid_game_date(dt.date(2026, 6, 2), now=now)
    assert not is_valid_game_date(dt.date(2019, 12, 31), now=dt.date(2024, 6, 1))
    assert is_valid_game_date(dt.date(2020, 1, 1), now=dt.date(2024, 6, 1))
