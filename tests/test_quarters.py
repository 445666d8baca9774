"""
Tests for calendar / development quarter arithmetic.
"""

from datetime import date, datetime, timedelta, timezone

import pandas as pd

from reserving_prep.quarters import (
    FALLBACK_QUARTER_INFO,
    add_quarters,
    clamp_date,
    days_between,
    month_key,
    next_quarter_key,
    parse_maybe_date,
    parse_quarter_key,
    prev_quarter_key,
    quarter_info,
    quarter_key,
    quarter_range,
    shift_quarter_key,
    start_of_quarter,
    to_date,
)


class TestQuarterInfo:
    """quarter_info on the calendar and development axes."""

    def test_same_quarter_is_zero(self):
        info = quarter_info(date(2021, 5, 20), date(2021, 4, 1))
        assert info.development_quarter == 0
        assert info.calendar_year == 2021
        assert info.calendar_quarter == 2
        assert info.quarter_key == "2021Q2"

    def test_crosses_year_boundary(self):
        info = quarter_info(date(2020, 2, 23), date(2019, 11, 28))
        assert info.development_quarter == 1
        assert info.quarter_key == "2020Q1"

    def test_negative_offset(self):
        assert quarter_info(date(2020, 1, 1), date(2021, 1, 1)).development_quarter == -4

    def test_clamped_to_fifty(self):
        assert quarter_info(date(2040, 1, 1), date(2020, 1, 1)).development_quarter == 50
        assert quarter_info(date(2000, 1, 1), date(2020, 1, 1)).development_quarter == -50

    def test_invalid_dates_fall_back(self):
        assert quarter_info(None, date(2020, 1, 1)) == FALLBACK_QUARTER_INFO
        assert quarter_info(date(2020, 1, 1), None) == FALLBACK_QUARTER_INFO
        assert quarter_info("not a date", date(2020, 1, 1)) == FALLBACK_QUARTER_INFO
        assert quarter_info(pd.NaT, date(2020, 1, 1)) == FALLBACK_QUARTER_INFO
        assert FALLBACK_QUARTER_INFO.quarter_key == "2020Q1"
        assert FALLBACK_QUARTER_INFO.development_quarter == 0

    def test_accepts_strings_and_timestamps(self):
        info = quarter_info("2022-12-31", pd.Timestamp("2022-01-15"))
        assert info.development_quarter == 3
        assert info.quarter_key == "2022Q4"


class TestQuarterKeys:
    """Quarter key parsing and stepping."""

    def test_rollover(self):
        assert next_quarter_key("2020Q4") == "2021Q1"
        assert prev_quarter_key("2021Q1") == "2020Q4"
        assert next_quarter_key("2020Q2") == "2020Q3"

    def test_shift(self):
        assert shift_quarter_key("2019Q4", 5) == "2021Q1"
        assert shift_quarter_key("2019Q4", -4) == "2018Q4"
        assert shift_quarter_key("garbage", 1) is None

    def test_parse(self):
        assert parse_quarter_key("2023Q3") == (2023, 3)
        assert parse_quarter_key(None) is None
        assert parse_quarter_key("Q3") is None

    def test_quarter_key_of_date(self):
        assert quarter_key(date(2024, 3, 31)) == "2024Q1"
        assert quarter_key(date(2024, 4, 1)) == "2024Q2"

    def test_start_and_add(self):
        assert start_of_quarter(date(2024, 8, 17)) == date(2024, 7, 1)
        assert add_quarters(date(2024, 11, 30), 1) == date(2025, 1, 1)
        assert add_quarters(date(2024, 2, 1), -1) == date(2023, 10, 1)

    def test_quarter_range_inclusive(self):
        qs = quarter_range(date(2020, 1, 1), date(2025, 1, 1))
        assert len(qs) == 21
        assert qs[0] == date(2020, 1, 1)
        assert qs[-1] == date(2025, 1, 1)


class TestDateHelpers:
    """Date coercion and arithmetic."""

    def test_to_date(self):
        assert to_date(date(2020, 1, 2)) == date(2020, 1, 2)
        assert to_date(datetime(2020, 1, 2, 15, 30)) == date(2020, 1, 2)
        assert to_date("2020-01-02T00:00:00Z") == date(2020, 1, 2)
        assert to_date(None) is None
        assert to_date("nope") is None

    def test_to_date_converts_to_utc(self):
        aware = datetime(2020, 1, 2, 1, 0, tzinfo=timezone(timedelta(hours=10)))
        assert to_date(aware) == date(2020, 1, 1)

    def test_parse_maybe_date_offsets(self):
        base = date(2020, 1, 1)
        assert parse_maybe_date(31, base) == date(2020, 2, 1)
        assert parse_maybe_date("2020-03-01", base) == date(2020, 3, 1)
        assert parse_maybe_date(5, None) is None
        assert parse_maybe_date(float("nan"), base) is None

    def test_arithmetic(self):
        assert days_between(date(2020, 1, 1), date(2021, 1, 1)) == 366
        assert clamp_date(date(2030, 1, 1), date(2020, 1, 1), date(2025, 1, 1)) == date(2025, 1, 1)
        assert month_key(date(2020, 1, 31)) == month_key(date(2020, 1, 1))
        assert month_key(date(2020, 2, 1)) == month_key(date(2020, 1, 1)) + 1
