"""Unit tests for calendar-date helpers"""
from datetime import date, timezone

from goalmate.utils.datetime_helpers import last_n_days, now_utc, today_local, yesterday_of


def test_today_local_passthrough():
    assert today_local(date(2024, 2, 29)) == date(2024, 2, 29)


def test_today_local_defaults_to_today():
    assert today_local() == date.today()


def test_yesterday_across_month_boundary():
    assert yesterday_of(date(2024, 3, 1)) == date(2024, 2, 29)


def test_now_utc_is_aware():
    assert now_utc().tzinfo == timezone.utc


def test_last_n_days_oldest_first():
    assert last_n_days(date(2024, 7, 3), 3) == [date(2024, 7, 1), date(2024, 7, 2), date(2024, 7, 3)]
    assert last_n_days(date(2024, 7, 3), 0) == []
