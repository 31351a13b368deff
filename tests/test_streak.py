from datetime import datetime, timedelta, timezone

import pytest

from conftest import TODAY
from dailylect.models import LoginDay
from dailylect.streak import (
    current_streak,
    days_until_access,
    has_quiz_access,
    login_day_count,
    quiz_access,
)


def days_ago(*offsets):
    return {TODAY - timedelta(days=n) for n in offsets}


@pytest.mark.parametrize("count", range(0, 11))
def test_access_and_remaining_days_agree(count):
    days = {TODAY - timedelta(days=2 * n) for n in range(count)}
    assert login_day_count(days) == count
    assert (days_until_access(days) == 0) == has_quiz_access(days)
    assert days_until_access(days) + login_day_count(days) >= 7
    assert has_quiz_access(days) == (count >= 7)


def test_days_until_access_counts_down():
    assert days_until_access(set()) == 7
    assert days_until_access(days_ago(0, 1, 2)) == 4
    assert days_until_access(days_ago(*range(9))) == 0


def test_duplicate_dates_count_once():
    days = [TODAY, TODAY, TODAY - timedelta(days=1)]
    assert login_day_count(days) == 2


def test_login_day_records_are_accepted():
    stamp = datetime(2024, 3, 15, 8, tzinfo=timezone.utc)
    records = [LoginDay(date=d, timestamp=stamp) for d in days_ago(0, 1)]
    assert login_day_count(records) == 2
    assert current_streak(records, today=TODAY) == 2


def test_consecutive_days_form_a_streak():
    assert current_streak(days_ago(0, 1, 2), today=TODAY) == 3


def test_gap_ends_the_streak():
    assert current_streak(days_ago(0, 2), today=TODAY) == 1
    assert current_streak(days_ago(0, 1, 3, 4, 5), today=TODAY) == 2


def test_streak_survives_until_today_is_missed():
    # Logged in yesterday and the two days before, not yet today.
    assert current_streak(days_ago(1, 2, 3), today=TODAY) == 3


def test_streak_broken_after_a_skipped_day():
    assert current_streak(days_ago(2, 3, 4), today=TODAY) == 0


def test_empty_login_days_have_no_streak():
    assert current_streak(set(), today=TODAY) == 0


def test_seven_scattered_days_unlock_quiz_without_long_streak():
    days = days_ago(0, 2, 4, 6, 8, 10, 12)
    assert has_quiz_access(days)
    assert current_streak(days, today=TODAY) == 1


def test_quiz_access_summary():
    access = quiz_access(days_ago(0, 1, 2))
    assert access.login_days == 3
    assert access.has_quiz_access is False
    assert access.days_until_access == 4


def test_datetimes_are_truncated_to_calendar_days():
    morning = datetime(2024, 3, 15, 7, 30)
    evening = datetime(2024, 3, 15, 21, 5)
    yesterday = datetime(2024, 3, 14, 23, 59)

    assert login_day_count([morning, evening, TODAY]) == 1
    assert current_streak([evening, yesterday, TODAY], today=TODAY) == 2
