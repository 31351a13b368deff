"""Pure login-day metrics: day count, quiz access and consecutive-day streak."""
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Set, Union

from .config import settings
from .models import LoginDay, QuizAccess

DayLike = Union[date, datetime, LoginDay]


def _as_dates(days: Iterable[DayLike]) -> Set[date]:
    dates = set()
    for d in days:
        if isinstance(d, LoginDay):
            d = d.date
        elif isinstance(d, datetime):
            d = d.date()
        dates.add(d)
    return dates


def login_day_count(days: Iterable[DayLike]) -> int:
    return len(_as_dates(days))


def has_quiz_access(days: Iterable[DayLike]) -> bool:
    return login_day_count(days) >= settings.QUIZ_UNLOCK_DAYS


def days_until_access(days: Iterable[DayLike]) -> int:
    return max(0, settings.QUIZ_UNLOCK_DAYS - login_day_count(days))


def quiz_access(days: Iterable[DayLike]) -> QuizAccess:
    dates = _as_dates(days)
    return QuizAccess(
        login_days=login_day_count(dates),
        has_quiz_access=has_quiz_access(dates),
        days_until_access=days_until_access(dates),
    )


def current_streak(days: Iterable[DayLike], today: Optional[date] = None) -> int:
    """
    Counts consecutive login days ending at the most recent login.

    The streak stays alive while the most recent login is today or
    yesterday; a login yesterday and none yet today still counts.
    """
    ordered = sorted(_as_dates(days), reverse=True)
    if not ordered:
        return 0

    today = today or date.today()
    if (today - ordered[0]).days > 1:
        return 0

    streak = 1
    for previous, current in zip(ordered, ordered[1:]):
        if previous - current != timedelta(days=1):
            break
        streak += 1
    return streak
