"""
streak_service.py — Journaling streaks
Pure calculations over the set of days a user wrote an entry: the current
run (anchored at today, or yesterday as a 1-day grace) and the longest run
anywhere in history.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable


@dataclass(frozen=True)
class StreakSummary:
    current: int = 0
    longest: int = 0


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def calculate_streaks(dates: Iterable[date], today: date | None = None) -> StreakSummary:
    """Current and longest consecutive-day runs. Input order and duplicates don't matter."""
    days = sorted(set(dates), reverse=True)
    if not days:
        return StreakSummary(0, 0)

    today = today or utc_today()
    present = set(days)

    # 1-day grace: the streak survives until the end of the day after the last entry
    current = 0
    if today in present:
        anchor = today
    elif today - timedelta(days=1) in present:
        anchor = today - timedelta(days=1)
    else:
        anchor = None

    if anchor is not None:
        check = anchor
        while check in present:
            current += 1
            check -= timedelta(days=1)

    longest = 0
    run = 1
    for newer, older in zip(days, days[1:]):
        if (newer - older).days == 1:
            run += 1
        else:
            longest = max(longest, run)
            run = 1
    longest = max(longest, run)

    return StreakSummary(current, longest)


def count_missed_days(dates: Iterable[date], today: date | None = None) -> int:
    """Days between the first entry and today (inclusive) with no entry."""
    today = today or utc_today()
    past = {d for d in dates if d <= today}
    if not past:
        return 0
    span = (today - min(past)).days + 1
    return span - len(past)
