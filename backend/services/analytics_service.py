"""
analytics_service.py — Journal statistics
Mood distribution, tag usage, word-count trend and streaks over all of a
user's entries.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from sqlalchemy.orm import Session

from models.journal import JournalEntry
from services.result import require_user, service_call
from services.streak_service import StreakSummary, calculate_streaks, count_missed_days


@dataclass(frozen=True)
class WordCountPoint:
    date: date
    word_count: int


@dataclass
class JournalAnalytics:
    total_entries: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    missed_days: int = 0
    mood_distribution: dict[str, int] = field(default_factory=dict)
    most_frequent_mood: str | None = None
    tag_usage: dict[str, int] = field(default_factory=dict)
    most_used_tag: str | None = None
    word_count_trend: list[WordCountPoint] = field(default_factory=list)
    average_word_count: float = 0.0


def top_key(counts: dict[str, int]) -> str | None:
    """Highest count wins; ties go to the alphabetically first key."""
    if not counts:
        return None
    return min(counts, key=lambda k: (-counts[k], k))


def build_analytics(entries: Iterable[JournalEntry], today: date | None = None) -> JournalAnalytics:
    entries = list(entries)
    if not entries:
        return JournalAnalytics()

    moods = Counter(e.primary_mood.value for e in entries)
    # One count per entry per tag name
    tags = Counter(name for e in entries for name in {t.name for t in e.tags})

    trend = [WordCountPoint(e.date, e.word_count) for e in sorted(entries, key=lambda e: e.date)]
    dates = [e.date for e in entries]
    streak = calculate_streaks(dates, today)

    return JournalAnalytics(
        total_entries=len(entries),
        current_streak=streak.current,
        longest_streak=streak.longest,
        missed_days=count_missed_days(dates, today),
        mood_distribution=dict(moods),
        most_frequent_mood=top_key(moods),
        tag_usage=dict(tags),
        most_used_tag=top_key(tags),
        word_count_trend=trend,
        average_word_count=sum(p.word_count for p in trend) / len(trend),
    )


class AnalyticsService:

    @staticmethod
    @service_call("Error building analytics")
    def get_analytics(db: Session, user_id: int, today: date | None = None) -> JournalAnalytics:
        require_user(user_id)
        entries = db.query(JournalEntry).filter(JournalEntry.user_id == user_id).all()
        return build_analytics(entries, today)

    @staticmethod
    @service_call("Error calculating streak")
    def get_streak(db: Session, user_id: int, today: date | None = None) -> StreakSummary:
        require_user(user_id)
        rows = db.query(JournalEntry.date).filter(JournalEntry.user_id == user_id).distinct().all()
        return calculate_streaks((r[0] for r in rows), today)
