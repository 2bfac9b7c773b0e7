from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from routes.common import require_unlocked, success, value_or_raise
from services.analytics_service import AnalyticsService

router = APIRouter(prefix="/api/v1/analytics", tags=["Analytics"])


@router.get("")
def get_journal_analytics(user_id: int = Depends(require_unlocked), db: Session = Depends(get_db)):
    analytics = value_or_raise(AnalyticsService.get_analytics(db, user_id))
    data = asdict(analytics)
    data["word_count_trend"] = [
        {"date": p.date.isoformat(), "word_count": p.word_count} for p in analytics.word_count_trend
    ]
    return success(data)


@router.get("/streak")
def get_journal_streak(user_id: int = Depends(require_unlocked), db: Session = Depends(get_db)):
    streak = value_or_raise(AnalyticsService.get_streak(db, user_id))
    return success({"current": streak.current, "longest": streak.longest})
