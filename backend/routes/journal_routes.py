import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config import DEFAULT_PAGE_SIZE
from database import get_db
from models.enums import EntryCategory, Mood
from routes.common import entry_to_dict, require_unlocked, success, value_or_raise
from services.journal_service import EntryDraft, JournalService, SearchFilters
from services.streak_service import utc_today

router = APIRouter(prefix="/api/v1/journal", tags=["Journal"])


class JournalEntryIn(BaseModel):
    content: str
    title: str = ""
    date: Optional[dt.date] = None
    primary_mood: Mood = Mood.NEUTRAL
    secondary_moods: List[Mood] = []
    category: EntryCategory = EntryCategory.PERSONAL
    is_favorite: bool = False
    tag_ids: List[int] = []
    image_path: Optional[str] = None

    def to_draft(self) -> EntryDraft:
        return EntryDraft(**self.model_dump())


@router.get("")
def list_journal_entries(
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    user_id: int = Depends(require_unlocked),
    db: Session = Depends(get_db),
):
    entries = value_or_raise(JournalService.list_paged(db, user_id, page, page_size))
    return success([entry_to_dict(e) for e in entries])


@router.get("/today")
def get_today_journal(user_id: int = Depends(require_unlocked), db: Session = Depends(get_db)):
    entry = value_or_raise(JournalService.get_by_date(db, user_id, utc_today()))
    return success(entry_to_dict(entry))


@router.get("/search")
def search_journal(
    q: Optional[str] = None,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
    mood: Optional[Mood] = None,
    tag_ids: Optional[List[int]] = Query(None),
    user_id: int = Depends(require_unlocked),
    db: Session = Depends(get_db),
):
    filters = SearchFilters(text=q, start_date=start, end_date=end, mood=mood, tag_ids=tag_ids)
    entries = value_or_raise(JournalService.search(db, user_id, filters))
    return success([entry_to_dict(e) for e in entries])


@router.get("/date/{day}")
def get_journal_entry_by_date(day: dt.date, user_id: int = Depends(require_unlocked), db: Session = Depends(get_db)):
    entry = value_or_raise(JournalService.get_by_date(db, user_id, day))
    return success(entry_to_dict(entry))


@router.get("/{entry_id}")
def get_journal_entry(entry_id: int, user_id: int = Depends(require_unlocked), db: Session = Depends(get_db)):
    entry = value_or_raise(JournalService.get_by_id(db, user_id, entry_id))
    return success(entry_to_dict(entry))


@router.post("", status_code=201)
def create_journal_entry(body: JournalEntryIn, user_id: int = Depends(require_unlocked), db: Session = Depends(get_db)):
    entry = value_or_raise(JournalService.create(db, user_id, body.to_draft()))
    return success(entry_to_dict(entry))


@router.put("/{entry_id}")
def update_journal_entry(
    entry_id: int,
    body: JournalEntryIn,
    user_id: int = Depends(require_unlocked),
    db: Session = Depends(get_db),
):
    entry = value_or_raise(JournalService.update(db, user_id, entry_id, body.to_draft()))
    return success(entry_to_dict(entry))


@router.delete("/{entry_id}")
def delete_journal_entry(entry_id: int, user_id: int = Depends(require_unlocked), db: Session = Depends(get_db)):
    value_or_raise(JournalService.delete(db, user_id, entry_id))
    return {"status": "success"}
