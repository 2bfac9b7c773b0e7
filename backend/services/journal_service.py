"""
journal_service.py — Journal entry lifecycle
One entry per user per calendar day. Owns entry CRUD, paging and search;
every query is scoped to the caller's user id.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_

from config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, TITLE_MAX_LENGTH
from models.enums import Mood, EntryCategory
from models.journal import JournalEntry
from models.tag import Tag
from services.result import (
    DuplicateDateError, NotFoundError, ValidationError, require_user, service_call,
)
from services.streak_service import utc_today

logger = logging.getLogger(__name__)

MAX_SECONDARY_MOODS = 2


@dataclass
class EntryDraft:
    """Caller-supplied payload for creating or updating an entry."""

    content: str
    title: str = ""
    date: date | datetime | None = None
    primary_mood: Mood | str = Mood.NEUTRAL
    secondary_moods: list[Mood | str] = field(default_factory=list)
    category: EntryCategory | str = EntryCategory.PERSONAL
    is_favorite: bool = False
    tag_ids: list[int] = field(default_factory=list)
    image_path: str | None = None


@dataclass
class SearchFilters:
    """All provided filters must match. tag_ids matches entries carrying any of them."""

    text: str | None = None
    start_date: date | datetime | None = None
    end_date: date | datetime | None = None
    mood: Mood | str | None = None
    tag_ids: list[int] | None = None


def as_day(value: date | datetime | None) -> date | None:
    """Drop the time-of-day part; entries are keyed by calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def _coerce(enum_cls, value, what: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Unknown {what}: {value!r}.") from None


class _ValidDraft:
    def __init__(self, draft: EntryDraft, default_date: date | None = None):
        if not draft.content or not draft.content.strip():
            raise ValidationError("Content is required.")
        title = draft.title or ""
        if len(title) > TITLE_MAX_LENGTH:
            raise ValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters.")

        secondary = [_coerce(Mood, m, "mood") for m in (draft.secondary_moods or [])]
        if len(secondary) > MAX_SECONDARY_MOODS:
            logger.warning(f"Ignoring {len(secondary) - MAX_SECONDARY_MOODS} extra secondary mood(s)")
            secondary = secondary[:MAX_SECONDARY_MOODS]
        secondary += [None] * (MAX_SECONDARY_MOODS - len(secondary))

        self.title = title
        self.content = draft.content
        self.date = as_day(draft.date) or default_date or utc_today()
        self.primary_mood = _coerce(Mood, draft.primary_mood, "mood")
        self.secondary_mood_1, self.secondary_mood_2 = secondary
        self.category = _coerce(EntryCategory, draft.category, "category")
        self.is_favorite = bool(draft.is_favorite)
        self.image_path = draft.image_path
        self.tag_ids = list(dict.fromkeys(draft.tag_ids or []))

    def apply(self, entry: JournalEntry):
        entry.title = self.title
        entry.content = self.content
        entry.date = self.date
        entry.primary_mood = self.primary_mood
        entry.secondary_mood_1 = self.secondary_mood_1
        entry.secondary_mood_2 = self.secondary_mood_2
        entry.category = self.category
        entry.is_favorite = self.is_favorite
        entry.image_path = self.image_path


class JournalService:
    @staticmethod
    def _find(db: Session, user_id: int, entry_id: int) -> JournalEntry:
        # Ownership is part of the lookup: another user's id reads as "not found"
        entry = db.query(JournalEntry).filter_by(id=entry_id, user_id=user_id).first()
        if not entry:
            raise NotFoundError("Entry not found.")
        return entry

    @staticmethod
    def _date_taken(db: Session, user_id: int, day: date, exclude_id: int | None = None) -> bool:
        query = db.query(JournalEntry.id).filter(
            JournalEntry.user_id == user_id,
            JournalEntry.date == day,
        )
        if exclude_id is not None:
            query = query.filter(JournalEntry.id != exclude_id)
        return db.query(query.exists()).scalar()

    @staticmethod
    def _load_tags(db: Session, user_id: int, tag_ids: list[int]) -> list[Tag]:
        if not tag_ids:
            return []
        tags = db.query(Tag).filter(Tag.user_id == user_id, Tag.id.in_(tag_ids)).all()
        missing = sorted(set(tag_ids) - {t.id for t in tags})
        if missing:
            raise ValidationError(f"Unknown tag id(s): {', '.join(map(str, missing))}.")
        return tags

    @staticmethod
    def _commit(db: Session, message: str):
        try:
            db.commit()
        except IntegrityError:
            # Lost a race against the (user_id, date) unique constraint
            db.rollback()
            raise DuplicateDateError(message) from None

    # ------------------------------------------------------------------
    @staticmethod
    @service_call("Error retrieving entry")
    def get_by_date(db: Session, user_id: int, day: date | datetime) -> JournalEntry:
        require_user(user_id)
        entry = db.query(JournalEntry).filter_by(user_id=user_id, date=as_day(day)).first()
        if not entry:
            raise NotFoundError("No entry found for this date.")
        return entry

    @staticmethod
    @service_call("Error retrieving entry")
    def get_by_id(db: Session, user_id: int, entry_id: int) -> JournalEntry:
        require_user(user_id)
        return JournalService._find(db, user_id, entry_id)

    @staticmethod
    @service_call("Error listing entries")
    def list_paged(db: Session, user_id: int, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> list[JournalEntry]:
        """Entries newest first; pages are 1-based."""
        require_user(user_id)
        if page < 1:
            raise ValidationError("Page must be 1 or greater.")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValidationError(f"Page size must be between 1 and {MAX_PAGE_SIZE}.")
        return (
            db.query(JournalEntry)
            .filter(JournalEntry.user_id == user_id)
            .order_by(JournalEntry.date.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

    @staticmethod
    @service_call("Error searching entries")
    def search(db: Session, user_id: int, filters: SearchFilters | None = None) -> list[JournalEntry]:
        """Conjunctive filter over the user's entries, newest first.

        Text matching is case-insensitive on title or content. The date
        range is inclusive on both ends.
        """
        require_user(user_id)
        filters = filters or SearchFilters()
        query = db.query(JournalEntry).filter(JournalEntry.user_id == user_id)

        if filters.text and filters.text.strip():
            query = query.filter(or_(
                JournalEntry.title.icontains(filters.text, autoescape=True),
                JournalEntry.content.icontains(filters.text, autoescape=True),
            ))
        if filters.start_date:
            query = query.filter(JournalEntry.date >= as_day(filters.start_date))
        if filters.end_date:
            query = query.filter(JournalEntry.date <= as_day(filters.end_date))
        if filters.mood:
            query = query.filter(JournalEntry.primary_mood == _coerce(Mood, filters.mood, "mood"))
        if filters.tag_ids:
            query = query.filter(JournalEntry.tags.any(Tag.id.in_(filters.tag_ids)))

        return query.order_by(JournalEntry.date.desc()).all()

    @staticmethod
    @service_call("Error creating entry")
    def create(db: Session, user_id: int, draft: EntryDraft) -> JournalEntry:
        require_user(user_id)
        valid = _ValidDraft(draft)
        if JournalService._date_taken(db, user_id, valid.date):
            raise DuplicateDateError("An entry already exists for this date.")

        entry = JournalEntry(user_id=user_id, created_at=datetime.now(timezone.utc))
        valid.apply(entry)
        entry.tags = JournalService._load_tags(db, user_id, valid.tag_ids)

        db.add(entry)
        JournalService._commit(db, "An entry already exists for this date.")
        db.refresh(entry)
        logger.info(f"Created entry {entry.id} for user {user_id} on {entry.date}")
        return entry

    @staticmethod
    @service_call("Error updating entry")
    def update(db: Session, user_id: int, entry_id: int, draft: EntryDraft) -> JournalEntry:
        require_user(user_id)
        entry = JournalService._find(db, user_id, entry_id)
        valid = _ValidDraft(draft, default_date=entry.date)  # no date given: the entry stays on its day
        if JournalService._date_taken(db, user_id, valid.date, exclude_id=entry_id):
            raise DuplicateDateError("Another entry already exists for this date.")

        valid.apply(entry)
        # Replace the association set wholesale; Tag rows themselves are untouched
        entry.tags = JournalService._load_tags(db, user_id, valid.tag_ids)
        entry.updated_at = datetime.now(timezone.utc)

        JournalService._commit(db, "Another entry already exists for this date.")
        db.refresh(entry)
        logger.info(f"Updated entry {entry.id} for user {user_id}")
        return entry

    @staticmethod
    @service_call("Error deleting entry")
    def delete(db: Session, user_id: int, entry_id: int) -> None:
        require_user(user_id)
        entry = JournalService._find(db, user_id, entry_id)
        db.delete(entry)
        db.commit()
        logger.info(f"Deleted entry {entry_id} for user {user_id}")
