"""
Shared pieces for the HTTP routers: Result → HTTP mapping, the PIN-lock
dependency, and JSON serializers for ORM rows.
"""
from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from auth import CurrentSession, get_current_session
from database import get_db
from models.journal import JournalEntry
from models.tag import Tag
from services.result import Err, ErrorKind, Result
from services.security_service import pin_gate

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DUPLICATE_DATE: 409,
    ErrorKind.VALIDATION: 422,
    ErrorKind.INVALID_PIN: 403,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.STORAGE: 500,
}


def value_or_raise(result: Result):
    """Return the Ok value, or raise the HTTPException matching the Err kind."""
    if isinstance(result, Err):
        raise HTTPException(status_code=STATUS_BY_KIND[result.kind], detail=result.message)
    return result.value


def success(data=None) -> dict:
    return {"status": "success", "data": data}


def require_unlocked(
    session: CurrentSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> int:
    """Dependency for journal content routes: the caller's session must not be PIN-locked."""
    if value_or_raise(pin_gate.is_locked(db, session.user_id, session.session_id)):
        raise HTTPException(status_code=423, detail="Journal is locked. Enter your PIN.")
    return session.user_id


def tag_to_dict(tag: Tag) -> dict:
    return {
        "id": tag.id,
        "name": tag.name,
        "color": tag.color,
        "created_at": tag.created_at.isoformat() if tag.created_at else None,
    }


def entry_to_dict(entry: JournalEntry) -> dict:
    return {
        "id": entry.id,
        "title": entry.title,
        "content": entry.content,
        "date": entry.date.isoformat(),
        "primary_mood": entry.primary_mood.value,
        "secondary_moods": [m.value for m in entry.secondary_moods],
        "category": entry.category.value,
        "is_favorite": entry.is_favorite,
        "image_path": entry.image_path,
        "word_count": entry.word_count,
        "tags": [tag_to_dict(t) for t in entry.tags],
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
        "updated_at": entry.updated_at.isoformat() if entry.updated_at else None,
    }
