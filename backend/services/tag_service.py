"""
tag_service.py — Per-user tags
Tag names are unique within a user; deleting a tag detaches it from
entries without touching the entries themselves.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy import func

from config import DEFAULT_TAG_COLOR, TAG_NAME_MAX_LENGTH
from models.tag import Tag
from services.result import NotFoundError, ValidationError, require_user, service_call

logger = logging.getLogger(__name__)


class TagService:
    @staticmethod
    def _clean_name(db: Session, user_id: int, name: str | None, exclude_id: int | None = None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Tag name is required.")
        if len(name) > TAG_NAME_MAX_LENGTH:
            raise ValidationError(f"Tag name must be at most {TAG_NAME_MAX_LENGTH} characters.")

        query = db.query(Tag.id).filter(Tag.user_id == user_id, func.lower(Tag.name) == name.lower())
        if exclude_id is not None:
            query = query.filter(Tag.id != exclude_id)
        if db.query(query.exists()).scalar():
            raise ValidationError("A tag with this name already exists.")
        return name

    @staticmethod
    @service_call("Error retrieving tags")
    def get_all(db: Session, user_id: int) -> list[Tag]:
        require_user(user_id)
        return db.query(Tag).filter(Tag.user_id == user_id).order_by(Tag.name).all()

    @staticmethod
    @service_call("Error creating tag")
    def create(db: Session, user_id: int, name: str, color: str | None = None) -> Tag:
        require_user(user_id)
        tag = Tag(
            user_id=user_id,
            name=TagService._clean_name(db, user_id, name),
            color=color or DEFAULT_TAG_COLOR,
            created_at=datetime.now(timezone.utc),
        )
        db.add(tag)
        db.commit()
        db.refresh(tag)
        logger.info(f"Created tag {tag.id} for user {user_id}")
        return tag

    @staticmethod
    @service_call("Error updating tag")
    def update(db: Session, user_id: int, tag_id: int, name: str, color: str | None = None) -> Tag:
        require_user(user_id)
        tag = db.query(Tag).filter_by(id=tag_id, user_id=user_id).first()
        if not tag:
            raise NotFoundError("Tag not found.")
        tag.name = TagService._clean_name(db, user_id, name, exclude_id=tag_id)
        if color:
            tag.color = color
        db.commit()
        db.refresh(tag)
        return tag

    @staticmethod
    @service_call("Error deleting tag")
    def delete(db: Session, user_id: int, tag_id: int) -> None:
        require_user(user_id)
        tag = db.query(Tag).filter_by(id=tag_id, user_id=user_id).first()
        if not tag:
            raise NotFoundError("Tag not found.")
        db.delete(tag)
        db.commit()
        logger.info(f"Deleted tag {tag_id} for user {user_id}")
