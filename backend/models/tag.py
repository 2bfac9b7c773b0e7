from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from config import DEFAULT_TAG_COLOR, TAG_NAME_MAX_LENGTH


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(TAG_NAME_MAX_LENGTH), nullable=False)
    color = Column(String(20), default=DEFAULT_TAG_COLOR)  # display hint only
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="tags")
    entries = relationship("JournalEntry", secondary="journal_entry_tags", back_populates="tags")

    # Names are unique per user, not globally
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_tag_user_name"),
    )
