from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, Boolean, ForeignKey, Table,
    UniqueConstraint, Enum as SAEnum,
)
from sqlalchemy.orm import relationship
from database import Base
from config import TITLE_MAX_LENGTH
from models.enums import Mood, EntryCategory


def _enum_column_type(enum_cls):
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
    )


journal_entry_tags = Table(
    "journal_entry_tags",
    Base.metadata,
    Column("entry_id", Integer, ForeignKey("journal_entries.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


def count_words(text: str | None) -> int:
    """Whitespace-separated token count; empty or missing text counts as 0."""
    if not text:
        return 0
    return len(text.split())


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False, default="")
    content = Column(Text, nullable=False)  # markdown
    date = Column(Date, nullable=False, index=True)
    primary_mood = Column(_enum_column_type(Mood), nullable=False, default=Mood.NEUTRAL)
    secondary_mood_1 = Column(_enum_column_type(Mood), nullable=True)
    secondary_mood_2 = Column(_enum_column_type(Mood), nullable=True)
    category = Column(_enum_column_type(EntryCategory), nullable=False, default=EntryCategory.PERSONAL)
    is_favorite = Column(Boolean, default=False, nullable=False)
    image_path = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="entries")
    tags = relationship(
        "Tag",
        secondary=journal_entry_tags,
        back_populates="entries",
        lazy="selectin",
        order_by="Tag.name",
    )

    # One entry per user per calendar day
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_journal_user_date"),
    )

    @property
    def word_count(self) -> int:
        return count_words(self.content)

    @property
    def secondary_moods(self) -> list[Mood]:
        return [m for m in (self.secondary_mood_1, self.secondary_mood_2) if m is not None]
