# Import all models so they register with SQLAlchemy Base.metadata
# This ensures Base.metadata.create_all() creates all tables

from models.enums import Mood, EntryCategory
from models.user import User
from models.tag import Tag
from models.journal import JournalEntry, journal_entry_tags, count_words
from models.login_history import LoginHistory
from models.session import Session

__all__ = [
    "Mood",
    "EntryCategory",
    "User",
    "Tag",
    "JournalEntry",
    "journal_entry_tags",
    "count_words",
    "LoginHistory",
    "Session",
]
