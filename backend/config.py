import os
from dotenv import load_dotenv

load_dotenv()

# --- App ---
APP_NAME = os.getenv("APP_NAME", "Daybook")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- JWT Configuration ---
JWT_SECRET = os.getenv("JWT_SECRET", "change-this-secret-key")
JWT_ALGORITHM = "HS256"
JWT_EXPIRY_HOURS = int(os.getenv("JWT_EXPIRY_HOURS", "168"))  # 7 days

# --- Hashing ---
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# --- Database ---
# Default to local SQLite, but prefer environment variable
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/daybook.db")

# Fix for common SQLAlchemy issues with postgres:// vs postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# --- PIN lock ---
PIN_MIN_LENGTH = 4
PIN_UNLOCK_TIMEOUT_MINUTES = int(os.getenv("PIN_UNLOCK_TIMEOUT_MINUTES", "30"))

# --- Journal ---
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
TITLE_MAX_LENGTH = 200
TAG_NAME_MAX_LENGTH = 50
DEFAULT_TAG_COLOR = "#6366f1"
