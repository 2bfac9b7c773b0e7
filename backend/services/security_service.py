"""
security_service.py — PIN lock
A secondary, timeout-based lock on top of the login session. Whether a
user has a PIN lives on the user row; whether a session is unlocked lives
in memory, keyed by (user id, session id), and expires lazily on read.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy.orm import Session

from auth import hash_password, verify_password
from config import PIN_MIN_LENGTH, PIN_UNLOCK_TIMEOUT_MINUTES
from models.user import User
from services.result import (
    InvalidPinError, NotFoundError, UnauthorizedError, ValidationError,
    require_user, service_call,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_pin(pin: str | None):
    if not pin or not pin.strip() or len(pin) < PIN_MIN_LENGTH:
        raise ValidationError(f"PIN must be at least {PIN_MIN_LENGTH} characters.")


class PinGate:
    """Per-session unlock state with a fixed timeout."""

    def __init__(
        self,
        timeout_minutes: int = PIN_UNLOCK_TIMEOUT_MINUTES,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.timeout = timedelta(minutes=timeout_minutes)
        self._clock = clock
        self._lock = threading.Lock()
        # (user_id, session_id) → unlocked at
        self._unlocked_at: dict[tuple[int, str], datetime] = {}

    # ------------------------------------------------------------------
    @staticmethod
    def _user(db: Session, user_id: int) -> User:
        require_user(user_id)
        user = db.get(User, user_id)
        if user is None or not user.is_active:
            raise UnauthorizedError("User not found.")
        return user

    @staticmethod
    def _check_pin(user: User, pin: str):
        if not user.pin_hash:
            raise NotFoundError("No PIN set.")
        if not verify_password(pin, user.pin_hash):
            logger.warning(f"Rejected PIN attempt for user {user.id}")
            raise InvalidPinError("Invalid PIN.")

    @staticmethod
    def _store_pin(db: Session, user: User, pin: str | None):
        user.pin_hash = hash_password(pin) if pin is not None else None
        db.commit()

    def _prune(self, now: datetime):
        # Caller holds self._lock. Abandoned sessions never log out.
        for key in [k for k, at in self._unlocked_at.items() if now - at > self.timeout]:
            del self._unlocked_at[key]

    def _forget_user(self, user_id: int):
        with self._lock:
            for key in [k for k in self._unlocked_at if k[0] == user_id]:
                del self._unlocked_at[key]

    # ------------------------------------------------------------------
    @service_call("Error reading PIN state")
    def has_pin(self, db: Session, user_id: int) -> bool:
        return self._user(db, user_id).has_pin

    @service_call("Error setting PIN")
    def set_pin(self, db: Session, user_id: int, pin: str) -> None:
        """Hash and store a new PIN. Unlock state is left as it is."""
        validate_pin(pin)
        user = self._user(db, user_id)
        self._store_pin(db, user, pin)
        logger.info(f"PIN set for user {user_id}")

    @service_call("Error verifying PIN")
    def verify_pin(self, db: Session, user_id: int, pin: str) -> None:
        self._check_pin(self._user(db, user_id), pin)

    @service_call("Error changing PIN")
    def change_pin(self, db: Session, user_id: int, old_pin: str, new_pin: str) -> None:
        user = self._user(db, user_id)
        self._check_pin(user, old_pin)
        validate_pin(new_pin)
        self._store_pin(db, user, new_pin)
        logger.info(f"PIN changed for user {user_id}")

    @service_call("Error removing PIN")
    def remove_pin(self, db: Session, user_id: int, pin: str) -> None:
        """Clear the PIN and drop unlock state for every session of the user."""
        user = self._user(db, user_id)
        self._check_pin(user, pin)
        self._store_pin(db, user, None)
        self._forget_user(user_id)
        logger.info(f"PIN removed for user {user_id}")

    @service_call("Error checking lock state")
    def is_locked(self, db: Session, user_id: int, session_id: str) -> bool:
        if not self._user(db, user_id).has_pin:
            return False

        key = (user_id, session_id)
        with self._lock:
            unlocked_at = self._unlocked_at.get(key)
            if unlocked_at is None:
                return True
            if self._clock() - unlocked_at > self.timeout:
                del self._unlocked_at[key]
                return True
            return False

    @service_call("Error unlocking journal")
    def unlock(self, db: Session, user_id: int, session_id: str, pin: str) -> None:
        self._check_pin(self._user(db, user_id), pin)
        with self._lock:
            now = self._clock()
            self._prune(now)
            self._unlocked_at[(user_id, session_id)] = now

    @service_call("Error locking journal")
    def lock(self, db: Session, user_id: int, session_id: str) -> None:
        if not self._user(db, user_id).has_pin:
            raise NotFoundError("No PIN set.")
        with self._lock:
            self._unlocked_at.pop((user_id, session_id), None)

    # ------------------------------------------------------------------
    def forget_session(self, session_id: str):
        """Drop unlock state for a session that has logged out."""
        with self._lock:
            for key in [k for k in self._unlocked_at if k[1] == session_id]:
                del self._unlocked_at[key]

    def reset(self):
        with self._lock:
            self._unlocked_at.clear()


# Shared by the HTTP layer; state inside is keyed per session
pin_gate = PinGate()
