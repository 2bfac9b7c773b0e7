"""
auth_service.py — Accounts, login audit & sessions
Registration, username-or-email login with a LoginHistory trail, and the
issued-token registry used to revoke sessions on logout.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy import or_

from auth import create_token, hash_password, new_session_id, verify_password
from models.login_history import LoginHistory
from models.session import Session as LoginSession
from models.user import User
from services.result import (
    UnauthorizedError, ValidationError, require_user, service_call,
)
from services.security_service import pin_gate, validate_pin

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass
class IssuedSession:
    user: User
    token: str
    session_id: str


class AuthService:
    @staticmethod
    def _record_login(db: Session, user_id: int, success: bool, ip: str | None, device: str | None):
        db.add(LoginHistory(
            user_id=user_id,
            login_time=datetime.now(timezone.utc),
            is_successful=success,
            ip_address=ip,
            device_info=device,
        ))

    @staticmethod
    @service_call("Registration failed")
    def register(
        db: Session,
        username: str,
        email: str,
        password: str,
        confirm_password: str,
        pin: str | None = None,
        ip: str | None = None,
        device: str | None = None,
    ) -> User:
        username = (username or "").strip()
        email = (email or "").strip().lower()
        if not username or not email or not password:
            raise ValidationError("Username, email and password are required.")
        if not EMAIL_RE.match(email):
            raise ValidationError("Invalid email address.")
        if password != confirm_password:
            raise ValidationError("Passwords do not match.")
        if pin:
            validate_pin(pin)
        if db.query(User.id).filter(User.username == username).first():
            raise ValidationError("Username taken.")
        if db.query(User.id).filter(User.email == email).first():
            raise ValidationError("Email taken.")

        now = datetime.now(timezone.utc)
        user = User(
            username=username,
            email=email,
            hashed_password=hash_password(password),
            pin_hash=hash_password(pin) if pin else None,
            is_active=True,
            created_at=now,
            last_login_at=now,
        )
        db.add(user)
        db.flush()
        AuthService._record_login(db, user.id, True, ip, device)
        db.commit()
        db.refresh(user)
        logger.info(f"Registered user {user.id} ({username})")
        return user

    @staticmethod
    @service_call("Login failed")
    def login(db: Session, identifier: str, password: str, ip: str | None = None, device: str | None = None) -> User:
        """Authenticate by username or email."""
        identifier = (identifier or "").strip()
        user = db.query(User).filter(
            or_(User.username == identifier, User.email == identifier.lower())
        ).first()

        if user is None or not verify_password(password, user.hashed_password):
            if user is not None:
                AuthService._record_login(db, user.id, False, ip, device)
                db.commit()
            logger.warning(f"Failed login for {identifier!r}")
            raise UnauthorizedError("Invalid username/email or password.")
        if not user.is_active:
            raise UnauthorizedError("Account is inactive.")

        user.last_login_at = datetime.now(timezone.utc)
        AuthService._record_login(db, user.id, True, ip, device)
        db.commit()
        db.refresh(user)
        logger.info(f"User {user.id} logged in")
        return user

    @staticmethod
    @service_call("Error starting session")
    def start_session(db: Session, user: User, ip: str | None = None, device: str | None = None) -> IssuedSession:
        """Issue a token and register its JTI so it can be revoked later."""
        jti = new_session_id()
        token = create_token({"user_id": user.id, "username": user.username}, jti=jti)
        db.add(LoginSession(user_id=user.id, token_jti=jti, ip_address=ip, user_agent=device))
        db.commit()
        return IssuedSession(user=user, token=token, session_id=jti)

    @staticmethod
    @service_call("Error ending session")
    def end_session(db: Session, user_id: int, session_id: str) -> None:
        require_user(user_id)
        session = db.query(LoginSession).filter_by(user_id=user_id, token_jti=session_id).first()
        if session:
            session.is_revoked = True
            db.commit()
        pin_gate.forget_session(session_id)

    @staticmethod
    @service_call("Error retrieving user")
    def get_user(db: Session, user_id: int) -> User:
        require_user(user_id)
        user = db.get(User, user_id)
        if user is None or not user.is_active:
            raise UnauthorizedError("User not found.")
        return user

    @staticmethod
    @service_call("Error retrieving login history")
    def login_history(db: Session, user_id: int, limit: int = 20) -> list[LoginHistory]:
        require_user(user_id)
        return (
            db.query(LoginHistory)
            .filter(LoginHistory.user_id == user_id)
            .order_by(LoginHistory.login_time.desc(), LoginHistory.id.desc())
            .limit(limit)
            .all()
        )
