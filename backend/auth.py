import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Depends, Request, HTTPException, status
from jose import jwt, JWTError
from sqlalchemy.orm import Session as DbSession
import bcrypt

from config import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRY_HOURS, BCRYPT_ROUNDS
from database import get_db
from models.session import Session

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a plain-text password (or PIN) using bcrypt."""
    # Ensure it doesn't exceed 72 bytes to prevent bcrypt ValueError
    pw_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain-text password against a bcrypt hash. The digest comparison is constant-time."""
    if not plain_password or not hashed_password:
        return False
    try:
        pw_bytes = plain_password.encode('utf-8')[:72]
        hash_bytes = hashed_password.encode('utf-8')
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except ValueError as e:
        logger.warning(f"Bcrypt verification error: {e}")
        return False


def new_session_id() -> str:
    return str(uuid.uuid4())


def create_token(data: dict, jti: str | None = None) -> str:
    """Create a JWT token with an expiry claim and a unique JTI."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRY_HOURS)
    to_encode.update({"exp": expire, "jti": jti or new_session_id()})
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict | None:
    """Decode and verify a JWT token. Returns the payload or None on failure."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return payload
    except JWTError:
        return None


def is_session_valid(db: DbSession, jti: str) -> bool:
    """A session is valid while its JTI is registered and not revoked."""
    session = db.query(Session).filter_by(token_jti=jti).first()
    return session is not None and not session.is_revoked


@dataclass(frozen=True)
class CurrentSession:
    user_id: int
    session_id: str  # the token's JTI


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_session(request: Request, db: DbSession = Depends(get_db)) -> CurrentSession:
    """
    FastAPI dependency — extracts the Bearer token from the Authorization
    header, verifies it, and returns the user id with the session id.
    Raises HTTP 401 if the token is missing, invalid or revoked.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise _unauthorized("Missing or invalid Authorization header")

    token = auth_header.split(" ", 1)[1]
    payload = verify_token(token)
    if payload is None:
        raise _unauthorized("Invalid or expired token")

    user_id = payload.get("user_id")
    jti = payload.get("jti")
    if user_id is None or jti is None:
        raise _unauthorized("Token payload missing required claims")

    if not is_session_valid(db, jti):
        raise _unauthorized("Session has been revoked or logged out")

    return CurrentSession(user_id=user_id, session_id=jti)


def get_current_user(session: CurrentSession = Depends(get_current_session)) -> int:
    """FastAPI dependency — the authenticated user's id."""
    return session.user_id
