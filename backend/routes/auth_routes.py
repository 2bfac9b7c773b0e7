# ---------- routes/auth_routes.py ----------
"""
Auth routes: registration, login/logout and the login audit trail.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth import CurrentSession, get_current_session, get_current_user
from database import get_db
from models.user import User
from routes.common import success, value_or_raise
from services.auth_service import AuthService

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


# ── Pydantic schemas ──────────────────────────────────────────────
class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str
    confirm_password: str
    pin: Optional[str] = None


class LoginRequest(BaseModel):
    username: str  # username or email
    password: str


def _client(request: Request) -> tuple[str, str]:
    ip = request.client.host if request.client else "unknown"
    return ip, request.headers.get("user-agent", "unknown")


def _user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "has_pin": user.has_pin,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "last_login_at": user.last_login_at.isoformat() if user.last_login_at else None,
    }


def _issue(db: Session, user: User, ip: str, device: str) -> dict:
    issued = value_or_raise(AuthService.start_session(db, user, ip, device))
    return success({"token": issued.token, "user": _user_to_dict(issued.user)})


# ── Routes ────────────────────────────────────────────────────────
@router.post("/register", status_code=201)
def register(body: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    ip, device = _client(request)
    user = value_or_raise(AuthService.register(
        db, body.username, body.email, body.password, body.confirm_password, body.pin, ip, device,
    ))
    return _issue(db, user, ip, device)


@router.post("/login")
def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Authenticate with username or email + password and log the event."""
    ip, device = _client(request)
    user = value_or_raise(AuthService.login(db, body.username, body.password, ip, device))
    return _issue(db, user, ip, device)


@router.post("/logout")
def logout(session: CurrentSession = Depends(get_current_session), db: Session = Depends(get_db)):
    """Revoke this session's token and drop its PIN unlock state."""
    value_or_raise(AuthService.end_session(db, session.user_id, session.session_id))
    return success({"message": "Logged out"})


@router.get("/me")
def me(user_id: int = Depends(get_current_user), db: Session = Depends(get_db)):
    user = value_or_raise(AuthService.get_user(db, user_id))
    return success(_user_to_dict(user))


@router.get("/login-history")
def login_history(limit: int = 20, user_id: int = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = value_or_raise(AuthService.login_history(db, user_id, limit))
    return success([
        {
            "login_time": r.login_time.isoformat() if r.login_time else None,
            "is_successful": r.is_successful,
            "ip_address": r.ip_address,
            "device_info": r.device_info,
        }
        for r in rows
    ])
