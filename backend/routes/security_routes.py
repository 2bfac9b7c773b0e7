from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth import CurrentSession, get_current_session
from database import get_db
from routes.common import success, value_or_raise
from services.security_service import pin_gate

router = APIRouter(prefix="/api/v1/security", tags=["Security"])


class PinRequest(BaseModel):
    pin: str


class ChangePinRequest(BaseModel):
    old_pin: str
    new_pin: str


@router.get("/status")
def pin_status(session: CurrentSession = Depends(get_current_session), db: Session = Depends(get_db)):
    has_pin = value_or_raise(pin_gate.has_pin(db, session.user_id))
    locked = value_or_raise(pin_gate.is_locked(db, session.user_id, session.session_id))
    return success({"has_pin": has_pin, "is_locked": locked})


@router.post("/pin")
def set_pin(body: PinRequest, session: CurrentSession = Depends(get_current_session), db: Session = Depends(get_db)):
    value_or_raise(pin_gate.set_pin(db, session.user_id, body.pin))
    return {"status": "success"}


@router.put("/pin")
def change_pin(body: ChangePinRequest, session: CurrentSession = Depends(get_current_session), db: Session = Depends(get_db)):
    value_or_raise(pin_gate.change_pin(db, session.user_id, body.old_pin, body.new_pin))
    return {"status": "success"}


@router.post("/pin/remove")
def remove_pin(body: PinRequest, session: CurrentSession = Depends(get_current_session), db: Session = Depends(get_db)):
    value_or_raise(pin_gate.remove_pin(db, session.user_id, body.pin))
    return {"status": "success"}


@router.post("/unlock")
def unlock_journal(body: PinRequest, session: CurrentSession = Depends(get_current_session), db: Session = Depends(get_db)):
    value_or_raise(pin_gate.unlock(db, session.user_id, session.session_id, body.pin))
    return {"status": "success"}


@router.post("/lock")
def lock_journal(session: CurrentSession = Depends(get_current_session), db: Session = Depends(get_db)):
    value_or_raise(pin_gate.lock(db, session.user_id, session.session_id))
    return {"status": "success"}
