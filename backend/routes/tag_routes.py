from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from routes.common import success, tag_to_dict, value_or_raise
from services.tag_service import TagService

router = APIRouter(prefix="/api/v1/tags", tags=["Tags"])


class TagIn(BaseModel):
    name: str
    color: Optional[str] = None


@router.get("")
def list_tags(user_id: int = Depends(get_current_user), db: Session = Depends(get_db)):
    tags = value_or_raise(TagService.get_all(db, user_id))
    return success([tag_to_dict(t) for t in tags])


@router.post("", status_code=201)
def create_tag(body: TagIn, user_id: int = Depends(get_current_user), db: Session = Depends(get_db)):
    tag = value_or_raise(TagService.create(db, user_id, body.name, body.color))
    return success(tag_to_dict(tag))


@router.put("/{tag_id}")
def update_tag(tag_id: int, body: TagIn, user_id: int = Depends(get_current_user), db: Session = Depends(get_db)):
    tag = value_or_raise(TagService.update(db, user_id, tag_id, body.name, body.color))
    return success(tag_to_dict(tag))


@router.delete("/{tag_id}")
def delete_tag(tag_id: int, user_id: int = Depends(get_current_user), db: Session = Depends(get_db)):
    value_or_raise(TagService.delete(db, user_id, tag_id))
    return {"status": "success"}
