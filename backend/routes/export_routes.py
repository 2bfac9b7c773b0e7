import datetime as dt

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from database import get_db
from routes.common import require_unlocked, value_or_raise
from services.export_service import ExportService

router = APIRouter(prefix="/api/v1/export", tags=["Export"])


@router.get("/{fmt}")
def export_journal(
    fmt: str,
    start: dt.date,
    end: dt.date,
    user_id: int = Depends(require_unlocked),
    db: Session = Depends(get_db),
):
    try:
        document = value_or_raise(ExportService.export(db, user_id, fmt, start, end))
    except RuntimeError as e:
        # PDF backend missing or failed
        raise HTTPException(status_code=501, detail=str(e))
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )
