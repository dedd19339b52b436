"""Activity log de operadores y sistema."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from common.db import get_db

from ..auth import require_api_key
from ..persistence.activity_log import ActivityLogger
from ..schemas import ActivityLogOut

router = APIRouter(prefix="/api/logs", tags=["logs"], dependencies=[Depends(require_api_key)])


@router.get("", response_model=List[ActivityLogOut])
def list_logs(limit: int = Query(default=100, ge=1, le=1000), db: Session = Depends(get_db)):
    return [ActivityLogOut.from_entry(e) for e in ActivityLogger(db).list_recent(limit=limit)]
