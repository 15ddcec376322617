# folio/api/v1/endpoints/health.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from folio.core.settings import settings
from folio.db.session import get_db

router = APIRouter()


@router.get("/ping")
def ping():
    return {"status": "ok", "app": settings.APP_NAME, "env": settings.ENV}


@router.get("/db")
def db_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise HTTPException(status_code=503, detail="Database unavailable") from exc
    return {"status": "ok"}
