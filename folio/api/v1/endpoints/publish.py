# folio/api/v1/endpoints/publish.py
# Trigger externo (cron) del sweep de revisiones programadas.
from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from folio.core.settings import settings
from folio.db.session import get_db
from folio.services.scheduler_service import publish_due_revisions

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_cron_secret(authorization: Optional[str] = Header(default=None)) -> None:
    secret = settings.PUBLISH_CRON_SECRET
    if not secret:
        raise HTTPException(status_code=501, detail="Scheduler endpoint is not configured")

    token = ""
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    # comparación en tiempo constante
    if not hmac.compare_digest(token.encode("utf-8"), secret.encode("utf-8")):
        logger.warning("Rejected scheduler trigger: bad or missing bearer token")
        raise HTTPException(status_code=401, detail="Unauthorized")


def _run(db: Session, limit: Optional[int]) -> dict:
    result = publish_due_revisions(db, limit)
    return {"published": result.published}


@router.post("/run", dependencies=[Depends(_require_cron_secret)])
def run_scheduler(limit: Optional[int] = Query(None, ge=1, le=500), db: Session = Depends(get_db)):
    return _run(db, limit)


@router.get("/run", dependencies=[Depends(_require_cron_secret)])
def run_scheduler_get(limit: Optional[int] = Query(None, ge=1, le=500), db: Session = Depends(get_db)):
    return _run(db, limit)
