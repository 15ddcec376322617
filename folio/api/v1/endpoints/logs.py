# folio/api/v1/endpoints/logs.py
# Lecturas de auditoría: bitácora de publicación, eventos de revisión y feed de actividad
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from folio.db.session import get_db
from folio.schemas.logs import ActivityItemOut, PublicationLogOut, ReviewEventOut
from folio.services import activity_service, publication_log_service, review_service
from folio.services.revision_service import get_page, get_site

router = APIRouter()


@router.get("/pages/{page_id}/publication-log", response_model=List[PublicationLogOut])
def page_publication_log(
    page_id: int,
    limit: Optional[int] = Query(None, ge=1, le=200),
    db: Session = Depends(get_db),
):
    get_page(db, page_id)
    return publication_log_service.list_publication_log(db, page_id, limit)


@router.get("/pages/{page_id}/review-events", response_model=List[ReviewEventOut])
def page_review_events(
    page_id: int,
    limit: Optional[int] = Query(None, ge=1, le=200),
    db: Session = Depends(get_db),
):
    get_page(db, page_id)
    return review_service.list_review_events(db, page_id, limit)


@router.get("/pages/{page_id}/activity", response_model=List[ActivityItemOut])
def page_activity(
    page_id: int,
    limit: Optional[int] = Query(None, ge=1, le=200),
    db: Session = Depends(get_db),
):
    get_page(db, page_id)
    return activity_service.list_page_activity(db, page_id, limit)


@router.get("/sites/{site_id}/activity", response_model=List[ActivityItemOut])
def site_activity(
    site_id: int,
    limit: Optional[int] = Query(None, ge=1, le=200),
    db: Session = Depends(get_db),
):
    get_site(db, site_id)
    return activity_service.list_site_activity(db, site_id, limit)


@router.get("/sites/{site_id}/publication-log", response_model=List[PublicationLogOut])
def site_publication_log(
    site_id: int,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    get_site(db, site_id)
    return publication_log_service.list_site_publication_log(db, site_id, limit)
