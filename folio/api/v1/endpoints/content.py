# =============================================================================
# Content Endpoints (Sites, Pages, Revisions, Timeline, Diff)
# folio/api/v1/endpoints/content.py
# =============================================================================
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from folio.api.deps.actor import get_actor_id
from folio.core.errors import InvalidTransition
from folio.db.session import get_db
from folio.schemas.content import (
    PageCreate, PageOut,
    RevisionCreate, RevisionDetailOut, RevisionOut,
    SiteCreate, SiteOut,
)
from folio.schemas.workflow import RevisionDiffOut
from folio.services import diff_service, revision_service
from folio.utils.timezones import is_valid_timezone

router = APIRouter()


# =======================
# Sites / Pages
# =======================
@router.post("/sites", response_model=SiteOut, status_code=201)
def create_site(payload: SiteCreate, db: Session = Depends(get_db)):
    if not is_valid_timezone(payload.timezone):
        raise HTTPException(status_code=422, detail="Unknown time zone")
    try:
        site = revision_service.create_site(db, slug=payload.slug, name=payload.name, timezone=payload.timezone)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Site slug already exists")
    db.refresh(site)
    return site


@router.get("/sites/{site_id}", response_model=SiteOut)
def get_site(site_id: int, db: Session = Depends(get_db)):
    return revision_service.get_site(db, site_id)


@router.post("/sites/{site_id}/pages", response_model=PageOut, status_code=201)
def create_page(site_id: int, payload: PageCreate, db: Session = Depends(get_db)):
    try:
        page = revision_service.create_page(db, site_id=site_id, path=payload.path, title=payload.title)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="A page with this path already exists")
    db.refresh(page)
    return page


@router.get("/pages/{page_id}", response_model=PageOut)
def get_page(page_id: int, db: Session = Depends(get_db)):
    return revision_service.get_page(db, page_id)


# =======================
# Revisions
# =======================
@router.post("/pages/{page_id}/revisions", response_model=RevisionDetailOut, status_code=201)
def create_revision(
    page_id: int,
    payload: RevisionCreate,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_actor_id),
):
    """Crea una revisión DRAFT con sus bloques. Bloques o meta inválidos -> 422 con issues."""
    try:
        revision = revision_service.create_revision(
            db,
            page_id=page_id,
            author_id=actor_id,
            blocks=payload.blocks,
            meta=payload.meta,
            summary=payload.summary,
        )
        db.commit()
    except InvalidTransition as exc:
        db.rollback()
        raise HTTPException(status_code=422, detail={"message": exc.message, "issues": exc.issues or []})
    db.refresh(revision)
    return revision


@router.get("/pages/{page_id}/revisions", response_model=List[RevisionOut])
def list_revisions(page_id: int, db: Session = Depends(get_db)):
    revision_service.get_page(db, page_id)
    return revision_service.list_revision_timeline(db, page_id)


@router.get("/revisions/{revision_id}", response_model=RevisionDetailOut)
def get_revision(revision_id: int, db: Session = Depends(get_db)):
    return revision_service.get_revision(db, revision_id)


@router.get("/revisions/{revision_id}/diff", response_model=RevisionDiffOut)
def get_revision_diff(
    revision_id: int,
    compare_to: Optional[int] = Query(None, alias="compareTo"),
    db: Session = Depends(get_db),
):
    return diff_service.get_revision_diff(db, revision_id, compare_to)
