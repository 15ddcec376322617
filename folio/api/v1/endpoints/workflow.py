# =============================================================================
# Workflow Endpoints (review, schedule, publish, unpublish)
# folio/api/v1/endpoints/workflow.py
# =============================================================================
from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from folio.api.deps.actor import get_actor_id_optional
from folio.db.session import get_db
from folio.schemas.workflow import ActionResult
from folio.services import revision_actions

router = APIRouter()

_HTTP_STATUS = {
    "validation": 422,
    "unauthorized": 401,
    "not_found": 404,
    "invalid_transition": 409,
}

Action = Callable[[Session, Dict[str, Any], Optional[str]], ActionResult]


def _respond(result: ActionResult) -> JSONResponse:
    status_code = 200 if result.success else _HTTP_STATUS.get(result.code or "", 400)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json", exclude_none=True))


def _revision_action(
    action: Action,
    db: Session,
    page_id: int,
    revision_id: int,
    body: Optional[Dict[str, Any]],
    actor_id: Optional[str],
) -> JSONResponse:
    # los ids de la ruta mandan sobre los del body
    payload = {**(body or {}), "page_id": page_id, "revision_id": revision_id}
    return _respond(action(db, payload, actor_id))


# =======================
# Revisión
# =======================
@router.post("/pages/{page_id}/revisions/{revision_id}/submit", response_model=ActionResult)
def submit_revision(
    page_id: int,
    revision_id: int,
    body: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    actor_id: Optional[str] = Depends(get_actor_id_optional),
):
    return _revision_action(revision_actions.submit_for_review_action, db, page_id, revision_id, body, actor_id)


@router.post("/pages/{page_id}/revisions/{revision_id}/approve", response_model=ActionResult)
def approve_revision(
    page_id: int,
    revision_id: int,
    body: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    actor_id: Optional[str] = Depends(get_actor_id_optional),
):
    return _revision_action(revision_actions.approve_action, db, page_id, revision_id, body, actor_id)


@router.post("/pages/{page_id}/revisions/{revision_id}/request-changes", response_model=ActionResult)
def request_revision_changes(
    page_id: int,
    revision_id: int,
    body: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    actor_id: Optional[str] = Depends(get_actor_id_optional),
):
    return _revision_action(revision_actions.request_changes_action, db, page_id, revision_id, body, actor_id)


# =======================
# Programación
# =======================
@router.post("/pages/{page_id}/revisions/{revision_id}/schedule", response_model=ActionResult)
def schedule_revision(
    page_id: int,
    revision_id: int,
    body: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    actor_id: Optional[str] = Depends(get_actor_id_optional),
):
    """
    Body: {"scheduled_at": "YYYY-MM-DDTHH:MM", "timezone": "<IANA>"}.
    La hora es de pared en la zona indicada; se guarda en UTC.
    """
    return _revision_action(revision_actions.schedule_action, db, page_id, revision_id, body, actor_id)


@router.post("/pages/{page_id}/revisions/{revision_id}/cancel-schedule", response_model=ActionResult)
def cancel_revision_schedule(
    page_id: int,
    revision_id: int,
    body: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    actor_id: Optional[str] = Depends(get_actor_id_optional),
):
    return _revision_action(revision_actions.cancel_schedule_action, db, page_id, revision_id, body, actor_id)


# =======================
# Publicación
# =======================
@router.post("/pages/{page_id}/revisions/{revision_id}/publish", response_model=ActionResult)
def publish_revision(
    page_id: int,
    revision_id: int,
    body: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    actor_id: Optional[str] = Depends(get_actor_id_optional),
):
    return _revision_action(revision_actions.publish_action, db, page_id, revision_id, body, actor_id)


@router.post("/pages/{page_id}/publish", response_model=ActionResult)
def publish_latest_draft(
    page_id: int,
    body: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    actor_id: Optional[str] = Depends(get_actor_id_optional),
):
    """Publica el DRAFT más reciente (o `revision_id` del body, si viene)."""
    payload = {**(body or {}), "page_id": page_id}
    return _respond(revision_actions.publish_action(db, payload, actor_id))


@router.post("/pages/{page_id}/unpublish", response_model=ActionResult)
def unpublish_page(
    page_id: int,
    body: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    actor_id: Optional[str] = Depends(get_actor_id_optional),
):
    payload = {**(body or {}), "page_id": page_id}
    return _respond(revision_actions.unpublish_action(db, payload, actor_id))
