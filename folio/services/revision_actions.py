# folio/services/revision_actions.py
# Frontera de acciones: valida el payload, llama al workflow y devuelve
# siempre un ActionResult ({success: true} | {success: false, error, issues?}).
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from folio.core.errors import InvalidTransition, NotFound
from folio.schemas.workflow import ActionResult, PublishIn, RevisionTargetIn, ScheduleIn, UnpublishIn
from folio.services import workflow_service
from folio.utils.timezones import isoformat_utc

M = TypeVar("M", bound=BaseModel)


def _issues(exc: ValidationError) -> List[Dict[str, str]]:
    return [
        {"path": ".".join(str(p) for p in err["loc"]) or "__root__", "message": err["msg"]}
        for err in exc.errors()
    ]


def _parse(model: Type[M], payload: Mapping[str, Any]) -> Tuple[Optional[M], Optional[ActionResult]]:
    try:
        return model.model_validate(dict(payload)), None
    except ValidationError as exc:
        return None, ActionResult.fail("Validation failed", _issues(exc), code="validation")


def _run(fn: Callable[[], Dict[str, Any]]) -> ActionResult:
    try:
        data = fn()
    except NotFound as exc:
        return ActionResult.fail(exc.message, exc.issues, code="not_found")
    except InvalidTransition as exc:
        return ActionResult.fail(exc.message, exc.issues, code="invalid_transition")
    return ActionResult.ok(**data)


def _unauthorized() -> ActionResult:
    return ActionResult.fail("You must be signed in to continue.", code="unauthorized")


# ============================================================================ #
# Review
# ============================================================================ #
def submit_for_review_action(db: Session, payload: Mapping[str, Any], actor_id: Optional[str]) -> ActionResult:
    data, invalid = _parse(RevisionTargetIn, payload)
    if invalid:
        return invalid
    if not actor_id:
        return _unauthorized()
    return _run(
        lambda: {
            "status": workflow_service.submit_for_review(
                db, page_id=data.page_id, revision_id=data.revision_id, actor_id=actor_id, note=data.note
            ).status.value
        }
    )


def approve_action(db: Session, payload: Mapping[str, Any], actor_id: Optional[str]) -> ActionResult:
    data, invalid = _parse(RevisionTargetIn, payload)
    if invalid:
        return invalid
    if not actor_id:
        return _unauthorized()

    def _do() -> Dict[str, Any]:
        rev = workflow_service.approve(
            db, page_id=data.page_id, revision_id=data.revision_id, actor_id=actor_id, note=data.note
        )
        return {"status": rev.status.value, "reviewedAt": isoformat_utc(rev.reviewed_at)}

    return _run(_do)


def request_changes_action(db: Session, payload: Mapping[str, Any], actor_id: Optional[str]) -> ActionResult:
    data, invalid = _parse(RevisionTargetIn, payload)
    if invalid:
        return invalid
    if not actor_id:
        return _unauthorized()
    return _run(
        lambda: {
            "status": workflow_service.request_changes(
                db, page_id=data.page_id, revision_id=data.revision_id, actor_id=actor_id, note=data.note
            ).status.value
        }
    )


# ============================================================================ #
# Scheduling
# ============================================================================ #
def schedule_action(db: Session, payload: Mapping[str, Any], actor_id: Optional[str]) -> ActionResult:
    data, invalid = _parse(ScheduleIn, payload)
    if invalid:
        return invalid
    if not actor_id:
        return _unauthorized()

    def _do() -> Dict[str, Any]:
        rev = workflow_service.schedule(
            db,
            page_id=data.page_id,
            revision_id=data.revision_id,
            actor_id=actor_id,
            scheduled_at=data.scheduled_at,
            timezone=data.timezone,
        )
        return {
            "status": rev.status.value,
            "scheduledFor": isoformat_utc(rev.scheduled_for),
            "timezone": rev.scheduled_timezone,
        }

    return _run(_do)


def cancel_schedule_action(db: Session, payload: Mapping[str, Any], actor_id: Optional[str]) -> ActionResult:
    data, invalid = _parse(RevisionTargetIn, payload)
    if invalid:
        return invalid
    if not actor_id:
        return _unauthorized()
    return _run(
        lambda: {
            "status": workflow_service.cancel_schedule(
                db, page_id=data.page_id, revision_id=data.revision_id, actor_id=actor_id, note=data.note
            ).status.value
        }
    )


# ============================================================================ #
# Publish / Unpublish
# ============================================================================ #
def publish_action(db: Session, payload: Mapping[str, Any], actor_id: Optional[str]) -> ActionResult:
    data, invalid = _parse(PublishIn, payload)
    if invalid:
        return invalid
    if not actor_id:
        return _unauthorized()

    def _do() -> Dict[str, Any]:
        rev = workflow_service.publish_now(
            db, page_id=data.page_id, revision_id=data.revision_id, actor_id=actor_id, note=data.note
        )
        return {"revisionId": rev.id, "publishedAt": isoformat_utc(rev.published_at)}

    return _run(_do)


def unpublish_action(db: Session, payload: Mapping[str, Any], actor_id: Optional[str]) -> ActionResult:
    data, invalid = _parse(UnpublishIn, payload)
    if invalid:
        return invalid
    if not actor_id:
        return _unauthorized()
    return _run(
        lambda: {
            "status": workflow_service.unpublish(
                db, page_id=data.page_id, actor_id=actor_id, note=data.note
            ).status.value
        }
    )
