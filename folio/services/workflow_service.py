# folio/services/workflow_service.py
# ⟶ Máquina de estados de revisiones: tabla de transiciones + operaciones atómicas
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from folio.core.errors import InvalidTransition, NotFound
from folio.models.audit import ActivityKind, PublicationAction, PublicationSource, ReviewEventType
from folio.models.content import Page, PageStatus, Revision, RevisionStatus
from folio.services import activity_service, integration_dispatcher, metadata_service
from folio.services.publication_log_service import record_publication_event, to_dispatch_event
from folio.services.review_service import log_review_event
from folio.services.revision_service import get_page, get_revision
from folio.utils.timezones import as_utc, isoformat_utc, local_to_utc, now_utc

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REQUEST_CHANGES = "request_changes"
    SCHEDULE = "schedule"
    CANCEL_SCHEDULE = "cancel_schedule"
    PUBLISH = "publish"
    AUTO_PUBLISH = "auto_publish"


@dataclass(frozen=True)
class Transition:
    allowed_from: FrozenSet[RevisionStatus]
    to: RevisionStatus
    error: str


_S = RevisionStatus

# -----------------------------
# Tabla de transiciones (única fuente de verdad de los guards)
# -----------------------------
TRANSITIONS: Dict[Operation, Transition] = {
    Operation.SUBMIT: Transition(frozenset({_S.DRAFT}), _S.REVIEW, "Only draft revisions can enter review."),
    Operation.APPROVE: Transition(frozenset({_S.REVIEW}), _S.REVIEW, "Only revisions in review can be approved."),
    Operation.REQUEST_CHANGES: Transition(
        frozenset({_S.DRAFT, _S.REVIEW, _S.SCHEDULED}), _S.DRAFT, "Published revisions cannot be edited."
    ),
    Operation.SCHEDULE: Transition(frozenset({_S.REVIEW}), _S.SCHEDULED, "Submit the revision for review first."),
    Operation.CANCEL_SCHEDULE: Transition(
        frozenset({_S.SCHEDULED}), _S.REVIEW, "Only scheduled revisions can be cancelled."
    ),
    Operation.PUBLISH: Transition(
        frozenset({_S.DRAFT, _S.REVIEW, _S.SCHEDULED}), _S.PUBLISHED, "Revision is already published."
    ),
    Operation.AUTO_PUBLISH: Transition(
        frozenset({_S.SCHEDULED}), _S.PUBLISHED, "Only due scheduled revisions can be auto-published."
    ),
}

_CLEARED_SCHEDULE = {"scheduled_for": None, "scheduled_by_id": None, "scheduled_timezone": None}
_CLEARED_REVIEW = {"reviewed_at": None, "reviewed_by_id": None}


def can_transition(status: Union[RevisionStatus, str], operation: Union[Operation, str]) -> bool:
    return RevisionStatus(status) in TRANSITIONS[Operation(operation)].allowed_from


# -----------------------------
# Helpers
# -----------------------------
@contextmanager
def _atomic(db: Session) -> Iterator[None]:
    """Una transición = una transacción; cualquier error revierte todo."""
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


def _load(db: Session, page_id: Optional[int], revision_id: int) -> tuple[Page, Revision]:
    revision = get_revision(db, revision_id, page_id)
    page = db.get(Page, revision.page_id)
    if page is None:
        raise NotFound("Page not found.")
    return page, revision


def _compare_and_swap(
    db: Session,
    revision: Revision,
    operation: Operation,
    values: Dict[str, Any],
    *,
    due_before: Optional[datetime] = None,
) -> None:
    """
    UPDATE revisions SET ... WHERE id = ? AND status IN (<allowed>).
    0 filas afectadas = guard violado (o carrera perdida) -> InvalidTransition.
    """
    transition = TRANSITIONS[operation]
    stmt = (
        update(Revision)
        .where(Revision.id == revision.id, Revision.status.in_(list(transition.allowed_from)))
        .values(status=transition.to, **values)
        .execution_options(synchronize_session=False)
    )
    if due_before is not None:
        stmt = stmt.where(Revision.scheduled_for.is_not(None), Revision.scheduled_for <= due_before)

    result = db.execute(stmt)
    if result.rowcount != 1:
        logger.info(
            "Transition %s rejected for revision %s (status=%s)",
            operation.value, revision.id, revision.status,
        )
        raise InvalidTransition(transition.error)
    db.refresh(revision)


def _project_page(page: Page, status: PageStatus, **extra: Any) -> None:
    # Page.status es una proyección del estado de la revisión recién mutada
    page.status = status
    for key, value in extra.items():
        setattr(page, key, value)


def _dispatch_after_commit(events: List[Dict[str, Any]]) -> None:
    for event in events:
        integration_dispatcher.enqueue_integration_dispatch(event)


# -----------------------------
# Operaciones
# -----------------------------
def submit_for_review(
    db: Session, *, page_id: Optional[int], revision_id: int, actor_id: Optional[str], note: Optional[str] = None
) -> Revision:
    with _atomic(db):
        page, revision = _load(db, page_id, revision_id)
        _compare_and_swap(db, revision, Operation.SUBMIT, dict(_CLEARED_REVIEW))
        _project_page(page, PageStatus.REVIEW)
        log_review_event(
            db, site_id=page.site_id, page_id=page.id, revision_id=revision.id,
            actor_id=actor_id, type=ReviewEventType.SUBMITTED, note=note,
        )
        activity_service.record_activity(
            db, site_id=page.site_id, page_id=page.id, revision_id=revision.id,
            actor_id=actor_id, kind=ActivityKind.REVISION_SUBMITTED, note=note,
        )
    logger.info("Revision %s submitted for review by %s", revision.id, actor_id)
    return revision


def approve(
    db: Session, *, page_id: Optional[int], revision_id: int, actor_id: Optional[str], note: Optional[str] = None
) -> Revision:
    with _atomic(db):
        page, revision = _load(db, page_id, revision_id)
        _compare_and_swap(
            db, revision, Operation.APPROVE, {"reviewed_at": now_utc(), "reviewed_by_id": actor_id}
        )
        log_review_event(
            db, site_id=page.site_id, page_id=page.id, revision_id=revision.id,
            actor_id=actor_id, type=ReviewEventType.APPROVED, note=note,
        )
        activity_service.record_activity(
            db, site_id=page.site_id, page_id=page.id, revision_id=revision.id,
            actor_id=actor_id, kind=ActivityKind.REVISION_APPROVED, note=note,
        )
    logger.info("Revision %s approved by %s", revision.id, actor_id)
    return revision


def request_changes(
    db: Session, *, page_id: Optional[int], revision_id: int, actor_id: Optional[str], note: Optional[str] = None
) -> Revision:
    with _atomic(db):
        page, revision = _load(db, page_id, revision_id)
        if revision.status == RevisionStatus.PUBLISHED:
            raise InvalidTransition("Published revisions cannot be edited.")
        _compare_and_swap(
            db, revision, Operation.REQUEST_CHANGES, {**_CLEARED_REVIEW, **_CLEARED_SCHEDULE}
        )
        _project_page(page, PageStatus.DRAFT)
        log_review_event(
            db, site_id=page.site_id, page_id=page.id, revision_id=revision.id,
            actor_id=actor_id, type=ReviewEventType.CHANGES_REQUESTED, note=note,
        )
        activity_service.record_activity(
            db, site_id=page.site_id, page_id=page.id, revision_id=revision.id,
            actor_id=actor_id, kind=ActivityKind.REVISION_CHANGES_REQUESTED, note=note,
        )
    logger.info("Changes requested on revision %s by %s", revision.id, actor_id)
    return revision


def schedule(
    db: Session,
    *,
    page_id: Optional[int],
    revision_id: int,
    actor_id: Optional[str],
    scheduled_at: str,
    timezone: str,
    now: Optional[datetime] = None,
) -> Revision:
    """
    `scheduled_at` es hora de pared "YYYY-MM-DDTHH:MM" en `timezone` (IANA).
    Se guarda en UTC; debe quedar estrictamente en el futuro.
    """
    try:
        scheduled_for = local_to_utc(scheduled_at, timezone)
    except ValueError as exc:
        raise InvalidTransition("Invalid schedule time.", issues=[{"path": "scheduled_at", "message": str(exc)}])

    events: List[Dict[str, Any]] = []
    with _atomic(db):
        page, revision = _load(db, page_id, revision_id)
        if scheduled_for <= as_utc(now or now_utc()):
            raise InvalidTransition("Schedule time must be in the future.")

        _compare_and_swap(
            db,
            revision,
            Operation.SCHEDULE,
            {"scheduled_for": scheduled_for, "scheduled_by_id": actor_id, "scheduled_timezone": timezone},
        )
        _project_page(page, PageStatus.SCHEDULED)
        entry = record_publication_event(
            db,
            site_id=page.site_id,
            page_id=page.id,
            revision_id=revision.id,
            actor_id=actor_id,
            action=PublicationAction.SCHEDULE,
            source=PublicationSource.MANUAL,
            metadata={"scheduledFor": isoformat_utc(scheduled_for), "timezone": timezone},
        )
        activity_service.record_activity(
            db, site_id=page.site_id, page_id=page.id, revision_id=revision.id,
            actor_id=actor_id, kind=ActivityKind.REVISION_SCHEDULED,
        )
        events.append(to_dispatch_event(entry))

    logger.info("Revision %s scheduled for %s (%s)", revision.id, isoformat_utc(scheduled_for), timezone)
    _dispatch_after_commit(events)
    return revision


def cancel_schedule(
    db: Session, *, page_id: Optional[int], revision_id: int, actor_id: Optional[str], note: Optional[str] = None
) -> Revision:
    events: List[Dict[str, Any]] = []
    with _atomic(db):
        page, revision = _load(db, page_id, revision_id)
        previous_for = revision.scheduled_for
        previous_tz = revision.scheduled_timezone

        _compare_and_swap(db, revision, Operation.CANCEL_SCHEDULE, dict(_CLEARED_SCHEDULE))
        _project_page(page, PageStatus.REVIEW)
        entry = record_publication_event(
            db,
            site_id=page.site_id,
            page_id=page.id,
            revision_id=revision.id,
            actor_id=actor_id,
            action=PublicationAction.UNSCHEDULE,
            source=PublicationSource.MANUAL,
            metadata={"scheduledFor": isoformat_utc(previous_for), "previousTimezone": previous_tz},
        )
        activity_service.record_activity(
            db, site_id=page.site_id, page_id=page.id, revision_id=revision.id,
            actor_id=actor_id, kind=ActivityKind.REVISION_UNSCHEDULED, note=note,
        )
        events.append(to_dispatch_event(entry))

    logger.info("Schedule cancelled for revision %s by %s", revision.id, actor_id)
    _dispatch_after_commit(events)
    return revision


def _latest_draft_id(db: Session, page_id: int) -> Optional[int]:
    return db.scalar(
        select(Revision.id)
        .where(Revision.page_id == page_id, Revision.status == RevisionStatus.DRAFT)
        .order_by(Revision.created_at.desc(), Revision.id.desc())
        .limit(1)
    )


def _apply_publication(db: Session, page: Page, revision: Revision, operation: Operation, at: datetime,
                       due_before: Optional[datetime] = None) -> None:
    _compare_and_swap(db, revision, operation, {"published_at": at, **_CLEARED_SCHEDULE}, due_before=due_before)
    _project_page(page, PageStatus.PUBLISHED, published_at=at)
    metadata_service.apply_revision_metadata(db, page.id, revision.meta)


def publish_now(
    db: Session,
    *,
    page_id: int,
    revision_id: Optional[int] = None,
    actor_id: Optional[str],
    note: Optional[str] = None,
) -> Revision:
    """
    Publica de inmediato. Sin revision_id se toma el DRAFT más reciente de la página.
    Publicar una revisión ya PUBLISHED es InvalidTransition (no duplica la bitácora).
    """
    events: List[Dict[str, Any]] = []
    with _atomic(db):
        if revision_id is None:
            get_page(db, page_id)
            revision_id = _latest_draft_id(db, page_id)
            if revision_id is None:
                raise InvalidTransition("No draft revision found to publish.")

        page, revision = _load(db, page_id, revision_id)
        at = now_utc()
        _apply_publication(db, page, revision, Operation.PUBLISH, at)
        entry = record_publication_event(
            db,
            site_id=page.site_id,
            page_id=page.id,
            revision_id=revision.id,
            actor_id=actor_id,
            action=PublicationAction.PUBLISH,
            source=PublicationSource.MANUAL,
        )
        activity_service.record_activity(
            db, site_id=page.site_id, page_id=page.id, revision_id=revision.id,
            actor_id=actor_id, kind=ActivityKind.REVISION_PUBLISHED, note=note,
        )
        events.append(to_dispatch_event(entry))

    logger.info("Revision %s published by %s", revision.id, actor_id)
    _dispatch_after_commit(events)
    return revision


def auto_publish(
    db: Session,
    *,
    revision_id: int,
    source: Union[PublicationSource, str] = PublicationSource.SCHEDULER,
    now: Optional[datetime] = None,
) -> Revision:
    """Igual que publish_now pero solo para SCHEDULED vencidas; actor = None."""
    source = PublicationSource(source)
    at = as_utc(now or now_utc())
    events: List[Dict[str, Any]] = []
    with _atomic(db):
        page, revision = _load(db, None, revision_id)
        _apply_publication(db, page, revision, Operation.AUTO_PUBLISH, at, due_before=at)
        entry = record_publication_event(
            db,
            site_id=page.site_id,
            page_id=page.id,
            revision_id=revision.id,
            actor_id=None,
            action=PublicationAction.AUTO_PUBLISH,
            source=source,
        )
        events.append(to_dispatch_event(entry))

    logger.info("Revision %s auto-published (source=%s)", revision.id, source.value)
    _dispatch_after_commit(events)
    return revision


def unpublish(db: Session, *, page_id: int, actor_id: Optional[str], note: Optional[str] = None) -> Page:
    """
    Solo afecta a la página: status -> DRAFT, unpublished_at = now.
    published_at queda como histórico y las revisiones no se tocan (PUBLISHED es terminal).
    """
    events: List[Dict[str, Any]] = []
    with _atomic(db):
        page = get_page(db, page_id)
        latest_published = db.scalar(
            select(Revision)
            .where(Revision.page_id == page.id, Revision.status == RevisionStatus.PUBLISHED)
            .order_by(Revision.published_at.desc(), Revision.id.desc())
            .limit(1)
        )
        if latest_published is None:
            raise InvalidTransition("Nothing to unpublish.")

        result = db.execute(
            update(Page)
            .where(Page.id == page.id, Page.status == PageStatus.PUBLISHED)
            .values(status=PageStatus.DRAFT, unpublished_at=now_utc())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info("Unpublish rejected for page %s (status=%s)", page.id, page.status)
            raise InvalidTransition("Nothing to unpublish.")
        db.refresh(page)

        entry = record_publication_event(
            db,
            site_id=page.site_id,
            page_id=page.id,
            revision_id=latest_published.id,
            actor_id=actor_id,
            action=PublicationAction.UNPUBLISH,
            source=PublicationSource.MANUAL,
            metadata={"note": note} if note else None,
        )
        events.append(to_dispatch_event(entry))

    logger.info("Page %s unpublished by %s", page.id, actor_id)
    _dispatch_after_commit(events)
    return page
