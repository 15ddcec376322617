# folio/services/review_service.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from folio.core.settings import settings
from folio.models.audit import ReviewEvent, ReviewEventType


def log_review_event(
    db: Session,
    *,
    site_id: int,
    page_id: int,
    revision_id: int,
    actor_id: Optional[str],
    type: Union[ReviewEventType, str],
    note: Optional[str] = None,
    occurred_at: Optional[datetime] = None,
) -> ReviewEvent:
    """Append-only. No hace commit; el caller es dueño de la transacción."""
    event = ReviewEvent(
        site_id=site_id,
        page_id=page_id,
        revision_id=revision_id,
        actor_id=actor_id,
        type=ReviewEventType(type),
        note=note,
    )
    if occurred_at is not None:
        event.created_at = occurred_at
    db.add(event)
    db.flush()
    return event


def list_review_events(db: Session, page_id: int, limit: Optional[int] = None) -> List[ReviewEvent]:
    limit = limit or settings.REVIEW_EVENTS_DEFAULT_LIMIT
    return list(
        db.scalars(
            select(ReviewEvent)
            .where(ReviewEvent.page_id == page_id)
            .order_by(ReviewEvent.created_at.desc(), ReviewEvent.id.desc())
            .limit(limit)
        )
    )


def latest_review_decision(db: Session, revision_id: int) -> Optional[ReviewEvent]:
    return db.scalar(
        select(ReviewEvent)
        .where(ReviewEvent.revision_id == revision_id)
        .order_by(ReviewEvent.created_at.desc(), ReviewEvent.id.desc())
        .limit(1)
    )
