# folio/services/activity_service.py
# Feed de actividad: eventos editoriales + bitácora de publicación, más reciente primero
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from folio.core.settings import settings
from folio.models.audit import ActivityEvent, ActivityKind, PublicationAction, PublicationLogEntry
from folio.utils.timezones import as_utc


def record_activity(
    db: Session,
    *,
    site_id: int,
    page_id: Optional[int],
    revision_id: Optional[int],
    actor_id: Optional[str],
    kind: Union[ActivityKind, str],
    note: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ActivityEvent:
    """No hace commit. metadata = `details` + {"note": ...} solo si viene nota."""
    metadata: Dict[str, Any] = dict(details or {})
    if note:
        metadata["note"] = note
    event = ActivityEvent(
        site_id=site_id,
        page_id=page_id,
        revision_id=revision_id,
        actor_id=actor_id,
        kind=ActivityKind(kind),
        details=metadata,
    )
    db.add(event)
    return event


def _from_activity(event: ActivityEvent) -> Dict[str, Any]:
    return {
        "id": f"activity:{event.id}",
        "source": "activity",
        "kind": ActivityKind(event.kind).value,
        "site_id": event.site_id,
        "page_id": event.page_id,
        "revision_id": event.revision_id,
        "actor_id": event.actor_id,
        "metadata": dict(event.details or {}),
        "occurred_at": as_utc(event.occurred_at),
    }


def _from_publication(entry: PublicationLogEntry) -> Dict[str, Any]:
    return {
        "id": f"publication:{entry.id}",
        "source": "publication",
        "kind": f"PUBLICATION_{PublicationAction(entry.action).value}",
        "site_id": entry.site_id,
        "page_id": entry.page_id,
        "revision_id": entry.revision_id,
        "actor_id": entry.actor_id,
        "metadata": dict(entry.details or {}),
        "occurred_at": as_utc(entry.occurred_at),
    }


def _merge(events: List[ActivityEvent], publications: List[PublicationLogEntry], limit: int) -> List[Dict[str, Any]]:
    items = [_from_activity(e) for e in events] + [_from_publication(p) for p in publications]
    items.sort(key=lambda it: it["occurred_at"], reverse=True)
    return items[:limit]


def list_page_activity(db: Session, page_id: int, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    limit = limit or settings.PAGE_ACTIVITY_DEFAULT_LIMIT
    events = db.scalars(
        select(ActivityEvent)
        .where(ActivityEvent.page_id == page_id)
        .order_by(ActivityEvent.occurred_at.desc(), ActivityEvent.id.desc())
        .limit(limit)
    )
    publications = db.scalars(
        select(PublicationLogEntry)
        .where(PublicationLogEntry.page_id == page_id)
        .order_by(PublicationLogEntry.occurred_at.desc(), PublicationLogEntry.id.desc())
        .limit(limit)
    )
    return _merge(list(events), list(publications), limit)


def list_site_activity(db: Session, site_id: int, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    limit = limit or settings.SITE_ACTIVITY_DEFAULT_LIMIT
    events = db.scalars(
        select(ActivityEvent)
        .where(ActivityEvent.site_id == site_id)
        .order_by(ActivityEvent.occurred_at.desc(), ActivityEvent.id.desc())
        .limit(limit)
    )
    publications = db.scalars(
        select(PublicationLogEntry)
        .where(PublicationLogEntry.site_id == site_id)
        .order_by(PublicationLogEntry.occurred_at.desc(), PublicationLogEntry.id.desc())
        .limit(limit)
    )
    return _merge(list(events), list(publications), limit)
