# folio/services/publication_log_service.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from folio.core.settings import settings
from folio.models.audit import PublicationAction, PublicationLogEntry, PublicationSource
from folio.utils.timezones import isoformat_utc


def record_publication_event(
    db: Session,
    *,
    site_id: int,
    page_id: int,
    revision_id: Optional[int],
    actor_id: Optional[str],
    action: Union[PublicationAction, str],
    source: Union[PublicationSource, str] = PublicationSource.MANUAL,
    metadata: Optional[Dict[str, Any]] = None,
) -> PublicationLogEntry:
    """
    Agrega una entrada a la bitácora de publicación.
    - No hace commit; corre dentro de la transacción de la transición.
    - El dispatch a integraciones lo encola el caller DESPUÉS del commit.
    """
    entry = PublicationLogEntry(
        site_id=site_id,
        page_id=page_id,
        revision_id=revision_id,
        actor_id=actor_id,
        action=PublicationAction(action),
        source=PublicationSource(source),
        details=metadata or {},
    )
    db.add(entry)
    db.flush()
    return entry


def list_publication_log(db: Session, page_id: int, limit: Optional[int] = None) -> List[PublicationLogEntry]:
    limit = limit or settings.PUBLICATION_LOG_DEFAULT_LIMIT
    return list(
        db.scalars(
            select(PublicationLogEntry)
            .where(PublicationLogEntry.page_id == page_id)
            .order_by(PublicationLogEntry.occurred_at.desc(), PublicationLogEntry.id.desc())
            .limit(limit)
        )
    )


def list_site_publication_log(db: Session, site_id: int, limit: int) -> List[PublicationLogEntry]:
    return list(
        db.scalars(
            select(PublicationLogEntry)
            .where(PublicationLogEntry.site_id == site_id)
            .order_by(PublicationLogEntry.occurred_at.desc(), PublicationLogEntry.id.desc())
            .limit(limit)
        )
    )


def to_dispatch_event(entry: PublicationLogEntry) -> Dict[str, Any]:
    """Snapshot plano de la entrada para el dispatcher (no viaja la instancia ORM)."""
    return {
        "log_id": entry.id,
        "site_id": entry.site_id,
        "page_id": entry.page_id,
        "revision_id": entry.revision_id,
        "actor_id": entry.actor_id,
        "action": PublicationAction(entry.action).value,
        "source": PublicationSource(entry.source).value,
        "metadata": dict(entry.details or {}),
        "occurred_at": isoformat_utc(entry.occurred_at),
    }
