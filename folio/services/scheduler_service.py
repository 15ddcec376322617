# folio/services/scheduler_service.py
# Sweep de revisiones programadas vencidas (trigger externo o "lazy release" por página)
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from folio.core.errors import InvalidTransition, SweepItemFailure
from folio.core.settings import settings
from folio.models.audit import PublicationSource
from folio.models.content import Page, Revision, RevisionStatus, Site
from folio.schemas.workflow import SweepResult
from folio.services import workflow_service
from folio.utils.timezones import as_utc, now_utc

logger = logging.getLogger(__name__)


def find_due_revision_ids(db: Session, *, now: datetime, limit: int, page_id: Optional[int] = None) -> List[int]:
    stmt = (
        select(Revision.id)
        .where(
            Revision.status == RevisionStatus.SCHEDULED,
            Revision.scheduled_for.is_not(None),
            Revision.scheduled_for <= now,
        )
        .order_by(Revision.scheduled_for.asc(), Revision.id.asc())
        .limit(limit)
    )
    if page_id is not None:
        stmt = stmt.where(Revision.page_id == page_id)
    return list(db.scalars(stmt))


def publish_due_revisions(
    db: Session,
    limit: Optional[int] = None,
    *,
    source: Union[PublicationSource, str] = PublicationSource.SCHEDULER,
    now: Optional[datetime] = None,
) -> SweepResult:
    """
    Auto-publica hasta `limit` revisiones vencidas, la más antigua primero.
    Cada revisión va en su propia transacción: un fallo se registra y el sweep continúa.
    `published` cuenta solo los éxitos.
    """
    limit = limit or settings.SCHEDULER_BATCH_LIMIT
    at = as_utc(now or now_utc())
    result = SweepResult()

    due_ids = find_due_revision_ids(db, now=at, limit=limit)

    for revision_id in due_ids:
        try:
            workflow_service.auto_publish(db, revision_id=revision_id, source=source, now=at)
        except InvalidTransition:
            # otro sweep (o un editor) ya la movió; no es un fallo
            logger.info("Skipping revision %s: no longer due", revision_id)
            result.skipped += 1
            continue
        except Exception as exc:
            failure = SweepItemFailure(revision_id, exc)
            logger.exception(failure.message)
            result.failed += 1
            continue
        result.published += 1
        result.revision_ids.append(revision_id)

    if due_ids:
        logger.info(
            "Scheduler sweep: published=%s failed=%s skipped=%s (source=%s)",
            result.published, result.failed, result.skipped, PublicationSource(source).value,
        )
    return result


def release_due_revision_for_page(db: Session, site_slug: str, path: str, *, now: Optional[datetime] = None) -> bool:
    """
    Camino "lazy": al pedir una página, publica solo SU revisión vencida más antigua.
    Los fallos se registran y nunca rompen la lectura.
    """
    at = as_utc(now or now_utc())
    page_id = db.scalar(
        select(Page.id).join(Site, Site.id == Page.site_id).where(Site.slug == site_slug, Page.path == path)
    )
    if page_id is None:
        return False

    due_ids = find_due_revision_ids(db, now=at, limit=1, page_id=page_id)
    if not due_ids:
        return False

    try:
        workflow_service.auto_publish(db, revision_id=due_ids[0], source=PublicationSource.SYSTEM, now=at)
    except InvalidTransition:
        logger.info("Lazy release skipped revision %s: no longer due", due_ids[0])
        return False
    except Exception as exc:
        logger.exception(SweepItemFailure(due_ids[0], exc).message)
        return False
    return True
