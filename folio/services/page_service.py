# folio/services/page_service.py
# Lectura pública: página publicada (con lazy release de revisiones vencidas)
from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from folio.models.content import Page, Site
from folio.services import scheduler_service
from folio.services.metadata_service import get_page_metadata
from folio.services.revision_service import live_revision


def get_published_page(
    db: Session, site_slug: str, path: str, *, now: Optional[datetime] = None
) -> Optional[Dict[str, Any]]:
    """
    Antes de leer, publica la revisión vencida de ESTA página (si hay una).
    Devuelve None si la página no existe o no tiene contenido publicado vigente.
    """
    scheduler_service.release_due_revision_for_page(db, site_slug, path, now=now)

    page = db.scalar(
        select(Page).join(Site, Site.id == Page.site_id).where(Site.slug == site_slug, Page.path == path)
    )
    if page is None:
        return None
    db.refresh(page)

    revision = live_revision(db, page)
    if revision is None:
        return None

    return {
        "site_slug": site_slug,
        "path": page.path,
        "title": page.title,
        "revision_id": revision.id,
        "published_at": revision.published_at,
        "metadata": get_page_metadata(db, page.id),
        "blocks": sorted(revision.blocks, key=lambda b: b.sort_order),
    }


def compute_etag(payload: Dict[str, Any]) -> str:
    raw = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str).encode("utf-8")
    return hashlib.sha256(raw).hexdigest()
