# folio/services/metadata_service.py
# Proyección de `revision.meta` (SEO) sobre page_metadata al publicar
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from folio.models.content import PageMetadata
from folio.schemas.content import RevisionMeta

logger = logging.getLogger(__name__)

PROJECTED_KEYS = (
    "seoTitle",
    "seoDescription",
    "canonicalUrl",
    "seoOgTitle",
    "seoOgDescription",
    "seoOgImage",
)


def upsert_metadata(db: Session, page_id: int, key: str, value: Optional[str]) -> None:
    """Valor vacío (o solo espacios) -> se borra la fila; si no, upsert."""
    trimmed = (value or "").strip()
    if not trimmed:
        db.execute(delete(PageMetadata).where(PageMetadata.page_id == page_id, PageMetadata.key == key))
        return

    row = db.scalar(select(PageMetadata).where(PageMetadata.page_id == page_id, PageMetadata.key == key))
    if row is None:
        db.add(PageMetadata(page_id=page_id, key=key, value=trimmed))
    else:
        row.value = trimmed


def apply_revision_metadata(db: Session, page_id: int, meta: Any) -> bool:
    """
    Aplica la metadata de la revisión a la página, dentro de la transacción del caller.
    Meta ausente o inválida se ignora (devuelve False); no bloquea la publicación.
    """
    if not isinstance(meta, dict):
        return False
    try:
        parsed = RevisionMeta.model_validate(meta)
    except ValidationError:
        logger.info("Ignoring invalid revision meta for page %s", page_id)
        return False

    for key in PROJECTED_KEYS:
        upsert_metadata(db, page_id, key, getattr(parsed, key))
    db.flush()
    return True


def get_page_metadata(db: Session, page_id: int) -> Dict[str, str]:
    rows = db.scalars(select(PageMetadata).where(PageMetadata.page_id == page_id).order_by(PageMetadata.key))
    return {r.key: r.value for r in rows}
