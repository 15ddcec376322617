# folio/services/revision_service.py
# Servicio: páginas y revisiones (creación con bloques, timeline, lookups)
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from jsonschema import Draft202012Validator
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from folio.content_registry import BLOCK_SETTINGS_SCHEMA, get_block_kind
from folio.core.errors import InvalidTransition, NotFound
from folio.models.content import ContentBlock, Page, PageStatus, Revision, RevisionStatus, Site
from folio.schemas.content import BlockIn, RevisionMeta
from folio.utils.timezones import as_utc


# -------- helpers DB --------
def get_site(db: Session, site_id: int) -> Site:
    site = db.get(Site, site_id)
    if not site:
        raise NotFound("Site not found.")
    return site


def get_site_by_slug(db: Session, slug: str) -> Optional[Site]:
    return db.scalar(select(Site).where(Site.slug == slug))


def get_page(db: Session, page_id: int) -> Page:
    page = db.get(Page, page_id)
    if not page:
        raise NotFound("Page not found.")
    return page


def get_revision(db: Session, revision_id: int, page_id: Optional[int] = None) -> Revision:
    """NotFound si no existe o si pertenece a otra página."""
    revision = db.get(Revision, revision_id)
    if not revision or (page_id is not None and revision.page_id != page_id):
        raise NotFound("Revision not found.")
    return revision


def create_site(db: Session, *, slug: str, name: str, timezone: str = "UTC") -> Site:
    site = Site(slug=slug, name=name, timezone=timezone)
    db.add(site)
    db.flush()
    return site


def create_page(db: Session, *, site_id: int, path: str, title: str) -> Page:
    get_site(db, site_id)
    page = Page(site_id=site_id, path=path, title=title, status=PageStatus.DRAFT)
    db.add(page)
    db.flush()
    return page


# -------- Validación de bloques (JSON Schema por tipo) --------
def _schema_errors(schema: Dict[str, Any], data: Any, prefix: str) -> List[Dict[str, str]]:
    validator = Draft202012Validator(schema)
    issues = []
    for e in sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path]):
        path = ".".join([prefix] + [str(p) for p in e.path])
        issues.append({"path": path, "message": e.message})
    return issues


def validate_blocks(blocks: Iterable[BlockIn]) -> List[Dict[str, str]]:
    issues: List[Dict[str, str]] = []
    for idx, block in enumerate(blocks):
        kind = get_block_kind(block.kind)
        if kind is None:
            issues.append({"path": f"blocks.{idx}.kind", "message": f"Unknown block kind '{block.kind}'"})
            continue
        issues.extend(_schema_errors(kind.data_schema, block.data, f"blocks.{idx}.data"))
        if block.settings is not None:
            issues.extend(_schema_errors(BLOCK_SETTINGS_SCHEMA, block.settings, f"blocks.{idx}.settings"))
    return issues


def validate_meta(meta: Dict[str, Any]) -> List[Dict[str, str]]:
    try:
        RevisionMeta.model_validate(meta or {})
    except ValidationError as exc:
        return [
            {"path": ".".join(["meta"] + [str(p) for p in err["loc"]]), "message": err["msg"]}
            for err in exc.errors()
        ]
    return []


# -------- Revisions --------
def create_revision(
    db: Session,
    *,
    page_id: int,
    author_id: Optional[str],
    blocks: List[BlockIn],
    meta: Optional[Dict[str, Any]] = None,
    summary: Optional[str] = None,
) -> Revision:
    """
    Crea una revisión DRAFT con sus bloques (misma transacción).
    - Los bloques se capturan aquí y no mutan después; editar = nueva revisión.
    - No hace commit; el caller debe hacer db.commit().
    """
    get_page(db, page_id)

    issues = validate_blocks(blocks) + validate_meta(meta or {})
    if issues:
        raise InvalidTransition("Validation failed", issues=issues)

    revision = Revision(
        page_id=page_id,
        status=RevisionStatus.DRAFT,
        author_id=author_id,
        summary=summary,
        meta=dict(meta or {}),
    )
    db.add(revision)
    db.flush()

    for order, block in enumerate(blocks):
        db.add(
            ContentBlock(
                revision_id=revision.id,
                kind=block.kind,
                sort_order=order,
                data=dict(block.data or {}),
                settings=dict(block.settings) if block.settings is not None else None,
            )
        )
    db.flush()
    db.refresh(revision)
    return revision


def list_revision_timeline(db: Session, page_id: int) -> List[Revision]:
    """Revisiones de la página, más reciente primero."""
    return list(
        db.scalars(
            select(Revision)
            .where(Revision.page_id == page_id)
            .order_by(Revision.created_at.desc(), Revision.id.desc())
        )
    )


def live_revision(db: Session, page: Page) -> Optional[Revision]:
    """
    Revisión servida públicamente: la PUBLISHED más reciente, siempre que se
    haya publicado después del último unpublish de la página.
    """
    stmt = (
        select(Revision)
        .where(Revision.page_id == page.id, Revision.status == RevisionStatus.PUBLISHED)
        .order_by(Revision.published_at.desc(), Revision.id.desc())
        .options(selectinload(Revision.blocks))
        .limit(1)
    )
    revision = db.scalar(stmt)
    if revision is None:
        return None
    if page.unpublished_at is not None and revision.published_at is not None:
        if as_utc(revision.published_at) <= as_utc(page.unpublished_at):
            return None
    return revision
