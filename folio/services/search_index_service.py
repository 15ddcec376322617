# folio/services/search_index_service.py
# Sincronización del índice de búsqueda por sitio (upsert / delete / reindex)
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Protocol

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from folio.core.settings import settings
from folio.models.content import Page, Site
from folio.models.search import SearchIntegration, SearchProvider
from folio.services.metadata_service import get_page_metadata
from folio.services.revision_service import live_revision
from folio.utils.timezones import isoformat_utc, now_utc

logger = logging.getLogger(__name__)

_DOC_ID_INVALID = re.compile(r"[^A-Za-z0-9_-]")


class SearchAdapter(Protocol):
    async def save(self, records: List[Dict[str, Any]], index_name: str) -> None: ...
    async def delete(self, object_ids: List[str], index_name: str) -> None: ...
    async def replace(self, records: List[Dict[str, Any]], index_name: str) -> None: ...


def document_id(object_id: str) -> str:
    """Meilisearch solo acepta [A-Za-z0-9_-] como id; objectID conserva la clave legible."""
    return _DOC_ID_INVALID.sub("_", object_id)


class MeilisearchAdapter:
    """Cliente mínimo de la API REST de Meilisearch sobre httpx."""

    def __init__(self, host: str, api_key: Optional[str], timeout: float):
        self.host = host.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return httpx.AsyncClient(base_url=self.host, headers=headers, timeout=self.timeout)

    @staticmethod
    def _documents(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [{**r, "id": document_id(r["objectID"])} for r in records]

    async def save(self, records: List[Dict[str, Any]], index_name: str) -> None:
        async with self._client() as client:
            resp = await client.post(
                f"/indexes/{index_name}/documents", params={"primaryKey": "id"}, json=self._documents(records)
            )
            resp.raise_for_status()

    async def delete(self, object_ids: List[str], index_name: str) -> None:
        async with self._client() as client:
            resp = await client.post(
                f"/indexes/{index_name}/documents/delete-batch", json=[document_id(o) for o in object_ids]
            )
            resp.raise_for_status()

    async def replace(self, records: List[Dict[str, Any]], index_name: str) -> None:
        async with self._client() as client:
            resp = await client.delete(f"/indexes/{index_name}/documents")
            resp.raise_for_status()
            if records:
                resp = await client.post(
                    f"/indexes/{index_name}/documents", params={"primaryKey": "id"}, json=self._documents(records)
                )
                resp.raise_for_status()


def get_adapter(integration: SearchIntegration) -> Optional[SearchAdapter]:
    if SearchProvider(integration.provider) is SearchProvider.MEILISEARCH:
        config = integration.config or {}
        host = config.get("host") or settings.MEILISEARCH_HOST
        if not host:
            return None
        api_key = config.get("api_key") or settings.MEILISEARCH_API_KEY
        return MeilisearchAdapter(host, api_key, settings.SEARCH_TIMEOUT_SECONDS)
    return None


def ensure_search_config(db: Session, site_id: int) -> SearchIntegration:
    existing = db.scalar(select(SearchIntegration).where(SearchIntegration.site_id == site_id))
    if existing:
        return existing
    provider = settings.SEARCH_PROVIDER if settings.SEARCH_PROVIDER in SearchProvider.__members__ else "NONE"
    integration = SearchIntegration(
        site_id=site_id,
        provider=SearchProvider(provider),
        index_name=settings.MEILISEARCH_INDEX or f"folio_{site_id}_pages",
        config={},
    )
    db.add(integration)
    db.commit()
    return integration


def object_id_for(site: Site, page: Page) -> str:
    return f"{site.slug}:{page.path}"


def build_record(db: Session, page_id: int) -> Optional[Dict[str, Any]]:
    """Registro denormalizado de la página; None si no está publicada."""
    page = db.get(Page, page_id)
    if page is None or live_revision(db, page) is None:
        return None
    site = page.site
    return {
        "objectID": object_id_for(site, page),
        "pageId": page.id,
        "siteId": site.id,
        "siteSlug": site.slug,
        "siteName": site.name,
        "path": page.path,
        "title": page.title,
        "status": "PUBLISHED",
        "publishedAt": isoformat_utc(page.published_at),
        "metadata": get_page_metadata(db, page.id),
        "updatedAt": isoformat_utc(page.updated_at),
    }


def _record_error(db: Session, integration: SearchIntegration, exc: Exception) -> None:
    integration.last_error = str(exc) or exc.__class__.__name__
    db.commit()


def _record_success(db: Session, integration: SearchIntegration) -> None:
    integration.last_sync_at = now_utc()
    integration.last_error = None
    db.commit()


async def sync_published_page(db: Session, page_id: int) -> bool:
    record = build_record(db, page_id)
    if record is None:
        return False

    integration = ensure_search_config(db, record["siteId"])
    adapter = get_adapter(integration)
    if adapter is None or not integration.index_name:
        return False

    try:
        await adapter.save([record], integration.index_name)
    except Exception as exc:
        _record_error(db, integration, exc)
        raise
    _record_success(db, integration)
    return True


async def remove_page_from_index(db: Session, page_id: int, site_id: int) -> bool:
    integration = ensure_search_config(db, site_id)
    adapter = get_adapter(integration)
    if adapter is None or not integration.index_name:
        return False

    page = db.get(Page, page_id)
    if page is None:
        return False

    try:
        await adapter.delete([object_id_for(page.site, page)], integration.index_name)
    except Exception as exc:
        _record_error(db, integration, exc)
        raise
    return True


async def reindex_site(db: Session, site_id: int) -> int:
    """Reemplaza el índice completo con las páginas publicadas del sitio."""
    integration = ensure_search_config(db, site_id)
    adapter = get_adapter(integration)
    if adapter is None or not integration.index_name:
        return 0

    page_ids = db.scalars(select(Page.id).where(Page.site_id == site_id).order_by(Page.updated_at.desc()))
    records = [r for r in (build_record(db, pid) for pid in list(page_ids)) if r is not None]

    try:
        await adapter.replace(records, integration.index_name)
    except Exception as exc:
        _record_error(db, integration, exc)
        raise
    _record_success(db, integration)
    logger.info("Reindexed site %s: %s records", site_id, len(records))
    return len(records)
