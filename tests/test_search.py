# tests/test_search.py
import asyncio
import json

import httpx
import pytest

from folio.core.settings import settings
from folio.models.search import SearchIntegration, SearchProvider
from folio.services import search_index_service, workflow_service
from folio.services.search_index_service import MeilisearchAdapter


@pytest.fixture()
def meili(monkeypatch):
    """Meilisearch falso: registra cada request y responde 202 (task encolada)."""
    calls = []
    status = {"code": 202}

    def _handler(request: httpx.Request):
        calls.append(request)
        return httpx.Response(status["code"], json={"taskUid": len(calls)})

    transport = httpx.MockTransport(_handler)

    def _client(self):
        return httpx.AsyncClient(base_url=self.host, transport=transport, timeout=self.timeout)

    monkeypatch.setattr(MeilisearchAdapter, "_client", _client)
    monkeypatch.setattr(settings, "SEARCH_PROVIDER", "MEILISEARCH")
    monkeypatch.setattr(settings, "MEILISEARCH_HOST", "http://meili.test:7700")
    return {"calls": calls, "status": status}


def _publish(db, page, make_revision, meta=None):
    rev = make_revision(meta=meta)
    workflow_service.publish_now(db, page_id=page.id, revision_id=rev.id, actor_id="editor-1")
    return rev


def test_document_id_is_sanitized():
    assert search_index_service.document_id("acme:/about/team") == "acme__about_team"


def test_build_record_for_published_page(db, site, page, make_revision):
    _publish(db, page, make_revision, meta={"seoTitle": "About"})

    record = search_index_service.build_record(db, page.id)

    assert record["objectID"] == "acme:/about"
    assert record["siteSlug"] == "acme"
    assert record["title"] == "About us"
    assert record["status"] == "PUBLISHED"
    assert record["metadata"] == {"seoTitle": "About"}
    assert record["publishedAt"].endswith("Z")


def test_build_record_is_none_when_not_live(db, page, make_revision):
    make_revision()
    assert search_index_service.build_record(db, page.id) is None

    _publish(db, page, make_revision)
    workflow_service.unpublish(db, page_id=page.id, actor_id="editor-1")
    assert search_index_service.build_record(db, page.id) is None


def test_sync_published_page_upserts_document(db, page, make_revision, meili):
    _publish(db, page, make_revision)

    assert asyncio.run(search_index_service.sync_published_page(db, page.id)) is True

    [req] = meili["calls"]
    assert req.method == "POST"
    assert req.url.path == f"/indexes/folio_{page.site_id}_pages/documents"
    assert req.url.params["primaryKey"] == "id"
    [doc] = json.loads(req.content)
    assert doc["id"] == "acme__about"
    assert doc["objectID"] == "acme:/about"

    integration = db.query(SearchIntegration).one()
    assert integration.provider == SearchProvider.MEILISEARCH
    assert integration.last_sync_at is not None
    assert integration.last_error is None


def test_remove_page_from_index(db, page, make_revision, meili):
    _publish(db, page, make_revision)

    assert asyncio.run(search_index_service.remove_page_from_index(db, page.id, page.site_id)) is True

    [req] = meili["calls"]
    assert req.url.path.endswith("/documents/delete-batch")
    assert json.loads(req.content) == ["acme__about"]


def test_provider_error_is_recorded_and_raised(db, page, make_revision, meili):
    _publish(db, page, make_revision)
    meili["status"]["code"] = 503

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(search_index_service.sync_published_page(db, page.id))

    integration = db.query(SearchIntegration).one()
    assert integration.last_error


def test_provider_none_disables_sync(db, page, make_revision):
    _publish(db, page, make_revision)
    assert asyncio.run(search_index_service.sync_published_page(db, page.id)) is False
    assert db.query(SearchIntegration).one().provider == SearchProvider.NONE


def test_reindex_endpoint(client, db, site, page, make_revision, meili):
    _publish(db, page, make_revision)

    r = client.post(f"/api/v1/sites/{site.id}/search/reindex")

    assert r.status_code == 200
    assert r.json() == {"site_id": site.id, "indexed": 1}
    methods = [req.method for req in meili["calls"]]
    assert methods == ["DELETE", "POST"]


def test_reindex_provider_failure_is_502(client, db, site, page, make_revision, meili):
    _publish(db, page, make_revision)
    meili["status"]["code"] = 500

    r = client.post(f"/api/v1/sites/{site.id}/search/reindex")

    assert r.status_code == 502
