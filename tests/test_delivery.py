# tests/test_delivery.py
from datetime import timedelta

from folio.models.audit import PublicationSource
from folio.services import workflow_service
from folio.services.publication_log_service import list_publication_log
from folio.utils.timezones import now_utc
from helpers import hero_block, text_block

URL = "/delivery/v1/sites/acme/page"


def test_unpublished_page_is_404(client, page, make_revision):
    make_revision()
    assert client.get(URL, params={"path": "/about"}).status_code == 404
    assert client.get(URL, params={"path": "/nope"}).status_code == 404


def test_published_page_with_etag(client, db, page, make_revision):
    rev = make_revision(
        blocks=[hero_block("Hello"), text_block("<p>Body</p>")],
        meta={"seoTitle": "About Acme", "canonicalUrl": "https://acme.test/about"},
    )
    workflow_service.publish_now(db, page_id=page.id, revision_id=rev.id, actor_id="editor-1")

    r = client.get(URL, params={"path": "/about"})

    assert r.status_code == 200
    body = r.json()
    assert body["revision_id"] == rev.id
    assert body["title"] == "About us"
    assert [b["kind"] for b in body["blocks"]] == ["hero", "text"]
    assert [b["sort_order"] for b in body["blocks"]] == [0, 1]
    assert body["metadata"] == {"canonicalUrl": "https://acme.test/about", "seoTitle": "About Acme"}
    assert r.headers["Cache-Control"].startswith("public")
    assert "Last-Modified" in r.headers

    etag = r.headers["ETag"]
    r2 = client.get(URL, params={"path": "/about"}, headers={"If-None-Match": etag})
    assert r2.status_code == 304


def test_unpublished_after_publish_is_404(client, db, page, make_revision):
    rev = make_revision()
    workflow_service.publish_now(db, page_id=page.id, revision_id=rev.id, actor_id="editor-1")
    workflow_service.unpublish(db, page_id=page.id, actor_id="editor-1")

    assert client.get(URL, params={"path": "/about"}).status_code == 404


def test_due_scheduled_revision_is_released_on_read(client, db, page, make_revision):
    rev = make_revision(blocks=[hero_block("Launch")])
    workflow_service.submit_for_review(db, page_id=page.id, revision_id=rev.id, actor_id="author-1")
    workflow_service.schedule(
        db, page_id=page.id, revision_id=rev.id, actor_id="editor-1",
        scheduled_at="2031-01-01T09:00", timezone="UTC",
    )
    assert client.get(URL, params={"path": "/about"}).status_code == 404

    rev.scheduled_for = now_utc() - timedelta(seconds=5)
    db.commit()

    r = client.get(URL, params={"path": "/about"})

    assert r.status_code == 200
    assert r.json()["revision_id"] == rev.id
    latest = list_publication_log(db, page.id)[0]
    assert latest.source == PublicationSource.SYSTEM
    assert latest.actor_id is None
