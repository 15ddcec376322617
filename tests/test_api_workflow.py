# tests/test_api_workflow.py
from helpers import hero_block

API = "/api/v1"


def _auth(user_id: str):
    return {"X-User-Id": user_id}


def test_create_site_page_and_revision(client):
    r = client.post(f"{API}/sites", json={"slug": "blog", "name": "Blog", "timezone": "Europe/Paris"})
    assert r.status_code == 201, r.text
    site_id = r.json()["id"]

    assert client.post(f"{API}/sites", json={"slug": "blog", "name": "Dup"}).status_code == 409

    r = client.post(f"{API}/sites/{site_id}/pages", json={"path": "/", "title": "Home"})
    assert r.status_code == 201
    page = r.json()
    assert page["status"] == "DRAFT"

    r = client.post(
        f"{API}/pages/{page['id']}/revisions",
        json={"summary": "first", "meta": {"seoTitle": "Home"}, "blocks": [{"kind": "hero", "data": {"heading": "Hi"}}]},
        headers=_auth("author-1"),
    )
    assert r.status_code == 201, r.text
    rev = r.json()
    assert rev["status"] == "DRAFT"
    assert rev["author_id"] == "author-1"
    assert [b["kind"] for b in rev["blocks"]] == ["hero"]


def test_invalid_blocks_are_rejected_with_issues(client, page):
    r = client.post(
        f"{API}/pages/{page.id}/revisions",
        json={"blocks": [{"kind": "hero", "data": {}}, {"kind": "carousel", "data": {}}]},
        headers=_auth("author-1"),
    )
    assert r.status_code == 422
    paths = [i["path"] for i in r.json()["detail"]["issues"]]
    assert "blocks.0.data" in paths
    assert "blocks.1.kind" in paths


def test_revision_requires_actor(client, page):
    r = client.post(f"{API}/pages/{page.id}/revisions", json={"blocks": []})
    assert r.status_code == 401


def test_review_flow_over_http(client, page, make_revision):
    rev = make_revision()
    base = f"{API}/pages/{page.id}/revisions/{rev.id}"

    r = client.post(f"{base}/submit", json={"note": "ready"}, headers=_auth("author-1"))
    assert r.status_code == 200
    assert r.json() == {"success": True, "data": {"status": "REVIEW"}}

    r = client.post(f"{base}/approve", headers=_auth("editor-1"))
    assert r.status_code == 200
    assert r.json()["data"]["reviewedAt"].endswith("Z")

    r = client.post(f"{base}/schedule", json={"scheduled_at": "2031-01-01T09:00", "timezone": "UTC"}, headers=_auth("editor-1"))
    assert r.status_code == 200
    assert r.json()["data"]["scheduledFor"] == "2031-01-01T09:00:00.000Z"

    r = client.post(f"{base}/cancel-schedule", headers=_auth("editor-1"))
    assert r.json()["data"] == {"status": "REVIEW"}

    r = client.post(f"{base}/request-changes", json={"note": "tone it down"}, headers=_auth("editor-1"))
    assert r.json()["data"] == {"status": "DRAFT"}

    r = client.get(f"{API}/pages/{page.id}/review-events")
    assert [e["type"] for e in r.json()] == ["CHANGES_REQUESTED", "APPROVED", "SUBMITTED"]


def test_failures_map_to_http_status(client, page, make_revision):
    rev = make_revision()
    base = f"{API}/pages/{page.id}/revisions/{rev.id}"

    r = client.post(f"{base}/approve", headers=_auth("editor-1"))
    assert r.status_code == 409
    assert r.json() == {"success": False, "error": "Only revisions in review can be approved."}

    r = client.post(f"{API}/pages/{page.id}/revisions/999/submit", headers=_auth("editor-1"))
    assert r.status_code == 404

    r = client.post(f"{base}/schedule", json={"timezone": "UTC"}, headers=_auth("editor-1"))
    assert r.status_code == 422
    assert r.json()["issues"][0]["path"] == "scheduled_at"

    r = client.post(f"{base}/submit")
    assert r.status_code == 401


def test_publish_latest_draft_and_unpublish(client, page, make_revision):
    make_revision(blocks=[hero_block("old")])
    newest = make_revision(blocks=[hero_block("new")])

    r = client.post(f"{API}/pages/{page.id}/publish", headers=_auth("editor-1"))
    assert r.status_code == 200
    assert r.json()["data"]["revisionId"] == newest.id

    r = client.post(f"{API}/pages/{page.id}/unpublish", json={"note": "oops"}, headers=_auth("editor-1"))
    assert r.status_code == 200
    assert r.json()["data"] == {"status": "DRAFT"}

    r = client.post(f"{API}/pages/{page.id}/unpublish", headers=_auth("editor-1"))
    assert r.status_code == 409
    assert r.json()["error"] == "Nothing to unpublish."

    r = client.get(f"{API}/pages/{page.id}/publication-log")
    assert [e["action"] for e in r.json()] == ["UNPUBLISH", "PUBLISH"]
    assert r.json()[0]["metadata"] == {"note": "oops"}


def test_timeline_newest_first(client, page, make_revision):
    first = make_revision()
    second = make_revision()

    r = client.get(f"{API}/pages/{page.id}/revisions")

    assert [rev["id"] for rev in r.json()] == [second.id, first.id]
    assert client.get(f"{API}/pages/999/revisions").status_code == 404
