# tests/test_logs.py
from folio.services import activity_service, publication_log_service, review_service, workflow_service

API = "/api/v1"


def _publish_cycle(db, page, make_revision):
    rev = make_revision()
    workflow_service.submit_for_review(db, page_id=page.id, revision_id=rev.id, actor_id="author-1", note="v1")
    workflow_service.approve(db, page_id=page.id, revision_id=rev.id, actor_id="editor-1")
    workflow_service.publish_now(db, page_id=page.id, revision_id=rev.id, actor_id="editor-1")
    return rev


def test_publication_log_default_limit(db, page, make_revision):
    for _ in range(17):
        rev = make_revision(blocks=[])
        workflow_service.publish_now(db, page_id=page.id, revision_id=rev.id, actor_id="editor-1")

    entries = publication_log_service.list_publication_log(db, page.id)

    assert len(entries) == 15
    assert entries[0].revision_id == rev.id


def test_latest_review_decision(db, page, make_revision):
    rev = _publish_cycle(db, page, make_revision)
    decision = review_service.latest_review_decision(db, rev.id)
    assert decision.type.value == "APPROVED"
    assert decision.actor_id == "editor-1"


def test_page_activity_merges_events_and_publications(db, page, make_revision):
    _publish_cycle(db, page, make_revision)

    feed = activity_service.list_page_activity(db, page.id)

    kinds = [item["kind"] for item in feed]
    assert kinds == [
        "REVISION_PUBLISHED",
        "PUBLICATION_PUBLISH",
        "REVISION_APPROVED",
        "REVISION_SUBMITTED",
    ]
    submitted = feed[-1]
    assert submitted["metadata"] == {"note": "v1"}
    assert submitted["id"].startswith("activity:")


def test_activity_endpoints(client, db, site, page, make_revision):
    _publish_cycle(db, page, make_revision)

    r = client.get(f"{API}/pages/{page.id}/activity", params={"limit": 2})
    assert r.status_code == 200
    assert len(r.json()) == 2

    r = client.get(f"{API}/sites/{site.id}/activity")
    assert {item["source"] for item in r.json()} == {"activity", "publication"}

    assert client.get(f"{API}/sites/999/activity").status_code == 404
