# tests/test_comments.py
import pytest
from sqlalchemy import select

from folio.core.errors import NotFound
from folio.models.audit import ActivityEvent, ActivityKind
from folio.models.comment import CommentThreadStatus
from folio.services import comment_service

API = "/api/v1"
EDITOR = {"X-User-Id": "editor-1"}


def _activity_kinds(db, revision_id):
    rows = db.scalars(
        select(ActivityEvent).where(ActivityEvent.revision_id == revision_id).order_by(ActivityEvent.id)
    )
    return [r.kind for r in rows]


def _open_thread(db, rev, **kwargs):
    thread = comment_service.create_comment_thread(
        db, revision_id=rev.id, actor_id="editor-1", body=kwargs.pop("body", "Hero copy is too long"), **kwargs
    )
    db.commit()
    return thread


# ---------- Servicio ----------
def test_create_thread_with_first_comment(db, page, make_revision):
    rev = make_revision()
    block = rev.blocks[0]

    thread = _open_thread(db, rev, body="  Hero copy is too long ", block_id=block.id)

    assert thread.status == CommentThreadStatus.OPEN
    assert thread.page_id == page.id and thread.site_id == page.site_id
    assert thread.created_by_id == "editor-1"
    assert [c.body for c in thread.comments] == ["Hero copy is too long"]

    event = db.scalar(select(ActivityEvent).where(ActivityEvent.kind == ActivityKind.COMMENT_ADDED))
    assert event.details == {"threadId": thread.id, "commentId": thread.comments[0].id, "blockId": block.id}


def test_block_of_another_revision_is_not_found(db, make_revision):
    rev = make_revision()
    other = make_revision()

    with pytest.raises(NotFound):
        comment_service.create_comment_thread(
            db, revision_id=rev.id, actor_id="editor-1", body="x", block_id=other.blocks[0].id
        )


def test_reply_appends_in_order(db, make_revision):
    rev = make_revision()
    thread = _open_thread(db, rev)

    comment_service.reply_to_comment_thread(
        db, revision_id=rev.id, thread_id=thread.id, actor_id="author-1", body="Shortened it"
    )
    db.commit()

    [listed] = comment_service.list_comment_threads(db, rev.id)
    assert [c.author_id for c in listed.comments] == ["editor-1", "author-1"]
    assert _activity_kinds(db, rev.id) == [ActivityKind.COMMENT_ADDED, ActivityKind.COMMENT_ADDED]


def test_thread_of_another_revision_is_not_found(db, make_revision):
    rev = make_revision()
    other = make_revision()
    thread = _open_thread(db, rev)

    with pytest.raises(NotFound) as exc:
        comment_service.reply_to_comment_thread(
            db, revision_id=other.id, thread_id=thread.id, actor_id="author-1", body="wrong place"
        )
    assert exc.value.message == "Thread not found."

    with pytest.raises(NotFound):
        comment_service.update_comment_thread_status(
            db, revision_id=other.id, thread_id=thread.id, actor_id="editor-1", status="RESOLVED"
        )


def test_resolve_and_reopen(db, make_revision):
    rev = make_revision()
    thread = _open_thread(db, rev)

    out = comment_service.update_comment_thread_status(
        db, revision_id=rev.id, thread_id=thread.id, actor_id="editor-2", status=CommentThreadStatus.RESOLVED
    )
    db.commit()
    assert out.status == CommentThreadStatus.RESOLVED
    assert out.resolved_by_id == "editor-2"
    assert out.resolved_at is not None

    # mismo estado: sin cambios ni actividad nueva
    comment_service.update_comment_thread_status(
        db, revision_id=rev.id, thread_id=thread.id, actor_id="editor-2", status="RESOLVED"
    )
    db.commit()

    out = comment_service.update_comment_thread_status(
        db, revision_id=rev.id, thread_id=thread.id, actor_id="author-1", status="OPEN"
    )
    db.commit()
    assert out.status == CommentThreadStatus.OPEN
    assert out.resolved_by_id is None and out.resolved_at is None

    assert _activity_kinds(db, rev.id) == [
        ActivityKind.COMMENT_ADDED,
        ActivityKind.COMMENT_RESOLVED,
        ActivityKind.COMMENT_REOPENED,
    ]


# ---------- Endpoints ----------
def test_comment_endpoints(client, make_revision):
    rev = make_revision()
    base = f"{API}/revisions/{rev.id}/comments"

    assert client.get(base).status_code == 401

    r = client.post(base, json={"body": "First pass"}, headers=EDITOR)
    assert r.status_code == 201, r.text
    first = r.json()
    assert first["status"] == "OPEN"
    assert [c["body"] for c in first["comments"]] == ["First pass"]

    second = client.post(base, json={"body": "Second pass"}, headers=EDITOR).json()

    r = client.post(f"{base}/{first['id']}", json={"body": "Done"}, headers={"X-User-Id": "author-1"})
    assert r.status_code == 201
    assert r.json()["author_id"] == "author-1"

    r = client.patch(f"{base}/{first['id']}", json={"status": "RESOLVED"}, headers=EDITOR)
    assert r.status_code == 200
    assert r.json()["resolved_by_id"] == "editor-1"

    r = client.get(base, headers=EDITOR)
    assert [t["id"] for t in r.json()] == [second["id"], first["id"]]
    assert [c["body"] for c in r.json()[1]["comments"]] == ["First pass", "Done"]


def test_comment_endpoint_errors(client, make_revision):
    rev = make_revision()
    other = make_revision()
    thread = client.post(
        f"{API}/revisions/{rev.id}/comments", json={"body": "Check links"}, headers=EDITOR
    ).json()

    r = client.post(f"{API}/revisions/{other.id}/comments/{thread['id']}", json={"body": "x"}, headers=EDITOR)
    assert r.status_code == 404

    r = client.post(f"{API}/revisions/{rev.id}/comments", json={"body": "   "}, headers=EDITOR)
    assert r.status_code == 422

    r = client.patch(f"{API}/revisions/{rev.id}/comments/{thread['id']}", json={"status": "CLOSED"}, headers=EDITOR)
    assert r.status_code == 422

    assert client.post(f"{API}/revisions/999/comments", json={"body": "x"}, headers=EDITOR).status_code == 404
