# tests/test_scheduler.py
from datetime import datetime, timezone

from sqlalchemy import select

from folio.models.audit import PublicationAction, PublicationLogEntry, PublicationSource
from folio.models.content import PageStatus, RevisionStatus
from folio.services import metadata_service, page_service, revision_service, scheduler_service, workflow_service

SWEEP_AT = datetime(2032, 1, 1, 12, 0, tzinfo=timezone.utc)


def _scheduled(db, site, path, when, make_revision):
    page = revision_service.create_page(db, site_id=site.id, path=path, title=path.strip("/").title())
    db.commit()
    rev = make_revision(page_id=page.id, meta={"seoTitle": f"Title {path}"})
    workflow_service.submit_for_review(db, page_id=page.id, revision_id=rev.id, actor_id="author-1")
    workflow_service.schedule(
        db, page_id=page.id, revision_id=rev.id, actor_id="editor-1", scheduled_at=when, timezone="UTC"
    )
    return page, rev


def _auto_publish_entries(db):
    return list(
        db.scalars(
            select(PublicationLogEntry)
            .where(PublicationLogEntry.action == PublicationAction.AUTO_PUBLISH)
            .order_by(PublicationLogEntry.id)
        )
    )


def test_sweep_publishes_due_revisions_oldest_first(db, site, make_revision, captured_events):
    _, late = _scheduled(db, site, "/late", "2031-05-02T10:00", make_revision)
    _, early = _scheduled(db, site, "/early", "2031-05-01T10:00", make_revision)
    _, future = _scheduled(db, site, "/future", "2033-01-01T10:00", make_revision)
    captured_events.clear()

    result = scheduler_service.publish_due_revisions(db, now=SWEEP_AT)

    assert result.published == 2
    assert result.failed == 0
    assert result.revision_ids == [early.id, late.id]

    db.refresh(future)
    assert future.status == RevisionStatus.SCHEDULED
    entries = _auto_publish_entries(db)
    assert [e.revision_id for e in entries] == [early.id, late.id]
    assert all(e.actor_id is None and e.source == PublicationSource.SCHEDULER for e in entries)
    assert [e["action"] for e in captured_events] == ["AUTO_PUBLISH", "AUTO_PUBLISH"]


def test_sweep_respects_limit(db, site, make_revision):
    _scheduled(db, site, "/a", "2031-05-01T10:00", make_revision)
    _scheduled(db, site, "/b", "2031-05-02T10:00", make_revision)

    result = scheduler_service.publish_due_revisions(db, 1, now=SWEEP_AT)

    assert result.published == 1
    assert len(scheduler_service.find_due_revision_ids(db, now=SWEEP_AT, limit=10)) == 1


def test_one_failure_does_not_stop_the_sweep(db, site, make_revision, monkeypatch):
    first_page, first = _scheduled(db, site, "/one", "2031-05-01T10:00", make_revision)
    broken_page, broken = _scheduled(db, site, "/two", "2031-05-02T10:00", make_revision)
    third_page, third = _scheduled(db, site, "/three", "2031-05-03T10:00", make_revision)

    original = metadata_service.apply_revision_metadata

    def _apply(db_, page_id, meta):
        if page_id == broken_page.id:
            raise RuntimeError("metadata store unavailable")
        return original(db_, page_id, meta)

    monkeypatch.setattr(metadata_service, "apply_revision_metadata", _apply)

    result = scheduler_service.publish_due_revisions(db, now=SWEEP_AT)

    assert result.published == 2
    assert result.failed == 1
    assert result.revision_ids == [first.id, third.id]

    # la revisión rota quedó intacta (su transacción se revirtió)
    db.refresh(broken)
    assert broken.status == RevisionStatus.SCHEDULED
    db.refresh(broken_page)
    assert broken_page.status == PageStatus.SCHEDULED
    assert [e.revision_id for e in _auto_publish_entries(db)] == [first.id, third.id]
    assert metadata_service.get_page_metadata(db, third_page.id) == {"seoTitle": "Title /three"}


def test_sweep_with_nothing_due(db, site, make_revision):
    _scheduled(db, site, "/future", "2033-01-01T10:00", make_revision)
    result = scheduler_service.publish_due_revisions(db, now=SWEEP_AT)
    assert (result.published, result.failed, result.skipped) == (0, 0, 0)


def test_lazy_release_on_read(db, site, make_revision):
    page, rev = _scheduled(db, site, "/launch", "2031-05-01T10:00", make_revision)

    assert page_service.get_published_page(db, "acme", "/launch", now=datetime(2031, 4, 30, tzinfo=timezone.utc)) is None

    out = page_service.get_published_page(db, "acme", "/launch", now=SWEEP_AT)

    assert out is not None
    assert out["revision_id"] == rev.id
    assert out["metadata"] == {"seoTitle": "Title /launch"}
    [entry] = _auto_publish_entries(db)
    assert entry.source == PublicationSource.SYSTEM


def test_lazy_release_only_touches_requested_page(db, site, make_revision):
    _scheduled(db, site, "/one", "2031-05-01T10:00", make_revision)
    _, other = _scheduled(db, site, "/two", "2031-05-01T11:00", make_revision)

    assert scheduler_service.release_due_revision_for_page(db, "acme", "/one", now=SWEEP_AT) is True

    db.refresh(other)
    assert other.status == RevisionStatus.SCHEDULED
    assert scheduler_service.release_due_revision_for_page(db, "acme", "/missing", now=SWEEP_AT) is False
