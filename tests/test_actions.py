# tests/test_actions.py
from folio.models.content import RevisionStatus
from folio.services import revision_actions


def test_submit_action_success(db, page, make_revision):
    rev = make_revision()

    result = revision_actions.submit_for_review_action(
        db, {"page_id": page.id, "revision_id": rev.id, "note": "  please check  "}, "author-1"
    )

    assert result.success is True
    assert result.data == {"status": "REVIEW"}


def test_missing_fields_return_validation_issues(db):
    result = revision_actions.submit_for_review_action(db, {"page_id": "abc"}, "author-1")

    assert result.success is False
    assert result.error == "Validation failed"
    paths = {issue.path for issue in result.issues}
    assert {"page_id", "revision_id"} <= paths
    assert result.code == "validation"


def test_note_longer_than_500_chars_is_rejected(db, page, make_revision):
    rev = make_revision()
    result = revision_actions.approve_action(
        db, {"page_id": page.id, "revision_id": rev.id, "note": "x" * 501}, "editor-1"
    )
    assert result.success is False
    assert [i.path for i in result.issues] == ["note"]


def test_unknown_timezone_is_a_validation_error(db, page, make_revision):
    rev = make_revision()
    result = revision_actions.schedule_action(
        db,
        {"page_id": page.id, "revision_id": rev.id, "scheduled_at": "2031-01-01T10:00", "timezone": "Nowhere/City"},
        "editor-1",
    )
    assert result.success is False
    assert [i.path for i in result.issues] == ["timezone"]


def test_invalid_transition_becomes_failure(db, page, make_revision):
    rev = make_revision()

    result = revision_actions.cancel_schedule_action(db, {"page_id": page.id, "revision_id": rev.id}, "editor-1")

    assert result.success is False
    assert result.error == "Only scheduled revisions can be cancelled."
    assert result.code == "invalid_transition"
    db.refresh(rev)
    assert rev.status == RevisionStatus.DRAFT


def test_not_found_becomes_failure(db, page):
    result = revision_actions.publish_action(db, {"page_id": page.id, "revision_id": 999}, "editor-1")
    assert result.success is False
    assert result.error == "Revision not found."
    assert result.code == "not_found"


def test_actor_is_required(db, page, make_revision):
    rev = make_revision()
    result = revision_actions.publish_action(db, {"page_id": page.id, "revision_id": rev.id}, None)
    assert result.success is False
    assert result.code == "unauthorized"


def test_schedule_action_returns_utc(db, page, make_revision):
    rev = make_revision()
    revision_actions.submit_for_review_action(db, {"page_id": page.id, "revision_id": rev.id}, "author-1")

    result = revision_actions.schedule_action(
        db,
        {"page_id": page.id, "revision_id": rev.id, "scheduled_at": "2031-01-15T09:00", "timezone": "Asia/Tokyo"},
        "editor-1",
    )

    assert result.success is True
    assert result.data == {
        "status": "SCHEDULED",
        "scheduledFor": "2031-01-15T00:00:00.000Z",
        "timezone": "Asia/Tokyo",
    }


def test_serialized_result_hides_code(db):
    result = revision_actions.unpublish_action(db, {}, "editor-1")
    dumped = result.model_dump(exclude_none=True)
    assert dumped["success"] is False
    assert "code" not in dumped
