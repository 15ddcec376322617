# tests/test_diff.py
from types import SimpleNamespace

import pytest

from folio.core.errors import NotFound
from folio.services import diff_service, revision_service, workflow_service
from helpers import hero_block, text_block


def _rev(id, blocks, meta=None):
    return SimpleNamespace(
        id=id,
        meta=meta or {},
        blocks=[
            SimpleNamespace(kind=b.kind, data=b.data, settings=b.settings, sort_order=i)
            for i, b in enumerate(blocks)
        ],
    )


def test_self_diff_is_all_unchanged():
    rev = _rev(1, [hero_block(), text_block()], {"seoTitle": "A"})
    out = diff_service.compare_revisions(rev, rev)
    assert {b["change"] for b in out["blocks"]} == {"unchanged"}
    assert {m["change"] for m in out["metadata"]} == {"unchanged"}


def test_appended_block_is_added():
    base = _rev(1, [hero_block("X"), text_block("Y")])
    target = _rev(2, [hero_block("X"), text_block("Y"), text_block("Z")])

    out = diff_service.compare_revisions(base, target)

    assert [b["change"] for b in out["blocks"]] == ["unchanged", "unchanged", "added"]
    assert out["blocks"][2] == {"index": 2, "change": "added", "kind": "text"}


def test_positional_comparison_marks_shifted_blocks_modified():
    base = _rev(1, [hero_block("X"), text_block("Y")])
    target = _rev(2, [hero_block("X"), text_block("new"), text_block("Y")])

    changes = [b["change"] for b in diff_service.compare_revisions(base, target)["blocks"]]
    assert changes == ["unchanged", "modified", "added"]


def test_removed_block_reports_base_kind():
    base = _rev(1, [hero_block(), text_block()])
    target = _rev(2, [hero_block()])
    out = diff_service.compare_revisions(base, target)
    assert out["blocks"][1] == {"index": 1, "change": "removed", "kind": "text"}


def test_key_order_inside_data_is_not_a_change():
    a = SimpleNamespace(kind="hero", data={"heading": "H", "subheading": "S"}, settings=None, sort_order=0)
    b = SimpleNamespace(kind="hero", data={"subheading": "S", "heading": "H"}, settings={}, sort_order=0)
    base = SimpleNamespace(id=1, meta={}, blocks=[a])
    target = SimpleNamespace(id=2, meta={}, blocks=[b])
    assert diff_service.compare_revisions(base, target)["blocks"][0]["change"] == "unchanged"


def test_metadata_diff():
    base = _rev(1, [], {"seoTitle": "Old", "seoDescription": "Same", "canonicalUrl": "https://a.test"})
    target = _rev(2, [], {"seoTitle": "New", "seoDescription": "Same", "seoOgTitle": "OG"})

    meta = {m["key"]: m for m in diff_service.compare_revisions(base, target)["metadata"]}

    assert meta["seoTitle"] == {"key": "seoTitle", "change": "modified", "before": "Old", "after": "New"}
    assert meta["seoDescription"]["change"] == "unchanged"
    assert meta["canonicalUrl"] == {"key": "canonicalUrl", "change": "removed", "before": "https://a.test"}
    assert meta["seoOgTitle"] == {"key": "seoOgTitle", "change": "added", "after": "OG"}


def test_without_base_everything_is_added():
    target = _rev(5, [hero_block(), text_block()])
    out = diff_service.compare_revisions(None, target)
    assert out["baseRevisionId"] is None
    assert [b["change"] for b in out["blocks"]] == ["added", "added"]


# ---------- Con BD ----------
def test_default_base_is_latest_published(db, page, make_revision):
    published = make_revision(blocks=[hero_block("X")])
    workflow_service.publish_now(db, page_id=page.id, revision_id=published.id, actor_id="editor-1")
    draft = make_revision(blocks=[hero_block("X"), text_block("Z")])

    out = diff_service.get_revision_diff(db, draft.id)

    assert out["baseRevisionId"] == published.id
    assert [b["change"] for b in out["blocks"]] == ["unchanged", "added"]


def test_explicit_base_must_belong_to_same_page(db, site, page, make_revision):
    other_page = revision_service.create_page(db, site_id=site.id, path="/other", title="Other")
    db.commit()
    foreign = make_revision(page_id=other_page.id)
    target = make_revision()

    with pytest.raises(NotFound):
        diff_service.get_revision_diff(db, target.id, foreign.id)


def test_diff_endpoint(client, page, make_revision):
    base = make_revision(blocks=[hero_block("X")])
    target = make_revision(blocks=[hero_block("Y")])

    r = client.get(f"/api/v1/revisions/{target.id}/diff", params={"compareTo": base.id})

    assert r.status_code == 200
    body = r.json()
    assert body["baseRevisionId"] == base.id
    assert body["blocks"] == [{"index": 0, "change": "modified", "kind": "hero"}]
