# tests/test_scenarios.py
# Recorrido completo: borrador -> revisión -> programación -> sweep -> retirada
from datetime import datetime, timedelta, timezone

import httpx
from sqlalchemy import select

from folio.core.settings import settings
from folio.models.audit import PublicationAction, PublicationLogEntry
from folio.models.content import PageStatus, RevisionStatus
from folio.models.webhook import WebhookDelivery
from folio.services import (
    diff_service,
    page_service,
    scheduler_service,
    webhook_service,
    workflow_service,
)
from folio.utils.timezones import now_utc
from helpers import hero_block, text_block


def test_editorial_lifecycle(db, site, page, make_revision, monkeypatch):
    monkeypatch.setattr(settings, "INTEGRATIONS_ENABLED", True)
    received = []
    monkeypatch.setattr(
        webhook_service,
        "_make_client",
        lambda: httpx.AsyncClient(transport=httpx.MockTransport(lambda req: received.append(req) or httpx.Response(200))),
    )
    webhook_service.create_webhook(db, site_id=site.id, name="Frontend", url="https://front.example.test/revalidate")
    db.commit()

    # v1 publicada directamente
    v1 = make_revision(blocks=[hero_block("X"), text_block("Y")], meta={"seoTitle": "v1"})
    workflow_service.publish_now(db, page_id=page.id, revision_id=v1.id, actor_id="editor-1")

    # v2 pasa por revisión y se programa
    v2 = make_revision(blocks=[hero_block("X"), text_block("Y"), text_block("Z")], meta={"seoTitle": "v2"})
    diff = diff_service.get_revision_diff(db, v2.id)
    assert diff["baseRevisionId"] == v1.id
    assert [b["change"] for b in diff["blocks"]] == ["unchanged", "unchanged", "added"]

    workflow_service.submit_for_review(db, page_id=page.id, revision_id=v2.id, actor_id="author-1")
    workflow_service.approve(db, page_id=page.id, revision_id=v2.id, actor_id="editor-1")
    workflow_service.schedule(
        db, page_id=page.id, revision_id=v2.id, actor_id="editor-1",
        scheduled_at="2031-09-01T08:00", timezone="America/Mexico_City",
    )
    db.refresh(page)
    assert page.status == PageStatus.SCHEDULED

    # mientras tanto v1 sigue en línea
    served = page_service.get_published_page(db, "acme", "/about", now=datetime(2031, 8, 1, tzinfo=timezone.utc))
    assert served["revision_id"] == v1.id

    # 08:00 en Ciudad de México (sin DST desde 2022) = 14:00Z
    db.refresh(v2)
    assert v2.scheduled_for.replace(tzinfo=timezone.utc) == datetime(2031, 9, 1, 14, 0, tzinfo=timezone.utc)

    # adelantar el reloj: la programación vence ahora
    v2.scheduled_for = now_utc() - timedelta(seconds=1)
    db.commit()
    result = scheduler_service.publish_due_revisions(db)
    assert result.published == 1

    db.refresh(v2)
    assert v2.status == RevisionStatus.PUBLISHED
    served = page_service.get_published_page(db, "acme", "/about")
    assert served["revision_id"] == v2.id
    assert served["metadata"]["seoTitle"] == "v2"

    workflow_service.unpublish(db, page_id=page.id, actor_id="editor-1")
    assert page_service.get_published_page(db, "acme", "/about") is None

    actions = [
        e.action
        for e in db.scalars(select(PublicationLogEntry).order_by(PublicationLogEntry.id))
    ]
    assert actions == [
        PublicationAction.PUBLISH,
        PublicationAction.SCHEDULE,
        PublicationAction.AUTO_PUBLISH,
        PublicationAction.UNPUBLISH,
    ]
    events = [req.headers["X-Webhook-Event"] for req in received]
    assert events == ["page.published", "revision.scheduled", "page.published", "page.unpublished"]
    assert len(list(db.scalars(select(WebhookDelivery)))) == 4
