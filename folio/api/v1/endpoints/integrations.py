# folio/api/v1/endpoints/integrations.py
# Webhooks por sitio (CRUD, entregas, reintento) y reindexado de búsqueda
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from folio.db.session import get_db
from folio.schemas.integrations import ReindexOut, WebhookCreate, WebhookDeliveryOut, WebhookOut, WebhookUpdate
from folio.services import search_index_service, webhook_service
from folio.services.revision_service import get_site

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_site_webhook_or_404(db: Session, site_id: int, webhook_id: int):
    webhook = webhook_service.get_webhook(db, webhook_id)
    if webhook.site_id != site_id:
        raise HTTPException(status_code=404, detail="Webhook not found.")
    return webhook


# ---------- Webhooks ----------
@router.get("/sites/{site_id}/webhooks", response_model=List[WebhookOut])
def list_webhooks(site_id: int, db: Session = Depends(get_db)):
    get_site(db, site_id)
    return webhook_service.list_webhooks(db, site_id)


@router.post("/sites/{site_id}/webhooks", response_model=WebhookOut, status_code=201)
def create_webhook(site_id: int, payload: WebhookCreate, db: Session = Depends(get_db)):
    get_site(db, site_id)
    webhook = webhook_service.create_webhook(db, site_id=site_id, **payload.model_dump())
    db.commit()
    db.refresh(webhook)
    return webhook


@router.patch("/sites/{site_id}/webhooks/{webhook_id}", response_model=WebhookOut)
def update_webhook(site_id: int, webhook_id: int, payload: WebhookUpdate, db: Session = Depends(get_db)):
    _get_site_webhook_or_404(db, site_id, webhook_id)
    webhook = webhook_service.update_webhook(db, webhook_id, **payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(webhook)
    return webhook


@router.delete("/sites/{site_id}/webhooks/{webhook_id}", status_code=204)
def delete_webhook(site_id: int, webhook_id: int, db: Session = Depends(get_db)):
    _get_site_webhook_or_404(db, site_id, webhook_id)
    webhook_service.delete_webhook(db, webhook_id)
    db.commit()
    return Response(status_code=204)


@router.get("/sites/{site_id}/webhooks/deliveries", response_model=List[WebhookDeliveryOut])
def list_deliveries(
    site_id: int,
    limit: Optional[int] = Query(None, ge=1, le=200),
    db: Session = Depends(get_db),
):
    get_site(db, site_id)
    return webhook_service.list_webhook_deliveries(db, site_id, limit)


@router.post("/webhooks/deliveries/{delivery_id}/retry", response_model=WebhookDeliveryOut)
def retry_delivery(delivery_id: int, db: Session = Depends(get_db)):
    """
    Reenvía el payload guardado. El resultado (DELIVERED/FAILED) queda en la misma fila.
    La sesión solo se usa desde el hilo del threadpool.
    """
    return asyncio.run(webhook_service.retry_webhook_delivery(db, delivery_id))


# ---------- Search ----------
@router.post("/sites/{site_id}/search/reindex", response_model=ReindexOut)
def reindex_site(site_id: int, db: Session = Depends(get_db)):
    get_site(db, site_id)
    try:
        indexed = asyncio.run(search_index_service.reindex_site(db, site_id))
    except httpx.HTTPError as exc:
        logger.error("Reindex failed for site %s: %s", site_id, exc)
        raise HTTPException(status_code=502, detail="Search provider request failed")
    return ReindexOut(site_id=site_id, indexed=indexed)
