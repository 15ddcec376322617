# folio/services/webhook_service.py
from __future__ import annotations

import asyncio
import hmac
import hashlib
import json
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

import httpx
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from folio.core.errors import NotFound
from folio.core.settings import settings
from folio.models.webhook import WebhookDelivery, WebhookDeliveryStatus, WebhookEndpoint
from folio.utils.timezones import isoformat_utc, now_utc

logger = logging.getLogger(__name__)

# Payload esperado por dispatch_webhook_event:
# {"type": "page.published", "siteId": 1, "pageId": 2, "revisionId": 3, "data": {...}}


# ============================================================================ #
# CRUD de endpoints
# ============================================================================ #
def list_webhooks(db: Session, site_id: int) -> List[WebhookEndpoint]:
    return list(
        db.scalars(
            select(WebhookEndpoint)
            .where(WebhookEndpoint.site_id == site_id)
            .order_by(WebhookEndpoint.created_at.asc(), WebhookEndpoint.id.asc())
        )
    )


def get_webhook(db: Session, webhook_id: int) -> WebhookEndpoint:
    webhook = db.get(WebhookEndpoint, webhook_id)
    if not webhook:
        raise NotFound("Webhook not found.")
    return webhook


def create_webhook(
    db: Session,
    *,
    site_id: int,
    name: str,
    url: str,
    secret: Optional[str] = None,
    events: Optional[List[str]] = None,
    headers: Optional[Dict[str, str]] = None,
    is_enabled: bool = True,
) -> WebhookEndpoint:
    webhook = WebhookEndpoint(
        site_id=site_id,
        name=name,
        url=str(url),
        secret=secret or None,
        events=list(events or []),
        headers=dict(headers or {}),
        is_enabled=is_enabled,
    )
    db.add(webhook)
    db.flush()
    return webhook


def update_webhook(db: Session, webhook_id: int, **changes: Any) -> WebhookEndpoint:
    webhook = get_webhook(db, webhook_id)
    for key in ("name", "url", "secret", "events", "headers", "is_enabled"):
        value = changes.get(key)
        if value is None:
            continue
        setattr(webhook, key, str(value) if key == "url" else value)
    db.flush()
    return webhook


def delete_webhook(db: Session, webhook_id: int) -> None:
    webhook = get_webhook(db, webhook_id)
    db.execute(delete(WebhookDelivery).where(WebhookDelivery.webhook_id == webhook.id))
    db.delete(webhook)
    db.flush()


def list_webhook_deliveries(db: Session, site_id: int, limit: Optional[int] = None) -> List[WebhookDelivery]:
    limit = limit or settings.WEBHOOK_DELIVERIES_DEFAULT_LIMIT
    return list(
        db.scalars(
            select(WebhookDelivery)
            .where(WebhookDelivery.site_id == site_id)
            .order_by(WebhookDelivery.created_at.desc(), WebhookDelivery.id.desc())
            .limit(limit)
        )
    )


# ============================================================================ #
# Envío
# ============================================================================ #
def _sign(secret: str, body_bytes: bytes) -> str:
    # Firma: HMAC-SHA256 (hex) sobre el cuerpo exacto enviado
    return hmac.new(secret.encode("utf-8"), body_bytes, hashlib.sha256).hexdigest()


def build_body(payload: Dict[str, Any]) -> bytes:
    body = {
        "type": payload["type"],
        "siteId": payload["siteId"],
        "pageId": payload.get("pageId"),
        "revisionId": payload.get("revisionId"),
        "data": payload.get("data") or {},
        "sentAt": isoformat_utc(now_utc()),
    }
    # Cuerpo (estable, sin espacios)
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def build_headers(webhook: WebhookEndpoint, event_type: str, body_bytes: bytes) -> Dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "User-Agent": settings.WEBHOOKS_USER_AGENT,
        "X-Webhook-Event": event_type,
        "X-Webhook-Site": str(webhook.site_id),
    }
    if webhook.secret:
        headers["X-Signature"] = _sign(webhook.secret, body_bytes)
    for key, value in (webhook.headers or {}).items():
        if isinstance(value, str):
            headers[key] = value
    return headers


def _make_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.WEBHOOKS_TIMEOUT_SECONDS)


async def _deliver_once(
    client: httpx.AsyncClient, url: str, headers: Dict[str, str], body: bytes
) -> Tuple[bool, Optional[int], Optional[str]]:
    try:
        resp = await client.post(url, content=body, headers=headers)
    except httpx.HTTPError as exc:
        return False, None, str(exc) or exc.__class__.__name__
    if 200 <= resp.status_code < 300:
        return True, resp.status_code, None
    return False, resp.status_code, f"Received status {resp.status_code} from webhook target."


async def _deliver_with_retries(db: Session, delivery: WebhookDelivery, webhook: WebhookEndpoint) -> WebhookDelivery:
    """
    Hasta WEBHOOKS_MAX_ATTEMPTS intentos con backoff lineal (attempt * base).
    Cada intento deja el resultado en la fila; el último fallo la marca FAILED.
    """
    body_bytes = build_body(delivery.payload)
    headers = build_headers(webhook, delivery.event_type, body_bytes)
    max_attempts = int(settings.WEBHOOKS_MAX_ATTEMPTS)
    backoff = float(settings.WEBHOOKS_BACKOFF_SECONDS)

    async with _make_client() as client:
        for attempt in range(1, max_attempts + 1):
            ok, code, error = await _deliver_once(client, webhook.url, headers, body_bytes)
            delivery.attempt_count = attempt
            delivery.response_code = code
            if ok:
                delivery.status = WebhookDeliveryStatus.DELIVERED
                delivery.delivered_at = now_utc()
                delivery.error_message = None
                delivery.next_retry_at = None
                db.commit()
                return delivery

            last = attempt >= max_attempts
            delivery.status = WebhookDeliveryStatus.FAILED if last else WebhookDeliveryStatus.PENDING
            delivery.error_message = error
            delivery.next_retry_at = None if last else now_utc() + timedelta(seconds=backoff * attempt)
            db.commit()
            if not last:
                await asyncio.sleep(backoff * attempt)

    logger.warning(
        "Webhook %s delivery %s failed after %s attempts: %s",
        webhook.id, delivery.id, delivery.attempt_count, delivery.error_message,
    )
    return delivery


async def send_delivery(db: Session, webhook: WebhookEndpoint, payload: Dict[str, Any]) -> WebhookDelivery:
    delivery = WebhookDelivery(
        webhook_id=webhook.id,
        site_id=webhook.site_id,
        event_type=payload["type"],
        payload=payload,
        status=WebhookDeliveryStatus.PENDING,
        attempt_count=0,
    )
    db.add(delivery)
    db.commit()
    return await _deliver_with_retries(db, delivery, webhook)


def _subscribed(webhook: WebhookEndpoint, event_type: str) -> bool:
    events = webhook.events or []
    return not events or event_type in events


async def dispatch_webhook_event(db: Session, site_id: int, payload: Dict[str, Any]) -> List[WebhookDelivery]:
    """
    Envía el evento a los endpoints habilitados del sitio suscritos a `type`
    (lista de eventos vacía = todos). Una fila WebhookDelivery por endpoint.
    """
    webhooks = db.scalars(
        select(WebhookEndpoint).where(WebhookEndpoint.site_id == site_id, WebhookEndpoint.is_enabled.is_(True))
    )
    targets = [w for w in webhooks if _subscribed(w, payload["type"])]
    if not targets:
        return []

    # La sesión es síncrona: los envíos van en serie dentro del mismo loop
    deliveries: List[WebhookDelivery] = []
    for webhook in targets:
        deliveries.append(await send_delivery(db, webhook, payload))
    return deliveries


async def retry_webhook_delivery(db: Session, delivery_id: int) -> WebhookDelivery:
    """Reenvía el payload guardado reutilizando la misma fila (contador desde cero)."""
    delivery = db.get(WebhookDelivery, delivery_id)
    if not delivery or not delivery.webhook or not delivery.webhook.is_enabled:
        raise NotFound("Delivery or webhook not found.")
    if not isinstance(delivery.payload, dict) or "type" not in delivery.payload:
        raise NotFound("Delivery payload is not available for retry.")

    delivery.status = WebhookDeliveryStatus.PENDING
    delivery.attempt_count = 0
    delivery.response_code = None
    delivery.error_message = None
    delivery.next_retry_at = None
    delivery.delivered_at = None
    db.commit()
    return await _deliver_with_retries(db, delivery, delivery.webhook)
