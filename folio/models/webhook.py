# folio/models/webhook.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, Index, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from folio.db.base import Base, JSONType
from folio.models.content import enum_column
from folio.utils.timezones import now_utc


class WebhookDeliveryStatus(str, Enum):
    PENDING = "PENDING"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


class WebhookEndpoint(Base):
    __tablename__ = "webhook_endpoints"

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), index=True)

    name: Mapped[str] = mapped_column(String(128), nullable=False)

    # URL de destino del webhook
    url: Mapped[str] = mapped_column(String(512), nullable=False)

    # Secreto para firmar (HMAC) los webhooks; sin secreto no se envía X-Signature
    secret: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Eventos suscritos; lista vacía = todos
    events: Mapped[List[str]] = mapped_column(JSONType, nullable=False, default=list)

    # Headers extra que se agregan a cada envío
    headers: Mapped[Dict[str, str]] = mapped_column(JSONType, nullable=False, default=dict)

    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc, server_default=func.now()
    )

    deliveries: Mapped[list["WebhookDelivery"]] = relationship(
        "WebhookDelivery", back_populates="webhook", cascade="all, delete-orphan"
    )


class WebhookDelivery(Base):
    __tablename__ = "webhook_deliveries"

    id: Mapped[int] = mapped_column(primary_key=True)
    webhook_id: Mapped[int] = mapped_column(ForeignKey("webhook_endpoints.id", ondelete="CASCADE"), index=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"))

    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    # Cuerpo enviado tal cual; retry lo reutiliza
    payload: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False)

    status: Mapped[WebhookDeliveryStatus] = mapped_column(
        enum_column(WebhookDeliveryStatus, "webhook_delivery_status"),
        nullable=False,
        default=WebhookDeliveryStatus.PENDING,
    )
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    response_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    next_retry_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, server_default=func.now()
    )

    webhook: Mapped["WebhookEndpoint"] = relationship("WebhookEndpoint", back_populates="deliveries")

    __table_args__ = (
        Index("ix_webhook_deliveries_site_created", "site_id", "created_at"),
    )
