# folio/schemas/integrations.py
from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field

from folio.models.webhook import WebhookDeliveryStatus


class WebhookCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    url: AnyHttpUrl
    secret: Optional[str] = Field(None, max_length=255)
    events: List[str] = Field(default_factory=list)
    headers: Dict[str, str] = Field(default_factory=dict)
    is_enabled: bool = True


class WebhookUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    url: Optional[AnyHttpUrl] = None
    secret: Optional[str] = Field(None, max_length=255)
    events: Optional[List[str]] = None
    headers: Optional[Dict[str, str]] = None
    is_enabled: Optional[bool] = None

    model_config = ConfigDict(extra="ignore")


class WebhookOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    site_id: int
    name: str
    url: str
    events: List[str] = Field(default_factory=list)
    headers: Dict[str, str] = Field(default_factory=dict)
    is_enabled: bool
    created_at: datetime


class WebhookDeliveryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    webhook_id: int
    site_id: int
    event_type: str
    status: WebhookDeliveryStatus
    attempt_count: int
    response_code: Optional[int] = None
    error_message: Optional[str] = None
    next_retry_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime


class ReindexOut(BaseModel):
    site_id: int
    indexed: int
