# folio/schemas/logs.py
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from folio.models.audit import PublicationAction, PublicationSource, ReviewEventType


class PublicationLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    site_id: int
    page_id: int
    revision_id: Optional[int] = None
    actor_id: Optional[str] = None
    action: PublicationAction
    source: PublicationSource
    details: Optional[Dict[str, Any]] = Field(default=None, serialization_alias="metadata")
    occurred_at: datetime


class ReviewEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    site_id: int
    page_id: int
    revision_id: int
    actor_id: Optional[str] = None
    type: ReviewEventType
    note: Optional[str] = None
    created_at: datetime


class ActivityItemOut(BaseModel):
    """Entrada del feed combinado (actividad + bitácora de publicación)."""
    id: str
    source: str  # "activity" | "publication"
    site_id: int
    page_id: Optional[int] = None
    revision_id: Optional[int] = None
    actor_id: Optional[str] = None
    kind: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime
