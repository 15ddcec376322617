# folio/schemas/content.py
# Pydantic — requests/responses para Sites, Pages, Revisions y bloques
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from folio.models.content import PageStatus, RevisionStatus

_http_url = TypeAdapter(AnyHttpUrl)


# ---------- Metadata SEO de la revisión ----------
class RevisionMeta(BaseModel):
    seoTitle: Optional[str] = Field(None, max_length=140)
    seoDescription: Optional[str] = Field(None, max_length=240)
    canonicalUrl: Optional[str] = None
    seoOgTitle: Optional[str] = Field(None, max_length=140)
    seoOgDescription: Optional[str] = Field(None, max_length=240)
    seoOgImage: Optional[str] = None

    # meta es JSON arbitrario; conservamos claves que no proyectamos
    model_config = ConfigDict(extra="allow")

    @field_validator("canonicalUrl", "seoOgImage")
    @classmethod
    def _absolute_url(cls, v: Optional[str]) -> Optional[str]:
        # "" significa "sin valor"
        if v in (None, ""):
            return v
        _http_url.validate_python(v)
        return v


# ---------- Blocks ----------
class BlockSettings(BaseModel):
    background: str = "default"
    alignment: str = "left"
    fullWidth: bool = False


class BlockIn(BaseModel):
    kind: str = Field(..., max_length=32)
    data: Dict[str, Any] = Field(default_factory=dict)
    settings: Optional[Dict[str, Any]] = None


class BlockOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    kind: str
    sort_order: int
    data: Dict[str, Any]
    settings: Optional[Dict[str, Any]] = None


# ---------- Site / Page ----------
class SiteCreate(BaseModel):
    slug: str = Field(..., max_length=64)
    name: str = Field(..., max_length=128)
    timezone: str = "UTC"


class SiteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    slug: str
    name: str
    timezone: str


class PageCreate(BaseModel):
    path: str = Field(..., max_length=255)
    title: str = Field(..., max_length=255)


class PageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    site_id: int
    path: str
    title: str
    status: PageStatus
    published_at: Optional[datetime] = None
    unpublished_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------- Revision ----------
class RevisionCreate(BaseModel):
    summary: Optional[str] = Field(None, max_length=500)
    meta: Dict[str, Any] = Field(default_factory=dict)
    blocks: List[BlockIn] = Field(default_factory=list)


class RevisionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    page_id: int
    status: RevisionStatus
    author_id: Optional[str] = None
    summary: Optional[str] = None
    meta: Dict[str, Any] = Field(default_factory=dict)
    scheduled_for: Optional[datetime] = None
    scheduled_timezone: Optional[str] = None
    scheduled_by_id: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by_id: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: datetime


class RevisionDetailOut(RevisionOut):
    blocks: List[BlockOut] = Field(default_factory=list)


# ---------- Delivery ----------
class DeliveryPageOut(BaseModel):
    site_slug: str
    path: str
    title: str
    revision_id: int
    published_at: Optional[datetime] = None
    metadata: Dict[str, str] = Field(default_factory=dict)
    blocks: List[BlockOut] = Field(default_factory=list)
