# folio/models/content.py
# Modelos de contenido: Site, Page, Revision (+ ContentBlock), PageMetadata
from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import (
    String, Integer, Text, ForeignKey, DateTime, Enum as SAEnum, UniqueConstraint, Index, func
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from folio.db.base import Base, JSONType
from folio.utils.timezones import now_utc


class PageStatus(str, Enum):
    DRAFT = "DRAFT"
    REVIEW = "REVIEW"
    SCHEDULED = "SCHEDULED"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class RevisionStatus(str, Enum):
    DRAFT = "DRAFT"
    REVIEW = "REVIEW"
    SCHEDULED = "SCHEDULED"
    PUBLISHED = "PUBLISHED"


def enum_column(enum_cls: type[Enum], name: str) -> SAEnum:
    """Enum guardado como VARCHAR + CHECK (portable Postgres/SQLite)."""
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda e: [x.value for x in e],
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        length=32,
    )


class Site(Base):
    __tablename__ = "sites"

    id: Mapped[int] = mapped_column(primary_key=True)
    slug: Mapped[str] = mapped_column(String(64), unique=True)
    name: Mapped[str] = mapped_column(String(128))
    # Zona IANA por defecto para el formulario de programación
    timezone: Mapped[str] = mapped_column(String(64), default="UTC")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc, server_default=func.now())

    pages: Mapped[list["Page"]] = relationship("Page", back_populates="site")


class Page(Base):
    __tablename__ = "pages"

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), index=True)

    path: Mapped[str] = mapped_column(String(255))  # "/", "/about", ...
    title: Mapped[str] = mapped_column(String(255))

    # Proyección del estado de la revisión mutada más recientemente
    status: Mapped[PageStatus] = mapped_column(enum_column(PageStatus, "page_status"), default=PageStatus.DRAFT)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    # unpublish no borra published_at (histórico); delivery compara contra este campo
    unpublished_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=now_utc, onupdate=now_utc, server_default=func.now()
    )

    site: Mapped["Site"] = relationship("Site", back_populates="pages")
    revisions: Mapped[list["Revision"]] = relationship(
        "Revision", back_populates="page", cascade="all, delete-orphan"
    )
    metadata_entries: Mapped[list["PageMetadata"]] = relationship(
        "PageMetadata", back_populates="page", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("site_id", "path", name="uq_page_site_path"),
        Index("ix_pages_site_status", "site_id", "status"),
    )


class Revision(Base):
    __tablename__ = "revisions"

    id: Mapped[int] = mapped_column(primary_key=True)
    page_id: Mapped[int] = mapped_column(ForeignKey("pages.id", ondelete="CASCADE"), index=True)

    status: Mapped[RevisionStatus] = mapped_column(
        enum_column(RevisionStatus, "revision_status"), default=RevisionStatus.DRAFT
    )
    author_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    summary: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    meta: Mapped[Dict[str, Any]] = mapped_column(JSONType, default=dict)

    # Solo significativos con status = SCHEDULED
    scheduled_for: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    scheduled_timezone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    scheduled_by_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Se fija una sola vez, al pasar a PUBLISHED
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=now_utc, onupdate=now_utc, server_default=func.now()
    )

    page: Mapped["Page"] = relationship("Page", back_populates="revisions")
    blocks: Mapped[list["ContentBlock"]] = relationship(
        "ContentBlock",
        back_populates="revision",
        cascade="all, delete-orphan",
        order_by="ContentBlock.sort_order",
    )

    __table_args__ = (
        Index("ix_revisions_page_status_created", "page_id", "status", "created_at"),
        # Sweep: status = SCHEDULED AND scheduled_for <= now ORDER BY scheduled_for
        Index("ix_revisions_status_scheduled_for", "status", "scheduled_for"),
    )


class ContentBlock(Base):
    __tablename__ = "content_blocks"

    id: Mapped[int] = mapped_column(primary_key=True)
    revision_id: Mapped[int] = mapped_column(ForeignKey("revisions.id", ondelete="CASCADE"), index=True)

    kind: Mapped[str] = mapped_column(String(32))  # hero | media | grid | text | cta
    sort_order: Mapped[int] = mapped_column(Integer)
    data: Mapped[Dict[str, Any]] = mapped_column(JSONType, default=dict)
    settings: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    revision: Mapped["Revision"] = relationship("Revision", back_populates="blocks")

    __table_args__ = (
        UniqueConstraint("revision_id", "sort_order", name="uq_block_revision_order"),
    )


class PageMetadata(Base):
    __tablename__ = "page_metadata"

    id: Mapped[int] = mapped_column(primary_key=True)
    page_id: Mapped[int] = mapped_column(ForeignKey("pages.id", ondelete="CASCADE"), index=True)

    key: Mapped[str] = mapped_column(String(64))
    value: Mapped[str] = mapped_column(Text)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=now_utc, onupdate=now_utc, server_default=func.now()
    )

    page: Mapped["Page"] = relationship("Page", back_populates="metadata_entries")

    __table_args__ = (
        UniqueConstraint("page_id", "key", name="uq_page_metadata_key"),
    )
