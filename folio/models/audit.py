# folio/models/audit.py
# Bitácoras append-only: publicación, revisión editorial y actividad
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from sqlalchemy import BigInteger, Integer, String, DateTime, ForeignKey, Index, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from folio.db.base import Base, JSONType
from folio.models.content import enum_column
from folio.utils.timezones import now_utc


class PublicationAction(str, Enum):
    PUBLISH = "PUBLISH"
    UNPUBLISH = "UNPUBLISH"
    SCHEDULE = "SCHEDULE"
    UNSCHEDULE = "UNSCHEDULE"
    AUTO_PUBLISH = "AUTO_PUBLISH"


class PublicationSource(str, Enum):
    MANUAL = "MANUAL"
    SCHEDULER = "SCHEDULER"
    SYSTEM = "SYSTEM"


class ReviewEventType(str, Enum):
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"


class ActivityKind(str, Enum):
    REVISION_SUBMITTED = "REVISION_SUBMITTED"
    REVISION_APPROVED = "REVISION_APPROVED"
    REVISION_CHANGES_REQUESTED = "REVISION_CHANGES_REQUESTED"
    REVISION_SCHEDULED = "REVISION_SCHEDULED"
    REVISION_UNSCHEDULED = "REVISION_UNSCHEDULED"
    REVISION_PUBLISHED = "REVISION_PUBLISHED"
    COMMENT_ADDED = "COMMENT_ADDED"
    COMMENT_RESOLVED = "COMMENT_RESOLVED"
    COMMENT_REOPENED = "COMMENT_REOPENED"


class PublicationLogEntry(Base):
    __tablename__ = "publication_log_entries"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)

    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)
    page_id: Mapped[int] = mapped_column(ForeignKey("pages.id", ondelete="CASCADE"), nullable=False)
    revision_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("revisions.id", ondelete="SET NULL"), nullable=True
    )

    # None para procesos del sistema (scheduler / lazy release)
    actor_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    action: Mapped[PublicationAction] = mapped_column(
        enum_column(PublicationAction, "publication_action"), nullable=False
    )
    source: Mapped[PublicationSource] = mapped_column(
        enum_column(PublicationSource, "publication_source"), nullable=False, default=PublicationSource.MANUAL
    )

    # SCHEDULE: {scheduledFor, timezone}; UNSCHEDULE: {scheduledFor, previousTimezone}
    details: Mapped[Dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_publication_log_page_occurred", "page_id", "occurred_at"),
        Index("ix_publication_log_site_occurred", "site_id", "occurred_at"),
    )


class ReviewEvent(Base):
    __tablename__ = "review_events"

    id: Mapped[int] = mapped_column(primary_key=True)

    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)
    page_id: Mapped[int] = mapped_column(ForeignKey("pages.id", ondelete="CASCADE"), nullable=False)
    revision_id: Mapped[int] = mapped_column(ForeignKey("revisions.id", ondelete="CASCADE"), nullable=False)
    actor_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    type: Mapped[ReviewEventType] = mapped_column(enum_column(ReviewEventType, "review_event_type"), nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_review_events_page_created", "page_id", "created_at"),
        Index("ix_review_events_revision_created", "revision_id", "created_at"),
    )


class ActivityEvent(Base):
    __tablename__ = "activity_events"

    id: Mapped[int] = mapped_column(primary_key=True)

    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)
    page_id: Mapped[Optional[int]] = mapped_column(ForeignKey("pages.id", ondelete="CASCADE"), nullable=True)
    revision_id: Mapped[Optional[int]] = mapped_column(ForeignKey("revisions.id", ondelete="SET NULL"), nullable=True)
    actor_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    kind: Mapped[ActivityKind] = mapped_column(enum_column(ActivityKind, "activity_kind"), nullable=False)
    details: Mapped[Dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_activity_events_page_occurred", "page_id", "occurred_at"),
        Index("ix_activity_events_site_occurred", "site_id", "occurred_at"),
    )
