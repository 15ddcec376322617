# folio/models/comment.py
# Hilos de comentarios de revisión (opcionalmente anclados a un bloque)
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from folio.db.base import Base
from folio.models.content import enum_column
from folio.utils.timezones import now_utc


class CommentThreadStatus(str, Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


class CommentThread(Base):
    __tablename__ = "comment_threads"

    id: Mapped[int] = mapped_column(primary_key=True)

    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)
    page_id: Mapped[int] = mapped_column(ForeignKey("pages.id", ondelete="CASCADE"), nullable=False)
    revision_id: Mapped[int] = mapped_column(ForeignKey("revisions.id", ondelete="CASCADE"), nullable=False)
    # None = comentario sobre la revisión completa
    block_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("content_blocks.id", ondelete="SET NULL"), nullable=True
    )

    status: Mapped[CommentThreadStatus] = mapped_column(
        enum_column(CommentThreadStatus, "comment_thread_status"),
        nullable=False,
        default=CommentThreadStatus.OPEN,
    )
    created_by_id: Mapped[str] = mapped_column(String(64), nullable=False)
    resolved_by_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc, server_default=func.now()
    )

    comments: Mapped[list["Comment"]] = relationship(
        "Comment",
        back_populates="thread",
        cascade="all, delete-orphan",
        order_by="Comment.id",
    )

    __table_args__ = (
        Index("ix_comment_threads_revision_created", "revision_id", "created_at"),
    )


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(primary_key=True)
    thread_id: Mapped[int] = mapped_column(ForeignKey("comment_threads.id", ondelete="CASCADE"), index=True)
    author_id: Mapped[str] = mapped_column(String(64), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, server_default=func.now()
    )

    thread: Mapped[CommentThread] = relationship(CommentThread, back_populates="comments")
