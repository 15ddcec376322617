# folio/services/comment_service.py
# Hilos de comentarios sobre una revisión: crear, responder, resolver/reabrir.
# No hace commit: el caller (endpoint) cierra la transacción.
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from folio.core.errors import NotFound
from folio.models.audit import ActivityKind
from folio.models.comment import Comment, CommentThread, CommentThreadStatus
from folio.models.content import ContentBlock, Page, Revision
from folio.services import activity_service
from folio.services.revision_service import get_revision
from folio.utils.timezones import now_utc

logger = logging.getLogger(__name__)


def _thread_details(thread: CommentThread, comment: Optional[Comment] = None) -> Dict[str, Any]:
    details: Dict[str, Any] = {"threadId": thread.id}
    if comment is not None:
        details["commentId"] = comment.id
    if thread.block_id is not None:
        details["blockId"] = thread.block_id
    return details


def list_comment_threads(db: Session, revision_id: int) -> List[CommentThread]:
    """Hilos de la revisión, el más reciente primero; comentarios en orden cronológico."""
    get_revision(db, revision_id)
    stmt = (
        select(CommentThread)
        .where(CommentThread.revision_id == revision_id)
        .order_by(CommentThread.created_at.desc(), CommentThread.id.desc())
        .options(selectinload(CommentThread.comments))
    )
    return list(db.scalars(stmt))


def get_comment_thread(db: Session, revision_id: int, thread_id: int) -> CommentThread:
    thread = db.get(CommentThread, thread_id)
    if thread is None or thread.revision_id != revision_id:
        raise NotFound("Thread not found.")
    return thread


def create_comment_thread(
    db: Session,
    *,
    revision_id: int,
    actor_id: str,
    body: str,
    block_id: Optional[int] = None,
    page_id: Optional[int] = None,
) -> CommentThread:
    revision: Revision = get_revision(db, revision_id, page_id)
    page = db.get(Page, revision.page_id)
    if page is None:
        raise NotFound("Page not found.")

    if block_id is not None:
        block = db.get(ContentBlock, block_id)
        if block is None or block.revision_id != revision.id:
            raise NotFound("Block not found.")

    thread = CommentThread(
        site_id=page.site_id,
        page_id=page.id,
        revision_id=revision.id,
        block_id=block_id,
        status=CommentThreadStatus.OPEN,
        created_by_id=actor_id,
    )
    first = Comment(author_id=actor_id, body=body.strip())
    thread.comments.append(first)
    db.add(thread)
    db.flush()

    activity_service.record_activity(
        db, site_id=thread.site_id, page_id=thread.page_id, revision_id=thread.revision_id,
        actor_id=actor_id, kind=ActivityKind.COMMENT_ADDED, details=_thread_details(thread, first),
    )
    logger.info("Comment thread %s opened on revision %s by %s", thread.id, revision.id, actor_id)
    return thread


def reply_to_comment_thread(
    db: Session, *, revision_id: int, thread_id: int, actor_id: str, body: str
) -> Comment:
    thread = get_comment_thread(db, revision_id, thread_id)

    comment = Comment(thread_id=thread.id, author_id=actor_id, body=body.strip())
    db.add(comment)
    db.flush()

    activity_service.record_activity(
        db, site_id=thread.site_id, page_id=thread.page_id, revision_id=thread.revision_id,
        actor_id=actor_id, kind=ActivityKind.COMMENT_ADDED, details=_thread_details(thread, comment),
    )
    return comment


def update_comment_thread_status(
    db: Session,
    *,
    revision_id: int,
    thread_id: int,
    actor_id: str,
    status: Union[CommentThreadStatus, str],
) -> CommentThread:
    """
    RESOLVED guarda quién y cuándo; OPEN lo limpia.
    Pedir el estado que ya tiene es un no-op (sin evento de actividad).
    """
    thread = get_comment_thread(db, revision_id, thread_id)
    target = CommentThreadStatus(status)
    if thread.status == target:
        return thread

    resolving = target is CommentThreadStatus.RESOLVED
    thread.status = target
    thread.resolved_by_id = actor_id if resolving else None
    thread.resolved_at = now_utc() if resolving else None

    activity_service.record_activity(
        db, site_id=thread.site_id, page_id=thread.page_id, revision_id=thread.revision_id,
        actor_id=actor_id,
        kind=ActivityKind.COMMENT_RESOLVED if resolving else ActivityKind.COMMENT_REOPENED,
        details=_thread_details(thread),
    )
    db.flush()
    return thread
