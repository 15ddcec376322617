# =============================================================================
# Comment Threads (por revisión)
# folio/api/v1/endpoints/comments.py
# =============================================================================
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from folio.api.deps.actor import get_actor_id
from folio.db.session import get_db
from folio.schemas.comments import (
    CommentOut, CommentReplyIn,
    CommentThreadCreate, CommentThreadOut, CommentThreadStatusIn,
)
from folio.services import comment_service

router = APIRouter()


@router.get(
    "/revisions/{revision_id}/comments",
    response_model=List[CommentThreadOut],
    dependencies=[Depends(get_actor_id)],
)
def list_threads(revision_id: int, db: Session = Depends(get_db)):
    return comment_service.list_comment_threads(db, revision_id)


@router.post("/revisions/{revision_id}/comments", response_model=CommentThreadOut, status_code=201)
def create_thread(
    revision_id: int,
    payload: CommentThreadCreate,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_actor_id),
):
    thread = comment_service.create_comment_thread(
        db, revision_id=revision_id, actor_id=actor_id, body=payload.body, block_id=payload.block_id
    )
    db.commit()
    db.refresh(thread)
    return thread


@router.post("/revisions/{revision_id}/comments/{thread_id}", response_model=CommentOut, status_code=201)
def reply(
    revision_id: int,
    thread_id: int,
    payload: CommentReplyIn,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_actor_id),
):
    comment = comment_service.reply_to_comment_thread(
        db, revision_id=revision_id, thread_id=thread_id, actor_id=actor_id, body=payload.body
    )
    db.commit()
    db.refresh(comment)
    return comment


@router.patch("/revisions/{revision_id}/comments/{thread_id}", response_model=CommentThreadOut)
def update_status(
    revision_id: int,
    thread_id: int,
    payload: CommentThreadStatusIn,
    db: Session = Depends(get_db),
    actor_id: str = Depends(get_actor_id),
):
    thread = comment_service.update_comment_thread_status(
        db, revision_id=revision_id, thread_id=thread_id, actor_id=actor_id, status=payload.status
    )
    db.commit()
    db.refresh(thread)
    return thread
