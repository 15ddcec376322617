# folio/schemas/comments.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from folio.models.comment import CommentThreadStatus


class _BodyIn(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)

    @field_validator("body")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment cannot be empty")
        return v


class CommentThreadCreate(_BodyIn):
    block_id: Optional[int] = None


class CommentReplyIn(_BodyIn):
    pass


class CommentThreadStatusIn(BaseModel):
    status: CommentThreadStatus


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    thread_id: int
    author_id: str
    body: str
    created_at: datetime


class CommentThreadOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    site_id: int
    page_id: int
    revision_id: int
    block_id: Optional[int] = None
    status: CommentThreadStatus
    created_by_id: str
    resolved_by_id: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    comments: List[CommentOut] = Field(default_factory=list)
