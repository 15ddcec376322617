# folio/schemas/workflow.py
# Pydantic — inputs de acciones del workflow, resultados discriminados, diff y sweep
from __future__ import annotations
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from folio.utils.timezones import is_valid_timezone


# ---------- Inputs ----------
class RevisionTargetIn(BaseModel):
    page_id: int
    revision_id: int
    note: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(extra="ignore")

    @field_validator("note")
    @classmethod
    def _strip_note(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ScheduleIn(RevisionTargetIn):
    scheduled_at: str = Field(..., min_length=1)
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def _valid_timezone(cls, v: str) -> str:
        if not is_valid_timezone(v):
            raise ValueError("Unknown time zone")
        return v


class PublishIn(BaseModel):
    page_id: int
    # Si falta, se publica el DRAFT más reciente de la página
    revision_id: Optional[int] = None
    note: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(extra="ignore")


class UnpublishIn(BaseModel):
    page_id: int
    note: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(extra="ignore")


# ---------- Resultado discriminado ----------
class Issue(BaseModel):
    path: str
    message: str


class ActionResult(BaseModel):
    success: bool
    error: Optional[str] = None
    issues: Optional[List[Issue]] = None
    data: Optional[Dict[str, Any]] = None
    # Categoría del fallo: "validation" | "unauthorized" | "not_found" | "invalid_transition"
    code: Optional[str] = Field(None, exclude=True)

    @classmethod
    def ok(cls, **data: Any) -> "ActionResult":
        return cls(success=True, data=data or None)

    @classmethod
    def fail(
        cls, error: str, issues: Optional[List[Dict[str, Any]]] = None, *, code: Optional[str] = None
    ) -> "ActionResult":
        return cls(
            success=False, error=error, issues=[Issue(**i) for i in issues] if issues else None, code=code
        )


# ---------- Diff ----------
class BlockDiffItem(BaseModel):
    index: int
    change: Literal["added", "removed", "modified", "unchanged"]
    kind: Optional[str] = None


class MetadataDiffItem(BaseModel):
    key: str
    change: Literal["added", "removed", "modified", "unchanged"]
    before: Any = None
    after: Any = None


class RevisionDiffOut(BaseModel):
    baseRevisionId: Optional[int] = None
    targetRevisionId: int
    blocks: List[BlockDiffItem] = Field(default_factory=list)
    metadata: List[MetadataDiffItem] = Field(default_factory=list)


# ---------- Sweep ----------
class SweepResult(BaseModel):
    published: int = 0
    failed: int = 0
    skipped: int = 0
    revision_ids: List[int] = Field(default_factory=list)
