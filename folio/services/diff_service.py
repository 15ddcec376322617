# folio/services/diff_service.py
# Diff estructural entre revisiones: bloques por posición + metadata por clave
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from folio.core.errors import NotFound
from folio.models.content import Revision, RevisionStatus
from folio.services.revision_service import get_revision


def _canonical(value: Any) -> str:
    # json estable: el orden de claves de JSONB no es significativo
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def _block_signature(block: Any) -> str:
    return _canonical([block.kind, block.data, block.settings or {}])


def _normalize_meta(meta: Any) -> Dict[str, Any]:
    return meta if isinstance(meta, dict) else {}


def diff_blocks(base_blocks: List[Any], target_blocks: List[Any]) -> List[Dict[str, Any]]:
    """
    Comparación posicional (por índice, no por identidad del bloque).
    Insertar un bloque en medio marca como "modified" todos los siguientes.
    """
    out: List[Dict[str, Any]] = []
    for index in range(max(len(base_blocks), len(target_blocks))):
        base = base_blocks[index] if index < len(base_blocks) else None
        target = target_blocks[index] if index < len(target_blocks) else None
        if base is not None and target is not None:
            same = _block_signature(base) == _block_signature(target)
            out.append({"index": index, "change": "unchanged" if same else "modified", "kind": target.kind})
        elif target is not None:
            out.append({"index": index, "change": "added", "kind": target.kind})
        else:
            out.append({"index": index, "change": "removed", "kind": base.kind})
    return out


def diff_metadata(base_meta: Any, target_meta: Any) -> List[Dict[str, Any]]:
    before = _normalize_meta(base_meta)
    after = _normalize_meta(target_meta)
    out: List[Dict[str, Any]] = []
    # unión de claves conservando el orden: primero las de base
    for key in dict.fromkeys([*before.keys(), *after.keys()]):
        if key not in before:
            out.append({"key": key, "change": "added", "after": after[key]})
        elif key not in after:
            out.append({"key": key, "change": "removed", "before": before[key]})
        elif before[key] == after[key]:
            out.append({"key": key, "change": "unchanged", "before": before[key], "after": after[key]})
        else:
            out.append({"key": key, "change": "modified", "before": before[key], "after": after[key]})
    return out


def compare_revisions(base: Optional[Any], target: Any) -> Dict[str, Any]:
    """
    Función pura. `base` y `target` exponen id, blocks (ordenados) y meta.
    Sin base, todos los bloques del target salen "added".
    """
    base_blocks = sorted(base.blocks, key=lambda b: b.sort_order) if base is not None else []
    target_blocks = sorted(target.blocks, key=lambda b: b.sort_order)
    return {
        "baseRevisionId": base.id if base is not None else None,
        "targetRevisionId": target.id,
        "blocks": diff_blocks(base_blocks, target_blocks),
        "metadata": diff_metadata(base.meta if base is not None else None, target.meta),
    }


def _default_base(db: Session, target: Revision) -> Optional[Revision]:
    return db.scalar(
        select(Revision)
        .where(
            Revision.page_id == target.page_id,
            Revision.status == RevisionStatus.PUBLISHED,
            Revision.id != target.id,
        )
        .order_by(Revision.created_at.desc(), Revision.id.desc())
        .options(selectinload(Revision.blocks))
        .limit(1)
    )


def get_revision_diff(
    db: Session,
    target_revision_id: int,
    compare_to_revision_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Diff del target contra `compare_to` (misma página) o, si no se indica,
    contra la revisión PUBLISHED más reciente de la página (excluyendo al target).
    Lectura pura; sin efectos.
    """
    target = get_revision(db, target_revision_id)

    if compare_to_revision_id is not None:
        base = db.get(Revision, compare_to_revision_id)
        if base is None or base.page_id != target.page_id:
            raise NotFound("Comparison revision not found for this page.")
    else:
        base = _default_base(db, target)

    return compare_revisions(base, target)
