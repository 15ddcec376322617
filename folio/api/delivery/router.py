#  folio/api/delivery/router.py
from __future__ import annotations

from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from folio.db.session import get_db
from folio.schemas.content import DeliveryPageOut
from folio.services.page_service import compute_etag, get_published_page

router = APIRouter(prefix="/delivery/v1", tags=["Delivery"])

CACHE_CONTROL = "public, max-age=60, stale-while-revalidate=120"


def _httpdate(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return format_datetime(dt.astimezone(timezone.utc).replace(microsecond=0), usegmt=True)


def _etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    if not if_none_match:
        return False
    if if_none_match.strip() == "*":
        return True
    candidates = [c.strip().removeprefix("W/").strip('"') for c in if_none_match.split(",")]
    return etag in candidates


@router.get(
    "/sites/{site_slug}/page",
    response_model=DeliveryPageOut,
    summary="Página publicada (público)",
)
def get_page(
    site_slug: str,
    path: str = Query(..., description="Ruta de la página, p.ej. /about"),
    db: Session = Depends(get_db),
    if_none_match: Optional[str] = Header(default=None, alias="If-None-Match"),
):
    """
    Devuelve la revisión publicada vigente de la página.
    - Antes de leer, libera la revisión programada vencida de esta página.
    - ETag (If-None-Match -> 304) + Cache-Control público.
    """
    page = get_published_page(db, site_slug, path)
    if page is None:
        raise HTTPException(status_code=404, detail="Page not found")

    body = DeliveryPageOut.model_validate(page, from_attributes=True).model_dump(mode="json")
    etag = compute_etag(body)
    headers = {"ETag": f'"{etag}"', "Cache-Control": CACHE_CONTROL}
    if page["published_at"] is not None:
        headers["Last-Modified"] = _httpdate(page["published_at"])

    if _etag_matches(if_none_match, etag):
        return Response(status_code=304, headers=headers)
    return JSONResponse(content=body, headers=headers)
