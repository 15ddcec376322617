# folio/api/deps/actor.py
# Identidad del actor: la autenticación vive fuera de este servicio,
# el gateway nos pasa el id del usuario en X-User-Id.
from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException


def get_actor_id_optional(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> Optional[str]:
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


def get_actor_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
    actor_id = get_actor_id_optional(x_user_id)
    if not actor_id:
        raise HTTPException(status_code=401, detail="You must be signed in to continue.")
    return actor_id
