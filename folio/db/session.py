# folio/db/session.py
# Engine + fábrica de sesiones; get_db es la dependencia de FastAPI
from __future__ import annotations

from typing import Any, Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from folio.core.settings import settings


def _engine_options() -> Dict[str, Any]:
    if settings.IS_SQLITE:
        # uvicorn/threads comparten la conexión en desarrollo local
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_recycle": settings.DB_POOL_RECYCLE_SECONDS}


engine = create_engine(settings.SQLALCHEMY_DATABASE_URL, **_engine_options())

# el dispatcher abre sus propias sesiones con esta misma fábrica
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
