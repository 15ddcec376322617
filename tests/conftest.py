# tests/conftest.py
from __future__ import annotations

import os

# SQLite en memoria: la app exige DATABASE_URL al importar settings
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import folio.models  # noqa: F401  (registra todas las tablas en la metadata)
from folio.core.settings import settings
from folio.db import session as db_session_module
from folio.db.base import Base
from folio.db.session import get_db
from folio.services import revision_service
from helpers import hero_block, text_block


@pytest.fixture(scope="function")
def engine():
    """Una BD nueva por prueba; el esquema sale de la metadata de los modelos."""
    eng = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(eng)
        eng.dispose()


@pytest.fixture(scope="function")
def session_factory(engine, monkeypatch):
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    # El dispatcher abre sus propias sesiones vía folio.db.session.SessionLocal
    monkeypatch.setattr(db_session_module, "SessionLocal", factory)
    return factory


@pytest.fixture(scope="function")
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch):
    """Integraciones apagadas por defecto; las pruebas que las usan las encienden."""
    monkeypatch.setattr(settings, "INTEGRATIONS_ENABLED", False)
    monkeypatch.setattr(settings, "INTEGRATIONS_SYNC_FOR_TEST", True)
    monkeypatch.setattr(settings, "WEBHOOKS_BACKOFF_SECONDS", 0.0)
    monkeypatch.setattr(settings, "SEARCH_PROVIDER", "NONE")
    monkeypatch.setattr(settings, "MEILISEARCH_INDEX", None)


@pytest.fixture()
def client(db: Session):
    """
    TestClient con get_db apuntando a la sesión de la prueba en curso,
    así los asserts ven exactamente lo que vio el endpoint.
    """
    from folio.main import app  # import tardío para evitar ciclos

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def captured_events(monkeypatch) -> List[Dict[str, Any]]:
    """Captura los eventos que el workflow encola después del commit."""
    from folio.services import integration_dispatcher

    events: List[Dict[str, Any]] = []
    monkeypatch.setattr(integration_dispatcher, "enqueue_integration_dispatch", events.append)
    return events


# ---------- Datos base (siempre commiteados) ----------
@pytest.fixture()
def site(db: Session):
    s = revision_service.create_site(db, slug="acme", name="Acme", timezone="America/New_York")
    db.commit()
    return s


@pytest.fixture()
def page(db: Session, site):
    p = revision_service.create_page(db, site_id=site.id, path="/about", title="About us")
    db.commit()
    return p


@pytest.fixture()
def make_revision(db: Session, page):
    def _make(
        blocks: Optional[List[Any]] = None,
        meta: Optional[Dict[str, Any]] = None,
        page_id: Optional[int] = None,
        author_id: str = "author-1",
    ):
        rev = revision_service.create_revision(
            db,
            page_id=page_id or page.id,
            author_id=author_id,
            blocks=blocks if blocks is not None else [hero_block(), text_block()],
            meta=meta,
            summary="test revision",
        )
        db.commit()
        return rev

    return _make
