# folio/core/config.py
# Fábrica de la app: CORS + handlers de errores de dominio
from __future__ import annotations

from typing import Any, Callable, List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .errors import register_exception_handlers
from .settings import settings

# la delivery pública expone sus validadores de caché al navegador
EXPOSED_HEADERS: List[str] = ["ETag", "Last-Modified", "Cache-Control"]


def _install_cors(app: FastAPI, origins: List[str]) -> None:
    wildcard = "*" in origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else origins,
        # credenciales no se permiten con "*"
        allow_credentials=not wildcard,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "If-None-Match", "X-User-Id"],
        expose_headers=EXPOSED_HEADERS,
    )


def create_app(lifespan: Optional[Callable[[FastAPI], Any]] = None) -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )
    if settings.CORS_ORIGINS:
        _install_cors(app, settings.CORS_ORIGINS)

    register_exception_handlers(app)
    return app
