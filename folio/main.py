# folio/main.py
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from folio.api.delivery.router import router as delivery_router
from folio.api.v1.router import api_router
from folio.core.config import create_app
from folio.core.logging import configure_logging
from folio.core.settings import settings
from folio.services.integration_dispatcher import shutdown_dispatcher


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    # webhooks/búsqueda en vuelo terminan antes de cerrar el proceso
    shutdown_dispatcher()


configure_logging()
app = create_app(lifespan=lifespan)

# Heroku / reverse proxy: respeta X-Forwarded-Proto y X-Forwarded-For
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

# API privada (actor por X-User-Id)
app.include_router(api_router, prefix=settings.API_V1_STR)

# Delivery pública
app.include_router(delivery_router)
