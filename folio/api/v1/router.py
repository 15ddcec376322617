# folio/api/v1/router.py
from fastapi import APIRouter

from .endpoints import health, content
from folio.api.v1.endpoints import workflow as workflow_endpoints
from folio.api.v1.endpoints import logs as logs_endpoints
from folio.api.v1.endpoints import publish as publish_endpoints
from folio.api.v1.endpoints import integrations as integrations_endpoints
from folio.api.v1.endpoints import comments as comments_endpoints

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(content.router, tags=["content"])
api_router.include_router(workflow_endpoints.router, tags=["workflow"])
api_router.include_router(logs_endpoints.router, tags=["logs"])
api_router.include_router(comments_endpoints.router, tags=["comments"])

# Cron externo: /publish/run
api_router.include_router(publish_endpoints.router, prefix="/publish", tags=["scheduler"])
api_router.include_router(integrations_endpoints.router, tags=["integrations"])
