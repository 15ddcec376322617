# folio/core/errors.py
# Taxonomía de errores del motor de revisiones + handlers HTTP
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class WorkflowError(Exception):
    """
    Base de los errores del workflow. `message` es legible por el editor;
    `issues` lleva errores a nivel de campo cuando existen.
    """

    def __init__(self, message: str, *, issues: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.issues = issues


class NotFound(WorkflowError):
    """La página/revisión no existe o no pertenece al padre esperado."""


class InvalidTransition(WorkflowError):
    """Guard violado: estado actual incorrecto, fecha no futura, zona inválida."""


class IntegrationDispatchFailure(WorkflowError):
    """Un webhook o la sincronización de búsqueda falló después del commit."""

    def __init__(self, message: str, *, task: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.task = task
        self.cause = cause


class SweepItemFailure(WorkflowError):
    """Una revisión vencida no pudo auto-publicarse dentro de un sweep."""

    def __init__(self, revision_id: int, cause: BaseException):
        super().__init__(f"Auto-publish failed for revision {revision_id}: {cause}")
        self.revision_id = revision_id
        self.cause = cause


def _payload(exc: WorkflowError) -> Dict[str, Any]:
    body: Dict[str, Any] = {"detail": exc.message}
    if exc.issues:
        body["issues"] = exc.issues
    return body


async def _not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content=_payload(exc))


async def _invalid_transition_handler(request: Request, exc: InvalidTransition) -> JSONResponse:
    logger.info("Rejected transition on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=409, content=_payload(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotFound, _not_found_handler)
    app.add_exception_handler(InvalidTransition, _invalid_transition_handler)
