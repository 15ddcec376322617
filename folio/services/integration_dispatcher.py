# folio/services/integration_dispatcher.py
# Fan-out post-commit de eventos de publicación: webhooks + índice de búsqueda.
# Los fallos se registran por tarea y nunca vuelven al caller ni revierten nada.
from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from folio.core.errors import IntegrationDispatchFailure
from folio.core.settings import settings
from folio.db import session as db_session
from folio.models.audit import PublicationAction
from folio.services import search_index_service, webhook_service

logger = logging.getLogger(__name__)

ACTION_EVENT_MAP: Dict[PublicationAction, Optional[str]] = {
    PublicationAction.PUBLISH: "page.published",
    PublicationAction.AUTO_PUBLISH: "page.published",
    PublicationAction.UNPUBLISH: "page.unpublished",
    PublicationAction.SCHEDULE: "revision.scheduled",
    PublicationAction.UNSCHEDULE: "revision.unscheduled",
}

SessionFactory = Callable[[], Session]

_executor: Optional[ThreadPoolExecutor] = None


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(
            max_workers=settings.INTEGRATIONS_MAX_WORKERS, thread_name_prefix="integrations"
        )
    return _executor


def webhook_event_type(action: Any) -> Optional[str]:
    return ACTION_EVENT_MAP.get(PublicationAction(action))


def _webhook_payload(event: Dict[str, Any], event_type: str) -> Dict[str, Any]:
    return {
        "type": event_type,
        "siteId": event["site_id"],
        "pageId": event["page_id"],
        "revisionId": event.get("revision_id"),
        "data": event.get("metadata") or {},
    }


def plan_tasks(event: Dict[str, Any]) -> List[Tuple[str, Callable[[Session], Awaitable[Any]]]]:
    """(nombre, coroutine-factory) por efecto downstream de la acción."""
    action = PublicationAction(event["action"])
    tasks: List[Tuple[str, Callable[[Session], Awaitable[Any]]]] = []

    event_type = ACTION_EVENT_MAP.get(action)
    if event_type:
        payload = _webhook_payload(event, event_type)
        tasks.append(
            ("webhooks", lambda db: webhook_service.dispatch_webhook_event(db, event["site_id"], payload))
        )

    if action in (PublicationAction.PUBLISH, PublicationAction.AUTO_PUBLISH):
        tasks.append(("search.upsert", lambda db: search_index_service.sync_published_page(db, event["page_id"])))
    elif action is PublicationAction.UNPUBLISH:
        tasks.append(
            (
                "search.delete",
                lambda db: search_index_service.remove_page_from_index(db, event["page_id"], event["site_id"]),
            )
        )
    return tasks


async def _run_task(name: str, factory: Callable[[Session], Awaitable[Any]], session_factory: SessionFactory) -> Any:
    # Cada tarea con su propia sesión: no comparten transacción
    db = session_factory()
    try:
        return await factory(db)
    except Exception as exc:
        raise IntegrationDispatchFailure(f"{name} failed: {exc}", task=name, cause=exc) from exc
    finally:
        db.close()


async def dispatch(event: Dict[str, Any], *, session_factory: Optional[SessionFactory] = None) -> List[Any]:
    """
    Ejecuta concurrentemente los efectos del evento. Devuelve los resultados
    (o excepciones) por tarea; nunca lanza.
    """
    tasks = plan_tasks(event)
    if not tasks:
        return []

    factory = session_factory or db_session.SessionLocal
    results = await asyncio.gather(
        *(_run_task(name, fn, factory) for name, fn in tasks),
        return_exceptions=True,
    )
    for (name, _), result in zip(tasks, results):
        if isinstance(result, BaseException):
            logger.error(
                "Integration dispatch failed: task=%s site=%s page=%s action=%s error=%s",
                name, event.get("site_id"), event.get("page_id"), event.get("action"), result,
                exc_info=result,
            )
    return list(results)


def _run_in_thread(event: Dict[str, Any]) -> None:
    try:
        asyncio.run(dispatch(event))
    except Exception:
        logger.exception("Integration dispatch crashed for event %s", event.get("log_id"))


def enqueue_integration_dispatch(event: Dict[str, Any]) -> None:
    """
    Fire-and-forget. Se llama SIEMPRE después del commit de la transición.
    En modo test (INTEGRATIONS_SYNC_FOR_TEST) corre en línea para poder afirmar resultados.
    """
    if not settings.INTEGRATIONS_ENABLED:
        return
    if settings.INTEGRATIONS_SYNC_FOR_TEST:
        _run_in_thread(event)
        return
    _get_executor().submit(_run_in_thread, event)


def shutdown_dispatcher(wait: bool = True) -> None:
    """Drena los dispatch pendientes (se llama al apagar la app)."""
    global _executor
    if _executor is not None:
        _executor.shutdown(wait=wait)
        _executor = None
