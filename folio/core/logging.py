# folio/core/logging.py
# Un solo punto de configuración; los módulos usan logging.getLogger(__name__)
from __future__ import annotations

import logging
from typing import Optional, Union

from .settings import settings

ISO_FMT = "%Y-%m-%dT%H:%M:%S%z"

# librerías ruidosas en INFO (httpx registra cada request de webhooks/búsqueda)
QUIET_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: Optional[Union[int, str]] = None) -> None:
    resolved = level if level is not None else settings.LOG_LEVEL
    if isinstance(resolved, str):
        resolved = logging.getLevelName(resolved.upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO

    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt=ISO_FMT,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
