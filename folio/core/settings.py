# folio/core/settings.py
from __future__ import annotations

import os, json
from typing import List, Optional, Union
from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# prefijos que se reescriben al driver instalado (psycopg2-binary)
_PG_PREFIXES = ("postgres://", "postgresql://", "postgresql+psycopg://")
_PG_DRIVER = "postgresql+psycopg2://"


def _split_origins(raw: str) -> List[str]:
    body = raw.strip()
    if body.startswith("[") and body.endswith("]"):
        try:
            decoded = json.loads(body)
        except ValueError:
            # [https://a,http://b] sin comillas
            body = body[1:-1]
        else:
            if isinstance(decoded, list):
                return [str(o) for o in decoded]
    return [chunk.strip().strip("'\"") for chunk in body.split(",") if chunk.strip()]


class Settings(BaseSettings):
    # ============== App / API ==============
    APP_NAME: str = "Folio CMS Core"
    API_V1_STR: str = "/api/v1"
    ENV: str = "dev"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ================== DB ==================
    DATABASE_URL: str
    DB_POOL_RECYCLE_SECONDS: int = 1800

    @property
    def SQLALCHEMY_DATABASE_URL(self) -> str:
        """DATABASE_URL con el driver explícito (Heroku entrega postgres://)."""
        url = self.DATABASE_URL or ""
        for prefix in _PG_PREFIXES:
            if url.startswith(prefix):
                return _PG_DRIVER + url[len(prefix):]
        return url

    @property
    def IS_SQLITE(self) -> bool:
        return self.SQLALCHEMY_DATABASE_URL.startswith("sqlite")

    # ================= CORS =================
    # JSON ('["https://a"]'), corchetes sin comillas o CSV; vacío -> sin CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors(cls, v):
        if not v:
            return []
        if isinstance(v, str):
            return _split_origins(v)
        return list(v)

    @property
    def CORS_ORIGINS(self) -> List[str]:
        return [str(x).rstrip("/") for x in (self.BACKEND_CORS_ORIGINS or [])]

    # ============== Scheduler (sweep) ==============
    # Secreto compartido del trigger externo (Authorization: Bearer <secret>).
    # Si no se configura, el endpoint /publish/run responde 501.
    PUBLISH_CRON_SECRET: Optional[str] = Field(default=None, min_length=16)
    SCHEDULER_BATCH_LIMIT: int = int(os.getenv("SCHEDULER_BATCH_LIMIT", "25"))
    DEFAULT_SITE_TIMEZONE: str = "UTC"

    # ============== Logs / listados ==============
    PUBLICATION_LOG_DEFAULT_LIMIT: int = 15
    REVIEW_EVENTS_DEFAULT_LIMIT: int = 50
    PAGE_ACTIVITY_DEFAULT_LIMIT: int = 25
    SITE_ACTIVITY_DEFAULT_LIMIT: int = 50
    WEBHOOK_DELIVERIES_DEFAULT_LIMIT: int = 25

    # ============== Integraciones (dispatcher) ==============
    INTEGRATIONS_ENABLED: bool = os.getenv("INTEGRATIONS_ENABLED", "true").lower() == "true"
    # Ejecuta el dispatch en línea (sin hilo) para que los tests puedan afirmar resultados
    INTEGRATIONS_SYNC_FOR_TEST: bool = os.getenv("INTEGRATIONS_SYNC_FOR_TEST", "false").lower() == "true"
    INTEGRATIONS_MAX_WORKERS: int = int(os.getenv("INTEGRATIONS_MAX_WORKERS", "4"))

    # ============== Webhooks ==============
    WEBHOOKS_TIMEOUT_SECONDS: float = float(os.getenv("WEBHOOKS_TIMEOUT_SECONDS", "10"))
    WEBHOOKS_MAX_ATTEMPTS: int = int(os.getenv("WEBHOOKS_MAX_ATTEMPTS", "3"))
    WEBHOOKS_BACKOFF_SECONDS: float = float(os.getenv("WEBHOOKS_BACKOFF_SECONDS", "0.5"))
    WEBHOOKS_USER_AGENT: str = "Folio-Webhooks/1.0"
    WEBHOOKS_SIGNING_ALG: str = "HMAC-SHA256"

    # ============== Search ==============
    SEARCH_PROVIDER: str = os.getenv("SEARCH_PROVIDER", "NONE")
    MEILISEARCH_HOST: Optional[str] = os.getenv("MEILISEARCH_HOST")
    MEILISEARCH_API_KEY: Optional[str] = os.getenv("MEILISEARCH_API_KEY")
    MEILISEARCH_INDEX: Optional[str] = os.getenv("MEILISEARCH_INDEX")
    SEARCH_TIMEOUT_SECONDS: float = float(os.getenv("SEARCH_TIMEOUT_SECONDS", "10"))

    @field_validator("SEARCH_PROVIDER", mode="before")
    @classmethod
    def _parse_search_provider(cls, v):
        if v in (None, ""):
            return "NONE"
        return str(v).strip().upper()

    # ============== Pydantic v2 ==============
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
