# folio/models/search.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from folio.db.base import Base, JSONType
from folio.models.content import enum_column
from folio.utils.timezones import now_utc


class SearchProvider(str, Enum):
    NONE = "NONE"
    MEILISEARCH = "MEILISEARCH"


class SearchIntegration(Base):
    __tablename__ = "search_integrations"

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), unique=True)

    provider: Mapped[SearchProvider] = mapped_column(
        enum_column(SearchProvider, "search_provider"), nullable=False, default=SearchProvider.NONE
    )
    index_name: Mapped[str] = mapped_column(String(128), nullable=False)
    # host / api_key por sitio; si faltan se usan los de settings
    config: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    last_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc, server_default=func.now()
    )
