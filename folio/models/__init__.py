# folio/models/__init__.py
# Importa todos los modelos para poblar Base.metadata (alembic / create_all)
from folio.models.content import (  # noqa: F401
    Site, Page, Revision, ContentBlock, PageMetadata, PageStatus, RevisionStatus,
)
from folio.models.audit import (  # noqa: F401
    PublicationLogEntry, ReviewEvent, ActivityEvent,
    PublicationAction, PublicationSource, ReviewEventType, ActivityKind,
)
from folio.models.webhook import WebhookEndpoint, WebhookDelivery, WebhookDeliveryStatus  # noqa: F401
from folio.models.search import SearchIntegration, SearchProvider  # noqa: F401
from folio.models.comment import CommentThread, Comment, CommentThreadStatus  # noqa: F401
