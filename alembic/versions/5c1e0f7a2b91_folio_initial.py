"""folio initial schema: sites, pages, revisions, blocks, metadata, logs, integrations

Revision ID: 5c1e0f7a2b91
Revises:
Create Date: 2026-10-19 10:12:03.481220

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5c1e0f7a2b91'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONB = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")

PAGE_STATUS = ("DRAFT", "REVIEW", "SCHEDULED", "PUBLISHED", "ARCHIVED")
REVISION_STATUS = ("DRAFT", "REVIEW", "SCHEDULED", "PUBLISHED")
PUBLICATION_ACTION = ("PUBLISH", "UNPUBLISH", "SCHEDULE", "UNSCHEDULE", "AUTO_PUBLISH")
PUBLICATION_SOURCE = ("MANUAL", "SCHEDULER", "SYSTEM")
REVIEW_EVENT_TYPE = ("SUBMITTED", "APPROVED", "CHANGES_REQUESTED")
ACTIVITY_KIND = (
    "REVISION_SUBMITTED", "REVISION_APPROVED", "REVISION_CHANGES_REQUESTED",
    "REVISION_SCHEDULED", "REVISION_UNSCHEDULED", "REVISION_PUBLISHED",
)
DELIVERY_STATUS = ("PENDING", "DELIVERED", "FAILED")
SEARCH_PROVIDER = ("NONE", "MEILISEARCH")


def _enum(values, name):
    # VARCHAR + CHECK, igual que los modelos (native_enum=False)
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=True, length=32)


def _ts(name, nullable=False):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable, server_default=sa.func.now())


def upgrade() -> None:
    op.create_table(
        "sites",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slug", sa.String(64), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        _ts("created_at"),
        sa.UniqueConstraint("slug", name="uq_sites_slug"),
    )

    op.create_table(
        "pages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=False),
        sa.Column("path", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("status", _enum(PAGE_STATUS, "page_status"), nullable=False, server_default="DRAFT"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("unpublished_at", sa.DateTime(timezone=True), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        sa.UniqueConstraint("site_id", "path", name="uq_page_site_path"),
    )
    op.create_index("ix_pages_site_id", "pages", ["site_id"])
    op.create_index("ix_pages_site_status", "pages", ["site_id", "status"])

    op.create_table(
        "revisions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("page_id", sa.Integer(), sa.ForeignKey("pages.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", _enum(REVISION_STATUS, "revision_status"), nullable=False, server_default="DRAFT"),
        sa.Column("author_id", sa.String(64), nullable=True),
        sa.Column("summary", sa.String(500), nullable=True),
        sa.Column("meta", JSONB, nullable=False, server_default=sa.text("'{}'")),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column("scheduled_timezone", sa.String(64), nullable=True),
        sa.Column("scheduled_by_id", sa.String(64), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by_id", sa.String(64), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_revisions_page_id", "revisions", ["page_id"])
    op.create_index("ix_revisions_page_status_created", "revisions", ["page_id", "status", "created_at"])
    op.create_index("ix_revisions_status_scheduled_for", "revisions", ["status", "scheduled_for"])

    op.create_table(
        "content_blocks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("revision_id", sa.Integer(), sa.ForeignKey("revisions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("kind", sa.String(32), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("data", JSONB, nullable=False, server_default=sa.text("'{}'")),
        sa.Column("settings", JSONB, nullable=True),
        sa.UniqueConstraint("revision_id", "sort_order", name="uq_block_revision_order"),
    )
    op.create_index("ix_content_blocks_revision_id", "content_blocks", ["revision_id"])

    op.create_table(
        "page_metadata",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("page_id", sa.Integer(), sa.ForeignKey("pages.id", ondelete="CASCADE"), nullable=False),
        sa.Column("key", sa.String(64), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        _ts("updated_at"),
        sa.UniqueConstraint("page_id", "key", name="uq_page_metadata_key"),
    )
    op.create_index("ix_page_metadata_page_id", "page_metadata", ["page_id"])

    # ---- Bitácoras (append-only) ----
    op.create_table(
        "publication_log_entries",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), primary_key=True),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=False),
        sa.Column("page_id", sa.Integer(), sa.ForeignKey("pages.id", ondelete="CASCADE"), nullable=False),
        sa.Column("revision_id", sa.Integer(), sa.ForeignKey("revisions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("actor_id", sa.String(64), nullable=True),
        sa.Column("action", _enum(PUBLICATION_ACTION, "publication_action"), nullable=False),
        sa.Column("source", _enum(PUBLICATION_SOURCE, "publication_source"), nullable=False, server_default="MANUAL"),
        sa.Column("metadata", JSONB, nullable=False, server_default=sa.text("'{}'")),
        _ts("occurred_at"),
    )
    op.create_index("ix_publication_log_page_occurred", "publication_log_entries", ["page_id", "occurred_at"])
    op.create_index("ix_publication_log_site_occurred", "publication_log_entries", ["site_id", "occurred_at"])

    op.create_table(
        "review_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=False),
        sa.Column("page_id", sa.Integer(), sa.ForeignKey("pages.id", ondelete="CASCADE"), nullable=False),
        sa.Column("revision_id", sa.Integer(), sa.ForeignKey("revisions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("actor_id", sa.String(64), nullable=True),
        sa.Column("type", _enum(REVIEW_EVENT_TYPE, "review_event_type"), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        _ts("created_at"),
    )
    op.create_index("ix_review_events_page_created", "review_events", ["page_id", "created_at"])
    op.create_index("ix_review_events_revision_created", "review_events", ["revision_id", "created_at"])

    op.create_table(
        "activity_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=False),
        sa.Column("page_id", sa.Integer(), sa.ForeignKey("pages.id", ondelete="CASCADE"), nullable=True),
        sa.Column("revision_id", sa.Integer(), sa.ForeignKey("revisions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("actor_id", sa.String(64), nullable=True),
        sa.Column("kind", _enum(ACTIVITY_KIND, "activity_kind"), nullable=False),
        sa.Column("metadata", JSONB, nullable=False, server_default=sa.text("'{}'")),
        _ts("occurred_at"),
    )
    op.create_index("ix_activity_events_page_occurred", "activity_events", ["page_id", "occurred_at"])
    op.create_index("ix_activity_events_site_occurred", "activity_events", ["site_id", "occurred_at"])

    # ---- Integraciones ----
    op.create_table(
        "webhook_endpoints",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("url", sa.String(512), nullable=False),
        sa.Column("secret", sa.String(255), nullable=True),
        sa.Column("events", JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("headers", JSONB, nullable=False, server_default=sa.text("'{}'")),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_webhook_endpoints_site_id", "webhook_endpoints", ["site_id"])

    op.create_table(
        "webhook_deliveries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "webhook_id", sa.Integer(), sa.ForeignKey("webhook_endpoints.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("payload", JSONB, nullable=False),
        sa.Column("status", _enum(DELIVERY_STATUS, "webhook_delivery_status"), nullable=False, server_default="PENDING"),
        sa.Column("attempt_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("response_code", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("next_retry_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        _ts("created_at"),
    )
    op.create_index("ix_webhook_deliveries_webhook_id", "webhook_deliveries", ["webhook_id"])
    op.create_index("ix_webhook_deliveries_site_created", "webhook_deliveries", ["site_id", "created_at"])

    op.create_table(
        "search_integrations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=False),
        sa.Column("provider", _enum(SEARCH_PROVIDER, "search_provider"), nullable=False, server_default="NONE"),
        sa.Column("index_name", sa.String(128), nullable=False),
        sa.Column("config", JSONB, nullable=False, server_default=sa.text("'{}'")),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        sa.UniqueConstraint("site_id", name="uq_search_integrations_site_id"),
    )


def downgrade() -> None:
    op.drop_table("search_integrations")
    op.drop_index("ix_webhook_deliveries_site_created", table_name="webhook_deliveries")
    op.drop_index("ix_webhook_deliveries_webhook_id", table_name="webhook_deliveries")
    op.drop_table("webhook_deliveries")
    op.drop_index("ix_webhook_endpoints_site_id", table_name="webhook_endpoints")
    op.drop_table("webhook_endpoints")
    op.drop_index("ix_activity_events_site_occurred", table_name="activity_events")
    op.drop_index("ix_activity_events_page_occurred", table_name="activity_events")
    op.drop_table("activity_events")
    op.drop_index("ix_review_events_revision_created", table_name="review_events")
    op.drop_index("ix_review_events_page_created", table_name="review_events")
    op.drop_table("review_events")
    op.drop_index("ix_publication_log_site_occurred", table_name="publication_log_entries")
    op.drop_index("ix_publication_log_page_occurred", table_name="publication_log_entries")
    op.drop_table("publication_log_entries")
    op.drop_index("ix_page_metadata_page_id", table_name="page_metadata")
    op.drop_table("page_metadata")
    op.drop_index("ix_content_blocks_revision_id", table_name="content_blocks")
    op.drop_table("content_blocks")
    op.drop_index("ix_revisions_status_scheduled_for", table_name="revisions")
    op.drop_index("ix_revisions_page_status_created", table_name="revisions")
    op.drop_index("ix_revisions_page_id", table_name="revisions")
    op.drop_table("revisions")
    op.drop_index("ix_pages_site_status", table_name="pages")
    op.drop_index("ix_pages_site_id", table_name="pages")
    op.drop_table("pages")
    op.drop_table("sites")
