"""comment threads per revision + comment activity kinds

Revision ID: 8d4b2e6c1f03
Revises: 5c1e0f7a2b91
Create Date: 2026-10-26 09:41:17.205318

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d4b2e6c1f03'
down_revision: Union[str, Sequence[str], None] = '5c1e0f7a2b91'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

THREAD_STATUS = ("OPEN", "RESOLVED")
ACTIVITY_KIND_BEFORE = (
    "REVISION_SUBMITTED", "REVISION_APPROVED", "REVISION_CHANGES_REQUESTED",
    "REVISION_SCHEDULED", "REVISION_UNSCHEDULED", "REVISION_PUBLISHED",
)
ACTIVITY_KIND_AFTER = ACTIVITY_KIND_BEFORE + ("COMMENT_ADDED", "COMMENT_RESOLVED", "COMMENT_REOPENED")


def _ts(name, nullable=False):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable, server_default=sa.func.now())


def _replace_activity_check(values) -> None:
    # el CHECK del enum VARCHAR se llama como el enum (activity_kind)
    in_list = ", ".join(f"'{v}'" for v in values)
    with op.batch_alter_table("activity_events") as batch:
        batch.drop_constraint("activity_kind", type_="check")
        batch.create_check_constraint("activity_kind", f"kind IN ({in_list})")


def upgrade() -> None:
    op.create_table(
        "comment_threads",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=False),
        sa.Column("page_id", sa.Integer(), sa.ForeignKey("pages.id", ondelete="CASCADE"), nullable=False),
        sa.Column("revision_id", sa.Integer(), sa.ForeignKey("revisions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("block_id", sa.Integer(), sa.ForeignKey("content_blocks.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*THREAD_STATUS, name="comment_thread_status", native_enum=False, create_constraint=True, length=32),
            nullable=False,
            server_default="OPEN",
        ),
        sa.Column("created_by_id", sa.String(64), nullable=False),
        sa.Column("resolved_by_id", sa.String(64), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_comment_threads_revision_created", "comment_threads", ["revision_id", "created_at"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "thread_id", sa.Integer(), sa.ForeignKey("comment_threads.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("author_id", sa.String(64), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        _ts("created_at"),
    )
    op.create_index("ix_comments_thread_id", "comments", ["thread_id"])

    _replace_activity_check(ACTIVITY_KIND_AFTER)


def downgrade() -> None:
    op.execute("DELETE FROM activity_events WHERE kind LIKE 'COMMENT_%'")
    _replace_activity_check(ACTIVITY_KIND_BEFORE)
    op.drop_index("ix_comments_thread_id", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_comment_threads_revision_created", table_name="comment_threads")
    op.drop_table("comment_threads")
