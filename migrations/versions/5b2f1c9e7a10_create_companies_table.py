"""Create companies table.

`GET /companies/latest` orders by created_at DESC LIMIT 1, served by
ix_companies_created_at.
"""

from __future__ import annotations

import logging

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "5b2f1c9e7a10"
down_revision = None
branch_labels = None
depends_on = None

logger = logging.getLogger(__name__)

UTC_NOW = sa.text("timezone('utc', now())")


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("appeal", sa.Text(), nullable=False),
        sa.Column("website", sa.String(length=512), nullable=False),
        sa.Column("cover_image", sa.Text(), nullable=False),
        sa.Column("twitter", sa.String(length=512), nullable=True),
        sa.Column("linkedin", sa.String(length=512), nullable=True),
        sa.Column("facebook", sa.String(length=512), nullable=True),
        sa.Column("instagram", sa.String(length=512), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=UTC_NOW),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=UTC_NOW,
            server_onupdate=UTC_NOW,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_companies"),
    )
    op.create_index("ix_companies_created_at", "companies", ["created_at"], unique=False)
    logger.info("generation.migration.applied", extra={"revision": revision})


def downgrade() -> None:
    op.drop_index("ix_companies_created_at", table_name="companies")
    op.drop_table("companies")
