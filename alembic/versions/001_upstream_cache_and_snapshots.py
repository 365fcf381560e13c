"""Create upstream_cache_entries and place_snapshots tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "upstream_cache_entries",
        sa.Column("cache_key", sa.String(128), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("stale_until", sa.DateTime(timezone=True), nullable=False),
        sa.Column("elements", _JSON, nullable=False),
        sa.PrimaryKeyConstraint("cache_key"),
    )
    op.create_index("ix_upstream_cache_entries_stale_until", "upstream_cache_entries", ["stale_until"])

    op.create_table(
        "place_snapshots",
        sa.Column("cache_key", sa.String(128), nullable=False),
        sa.Column("bbox", _JSON, nullable=True),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("elements", _JSON, nullable=False),
        sa.Column("meta", _JSON, nullable=False),
        sa.PrimaryKeyConstraint("cache_key"),
    )


def downgrade() -> None:
    op.drop_table("place_snapshots")
    op.drop_index("ix_upstream_cache_entries_stale_until", table_name="upstream_cache_entries")
    op.drop_table("upstream_cache_entries")
