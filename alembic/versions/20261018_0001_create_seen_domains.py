"""create seen_domains table

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "seen_domains",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("domain", sa.String(length=255), nullable=False),
        sa.Column("first_seen_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("times_seen", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_seen_domains"),
        sa.UniqueConstraint("domain", name="uq_seen_domains_domain"),
    )
    op.create_index("ix_seen_domains_last_seen_at", "seen_domains", ["last_seen_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_seen_domains_last_seen_at", table_name="seen_domains")
    op.drop_table("seen_domains")
