"""create users and services tables

Revision ID: 3f1a9c2e7b40
Revises: 
Create Date: 2026-10-19 09:12:44.201733

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b40'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("username", sa.String(50), nullable=False, server_default=""),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="FREE"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "services",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "owner_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(200), nullable=False),
        sa.Column("local_port", sa.Integer(), nullable=False),
        sa.Column("subdomain", sa.String(63), nullable=False),
        sa.Column("frp_type", sa.String(10), nullable=False),
        sa.Column("remote_port", sa.Integer(), nullable=True),
        sa.Column("use_encryption", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("use_compression", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("public_url", sa.String(2048), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_services_owner_id", "services", ["owner_id"])
    # Subdomains are globally unique
    op.create_index("ix_services_subdomain", "services", ["subdomain"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_services_subdomain", table_name="services")
    op.drop_index("ix_services_owner_id", table_name="services")
    op.drop_table("services")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
