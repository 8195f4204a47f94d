"""create admins table

Revision ID: 0001_create_admins
Revises:
Create Date: 2025-11-03 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_create_admins"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_admins_email_lower",
        "admins",
        [sa.text("lower(email)")],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_admins_email_lower", table_name="admins")
    op.drop_table("admins")
