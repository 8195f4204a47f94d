"""create download_logs table

Revision ID: 0002_create_download_logs
Revises: 0001_create_admins
Create Date: 2025-11-03 00:10:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_create_download_logs"
down_revision = "0001_create_admins"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "download_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("team_id", sa.String(length=32), nullable=False),
        sa.Column("team_name", sa.String(length=255), nullable=True),
        sa.Column("count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_download_logs_email", "download_logs", ["email"])
    op.create_index("ix_download_logs_created_at", "download_logs", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_download_logs_created_at", table_name="download_logs")
    op.drop_index("ix_download_logs_email", table_name="download_logs")
    op.drop_table("download_logs")
