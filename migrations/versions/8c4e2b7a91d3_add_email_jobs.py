"""add email_jobs history table

Revision ID: 8c4e2b7a91d3
Revises: 3f9a1c2d7e10
Create Date: 2026-10-18 09:41:07.552190

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8c4e2b7a91d3'
down_revision: Union[str, Sequence[str], None] = '3f9a1c2d7e10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "email_jobs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("template", sa.String(length=50), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "retrying", "sent", "failed", name="emailstatusenum"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_email_jobs_id", "email_jobs", ["id"])
    op.create_index("ix_email_jobs_user_id", "email_jobs", ["user_id"])
    op.create_index("ix_email_jobs_status", "email_jobs", ["status"])
    op.create_index("ix_email_jobs_created_at", "email_jobs", ["created_at"])


def downgrade() -> None:
    op.drop_table("email_jobs")
    sa.Enum(name="emailstatusenum").drop(op.get_bind(), checkfirst=True)
