"""create users, household members and rsvp tables

Revision ID: 3f9a1c2d7e10
Revises: 
Create Date: 2026-10-17 10:12:44.208311

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c2d7e10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

GUEST_GROUPS = ("grooms_family", "brides_family", "friends", "extended_family", "other")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("full_name", sa.String(length=120), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_invited", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("has_rsvped", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("qr_token", sa.String(length=64), nullable=False),
        sa.Column("qr_alias", sa.String(length=50), nullable=True),
        sa.Column("qr_alias_locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("relationship_to_bride", sa.String(length=100), nullable=True),
        sa.Column("relationship_to_groom", sa.String(length=100), nullable=True),
        sa.Column("custom_welcome_message", sa.String(length=500), nullable=True),
        sa.Column("guest_group", sa.Enum(*GUEST_GROUPS, name="guestgroupenum"), nullable=True),
        sa.Column("plus_one_allowed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("personal_photo", sa.String(length=500), nullable=True),
        sa.Column("special_instructions", sa.String(length=500), nullable=True),
        sa.Column("dietary_restrictions", sa.String(length=500), nullable=True),
        sa.Column("street_address", sa.String(length=200), nullable=True),
        sa.Column("address_line2", sa.String(length=200), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("zip_code", sa.String(length=20), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_full_name", "users", ["full_name"])
    op.create_index("ix_users_qr_token", "users", ["qr_token"], unique=True)
    op.create_index("ix_users_qr_alias", "users", ["qr_alias"], unique=True)

    op.create_table(
        "household_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("relationship_to_bride", sa.String(length=100), nullable=True),
        sa.Column("relationship_to_groom", sa.String(length=100), nullable=True),
    )
    op.create_index("ix_household_members_id", "household_members", ["id"])
    op.create_index("ix_household_members_user_id", "household_members", ["user_id"])

    op.create_table(
        "rsvps",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("attending", sa.Enum("YES", "NO", "MAYBE", name="attendanceenum"), nullable=False),
        sa.Column("guest_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("additional_notes", sa.Text(), nullable=True),
        sa.Column("full_name", sa.String(length=120), nullable=True),
        sa.Column("meal_preference", sa.String(length=32), nullable=True),
        sa.Column("allergies", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_rsvps_id", "rsvps", ["id"])
    op.create_index("ix_rsvps_user_id", "rsvps", ["user_id"], unique=True)

    op.create_table(
        "rsvp_guests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("rsvp_id", sa.Integer(), sa.ForeignKey("rsvps.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("full_name", sa.String(length=120), nullable=False),
        sa.Column("meal_preference", sa.String(length=32), nullable=True),
        sa.Column("allergies", sa.String(length=200), nullable=True),
    )
    op.create_index("ix_rsvp_guests_id", "rsvp_guests", ["id"])
    op.create_index("ix_rsvp_guests_rsvp_id", "rsvp_guests", ["rsvp_id"])


def downgrade() -> None:
    op.drop_table("rsvp_guests")
    op.drop_table("rsvps")
    op.drop_table("household_members")
    op.drop_table("users")
    sa.Enum(name="attendanceenum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="guestgroupenum").drop(op.get_bind(), checkfirst=True)
