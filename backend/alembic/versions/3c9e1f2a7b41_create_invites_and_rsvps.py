"""create invites and rsvps tables

Revision ID: 3c9e1f2a7b41
Revises:
Create Date: 2026-02-14
"""

from alembic import op
import sqlalchemy as sa

revision = "3c9e1f2a7b41"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "invites",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("norm_name", sa.Text(), nullable=False),
        sa.Column(
            "allowed_guests",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.CheckConstraint(
            "allowed_guests >= 0 AND allowed_guests <= 10",
            name="ck_invites_allowed_guests_range",
        ),
    )
    op.create_index("ix_invites_norm_name", "invites", ["norm_name"])

    # invite_id as primary key: one RSVP per invite, enforced by the database
    op.create_table(
        "rsvps",
        sa.Column("invite_id", sa.String(length=36), primary_key=True),
        sa.Column("primary_name", sa.Text(), nullable=False),
        sa.Column("attending", sa.Boolean(), nullable=False),
        sa.Column("extra_guest_names", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ip", sa.String(length=64), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("rsvps")
    op.drop_index("ix_invites_norm_name", table_name="invites")
    op.drop_table("invites")
