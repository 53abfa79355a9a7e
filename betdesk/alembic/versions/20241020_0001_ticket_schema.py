"""Initial ticket schema: packages, admins, tickets and their components."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20241020_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "packages",
        sa.Column("package_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=250), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="1"),
    )

    op.create_table(
        "admins",
        sa.Column("admin_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(length=250), nullable=False),
        sa.Column("last_name", sa.String(length=250), nullable=False),
        sa.Column("email", sa.String(length=250), nullable=True, unique=True),
    )

    op.create_table(
        "tickets",
        sa.Column("ticket_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("betting_shop", sa.Integer(), nullable=False),
        sa.Column("deposit", sa.Float(), nullable=False),
        sa.Column("final_course", sa.Float(), nullable=True),
        sa.Column("final_state", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("closest_match_date", sa.DateTime(), nullable=False),
        sa.Column("checked", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column(
            "package_id",
            sa.Integer(),
            sa.ForeignKey("packages.package_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "admin_id",
            sa.Integer(),
            sa.ForeignKey("admins.admin_id", ondelete="RESTRICT"),
            nullable=False,
        ),
    )
    op.create_index("tickets_package_state_idx", "tickets", ["package_id", "final_state"])
    op.create_index("tickets_closest_match_idx", "tickets", ["closest_match_date"])
    op.create_index("tickets_checked_idx", "tickets", ["checked"])

    op.create_table(
        "ticket_components",
        sa.Column("component_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "ticket_id",
            sa.Integer(),
            sa.ForeignKey("tickets.ticket_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("match_name", sa.String(length=250), nullable=False),
        sa.Column("course", sa.Float(), nullable=False),
        sa.Column("state", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("match_date", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("ticket_components")
    op.drop_index("tickets_checked_idx", table_name="tickets")
    op.drop_index("tickets_closest_match_idx", table_name="tickets")
    op.drop_index("tickets_package_state_idx", table_name="tickets")
    op.drop_table("tickets")
    op.drop_table("admins")
    op.drop_table("packages")
