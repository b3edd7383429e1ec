"""initial delivery ledger schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("subject", sa.String(length=128), nullable=False, unique=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "date_periods",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("end_date > start_date", name="ck_date_periods_end_after_start"),
    )
    op.create_index("ix_date_periods_start_date", "date_periods", ["start_date"])

    op.create_table(
        "rounds",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_rounds_user_id", "rounds", ["user_id"])

    op.create_table(
        "parcel_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "round_id",
            sa.Integer(),
            sa.ForeignKey("rounds.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("max_weight", sa.Numeric(8, 2), nullable=False),
        sa.Column("max_length", sa.Numeric(8, 2), nullable=False),
        sa.Column("rate", sa.Numeric(8, 2), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("max_weight >= 0", name="ck_parcel_types_max_weight_non_negative"),
        sa.CheckConstraint("max_length >= 0", name="ck_parcel_types_max_length_non_negative"),
        sa.CheckConstraint("rate >= 0", name="ck_parcel_types_rate_non_negative"),
    )
    op.create_index("ix_parcel_types_round_id", "parcel_types", ["round_id"])

    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "parcel_type_id",
            sa.Integer(),
            sa.ForeignKey("parcel_types.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("activity_date", sa.Date(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("quantity >= 0", name="ck_activities_quantity_non_negative"),
    )
    op.create_index("ix_activities_user_date", "activities", ["user_id", "activity_date"])
    op.create_index("ix_activities_parcel_type_id", "activities", ["parcel_type_id"])

    op.create_table(
        "activity_images",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "activity_id",
            sa.Integer(),
            sa.ForeignKey("activities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("image_path", sa.String(length=1024), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_activity_images_activity_id", "activity_images", ["activity_id"])


def downgrade() -> None:
    op.drop_index("ix_activity_images_activity_id", table_name="activity_images")
    op.drop_table("activity_images")

    op.drop_index("ix_activities_parcel_type_id", table_name="activities")
    op.drop_index("ix_activities_user_date", table_name="activities")
    op.drop_table("activities")

    op.drop_index("ix_parcel_types_round_id", table_name="parcel_types")
    op.drop_table("parcel_types")

    op.drop_index("ix_rounds_user_id", table_name="rounds")
    op.drop_table("rounds")

    op.drop_index("ix_date_periods_start_date", table_name="date_periods")
    op.drop_table("date_periods")

    op.drop_table("users")
