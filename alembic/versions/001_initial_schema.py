"""Initial schema: profiles, daily/weekly tracking, subscriptions, lookups, Winners Bible.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.Uuid(), nullable=False)


def _user_id() -> sa.Column:
    return sa.Column("user_id", sa.Uuid(), nullable=False)


def _user_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["user_id"], ["user_profiles.id"], ondelete="CASCADE")


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=True)


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True)


def upgrade() -> None:
    op.create_table(
        "user_profiles",
        _id(),
        sa.Column("auth_user_id", sa.String(length=255), nullable=False),
        sa.Column("bmr", sa.Float(), nullable=False),
        sa.Column("height", sa.Float(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("gender", sa.String(length=20), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("tracker_settings", postgresql.JSONB(), nullable=True),
        sa.Column("macro_targets", postgresql.JSONB(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("auth_user_id"),
    )

    op.create_table(
        "daily_entries",
        _id(),
        _user_id(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("deep_work_completed", sa.Boolean(), nullable=False),
        sa.Column("winners_bible_morning", sa.Boolean(), nullable=False),
        sa.Column("winners_bible_night", sa.Boolean(), nullable=False),
        _created_at(),
        _updated_at(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_entries_user_date"),
    )

    op.create_table(
        "calorie_entries",
        _id(),
        _user_id(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("food_name", sa.String(length=255), nullable=False),
        sa.Column("calories", sa.Float(), nullable=True),
        sa.Column("carbs", sa.Float(), nullable=True),
        sa.Column("protein", sa.Float(), nullable=True),
        sa.Column("fat", sa.Float(), nullable=True),
        sa.Column("meal_type", sa.String(length=30), nullable=True),
        _created_at(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_calorie_entries_user_date", "calorie_entries", ["user_id", "date"], unique=False)

    op.create_table(
        "exercise_entries",
        _id(),
        _user_id(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("exercise_type", sa.String(length=255), nullable=False),
        sa.Column("duration_minutes", sa.Float(), nullable=True),
        sa.Column("calories_burned", sa.Float(), nullable=True),
        sa.Column("intensity", sa.String(length=20), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_exercise_entries_user_date", "exercise_entries", ["user_id", "date"], unique=False)

    op.create_table(
        "injection_entries",
        _id(),
        _user_id(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("compound_name", sa.String(length=255), nullable=False),
        sa.Column("dosage", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(length=20), nullable=False),
        sa.Column("injection_site", sa.String(length=100), nullable=True),
        sa.Column("time_of_day", sa.String(length=10), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_injection_entries_user_date", "injection_entries", ["user_id", "date"], unique=False)

    op.create_table(
        "mits",
        _id(),
        _user_id(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("task_description", sa.Text(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False),
        _created_at(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_mits_user_date", "mits", ["user_id", "date"], unique=False)

    op.create_table(
        "weekly_entries",
        _id(),
        _user_id(),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("objectives", postgresql.JSONB(), nullable=True),
        sa.Column("why_important", sa.Text(), nullable=True),
        sa.Column("friday_review", sa.Text(), nullable=True),
        sa.Column("review_completed", sa.Boolean(), nullable=False),
        _created_at(),
        _updated_at(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "week_start", name="uq_weekly_entries_user_week"),
    )

    op.create_table(
        "subscriptions",
        _id(),
        _user_id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("price", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("billing_frequency", sa.String(length=20), nullable=True),
        sa.Column("billing_date", sa.Date(), nullable=False),
        sa.Column("category_ids", postgresql.JSONB(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_subscriptions_user_id"), "subscriptions", ["user_id"], unique=False)

    op.create_table(
        "subscription_categories",
        _id(),
        _user_id(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=True),
        _created_at(),
        _updated_at(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_subscription_categories_user_id"), "subscription_categories", ["user_id"], unique=False
    )

    for table in ("compounds", "nirvana_session_types"):
        op.create_table(
            table,
            _id(),
            _user_id(),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("order_index", sa.Integer(), nullable=False),
            _created_at(),
            _user_fk(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f(f"ix_{table}_user_id"), table, ["user_id"], unique=False)

    op.create_table(
        "food_templates",
        _id(),
        _user_id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("calories", sa.Float(), nullable=True),
        sa.Column("carbs", sa.Float(), nullable=True),
        sa.Column("protein", sa.Float(), nullable=True),
        sa.Column("fat", sa.Float(), nullable=True),
        _created_at(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_food_templates_user_id"), "food_templates", ["user_id"], unique=False)

    op.create_table(
        "winners_bible_images",
        _id(),
        _user_id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("storage_path", sa.String(length=512), nullable=False),
        sa.Column("mime_type", sa.String(length=100), nullable=False),
        sa.Column("size_bytes", sa.Integer(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        _created_at(),
        _updated_at(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_winners_bible_images_user_order", "winners_bible_images", ["user_id", "display_order"], unique=False
    )


def downgrade() -> None:
    op.drop_table("winners_bible_images")
    op.drop_table("food_templates")
    op.drop_table("nirvana_session_types")
    op.drop_table("compounds")
    op.drop_table("subscription_categories")
    op.drop_table("subscriptions")
    op.drop_table("weekly_entries")
    op.drop_table("mits")
    op.drop_table("injection_entries")
    op.drop_table("exercise_entries")
    op.drop_table("calorie_entries")
    op.drop_table("daily_entries")
    op.drop_table("user_profiles")
