"""Nirvana training log: entries, sessions, milestones, personal records, body-part mappings.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.Uuid(), nullable=False)


def _user_id() -> sa.Column:
    return sa.Column("user_id", sa.Uuid(), nullable=False)


def _user_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["user_id"], ["user_profiles.id"], ondelete="CASCADE")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "nirvana_entries",
        _id(),
        _user_id(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("total_sessions", sa.Integer(), nullable=False),
        *_timestamps(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "date", name="uq_nirvana_entries_user_date"),
    )

    op.create_table(
        "nirvana_sessions",
        _id(),
        _user_id(),
        sa.Column("nirvana_entry_id", sa.Uuid(), nullable=False),
        sa.Column("session_type", sa.String(length=255), nullable=False),
        sa.Column("session_number", sa.Integer(), nullable=False),
        sa.Column("duration_minutes", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        _user_fk(),
        sa.ForeignKeyConstraint(["nirvana_entry_id"], ["nirvana_entries.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_nirvana_sessions_user_id"), "nirvana_sessions", ["user_id"], unique=False)
    op.create_index(
        "ix_nirvana_sessions_entry_type", "nirvana_sessions", ["nirvana_entry_id", "session_type"], unique=False
    )

    op.create_table(
        "nirvana_milestones",
        _id(),
        _user_id(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("difficulty", sa.String(length=30), nullable=False),
        sa.Column("target_value", sa.Float(), nullable=True),
        sa.Column("unit", sa.String(length=30), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False),
        sa.Column("completed_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False),
        *_timestamps(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_nirvana_milestones_user_id"), "nirvana_milestones", ["user_id"], unique=False)

    op.create_table(
        "nirvana_personal_records",
        _id(),
        _user_id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(length=30), nullable=False),
        sa.Column("record_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("previous_value", sa.Float(), nullable=True),
        sa.Column("previous_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_nirvana_personal_records_user_id"), "nirvana_personal_records", ["user_id"], unique=False
    )

    op.create_table(
        "body_part_mappings",
        _id(),
        _user_id(),
        sa.Column("session_type", sa.String(length=255), nullable=False),
        sa.Column("body_parts", postgresql.JSONB(), nullable=True),
        sa.Column("intensity", sa.String(length=30), nullable=True),
        *_timestamps(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "session_type", name="uq_body_part_mappings_user_type"),
    )


def downgrade() -> None:
    op.drop_table("body_part_mappings")
    op.drop_table("nirvana_personal_records")
    op.drop_table("nirvana_milestones")
    op.drop_table("nirvana_sessions")
    op.drop_table("nirvana_entries")
