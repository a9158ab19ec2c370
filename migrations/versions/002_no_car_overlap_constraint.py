"""DB-level exclusion constraint against overlapping confirmed reservations.

tstzrange('[]') matches the application overlap check: a reservation
returning at the exact instant another one starts IS a conflict.

Revision ID: 002_no_car_overlap_constraint
Revises: 001_initial_schema
Create Date: 2026-10-19
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "002_no_car_overlap_constraint"
down_revision = "001_initial_schema"
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parent.parent / "sql" / "002_no_car_overlap_constraint.sql"


def upgrade() -> None:
    # Raw execution to support DO $$ ... $$ blocks.
    op.get_bind().exec_driver_sql(_SQL_FILE.read_text(encoding="utf-8"))


def downgrade() -> None:
    op.execute("ALTER TABLE reservations DROP CONSTRAINT IF EXISTS no_confirmed_car_overlap")
    # btree_gist is kept: other indexes may depend on it.
