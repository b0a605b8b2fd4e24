"""add device_events table

Revision ID: 002
Revises: 001
Create Date: 2026-03-09

Clients report PROMOTED / RECOVERED after applying a bundle; rollout stats
count each device's latest event per bundle.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "device_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("device_id", sa.String(255), nullable=False),
        sa.Column("bundle_id", sa.String(36), nullable=False),
        sa.Column("event_type", sa.String(16), nullable=False),
        sa.Column("platform", sa.String(16), nullable=False),
        sa.Column("app_version", sa.String(255), nullable=True),
        sa.Column("channel", sa.String(255), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint(
            "event_type IN ('PROMOTED', 'RECOVERED')", name="ck_device_events_event_type"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_device_events_bundle_device", "device_events", ["bundle_id", "device_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_device_events_bundle_device", table_name="device_events")
    op.drop_table("device_events")
