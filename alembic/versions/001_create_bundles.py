"""create bundles table

Revision ID: 001
Revises:
Create Date: 2026-03-02

Bundle ids are UUIDv7 strings; resolution orders by id, so the primary key
doubles as the delivery order within (platform, channel).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "bundles",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("platform", sa.String(16), nullable=False),
        sa.Column("channel", sa.String(255), server_default="production", nullable=False),
        sa.Column("target_app_version", sa.String(255), nullable=True),
        sa.Column("fingerprint_hash", sa.String(255), nullable=True),
        sa.Column("enabled", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("should_force_update", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("rollout_percentage", sa.Integer(), server_default="100", nullable=False),
        sa.Column("target_device_ids", sa.JSON(), nullable=True),
        sa.Column("storage_uri", sa.Text(), nullable=True),
        sa.Column("file_hash", sa.String(128), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("git_commit_hash", sa.String(64), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint("platform IN ('ios', 'android')", name="ck_bundles_platform"),
        sa.CheckConstraint(
            "rollout_percentage >= 0 AND rollout_percentage <= 100",
            name="ck_bundles_rollout_percentage",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_bundles_platform_channel", "bundles", ["platform", "channel"])
    op.create_index("ix_bundles_target_app_version", "bundles", ["target_app_version"])
    op.create_index("ix_bundles_fingerprint_hash", "bundles", ["fingerprint_hash"])


def downgrade() -> None:
    op.drop_index("ix_bundles_fingerprint_hash", table_name="bundles")
    op.drop_index("ix_bundles_target_app_version", table_name="bundles")
    op.drop_index("ix_bundles_platform_channel", table_name="bundles")
    op.drop_table("bundles")
