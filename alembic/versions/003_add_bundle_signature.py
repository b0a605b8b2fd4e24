"""add signature to bundles

Revision ID: 003
Revises: 002
Create Date: 2026-03-16

Check-in responses carry the publisher's RSA-SHA256 signature so clients can
verify the downloaded artifact against their embedded public key.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("bundles", sa.Column("signature", sa.Text(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("bundles") as batch_op:
        batch_op.drop_column("signature")
