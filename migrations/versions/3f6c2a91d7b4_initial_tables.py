"""initial_tables

Revision ID: 3f6c2a91d7b4
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f6c2a91d7b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TOKEN_TABLES = ("erc721_tokens", "erc1155_tokens")


def upgrade() -> None:
    """Upgrade schema."""
    for name in TOKEN_TABLES:
        op.create_table(
            name,
            sa.Column("contract", sa.String(42), nullable=False),
            sa.Column("token_id", sa.String(125), nullable=False),
            sa.Column("kind", sa.String(16), nullable=False),
            sa.Column("block_number", sa.BigInteger(), nullable=False),
            sa.Column("block_hash", sa.String(66), nullable=False),
            sa.Column("metadata", sa.Text(), nullable=False),
            sa.Column("token_uri", sa.Text(), nullable=True),
            sa.Column("cached_location", sa.Text(), nullable=True),
            sa.Column("attempt_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
            sa.Column("last_attempt_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("processed", sa.Boolean(), server_default=sa.false(), nullable=False),
            sa.PrimaryKeyConstraint("contract", "token_id"),
        )
        op.create_index(f"idx_{name}_block_number", name, ["block_number"])


def downgrade() -> None:
    """Downgrade schema."""
    for name in TOKEN_TABLES:
        op.drop_index(f"idx_{name}_block_number", table_name=name)
        op.drop_table(name)
