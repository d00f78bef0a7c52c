"""SQLAlchemy table definitions - dialect-agnostic (works with SQLite and PostgreSQL)."""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    false,
    text,
)

from mintcache.domain.token.model import TokenKind

# Metadata object for all tables
metadata = MetaData()


def _token_table(kind: TokenKind) -> Table:
    """One mirror table per token kind, keyed by (contract, token_id)."""
    name = kind.tables.local_table
    table = Table(
        name,
        metadata,
        Column("contract", String(42), primary_key=True),
        Column("token_id", String(125), primary_key=True),
        Column("kind", String(16), nullable=False),
        Column("block_number", BigInteger, nullable=False),
        Column("block_hash", String(66), nullable=False),
        Column("metadata", Text, nullable=False),  # JSON text, as received
        Column("token_uri", Text, nullable=True),
        Column("cached_location", Text, nullable=True),
        Column("attempt_count", Integer, nullable=False, server_default=text("0")),
        Column("last_attempt_at", DateTime(timezone=True), nullable=True),
        Column("updated_at", DateTime(timezone=True), nullable=True),
        Column("processed", Boolean, nullable=False, server_default=false()),
    )
    Index(f"idx_{name}_block_number", table.c.block_number)
    return table


# ============================================================================
# TOKEN TABLES (one per kind)
# ============================================================================
token_tables: dict[TokenKind, Table] = {kind: _token_table(kind) for kind in TokenKind}
