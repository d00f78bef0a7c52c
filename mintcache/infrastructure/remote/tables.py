"""Remote ledger tables.

These describe databases owned by the chain indexers. mintcache reads them
and writes only ``image_cache``; it never creates or migrates them.
``metadata`` is JSON on the remote but read as text and decoded leniently,
since indexers write whatever the token contract returned.
"""

from sqlalchemy import BigInteger, Column, MetaData, String, Table, Text

from mintcache.domain.token.model import TokenKind

remote_metadata = MetaData()

blocks_table = Table(
    "blocks",
    remote_metadata,
    Column("number", BigInteger, primary_key=True),
    Column("hash", String(66), nullable=False),
)


def _remote_token_table(kind: TokenKind) -> Table:
    tables = kind.tables
    return Table(
        tables.remote_table,
        remote_metadata,
        Column("contract", String(42), primary_key=True),
        Column("token_id", String(125), primary_key=True),
        Column(tables.block_field, BigInteger, nullable=False),
        Column("metadata", Text, nullable=True),
        Column("token_uri", Text, nullable=True),
        Column("image_cache", Text, nullable=True),
    )


remote_token_tables: dict[TokenKind, Table] = {
    kind: _remote_token_table(kind) for kind in TokenKind
}
