"""Token standards and the tables each one lives in."""

from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True)
class KindTables:
    """Where records of one token kind are stored.

    Attributes:
        local_table: Table in the local mirror.
        remote_table: Table on each remote source.
        block_field: Remote column holding the creation block number.
    """

    local_table: str
    remote_table: str
    block_field: str


class TokenKind(StrEnum):
    """Closed set of supported token standards."""

    ERC721 = "erc721"
    ERC1155 = "erc1155"

    @property
    def tables(self) -> KindTables:
        return _KIND_TABLES[self]


_KIND_TABLES: dict[TokenKind, KindTables] = {
    TokenKind.ERC721: KindTables(
        local_table="erc721_tokens",
        remote_table="nfts",
        block_field="block_minted",
    ),
    TokenKind.ERC1155: KindTables(
        local_table="erc1155_tokens",
        remote_table="nfts_1155",
        block_field="block_minted",
    ),
}
