"""SourceSyncService - mirrors pending remote rows into the local store."""

import logging
from dataclasses import dataclass

from mintcache.domain.gateway import GatewayResolver, extract_content_id
from mintcache.domain.media.port import ContentPinner
from mintcache.domain.shared.error import ImageNotFoundError
from mintcache.domain.shared.service import Service
from mintcache.domain.token.model import RemoteToken, RetryPolicy, TokenKind, TokenRecord
from mintcache.domain.token.port import RemoteSource, RemoteSourceRegistry, TokenRepository

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Counts for one remote/kind pass."""

    remote: str
    kind: TokenKind
    fetched: int = 0
    inserted: int = 0
    repaired: int = 0
    skipped: int = 0
    errors: int = 0
    failed: bool = False


class SourceSyncService(Service):
    """Pulls rows that lack a cached image from every remote.

    Per row:
        - already mirrored and processed: the remote missed the cache
          update, so the local location is pushed back to it.
        - already mirrored otherwise (pending or abandoned): left alone.
        - new: adopted with the block hash the same remote reports, then
          its content id is queued for pinning.

    Remotes are visited in order, so the first remote to report a token
    in a cycle supplies its row.
    """

    tokens: TokenRepository
    remotes: RemoteSourceRegistry
    resolver: GatewayResolver
    pinner: ContentPinner
    policy: RetryPolicy
    page_size: int

    async def sync(self) -> list[SyncResult]:
        results: list[SyncResult] = []
        for remote in self.remotes.sources():
            for kind in TokenKind:
                result = await self.sync_remote(remote, kind)
                results.append(result)
        return results

    async def sync_remote(self, remote: RemoteSource, kind: TokenKind) -> SyncResult:
        result = SyncResult(remote=remote.name, kind=kind)
        try:
            rows = await remote.fetch_pending(kind, self.page_size)
        except Exception as e:
            logger.error("Error fetching %s tokens from remote %s: %s", kind, remote.name, e)
            result.failed = True
            return result

        result.fetched = len(rows)
        for row in rows:
            try:
                await self._sync_row(remote, row, result)
            except Exception as e:
                logger.error("Error syncing %s from remote %s: %s", row.key, remote.name, e)
                result.errors += 1

        logger.info(
            "Synced %s from %s: %d fetched, %d new, %d repaired",
            kind,
            remote.name,
            result.fetched,
            result.inserted,
            result.repaired,
        )
        return result

    async def _sync_row(self, remote: RemoteSource, row: RemoteToken, result: SyncResult) -> None:
        existing = await self.tokens.get(row.key)
        if existing is not None:
            if existing.processed and existing.cached_location:
                await remote.set_cached_location(row.key, existing.cached_location)
                result.repaired += 1
            elif existing.attempt_count >= self.policy.ceiling:
                logger.debug("Skipping abandoned %s", row.key)
                result.skipped += 1
            else:
                result.skipped += 1
            return

        block_hash = await remote.block_hash(row.block_number)
        if block_hash is None:
            logger.debug(
                "Block %d unknown on %s, skipping %s", row.block_number, remote.name, row.key
            )
            result.skipped += 1
            return

        await self.tokens.upsert(TokenRecord.adopt(row, block_hash))
        result.inserted += 1
        self._pin(row)

    def _pin(self, row: RemoteToken) -> None:
        try:
            url = self.resolver.resolve(row.metadata, row.token_uri)
        except ImageNotFoundError:
            return
        content_id = extract_content_id(url)
        if content_id:
            self.pinner.submit(content_id)
