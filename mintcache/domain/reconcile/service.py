"""ReconciliationService - detects chain reorganizations and rolls the mirror back."""

import asyncio
import logging
from dataclasses import dataclass, field

import logfire

from mintcache.domain.media.service.publisher import OutcomePublisher
from mintcache.domain.shared.service import Service
from mintcache.domain.token.model import TokenKey, TokenKind
from mintcache.domain.token.port import RemoteSource, RemoteSourceRegistry, TokenRepository

logger = logging.getLogger(__name__)


@dataclass
class ForkRepair:
    """Outcome of fork handling for one token kind."""

    kind: TokenKind
    last_correct_block: int
    deleted: list[TokenKey] = field(default_factory=list)


class ReconciliationService(Service):
    """Finds the newest locally mirrored block that still agrees with the chain.

    The arbiter is the remote reporting the highest block. Local records are
    walked newest first in widening batches; the first one whose block hash
    the arbiter confirms marks the last correct block. Everything above it
    was minted on an orphaned branch and is removed locally and on every
    remote.
    """

    tokens: TokenRepository
    remotes: RemoteSourceRegistry
    publisher: OutcomePublisher
    batch_step: int
    retry_delay: float

    async def handle_forks(self) -> list[ForkRepair]:
        repairs = []
        for kind in TokenKind:
            repairs.append(await self.repair(kind))
        return repairs

    async def repair(self, kind: TokenKind) -> ForkRepair:
        last_correct = await self.find_last_correct_block(kind)
        repair = ForkRepair(kind=kind, last_correct_block=last_correct)
        if last_correct <= 0:
            return repair

        repair.deleted = await self.tokens.delete_above(kind, last_correct)
        if repair.deleted:
            logfire.warn(
                "Fork detected",
                kind=str(kind),
                last_correct_block=last_correct,
                deleted=len(repair.deleted),
            )
            logger.warning(
                "Removed %d %s token(s) above block %d", len(repair.deleted), kind, last_correct
            )
            await self.publisher.retract(repair.deleted)
        return repair

    async def find_last_correct_block(self, kind: TokenKind) -> int:
        """Block number of the newest local record the arbiter agrees with.

        Returns 0 when nothing is mirrored. Retries with a wider batch until
        a match is found.
        """
        attempt = 1
        while True:
            limit = attempt * self.batch_step
            records = await self.tokens.list_recent(kind, limit)
            if not records:
                return 0

            arbiter = await self._select_arbiter()
            if arbiter is None:
                logger.warning("No remote reported a block height; retrying fork check")
            else:
                for record in records:
                    try:
                        remote_hash = await arbiter.block_hash(record.block_number)
                    except Exception as e:
                        logger.error(
                            "Error reading block %d from %s: %s",
                            record.block_number,
                            arbiter.name,
                            e,
                        )
                        continue
                    if remote_hash is None:
                        continue
                    if remote_hash == record.block_hash:
                        return record.block_number
                logger.info(
                    "No matching %s block in the newest %d record(s) on %s; widening",
                    kind,
                    len(records),
                    arbiter.name,
                )

            attempt += 1
            await asyncio.sleep(self.retry_delay)

    async def _select_arbiter(self) -> RemoteSource | None:
        best: RemoteSource | None = None
        best_block = 0
        for remote in self.remotes.sources():
            try:
                highest = await remote.highest_block()
            except Exception as e:
                logger.error("Error reading highest block from %s: %s", remote.name, e)
                continue
            if highest is not None and highest > best_block:
                best, best_block = remote, highest
        return best
