"""OutcomePublisher - propagates cached locations to every remote source."""

import logging
from collections.abc import Iterable

from mintcache.domain.shared.service import Service
from mintcache.domain.token.model import TokenKey
from mintcache.domain.token.port.remote import RemoteSourceRegistry

logger = logging.getLogger(__name__)


class OutcomePublisher(Service):
    """Best-effort writes of cache locations to remotes.

    A remote that fails is logged and skipped; the others are still updated.
    Remotes that miss an update converge on a later sync pass.
    """

    remotes: RemoteSourceRegistry

    async def publish(self, key: TokenKey, location: str) -> int:
        """Set the cached location on every remote. Returns how many succeeded."""
        updated = 0
        for remote in self.remotes.sources():
            try:
                await remote.set_cached_location(key, location)
                updated += 1
            except Exception as e:
                logger.error("Error updating remote %s for %s: %s", remote.name, key, e)
        return updated

    async def retract(self, keys: Iterable[TokenKey]) -> None:
        """Clear cached locations for ``keys`` on every remote."""
        keys = list(keys)
        for remote in self.remotes.sources():
            logger.info("Clearing %d image cache(s) on remote %s", len(keys), remote.name)
            for key in keys:
                try:
                    await remote.clear_cached_location(key)
                except Exception as e:
                    logger.error(
                        "Error clearing image cache for %s on remote %s: %s", key, remote.name, e
                    )
