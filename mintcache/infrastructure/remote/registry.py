"""Registry of remote sources with one lazily created engine per remote."""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from mintcache.config import RemoteSourceConfig
from mintcache.domain.token.port.remote import RemoteSource, RemoteSourceRegistry
from mintcache.infrastructure.persistence.database import create_engine_for_url
from mintcache.infrastructure.remote.source import SqlRemoteSource

logger = logging.getLogger(__name__)


class SqlRemoteSourceRegistry(RemoteSourceRegistry):
    """Hands out remote sources, creating each engine on first use.

    Remotes are keyed by ``(host, port, database)``; a remote listed twice
    is only queried once.
    """

    def __init__(self, configs: list[RemoteSourceConfig], echo: bool = False) -> None:
        self._configs: dict[tuple[str, int, str], RemoteSourceConfig] = {}
        for config in configs:
            if config.identity in self._configs:
                logger.warning("Ignoring duplicate remote %s", config.label)
                continue
            self._configs[config.identity] = config
        self._echo = echo
        self._engines: dict[tuple[str, int, str], AsyncEngine] = {}
        self._sources: dict[tuple[str, int, str], SqlRemoteSource] = {}

    def sources(self) -> list[RemoteSource]:
        return [self._source(identity) for identity in self._configs]

    def _source(self, identity: tuple[str, int, str]) -> SqlRemoteSource:
        source = self._sources.get(identity)
        if source is None:
            config = self._configs[identity]
            engine = create_engine_for_url(config.connection_url, echo=self._echo)
            self._engines[identity] = engine
            source = SqlRemoteSource(config.label, engine)
            self._sources[identity] = source
            logger.debug("Created engine for remote %s", config.label)
        return source

    async def close(self) -> None:
        """Dispose every engine created so far."""
        for identity, engine in self._engines.items():
            await engine.dispose()
            logger.debug("Disposed engine for remote %s", self._configs[identity].label)
        self._engines.clear()
        self._sources.clear()
