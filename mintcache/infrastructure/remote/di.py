from typing import AsyncIterable

from dishka import Provider, provide

from mintcache.config import Config
from mintcache.domain.token.port.remote import RemoteSourceRegistry
from mintcache.infrastructure.remote.registry import SqlRemoteSourceRegistry
from mintcache.util.di.scope import Scope


class RemoteProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_registry(self, config: Config) -> AsyncIterable[RemoteSourceRegistry]:
        registry = SqlRemoteSourceRegistry(config.remotes, echo=config.database.echo)
        yield registry
        await registry.close()
