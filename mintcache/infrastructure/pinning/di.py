from typing import AsyncIterable

from dishka import Provider, provide

from mintcache.config import Config
from mintcache.domain.media.port.pinner import ContentPinner
from mintcache.infrastructure.pinning.ipfs import IpfsPinner, NullPinner
from mintcache.util.di.scope import Scope


class PinningProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_pinner(self, config: Config) -> AsyncIterable[ContentPinner]:
        """Pinner shared by every unit of work; outstanding pins finish before shutdown."""
        pinning = config.pinning
        if not pinning.enabled:
            yield NullPinner()
            return
        pinner = IpfsPinner(
            binary=pinning.binary, ipfs_path=pinning.ipfs_path, timeout=pinning.timeout
        )
        yield pinner
        await pinner.drain()
