from typing import AsyncIterable

import httpx
from dishka import Provider, provide

from mintcache.config import Config
from mintcache.domain.media.port.downloader import MediaDownloader
from mintcache.infrastructure.http.downloader import HttpMediaDownloader, client_timeout
from mintcache.util.di.scope import Scope


class HttpProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_http_client(self, config: Config) -> AsyncIterable[httpx.AsyncClient]:
        """Shared client for media downloads, closed with the container."""
        limits = httpx.Limits(max_connections=config.worker.concurrency * 2)
        async with httpx.AsyncClient(
            timeout=client_timeout(config.media.timeouts),
            limits=limits,
            follow_redirects=True,
            headers={"User-Agent": config.media.user_agent},
        ) as client:
            yield client

    @provide(scope=Scope.APP)
    def get_downloader(self, config: Config, client: httpx.AsyncClient) -> MediaDownloader:
        return HttpMediaDownloader(
            client,
            timeouts=config.media.timeouts,
            max_bytes=config.media.max_bytes,
        )
