"""httpx adapter implementing MediaDownloader."""

import asyncio
import logging
import socket
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import httpx
import logfire

from mintcache.config import DownloadTimeouts
from mintcache.domain.media.port.downloader import MediaDownloader
from mintcache.domain.shared.error import DownloadError

logger = logging.getLogger(__name__)

HostLookup = Callable[[str, int], Awaitable[Any]]


async def system_lookup(host: str, port: int) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)


def client_timeout(timeouts: DownloadTimeouts) -> httpx.Timeout:
    """httpx per-phase timeouts; the TLS handshake shares the connect budget."""
    return httpx.Timeout(
        connect=timeouts.connect + timeouts.tls,
        read=timeouts.socket,
        write=timeouts.send,
        pool=timeouts.connect,
    )


class HttpMediaDownloader(MediaDownloader):
    """Streams media to disk under time and size budgets.

    Budgets:
        - DNS lookup is checked up front with its own timeout.
        - connect, TLS, send and socket idle are enforced by httpx.
        - response headers must arrive within the connect, TLS, send and
          response budgets combined.
        - the whole download, body included, is bounded by ``total``.
        - bodies larger than ``max_bytes`` are aborted.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeouts: DownloadTimeouts,
        max_bytes: int,
        lookup: HostLookup = system_lookup,
    ) -> None:
        self._client = client
        self._timeouts = timeouts
        self._max_bytes = max_bytes
        self._lookup = lookup

    async def download(self, url: str, destination: Path) -> int:
        try:
            return await asyncio.wait_for(
                self._download(url, destination), timeout=self._timeouts.total
            )
        except TimeoutError as e:
            logfire.error("Download timed out", url=url, budget=self._timeouts.total)
            raise DownloadError(f"Download exceeded {self._timeouts.total}s: {url}") from e
        except httpx.HTTPStatusError as e:
            raise DownloadError(
                f"HTTP {e.response.status_code} from {url}", code="http_status"
            ) from e
        except httpx.HTTPError as e:
            logfire.error("Download failed", url=url, error=str(e))
            raise DownloadError(f"Request to {url} failed: {e}") from e
        except OSError as e:
            raise DownloadError(f"Could not download {url}: {e}") from e

    async def _download(self, url: str, destination: Path) -> int:
        request = self._client.build_request("GET", url)
        await self._check_host(request.url)

        headers_budget = (
            self._timeouts.connect
            + self._timeouts.tls
            + self._timeouts.send
            + self._timeouts.response
        )
        try:
            response = await asyncio.wait_for(
                self._client.send(request, stream=True), timeout=headers_budget
            )
        except TimeoutError as e:
            raise DownloadError(f"No response headers from {url} within {headers_budget}s") from e

        try:
            response.raise_for_status()
            declared = response.headers.get("content-length")
            if declared is not None and declared.isdigit() and int(declared) > self._max_bytes:
                raise DownloadError(f"{url} declares {declared} bytes, over {self._max_bytes}")

            written = 0
            with destination.open("wb") as f:
                async for chunk in response.aiter_bytes():
                    written += len(chunk)
                    if written > self._max_bytes:
                        raise DownloadError(f"{url} is larger than {self._max_bytes} bytes")
                    f.write(chunk)
            return written
        finally:
            await response.aclose()

    async def _check_host(self, url: httpx.URL) -> None:
        port = url.port or (443 if url.scheme == "https" else 80)
        try:
            await asyncio.wait_for(self._lookup(url.host, port), timeout=self._timeouts.lookup)
        except TimeoutError as e:
            raise DownloadError(f"DNS lookup for {url.host} timed out") from e
        except OSError as e:
            raise DownloadError(f"DNS lookup for {url.host} failed: {e}") from e
