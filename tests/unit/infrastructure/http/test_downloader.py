"""Tests for HttpMediaDownloader using httpx.MockTransport."""

import asyncio
import socket
from pathlib import Path

import httpx
import pytest

from mintcache.config import DownloadTimeouts
from mintcache.domain.shared.error import DownloadError
from mintcache.infrastructure.http.downloader import HttpMediaDownloader, client_timeout


async def _resolves(host: str, port: int):
    return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("127.0.0.1", port))]


def _downloader(
    handler, *, max_bytes: int = 1024, host_lookup=_resolves, **timeouts
) -> HttpMediaDownloader:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpMediaDownloader(
        client, DownloadTimeouts(**timeouts), max_bytes=max_bytes, lookup=host_lookup
    )


class TestDownload:
    @pytest.mark.asyncio
    async def test_streams_body_to_file(self, tmp_path: Path):
        downloader = _downloader(lambda request: httpx.Response(200, content=b"\x89PNG-data"))
        target = tmp_path / "out"

        size = await downloader.download("https://cdn.example/a.png", target)

        assert size == 9
        assert target.read_bytes() == b"\x89PNG-data"

    @pytest.mark.asyncio
    async def test_http_error_status(self, tmp_path: Path):
        downloader = _downloader(lambda request: httpx.Response(404))

        with pytest.raises(DownloadError, match="HTTP 404"):
            await downloader.download("https://cdn.example/missing.png", tmp_path / "out")

    @pytest.mark.asyncio
    async def test_transport_error(self, tmp_path: Path):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(DownloadError):
            await _downloader(refuse).download("https://cdn.example/a.png", tmp_path / "out")

    @pytest.mark.asyncio
    async def test_declared_size_over_limit(self, tmp_path: Path):
        downloader = _downloader(
            lambda request: httpx.Response(200, content=b"x" * 10, headers={"content-length": "5000"}),
            max_bytes=100,
        )

        with pytest.raises(DownloadError, match="declares"):
            await downloader.download("https://cdn.example/a.png", tmp_path / "out")

    @pytest.mark.asyncio
    async def test_streamed_size_over_limit(self, tmp_path: Path):
        async def body():
            for _ in range(10):
                yield b"x" * 50

        downloader = _downloader(lambda request: httpx.Response(200, content=body()), max_bytes=100)

        with pytest.raises(DownloadError, match="larger than"):
            await downloader.download("https://cdn.example/a.png", tmp_path / "out")

    @pytest.mark.asyncio
    async def test_total_budget(self, tmp_path: Path):
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200)

        with pytest.raises(DownloadError, match="exceeded"):
            await _downloader(slow, total=0.05).download("https://cdn.example/a.png", tmp_path / "out")

    @pytest.mark.asyncio
    async def test_response_header_budget(self, tmp_path: Path):
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200)

        downloader = _downloader(slow, connect=0.01, tls=0.01, send=0.01, response=0.01)

        with pytest.raises(DownloadError, match="No response headers"):
            await downloader.download("https://cdn.example/a.png", tmp_path / "out")

    @pytest.mark.asyncio
    async def test_dns_failure(self, tmp_path: Path):
        async def unknown(host: str, port: int):
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        downloader = _downloader(lambda request: httpx.Response(200), host_lookup=unknown)

        with pytest.raises(DownloadError, match="DNS lookup"):
            await downloader.download("https://nowhere.invalid/a.png", tmp_path / "out")

    @pytest.mark.asyncio
    async def test_dns_timeout(self, tmp_path: Path):
        async def hang(host: str, port: int):
            await asyncio.sleep(5)

        downloader = _downloader(lambda request: httpx.Response(200), host_lookup=hang, lookup=0.01)

        with pytest.raises(DownloadError, match="timed out"):
            await downloader.download("https://slow-dns.example/a.png", tmp_path / "out")


class TestClientTimeout:
    def test_phases_map_onto_httpx(self):
        timeout = client_timeout(DownloadTimeouts(connect=5, tls=5, socket=7, send=10))
        assert timeout.connect == 10
        assert timeout.read == 7
        assert timeout.write == 10
