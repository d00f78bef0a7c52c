"""Tests for IpfsPinner and NullPinner."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from mintcache.infrastructure.pinning.ipfs import IpfsPinner, NullPinner

CID = "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"


class FakeProcess:
    def __init__(self, returncode: int = 0, stderr: bytes = b"", delay: float = 0.0) -> None:
        self._exit = returncode
        self._stderr = stderr
        self._delay = delay
        self.returncode: int | None = None
        self.killed = False

    async def communicate(self):
        await asyncio.sleep(self._delay)
        self.returncode = self._exit
        return b"", self._stderr

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    async def wait(self) -> int:
        return self.returncode


class TestIpfsPinner:
    @pytest.mark.asyncio
    async def test_runs_pin_add_against_configured_repo(self):
        spawn = AsyncMock(return_value=FakeProcess())
        pinner = IpfsPinner(binary="/usr/local/bin/ipfs", ipfs_path="/data/ipfs")

        with patch("asyncio.create_subprocess_exec", spawn):
            pinner.submit(CID)
            await pinner.drain()

        args = spawn.call_args.args
        assert args == ("/usr/local/bin/ipfs", "pin", "add", CID)
        assert spawn.call_args.kwargs["env"]["IPFS_PATH"] == "/data/ipfs"

    @pytest.mark.asyncio
    async def test_pending_identifier_not_resubmitted(self):
        spawn = AsyncMock(side_effect=lambda *a, **kw: FakeProcess(delay=0.01))
        pinner = IpfsPinner()

        with patch("asyncio.create_subprocess_exec", spawn):
            pinner.submit(CID)
            pinner.submit(CID)
            await pinner.drain()
            # Finished pins may be submitted again.
            pinner.submit(CID)
            await pinner.drain()

        assert spawn.await_count == 2

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, caplog):
        spawn = AsyncMock(return_value=FakeProcess(returncode=1, stderr=b"context deadline exceeded"))
        pinner = IpfsPinner()

        with patch("asyncio.create_subprocess_exec", spawn):
            pinner.submit(CID)
            await pinner.drain()

        assert "context deadline exceeded" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_binary_is_logged(self, caplog):
        spawn = AsyncMock(side_effect=FileNotFoundError("ipfs"))
        pinner = IpfsPinner()

        with patch("asyncio.create_subprocess_exec", spawn):
            pinner.submit(CID)
            await pinner.drain()

        assert "Could not run ipfs" in caplog.text

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self):
        process = FakeProcess(delay=5)
        pinner = IpfsPinner(timeout=0.01)

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            pinner.submit(CID)
            await pinner.drain()

        assert process.killed


class TestNullPinner:
    @pytest.mark.asyncio
    async def test_does_nothing(self):
        pinner = NullPinner()
        with patch("asyncio.create_subprocess_exec") as spawn:
            pinner.submit(CID)
            await pinner.drain()
        spawn.assert_not_called()
