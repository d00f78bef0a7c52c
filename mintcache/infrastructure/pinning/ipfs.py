"""ContentPinner adapters backed by the IPFS command line."""

import asyncio
import logging
import os

import logfire

from mintcache.domain.media.port.pinner import ContentPinner

logger = logging.getLogger(__name__)


class IpfsPinner(ContentPinner):
    """Pins content identifiers on a local IPFS node by running ``ipfs pin add``.

    Each submission runs as a background task; an identifier already being
    pinned is not submitted twice. Failures are logged and never reach the
    caller.
    """

    def __init__(
        self, binary: str = "ipfs", ipfs_path: str = "/ipfs", timeout: float = 300.0
    ) -> None:
        self._binary = binary
        self._ipfs_path = ipfs_path
        self._timeout = timeout
        self._tasks: set[asyncio.Task[None]] = set()
        self._pending: set[str] = set()

    def submit(self, identifier: str) -> None:
        if identifier in self._pending:
            return
        self._pending.add(identifier)
        task = asyncio.create_task(self._pin(identifier), name=f"pin:{identifier}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for every pin submitted so far."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _pin(self, identifier: str) -> None:
        env = {**os.environ, "IPFS_PATH": self._ipfs_path}
        proc: asyncio.subprocess.Process | None = None
        try:
            proc = await asyncio.create_subprocess_exec(
                self._binary,
                "pin",
                "add",
                identifier,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
            if proc.returncode != 0:
                message = stderr.decode(errors="replace").strip()
                logfire.error("Pinning failed", cid=identifier, error=message)
                logger.warning("Error pinning %s: %s", identifier, message)
            else:
                logger.debug("Pinned %s", identifier)
        except TimeoutError:
            logfire.error("Pinning timed out", cid=identifier, timeout=self._timeout)
            logger.warning("Pinning %s timed out after %ss", identifier, self._timeout)
        except OSError as e:
            logfire.error("Pinning failed", cid=identifier, error=str(e))
            logger.warning("Could not run %s to pin %s: %s", self._binary, identifier, e)
        finally:
            if proc is not None and proc.returncode is None:
                proc.kill()
                await proc.wait()
            self._pending.discard(identifier)


class NullPinner(ContentPinner):
    """Used when pinning is disabled."""

    def submit(self, identifier: str) -> None:
        logger.debug("Pinning disabled, not pinning %s", identifier)

    async def drain(self) -> None:
        return None
