"""MediaDownloader port - fetches remote media to a local file."""

from abc import abstractmethod
from pathlib import Path
from typing import Protocol

from mintcache.domain.shared.port import Port


class MediaDownloader(Port, Protocol):
    @abstractmethod
    async def download(self, url: str, destination: Path) -> int:
        """Stream ``url`` into ``destination`` and return the number of bytes written.

        Raises:
            DownloadError: On network failure, HTTP error status, or when a
                time or size budget is exceeded.
        """
        ...
