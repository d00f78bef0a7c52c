"""Transcoder port - turns a downloaded file into fixed-width renditions."""

from abc import abstractmethod
from pathlib import Path
from typing import Protocol

from mintcache.domain.shared.port import Port


class Transcoder(Port, Protocol):
    @abstractmethod
    async def render(self, source: Path, target_dir: Path) -> list[Path]:
        """Write every configured rendition of ``source`` into ``target_dir``.

        Raises:
            TranscodeError: If the source cannot be decoded or encoded.
        """
        ...
