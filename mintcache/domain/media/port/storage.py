"""RenditionStorage port - where renditions and scratch downloads live."""

from abc import abstractmethod
from contextlib import AbstractAsyncContextManager
from pathlib import Path
from typing import Protocol

from mintcache.domain.shared.port import Port
from mintcache.domain.token.model import TokenKey


class RenditionStorage(Port, Protocol):
    @abstractmethod
    def public_location(self, key: TokenKey) -> str:
        """Stable location published to remotes for a token's renditions."""
        ...

    @abstractmethod
    def temp_file(self, key: TokenKey) -> AbstractAsyncContextManager[Path]:
        """Scratch file for a download, always removed on exit."""
        ...

    @abstractmethod
    def stage(self, key: TokenKey) -> AbstractAsyncContextManager[Path]:
        """Staging directory that replaces the token's public directory on clean exit.

        On error the staging directory is discarded and the public directory
        is left as it was.
        """
        ...
