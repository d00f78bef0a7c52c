"""ContentPinner port - best-effort pinning of content identifiers."""

from abc import abstractmethod
from typing import Protocol

from mintcache.domain.shared.port import Port


class ContentPinner(Port, Protocol):
    @abstractmethod
    def submit(self, identifier: str) -> None:
        """Queue ``identifier`` for pinning and return immediately.

        Failures are reported through the pinner's own logging; callers
        never wait on or observe them.
        """
        ...
