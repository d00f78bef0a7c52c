"""Base for domain ports (interfaces implemented by infrastructure adapters)."""

from typing import Protocol


class Port(Protocol):
    """Marker base class for ports."""
