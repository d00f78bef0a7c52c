"""Custom Dishka scopes for mintcache."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """mintcache dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Process lifetime (engines, HTTP client, remote registry)
    - UOW: Unit of Work (one driver phase or one record being processed)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
