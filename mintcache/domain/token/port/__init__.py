from mintcache.domain.token.port.remote import RemoteSource, RemoteSourceRegistry
from mintcache.domain.token.port.repository import TokenRepository

__all__ = ["RemoteSource", "RemoteSourceRegistry", "TokenRepository"]
