"""mintcache - mirrors minted token media from remote ledgers into a local cache."""

__version__ = "0.1.0"
