"""Error hierarchy for mintcache.

Error layers:
- MintCacheError: Base class for all mintcache errors
- DomainError: A record or its metadata cannot be handled (not-found, rejected input)
- InfrastructureError: System-level failures (remote databases, network, filesystem)

None of these are fatal to the process. They are caught at the unit-of-work
boundary (per record, per remote, per cycle) and logged.
"""


class MintCacheError(Exception):
    """Base class for all mintcache errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors
# =============================================================================


class DomainError(MintCacheError):
    """Base class for domain errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ImageNotFoundError(NotFoundError):
    """No usable image reference could be resolved from a token's metadata."""


class MediaError(DomainError):
    """Media for a token could not be acquired."""


class MediaRejectedError(MediaError):
    """The resolved media location is unusable (bad scheme, oversized). Permanent."""


class UnsupportedPayloadError(MediaError):
    """The media reference is an inline payload we do not handle yet."""


class TranscodeError(MediaError):
    """Downloaded bytes could not be decoded or re-encoded."""


# =============================================================================
# Infrastructure Errors
# =============================================================================


class InfrastructureError(MintCacheError):
    """Base class for infrastructure/system errors."""


class ExternalServiceError(InfrastructureError):
    """External service (remote database, content gateway) is unavailable or failed."""


class RemoteSourceError(ExternalServiceError):
    """A remote source database query failed."""


class DownloadError(ExternalServiceError):
    """Media download failed or exceeded its time or size budget."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
