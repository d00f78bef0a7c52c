from mintcache.domain.media.service.media import MediaService
from mintcache.domain.media.service.publisher import OutcomePublisher

__all__ = ["MediaService", "OutcomePublisher"]
