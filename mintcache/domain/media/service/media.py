"""MediaService - acquires, transcodes and publishes a token's image."""

import logging

from mintcache.domain.gateway import GatewayResolver, extract_content_id, is_inline_payload
from mintcache.domain.media.model import MediaOutcome
from mintcache.domain.media.port import (
    ContentPinner,
    MediaDownloader,
    RenditionStorage,
    Transcoder,
)
from mintcache.domain.media.service.publisher import OutcomePublisher
from mintcache.domain.shared.error import (
    ImageNotFoundError,
    MediaRejectedError,
    UnsupportedPayloadError,
)
from mintcache.domain.shared.service import Service
from mintcache.domain.token.model import RetryPolicy, TokenKey, TokenRecord
from mintcache.domain.token.port.repository import TokenRepository

logger = logging.getLogger(__name__)


class MediaService(Service):
    """Runs the acquisition pipeline for one record and records the outcome.

    Outcomes:
        - no image reference, or an unusable URL: the record is abandoned
          (parked at the retry ceiling).
        - download, decode or encode failure, inline payloads: the attempt
          count is bumped and the record retries per the retry policy.
        - success: the record is marked processed and the location is
          published to every remote.
    """

    tokens: TokenRepository
    resolver: GatewayResolver
    downloader: MediaDownloader
    transcoder: Transcoder
    storage: RenditionStorage
    publisher: OutcomePublisher
    pinner: ContentPinner
    policy: RetryPolicy
    max_url_length: int

    async def process(self, record: TokenRecord) -> MediaOutcome:
        key = record.key
        url: str | None = None
        try:
            url = self.resolver.resolve(record.metadata, record.token_uri)
            self._pin(url)
            location = await self.acquire(key, url)
        except (ImageNotFoundError, MediaRejectedError) as e:
            logger.info("Abandoning %s (url=%s): %s", key, url, e)
            await self.tokens.mark_abandoned(key, self.policy.ceiling)
            return MediaOutcome.ABANDONED
        except Exception as e:
            logger.error("Failure scraping %s from url %s: %s", key, url, e)
            await self.tokens.mark_failure(key)
            return MediaOutcome.FAILED

        await self.tokens.mark_success(key, location)
        published = await self.publisher.publish(key, location)
        logger.debug("Published %s to %d remote(s)", key, published)
        return MediaOutcome.SUCCEEDED

    async def acquire(self, key: TokenKey, url: str) -> str:
        """Download ``url`` and swap fresh renditions into place.

        Returns:
            The public location of the renditions.
        """
        self._check_url(url)

        async with self.storage.temp_file(key) as download:
            size = await self.downloader.download(url, download)
            logger.debug("Downloaded %d bytes for %s", size, key)
            async with self.storage.stage(key) as staging:
                await self.transcoder.render(download, staging)

        return self.storage.public_location(key)

    def _pin(self, url: str) -> None:
        content_id = extract_content_id(url)
        if content_id:
            self.pinner.submit(content_id)

    def _check_url(self, url: str) -> None:
        if is_inline_payload(url):
            # TODO: decode data: URIs in place instead of failing the attempt
            raise UnsupportedPayloadError("Inline base64 payloads are not supported yet")
        if not url.startswith(("http://", "https://")):
            raise MediaRejectedError(f"Not an HTTP(S) URL: {url[:100]}")
        if len(url) > self.max_url_length:
            raise MediaRejectedError(f"URL longer than {self.max_url_length} characters")
