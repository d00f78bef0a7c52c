from dishka import Provider, provide

from mintcache.config import Config
from mintcache.domain.media.port.storage import RenditionStorage
from mintcache.domain.media.port.transcoder import Transcoder
from mintcache.infrastructure.media.storage import LocalRenditionStorage
from mintcache.infrastructure.media.transcoder import PillowTranscoder
from mintcache.util.di.scope import Scope


class MediaProvider(Provider):
    @provide(scope=Scope.APP)
    def get_transcoder(self, config: Config) -> Transcoder:
        return PillowTranscoder(
            widths=config.media.widths,
            quality=config.media.quality,
            max_frames=config.media.max_frames,
            max_pixels=config.media.max_pixels,
        )

    @provide(scope=Scope.APP)
    def get_storage(self, config: Config) -> RenditionStorage:
        assert config.media.root_dir is not None and config.media.temp_dir is not None
        return LocalRenditionStorage(
            root_dir=config.media.root_dir,
            root_url=config.media.root_url,
            temp_dir=config.media.temp_dir,
        )
