from mintcache.domain.media.port.downloader import MediaDownloader
from mintcache.domain.media.port.pinner import ContentPinner
from mintcache.domain.media.port.storage import RenditionStorage
from mintcache.domain.media.port.transcoder import Transcoder

__all__ = ["ContentPinner", "MediaDownloader", "RenditionStorage", "Transcoder"]
