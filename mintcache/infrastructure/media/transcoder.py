"""Pillow adapter implementing Transcoder."""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from PIL import Image, ImageSequence, UnidentifiedImageError

from mintcache.domain.media.port.transcoder import Transcoder
from mintcache.domain.shared.error import TranscodeError

logger = logging.getLogger(__name__)


def _scaled(frame: Image.Image, width: int) -> Image.Image:
    """Resize to ``width`` keeping the aspect ratio. Sources are never enlarged."""
    width = min(width, frame.width)
    if width == frame.width:
        return frame.copy()
    height = max(1, round(frame.height * width / frame.width))
    return frame.resize((width, height), Image.Resampling.LANCZOS)


class PillowTranscoder(Transcoder):
    """Renders ``<width>.webp`` for every configured width.

    Animated sources stay animated; everything else is flattened to its
    first frame in RGBA. Decoding runs in a worker thread so the event loop
    is never blocked.

    Memory is bounded by ``max_pixels``, the decoded pixels summed over all
    kept frames. The frame count is capped before anything is decoded, each
    frame is resized as soon as it is decoded, and renditions are never wider
    than the source.
    """

    def __init__(
        self,
        widths: Sequence[int],
        quality: int = 80,
        max_frames: int = 500,
        max_pixels: int = 16_000_000,
    ) -> None:
        self._widths = tuple(widths)
        self._quality = quality
        self._max_frames = max_frames
        self._max_pixels = max_pixels

    async def render(self, source: Path, target_dir: Path) -> list[Path]:
        return await asyncio.to_thread(self._render, source, target_dir)

    def _render(self, source: Path, target_dir: Path) -> list[Path]:
        try:
            with Image.open(source) as image:
                renditions, durations, loop = self._decode(image)
                return [
                    self._write(renditions[width], durations, loop, width, target_dir)
                    for width in self._widths
                ]
        except (UnidentifiedImageError, Image.DecompressionBombError) as e:
            raise TranscodeError(f"Cannot decode {source.name}: {e}") from e
        except (OSError, ValueError) as e:
            raise TranscodeError(f"Cannot transcode {source.name}: {e}") from e

    def frame_budget(self, width: int, height: int, n_frames: int) -> int:
        """How many frames of a ``width`` x ``height`` source may be decoded."""
        frame_pixels = max(1, width * height)
        if frame_pixels > self._max_pixels:
            raise TranscodeError(
                f"{width}x{height} source exceeds the {self._max_pixels} pixel budget"
            )
        return max(1, min(n_frames, self._max_frames, self._max_pixels // frame_pixels))

    def _decode(
        self, image: Image.Image
    ) -> tuple[dict[int, list[Image.Image]], list[int], int]:
        renditions: dict[int, list[Image.Image]] = {width: [] for width in self._widths}
        n_frames = getattr(image, "n_frames", 1) if getattr(image, "is_animated", False) else 1
        budget = self.frame_budget(image.width, image.height, n_frames)

        if budget == 1:
            image.seek(0)
            self._add_frame(image, renditions)
            return renditions, [], 0

        durations: list[int] = []
        for index, frame in enumerate(ImageSequence.Iterator(image)):
            if index >= budget:
                break
            durations.append(int(frame.info.get("duration", 100)) or 100)
            self._add_frame(frame, renditions)
        if budget < n_frames:
            logger.debug("Kept %d of %d frames", budget, n_frames)
        return renditions, durations, int(image.info.get("loop", 0))

    def _add_frame(self, frame: Image.Image, renditions: dict[int, list[Image.Image]]) -> None:
        rgba = frame.convert("RGBA")
        for width, scaled in renditions.items():
            scaled.append(_scaled(rgba, width))
        rgba.close()

    def _write(
        self,
        frames: list[Image.Image],
        durations: list[int],
        loop: int,
        width: int,
        target_dir: Path,
    ) -> Path:
        # Named by the configured width even when the source was narrower
        target = target_dir / f"{width}.webp"
        first, rest = frames[0], frames[1:]
        if rest:
            first.save(
                target,
                "WEBP",
                save_all=True,
                append_images=rest,
                duration=durations,
                loop=loop,
                quality=self._quality,
            )
        else:
            first.save(target, "WEBP", quality=self._quality)
        logger.debug("Wrote %s (%d frame(s))", target, len(frames))
        for frame in frames:
            frame.close()
        return target
