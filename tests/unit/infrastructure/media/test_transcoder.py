"""Tests for PillowTranscoder."""

from pathlib import Path

import pytest
from PIL import Image

from mintcache.domain.shared.error import TranscodeError
from mintcache.infrastructure.media.transcoder import PillowTranscoder

COLORS = ["red", "green", "blue"]


def _gif(path: Path, size: tuple[int, int], n_frames: int) -> Path:
    frames = [
        Image.new("RGB", size, ((i * 37) % 256, (i * 91) % 256, (i * 53) % 256))
        for i in range(n_frames)
    ]
    frames[0].save(path, "GIF", save_all=True, append_images=frames[1:], duration=80, loop=0)
    return path


@pytest.fixture
def still(tmp_path: Path) -> Path:
    path = tmp_path / "still.png"
    Image.new("RGB", (2000, 1000), "red").save(path, "PNG")
    return path


@pytest.fixture
def animated(tmp_path: Path) -> Path:
    path = tmp_path / "anim.gif"
    frames = [Image.new("RGB", (40, 20), color) for color in COLORS]
    frames[0].save(path, "GIF", save_all=True, append_images=frames[1:], duration=120, loop=0)
    return path


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    target = tmp_path / "out"
    target.mkdir()
    return target


class TestRender:
    @pytest.mark.asyncio
    async def test_one_webp_per_width(self, still: Path, out_dir: Path):
        written = await PillowTranscoder(widths=[280, 1440]).render(still, out_dir)

        assert [p.name for p in written] == ["280.webp", "1440.webp"]
        with Image.open(out_dir / "280.webp") as small:
            assert small.format == "WEBP"
            assert small.size == (280, 140)
        with Image.open(out_dir / "1440.webp") as large:
            assert large.size == (1440, 720)

    @pytest.mark.asyncio
    async def test_small_sources_are_not_enlarged(self, animated: Path, out_dir: Path):
        await PillowTranscoder(widths=[280, 1440]).render(animated, out_dir)

        for name in ("280.webp", "1440.webp"):
            with Image.open(out_dir / name) as result:
                assert result.size == (40, 20)

    @pytest.mark.asyncio
    async def test_animation_preserved(self, animated: Path, out_dir: Path):
        await PillowTranscoder(widths=[80]).render(animated, out_dir)

        with Image.open(out_dir / "80.webp") as result:
            assert result.is_animated
            assert result.n_frames == len(COLORS)

    @pytest.mark.asyncio
    async def test_frame_cap(self, animated: Path, out_dir: Path):
        await PillowTranscoder(widths=[80], max_frames=2).render(animated, out_dir)

        with Image.open(out_dir / "80.webp") as result:
            assert result.n_frames == 2

    @pytest.mark.asyncio
    async def test_undecodable_input(self, tmp_path: Path, out_dir: Path):
        garbage = tmp_path / "garbage.bin"
        garbage.write_bytes(b"<html>definitely not an image</html>")

        with pytest.raises(TranscodeError):
            await PillowTranscoder(widths=[280]).render(garbage, out_dir)

        assert list(out_dir.iterdir()) == []


class TestPixelBudget:
    @pytest.mark.asyncio
    async def test_many_small_frames_stay_within_budget(self, tmp_path: Path, out_dir: Path):
        source = _gif(tmp_path / "many.gif", (64, 64), 200)
        budget = 64 * 64 * 50

        await PillowTranscoder(widths=[280, 1440], max_pixels=budget).render(source, out_dir)

        for name in ("280.webp", "1440.webp"):
            with Image.open(out_dir / name) as result:
                assert result.size == (64, 64)
                assert result.n_frames * result.width * result.height <= budget

    def test_frame_budget(self):
        transcoder = PillowTranscoder(widths=[280], max_frames=500, max_pixels=1_000_000)

        assert transcoder.frame_budget(100, 100, 1000) == 100
        assert transcoder.frame_budget(10, 10, 20) == 20
        assert transcoder.frame_budget(1000, 1000, 30) == 1

    @pytest.mark.asyncio
    async def test_oversized_still_is_rejected(self, still: Path, out_dir: Path):
        with pytest.raises(TranscodeError, match="pixel budget"):
            await PillowTranscoder(widths=[280], max_pixels=1_000_000).render(still, out_dir)

        assert list(out_dir.iterdir()) == []
