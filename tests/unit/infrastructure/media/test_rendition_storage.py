"""Tests for LocalRenditionStorage."""

from pathlib import Path

import pytest

from mintcache.domain.token.model import TokenKey, TokenKind
from mintcache.infrastructure.media.storage import LocalRenditionStorage

KEY = TokenKey(kind=TokenKind.ERC721, contract="0xabc", token_id="7")


@pytest.fixture
def storage(tmp_path: Path) -> LocalRenditionStorage:
    return LocalRenditionStorage(
        root_dir=tmp_path / "media",
        root_url="https://media.example/nft/",
        temp_dir=tmp_path / "tmp",
    )


class TestLayout:
    def test_public_location(self, storage: LocalRenditionStorage):
        assert storage.public_location(KEY) == "https://media.example/nft/0xabc/7"

    def test_token_dir(self, storage: LocalRenditionStorage, tmp_path: Path):
        assert storage.token_dir(KEY) == tmp_path / "media" / "0xabc" / "7"

    @pytest.mark.parametrize("token_id", ["..", ".", "", "a/b", "../../etc"])
    def test_rejects_escaping_segments(self, storage: LocalRenditionStorage, token_id: str):
        with pytest.raises(ValueError):
            storage.token_dir(TokenKey(kind=TokenKind.ERC721, contract="0xabc", token_id=token_id))


class TestTempFile:
    @pytest.mark.asyncio
    async def test_removed_after_use(self, storage: LocalRenditionStorage, tmp_path: Path):
        async with storage.temp_file(KEY) as path:
            assert path.parent == tmp_path / "tmp"
            assert path.name.startswith("0xabc-")
            path.write_bytes(b"data")

        assert not path.exists()

    @pytest.mark.asyncio
    async def test_removed_on_error(self, storage: LocalRenditionStorage):
        with pytest.raises(RuntimeError):
            async with storage.temp_file(KEY) as path:
                raise RuntimeError("download failed")

        assert not path.exists()


class TestStage:
    @pytest.mark.asyncio
    async def test_publishes_new_directory(self, storage: LocalRenditionStorage):
        async with storage.stage(KEY) as staging:
            (staging / "280.webp").write_bytes(b"small")

        target = storage.token_dir(KEY)
        assert (target / "280.webp").read_bytes() == b"small"
        assert not staging.exists()

    @pytest.mark.asyncio
    async def test_replaces_previous_renditions(self, storage: LocalRenditionStorage):
        target = storage.token_dir(KEY)
        target.mkdir(parents=True)
        (target / "280.webp").write_bytes(b"old")
        (target / "stale.webp").write_bytes(b"stale")

        async with storage.stage(KEY) as staging:
            (staging / "280.webp").write_bytes(b"new")

        assert sorted(p.name for p in target.iterdir()) == ["280.webp"]
        assert (target / "280.webp").read_bytes() == b"new"
        assert [p.name for p in target.parent.iterdir()] == ["7"]

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_renditions(self, storage: LocalRenditionStorage):
        target = storage.token_dir(KEY)
        target.mkdir(parents=True)
        (target / "280.webp").write_bytes(b"old")

        with pytest.raises(RuntimeError):
            async with storage.stage(KEY) as staging:
                (staging / "280.webp").write_bytes(b"partial")
                raise RuntimeError("transcode failed")

        assert (target / "280.webp").read_bytes() == b"old"
        assert not staging.exists()
