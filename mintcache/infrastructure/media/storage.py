"""Local filesystem implementation of RenditionStorage."""

import logging
import os
import shutil
import tempfile
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from mintcache.domain.media.port.storage import RenditionStorage
from mintcache.domain.token.model import TokenKey

logger = logging.getLogger(__name__)


class LocalRenditionStorage(RenditionStorage):
    """Renditions under ``<root_dir>/<contract>/<token_id>/``.

    New renditions are written to a sibling staging directory and swapped in
    by rename, so readers see either the complete old set or the complete
    new one.
    """

    def __init__(self, root_dir: Path, root_url: str, temp_dir: Path) -> None:
        self.root_dir = Path(root_dir)
        self.root_url = root_url.rstrip("/")
        self.temp_dir = Path(temp_dir)

    def _safe_segment(self, value: str) -> str:
        """Reject values that would escape their directory."""
        if not value or value in (".", "..") or Path(value).name != value or os.sep in value:
            raise ValueError(f"Invalid path segment: {value!r}")
        return value

    def token_dir(self, key: TokenKey) -> Path:
        target = self.root_dir / self._safe_segment(key.contract) / self._safe_segment(key.token_id)
        if not target.resolve().is_relative_to(self.root_dir.resolve()):
            raise ValueError(f"Invalid token path: {key}")
        return target

    def public_location(self, key: TokenKey) -> str:
        return f"{self.root_url}/{key.contract}/{key.token_id}"

    @asynccontextmanager
    async def temp_file(self, key: TokenKey) -> AsyncIterator[Path]:
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        prefix = f"{self._safe_segment(key.contract)}-"
        fd, tmp_path = tempfile.mkstemp(dir=self.temp_dir, prefix=prefix)
        os.close(fd)
        path = Path(tmp_path)
        try:
            yield path
        finally:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Error deleting temp file %s: %s", path, e)

    @asynccontextmanager
    async def stage(self, key: TokenKey) -> AsyncIterator[Path]:
        target = self.token_dir(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(dir=target.parent, prefix=f".{key.token_id}.staging-"))
        try:
            yield staging
            self._swap(staging, target)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

    def _swap(self, staging: Path, target: Path) -> None:
        if not target.exists():
            staging.rename(target)
            return

        backup = target.with_name(f".{target.name}.old-{uuid.uuid4().hex}")
        target.rename(backup)
        try:
            staging.rename(target)
        except OSError:
            backup.rename(target)
            raise
        shutil.rmtree(backup, ignore_errors=True)
