"""Manages mintcache directory structure following XDG Base Directory spec.

Directory layout:
    ~/.config/mintcache/
        config.yaml         # User configuration

    ~/.local/share/mintcache/
        mintcache.db        # SQLite database (local mirror)
        media/              # Published renditions, <contract>/<token_id>/<width>.webp

    ~/.local/state/mintcache/
        logs/
            worker.log      # Worker logs

    ~/.cache/mintcache/
        downloads/          # Scratch files for in-flight downloads

``MINTCACHE_DATA_DIR`` relocates the data directory.
"""

import os
from pathlib import Path


class MintCachePaths:
    """Manages mintcache paths following XDG Base Directory specification.

    Supports overriding individual directories for testing.
    """

    def __init__(
        self,
        *,
        config_dir: Path | None = None,
        data_dir: Path | None = None,
        state_dir: Path | None = None,
        cache_dir: Path | None = None,
    ) -> None:
        home = Path.home()
        env_data_dir = os.environ.get("MINTCACHE_DATA_DIR")
        self._config_dir = config_dir or home / ".config" / "mintcache"
        self._data_dir = (
            data_dir
            or (Path(env_data_dir).expanduser() if env_data_dir else None)
            or home / ".local" / "share" / "mintcache"
        )
        self._state_dir = state_dir or home / ".local" / "state" / "mintcache"
        self._cache_dir = cache_dir or home / ".cache" / "mintcache"

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def state_dir(self) -> Path:
        return self._state_dir

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @property
    def config_file(self) -> Path:
        return self._config_dir / "config.yaml"

    @property
    def database_file(self) -> Path:
        """SQLite database file."""
        return self._data_dir / "mintcache.db"

    @property
    def media_dir(self) -> Path:
        """Root of published renditions."""
        return self._data_dir / "media"

    @property
    def downloads_dir(self) -> Path:
        """Scratch directory for downloads in flight."""
        return self._cache_dir / "downloads"

    @property
    def logs_dir(self) -> Path:
        return self._state_dir / "logs"

    @property
    def worker_log(self) -> Path:
        return self.logs_dir / "worker.log"

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        self._config_dir.mkdir(parents=True, exist_ok=True)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._state_dir.mkdir(parents=True, exist_ok=True)
        self._cache_dir.mkdir(parents=True, exist_ok=True)
        self.media_dir.mkdir(parents=True, exist_ok=True)
        self.downloads_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)
