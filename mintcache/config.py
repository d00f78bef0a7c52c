import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource
from sqlalchemy.engine import URL
from typing_extensions import Self

from mintcache.cli.util.paths import MintCachePaths
from mintcache.domain.gateway import DEFAULT_GATEWAYS
from mintcache.domain.token.model import DEFAULT_TIERS, RetryPolicy, RetryTier


# =============================================================================
# Remote Sources
# =============================================================================


class RemoteSourceConfig(BaseModel):
    """Connection settings for one authoritative remote ledger database.

    Either give an explicit ``url`` or the individual connection parts.
    """

    name: str  # Database name
    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: str = ""
    driver: str = "postgresql+asyncpg"
    url: str | None = None  # Explicit SQLAlchemy URL, overrides the parts above

    @property
    def identity(self) -> tuple[str, int, str]:
        """Remotes with the same identity share one engine."""
        return (self.host, self.port, self.name)

    @property
    def label(self) -> str:
        """Human-readable name for logs (never includes credentials)."""
        return f"{self.host}:{self.port}/{self.name}"

    @property
    def connection_url(self) -> str:
        if self.url:
            return self.url
        return URL.create(
            self.driver,
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.name,
        ).render_as_string(hide_password=False)


# =============================================================================
# Media
# =============================================================================


class GatewayConfig(BaseModel):
    """Content gateway used to fetch content-addressed media."""

    root: str = "https://ipfs.io/ipfs"
    known_gateways: list[str] = list(DEFAULT_GATEWAYS)


class DownloadTimeouts(BaseModel):
    """Per-phase download timeouts, in seconds."""

    lookup: float = 1.0  # DNS resolution
    connect: float = 5.0  # TCP connect
    tls: float = 5.0  # TLS handshake, added to connect
    socket: float = 5.0  # Idle time between received chunks
    send: float = 10.0  # Writing the request
    response: float = 10.0  # Waiting for response headers
    total: float = 60.0  # Whole download, body included


class MediaConfig(BaseModel):
    """Rendition settings.

    ``root_dir`` and ``temp_dir`` use None as sentinel for "derive from
    MintCachePaths"; Config's model_validator fills them in.
    """

    root_dir: Path | None = None
    root_url: str = "http://localhost:8080/media"
    temp_dir: Path | None = None
    widths: list[int] = Field(default_factory=lambda: [280, 1440])
    quality: int = Field(default=80, ge=1, le=100)
    max_frames: int = 500  # Frames kept from animated sources
    max_pixels: int = 16_000_000  # Decoded pixels summed over kept frames
    max_url_length: int = 5000
    max_bytes: int = 100 * 1024 * 1024
    user_agent: str = "mintcache/0.1"
    timeouts: DownloadTimeouts = DownloadTimeouts()


class PinningConfig(BaseModel):
    """Pinning of content identifiers on a local IPFS node."""

    enabled: bool = False
    binary: str = "ipfs"
    ipfs_path: str = "/ipfs"  # IPFS_PATH of the node repository
    timeout: float = 300.0  # Seconds before a pin command is killed


# =============================================================================
# Engine
# =============================================================================


class DatabaseConfig(BaseModel):
    """Local mirror database (nested in Config, uses env_nested_delimiter).

    The url field uses empty string as sentinel to indicate "derive from
    MintCachePaths". When not overridden via MINTCACHE_DATABASE__URL, the
    SQLite path is computed in Config's model_validator.
    """

    url: str = ""  # Empty string = derive from paths; explicit value = use as-is
    echo: bool = False
    auto_migrate: bool = True


class WorkerConfig(BaseModel):
    """Driver loop and worker pool."""

    concurrency: int = Field(default=16, ge=1)  # Records processed in parallel
    page_size: int = Field(default=500, ge=1)  # Records selected per cycle
    cycle_delay: float = 5.0  # Seconds slept after each dispatch


class SyncConfig(BaseModel):
    page_size: int = Field(default=50, ge=1)  # Rows pulled per remote and kind per cycle


class ReconcileConfig(BaseModel):
    batch_step: int = Field(default=100, ge=1)  # Growth of the fork-check window
    retry_delay: float = 5.0  # Seconds between widening passes


class RetryConfig(BaseModel):
    """Tiered retry schedule; ``elapsed`` accepts seconds or ISO 8601 durations."""

    unconditional_below: int = 3
    tiers: list[RetryTier] = list(DEFAULT_TIERS)

    @model_validator(mode="after")
    def check_policy(self) -> Self:
        self.policy()
        return self

    def policy(self) -> RetryPolicy:
        return RetryPolicy(unconditional_below=self.unconditional_below, tiers=tuple(self.tiers))


class LoggingConfig(BaseModel):
    """Logging configuration (nested in Config, uses env_nested_delimiter)."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from MINTCACHE_LOG_FILE env var."""
        return os.environ.get("MINTCACHE_LOG_FILE")


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by MINTCACHE_CONFIG_FILE env var."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        config_file = os.environ.get("MINTCACHE_CONFIG_FILE")
        if config_file:
            path = Path(config_file)
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class Config(BaseSettings):
    database: DatabaseConfig = DatabaseConfig()
    remotes: list[RemoteSourceConfig] = []
    gateway: GatewayConfig = GatewayConfig()
    media: MediaConfig = MediaConfig()
    worker: WorkerConfig = WorkerConfig()
    sync: SyncConfig = SyncConfig()
    reconcile: ReconcileConfig = ReconcileConfig()
    retry: RetryConfig = RetryConfig()
    pinning: PinningConfig = PinningConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = {
        "env_prefix": "MINTCACHE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # Allows MINTCACHE_DATABASE__URL override
    }

    @model_validator(mode="after")
    def derive_paths(self) -> Self:
        """Fill in locations left unset from MintCachePaths.

        MintCachePaths reads MINTCACHE_DATA_DIR directly from the environment,
        so that variable moves the database and renditions together while
        explicit settings still win.
        """
        paths = MintCachePaths()
        if not self.database.url:
            self.database = self.database.model_copy(
                update={"url": f"sqlite+aiosqlite:///{paths.database_file}"}
            )
        if self.media.root_dir is None or self.media.temp_dir is None:
            self.media = self.media.model_copy(
                update={
                    "root_dir": self.media.root_dir or paths.media_dir,
                    "temp_dir": self.media.temp_dir or paths.downloads_dir,
                }
            )
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config.

        Priority (highest to lowest):
        1. init_settings - values passed to Config()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. yaml_settings - MINTCACHE_CONFIG_FILE yaml
        5. file_secret_settings - secrets from files
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Configure Python logging based on config.

    Should be called early in startup so every module logger picks up the
    configuration.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(config.level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(config.level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.INFO)  # Plugin discovery is chatty at DEBUG
    logging.getLogger("alembic").setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
