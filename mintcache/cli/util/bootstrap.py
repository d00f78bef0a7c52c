"""Config discovery and process-wide setup shared by CLI commands."""

import os
from pathlib import Path

import logfire
from pydantic import ValidationError

from mintcache.cli.util.paths import MintCachePaths
from mintcache.config import Config, configure_logging
from mintcache.domain.shared.error import ConfigurationError

# Local config override (for development)
LOCAL_CONFIG = Path("mintcache.yaml")


def load_config(config_file: Path | None = None) -> Config:
    """Build the Config, choosing the YAML file to layer under env vars.

    Resolution order:
    1. Explicit ``config_file`` argument
    2. MINTCACHE_CONFIG_FILE already set in the environment
    3. ./mintcache.yaml (local development override)
    4. ~/.config/mintcache/config.yaml (standard location)

    Raises:
        ConfigurationError: If the settings do not validate.
    """
    if config_file is not None:
        os.environ["MINTCACHE_CONFIG_FILE"] = str(config_file.expanduser().resolve())
    elif "MINTCACHE_CONFIG_FILE" not in os.environ:
        paths = MintCachePaths()
        for candidate in (LOCAL_CONFIG, paths.config_file):
            if candidate.exists():
                os.environ["MINTCACHE_CONFIG_FILE"] = str(candidate.resolve())
                break
    try:
        return Config()  # type: ignore[call-arg]
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def setup(config: Config) -> None:
    """Configure logging and tracing; call once before any work starts."""
    configure_logging(config.logging)
    logfire.configure(send_to_logfire="if-token-present", service_name="mintcache")
    logfire.instrument_httpx()
