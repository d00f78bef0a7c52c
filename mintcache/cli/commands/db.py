"""Database commands."""

import sys
from pathlib import Path

from mintcache.cli.console import get_console
from mintcache.cli.util.bootstrap import load_config, setup
from mintcache.domain.shared.error import ConfigurationError
from mintcache.infrastructure.persistence.migrate import run_migrations


def migrate(*, config: Path | None = None) -> None:
    """Apply pending migrations to the local mirror database.

    Args:
        config: YAML config file.
    """
    console = get_console()
    try:
        settings = load_config(config)
    except ConfigurationError as e:
        console.error(e.message)
        sys.exit(1)
    setup(settings)
    with console.status("Migrating..."):
        run_migrations(settings.database.url)
    console.success("Database is up to date")
