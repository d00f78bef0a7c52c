"""Database migration utilities.

Migrations are run at startup before the async worker starts. Alembic's
env.py drives the async engine itself, so no sync driver is needed.
"""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig

from mintcache.infrastructure.persistence.database import expand_sqlite_path

logger = logging.getLogger(__name__)

# Project root where alembic.ini lives
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent


def get_alembic_config(database_url: str) -> AlembicConfig:
    """Create Alembic config with the given database URL."""
    config = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    # ConfigParser interpolation treats % specially
    config.set_main_option("sqlalchemy.url", expand_sqlite_path(database_url).replace("%", "%%"))
    # Logging is already configured by the caller
    config.attributes["configure_logger"] = False
    return config


def run_migrations(database_url: str) -> None:
    """Run pending Alembic migrations.

    Must be called outside a running event loop.
    """
    config = get_alembic_config(database_url)
    command.upgrade(config, "head")
    logger.info("Database migrations complete")
