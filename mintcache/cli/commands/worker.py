"""Worker commands: the continuous loop, a single cycle, and fork handling."""

import asyncio
import signal
import sys
from pathlib import Path

from mintcache.application.di import create_container
from mintcache.application.driver import Driver
from mintcache.cli.console import get_console
from mintcache.cli.util.bootstrap import load_config, setup
from mintcache.config import Config
from mintcache.domain.shared.error import ConfigurationError
from mintcache.infrastructure.persistence.migrate import run_migrations


def _prepare(config_file: Path | None) -> Config:
    console = get_console()
    config = load_config(config_file)
    setup(config)
    if not config.remotes:
        console.warning("No remote sources configured; only local work will run")
    if config.database.auto_migrate:
        run_migrations(config.database.url)
    return config


async def _run(config: Config) -> None:
    container = create_container(config)
    driver = Driver(container, config.worker)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, driver.stop)
        except NotImplementedError:
            pass  # Windows

    try:
        await driver.run()
    finally:
        await driver.drain()
        await container.close()


async def _once(config: Config) -> None:
    container = create_container(config)
    driver = Driver(container, config.worker)
    try:
        report = await driver.run_cycle()
        await driver.drain()
    finally:
        await container.close()
    get_console().cycle_report(report)


async def _forks(config: Config) -> None:
    container = create_container(config)
    driver = Driver(container, config.worker)
    try:
        repairs = await driver.handle_forks()
    finally:
        await container.close()
    get_console().fork_report(repairs)


def run(*, config: Path | None = None) -> None:
    """Mirror, reconcile and cache continuously until interrupted.

    Args:
        config: YAML config file. Defaults to ./mintcache.yaml or
                ~/.config/mintcache/config.yaml.
    """
    settings = _load_or_exit(config)
    asyncio.run(_run(settings))


def once(*, config: Path | None = None) -> None:
    """Run a single cycle and wait for its workers to finish.

    Args:
        config: YAML config file.
    """
    settings = _load_or_exit(config)
    asyncio.run(_once(settings))


def forks(*, config: Path | None = None) -> None:
    """Detect chain reorganizations and roll back affected tokens.

    Args:
        config: YAML config file.
    """
    settings = _load_or_exit(config)
    asyncio.run(_forks(settings))


def _load_or_exit(config: Path | None) -> Config:
    try:
        return _prepare(config)
    except ConfigurationError as e:
        get_console().error(e.message)
        sys.exit(1)
