"""Driver - the outer control loop and its bounded worker pool."""

import asyncio
import logging
from dataclasses import dataclass, field

import logfire
from dishka import AsyncContainer

from mintcache.config import WorkerConfig
from mintcache.domain.media.service import MediaService
from mintcache.domain.reconcile import ForkRepair, ReconciliationService
from mintcache.domain.sync import SourceSyncService, SyncResult
from mintcache.domain.token.model import TokenKey, TokenRecord
from mintcache.domain.token.service import WorkSelector
from mintcache.util.di.scope import Scope

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """What one pass of the control loop did."""

    repairs: list[ForkRepair] = field(default_factory=list)
    syncs: list[SyncResult] = field(default_factory=list)
    selected: int = 0
    dispatched: int = 0


class Driver:
    """Runs reconcile, sync and select in sequence, then fans records out to workers.

    Each phase and each record runs in its own UOW scope (own database
    session). At most ``concurrency`` records are processed at once, and a
    record already in flight is never dispatched a second time.

    Example:
        driver = Driver(container, config.worker)
        await driver.run()  # until stop() is called
        await driver.drain()
    """

    def __init__(self, container: AsyncContainer, config: WorkerConfig) -> None:
        self._container = container
        self._config = config
        self._semaphore = asyncio.Semaphore(config.concurrency)
        self._tasks: set[asyncio.Task[None]] = set()
        self._in_flight: set[TokenKey] = set()
        self._shutdown = False

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def stop(self) -> None:
        """Finish the current cycle, then leave the loop."""
        self._shutdown = True
        logger.info("Driver stopping...")

    async def run(self) -> None:
        """Main loop."""
        logger.info("Driver started (concurrency=%d)", self._config.concurrency)
        try:
            while not self._shutdown:
                await self.run_cycle()
                await asyncio.sleep(self._config.cycle_delay)
                await self.wait_for_capacity()
        except asyncio.CancelledError:
            logger.info("Driver cancelled")
            raise
        finally:
            logger.info("Driver stopped")

    async def run_cycle(self) -> CycleReport:
        report = CycleReport()
        with logfire.span("mintcache cycle"):
            with logfire.span("reconcile"):
                report.repairs = await self.handle_forks()
            with logfire.span("sync"):
                report.syncs = await self._sync()
            with logfire.span("select"):
                records = await self._select()
            report.selected = len(records)
            report.dispatched = self.dispatch(records)

        logger.info(
            "Cycle done: %d selected, %d dispatched, %d in flight",
            report.selected,
            report.dispatched,
            self.in_flight,
        )
        return report

    async def handle_forks(self) -> list[ForkRepair]:
        try:
            async with self._container(scope=Scope.UOW) as scope:
                service = await scope.get(ReconciliationService)
                return await service.handle_forks()
        except Exception as e:
            logger.error("Error handling forks: %s", e)
            return []

    async def _sync(self) -> list[SyncResult]:
        try:
            async with self._container(scope=Scope.UOW) as scope:
                service = await scope.get(SourceSyncService)
                return await service.sync()
        except Exception as e:
            logger.error("Error syncing remote sources: %s", e)
            return []

    async def _select(self) -> list[TokenRecord]:
        try:
            async with self._container(scope=Scope.UOW) as scope:
                selector = await scope.get(WorkSelector)
                return await selector.select()
        except Exception as e:
            logger.error("Error selecting work: %s", e)
            return []

    def dispatch(self, records: list[TokenRecord]) -> int:
        """Start a worker task per record not already in flight."""
        dispatched = 0
        for record in records:
            if record.key in self._in_flight:
                continue
            self._in_flight.add(record.key)
            task = asyncio.create_task(self._process(record), name=f"media:{record.key}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            dispatched += 1
        return dispatched

    async def _process(self, record: TokenRecord) -> None:
        try:
            async with self._semaphore:
                async with self._container(scope=Scope.UOW) as scope:
                    service = await scope.get(MediaService)
                    outcome = await service.process(record)
                    logger.debug("Processed %s: %s", record.key, outcome)
        except Exception as e:
            logger.exception("Error processing %s: %s", record.key, e)
        finally:
            self._in_flight.discard(record.key)

    async def wait_for_capacity(self) -> None:
        """Block until fewer than ``concurrency`` records are in flight."""
        while len(self._tasks) >= self._config.concurrency:
            await asyncio.wait(set(self._tasks), return_when=asyncio.FIRST_COMPLETED)

    async def drain(self) -> None:
        """Wait for every dispatched record to finish."""
        if self._tasks:
            await asyncio.gather(*set(self._tasks), return_exceptions=True)
