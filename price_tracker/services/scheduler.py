# price_tracker/services/scheduler.py

"""Startup and recurring check-and-notify cycles."""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from croniter import croniter

from price_tracker.config.logging_config import bind_cycle
from price_tracker.config.settings import Settings
from price_tracker.errors import ExtractionFailed
from price_tracker.models.changes import CheckResult
from price_tracker.services.notifier import ChangeNotifier
from price_tracker.services.tracking_orchestrator import (
    PriceTrackingOrchestrator,
)

logger = logging.getLogger("price_tracker.scheduler")


def next_run_after(now: datetime, cron_expression: str) -> datetime:
    """Next firing time of *cron_expression* strictly after *now*.

    Raises:
        ValueError: the expression is not a valid 5-field cron string.
    """
    cron = croniter(cron_expression, now)
    next_time: datetime = cron.get_next(datetime)
    return next_time


class PriceCheckScheduler:
    """Runs one cycle at startup and, optionally, on a cron schedule.

    Cycles never overlap: each one is awaited before the next sleep.
    """

    def __init__(
        self,
        orchestrator: PriceTrackingOrchestrator,
        notifier: ChangeNotifier,
        seed_urls: list[str] | None = None,
        cron_expression: str | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.orchestrator = orchestrator
        self.notifier = notifier
        self.seed_urls = (
            list(seed_urls) if seed_urls is not None
            else list(Settings.SEED_URLS)
        )
        self.cron_expression = cron_expression or Settings.CHECK_CRON
        if not croniter.is_valid(self.cron_expression):
            raise ValueError(
                f"Invalid cron expression: {self.cron_expression!r}"
            )
        self._clock = clock
        self._stop_event = asyncio.Event()
        self.cycles_started = 0
        self.cycles_run = 0

    def _ensure_seeded(self) -> None:
        for url in self.seed_urls:
            try:
                self.orchestrator.add_url(url)
            except ExtractionFailed as exc:
                logger.warning(
                    "Could not start tracking %s: %s", url, exc.reason,
                )

    def run_cycle(self) -> CheckResult:
        """Seed the initial URLs, check all prices and notify."""
        self.cycles_started += 1
        with bind_cycle(self.cycles_started):
            logger.info("Checking prices...")
            self._ensure_seeded()
            result = self.orchestrator.check_all_prices()
            logger.info(
                "Found %d updates and %d new items",
                len(result.updates),
                len(result.new_items),
            )
            logger.info("Notifying changes...")
            self.notifier.notify_changes(result.updates, result.new_items)
        self.cycles_run += 1
        return result

    async def _guarded_cycle(self) -> CheckResult | None:
        try:
            return await asyncio.to_thread(self.run_cycle)
        except Exception:
            logger.exception("Price check cycle failed")
            return None

    def stop(self) -> None:
        """Ask the loop to exit after the current sleep or cycle."""
        self._stop_event.set()

    async def _sleep_until_next_slot(self) -> bool:
        """Sleep until the next slot; return False if stopped meanwhile."""
        now = self._clock()
        due = next_run_after(now, self.cron_expression)
        delay = max((due - now).total_seconds(), 0.0)
        logger.info("Next price check at %s", due.isoformat(sep=" "))
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False

    async def run(self, schedule: bool | None = None) -> None:
        """Run a cycle now, then every interval when *schedule* is set."""
        should_schedule = (
            Settings.SHOULD_SCHEDULE if schedule is None else schedule
        )
        logger.info("Starting price tracker...")
        await self._guarded_cycle()

        if not should_schedule:
            return

        logger.info(
            "Scheduled price checks on '%s'", self.cron_expression,
        )
        while not self._stop_event.is_set():
            if not await self._sleep_until_next_slot():
                break
            await self._guarded_cycle()
        logger.info("Price check scheduler stopped")
