# tests/test_scheduler.py

"""Tests for the startup / recurring check scheduler."""

import unittest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

from price_tracker.config.logging_config import current_cycle
from price_tracker.config.settings import Settings
from price_tracker.errors import ExtractionFailed
from price_tracker.models.changes import CheckResult, NewItem, PriceUpdate
from price_tracker.services.scheduler import PriceCheckScheduler, next_run_after

SEEDS = ["https://a.example/p1", "https://b.example/p2"]
TWICE_DAILY = "0 */12 * * *"


def _make_scheduler(
    result: CheckResult | None = None,
    clock: datetime | None = None,
) -> tuple[PriceCheckScheduler, MagicMock, MagicMock]:
    """Build a scheduler around mocked orchestrator and notifier."""
    orchestrator = MagicMock()
    orchestrator.check_all_prices.return_value = result or CheckResult()
    notifier = MagicMock()
    scheduler = PriceCheckScheduler(
        orchestrator,
        notifier,
        seed_urls=SEEDS,
        cron_expression=TWICE_DAILY,
        clock=(lambda: clock) if clock else datetime.now,
    )
    return scheduler, orchestrator, notifier


class TestNextRunAfter(unittest.TestCase):
    """Cron-style slot computation."""

    def test_morning_goes_to_noon(self) -> None:
        self.assertEqual(
            next_run_after(datetime(2026, 3, 1, 9, 30), TWICE_DAILY),
            datetime(2026, 3, 1, 12, 0),
        )

    def test_afternoon_goes_to_midnight(self) -> None:
        self.assertEqual(
            next_run_after(datetime(2026, 3, 1, 13, 5), TWICE_DAILY),
            datetime(2026, 3, 2, 0, 0),
        )

    def test_exact_slot_moves_to_next(self) -> None:
        """A time exactly on a slot schedules the following one."""
        self.assertEqual(
            next_run_after(datetime(2026, 3, 1, 12, 0), TWICE_DAILY),
            datetime(2026, 3, 2, 0, 0),
        )

    def test_month_rollover(self) -> None:
        self.assertEqual(
            next_run_after(datetime(2026, 12, 31, 23, 59), TWICE_DAILY),
            datetime(2027, 1, 1, 0, 0),
        )

    def test_uneven_step_restarts_at_midnight(self) -> None:
        """With a 5h step the last slot is 20:00, then midnight."""
        self.assertEqual(
            next_run_after(datetime(2026, 3, 1, 21, 0), "0 */5 * * *"),
            datetime(2026, 3, 2, 0, 0),
        )

    def test_rejects_invalid_expression(self) -> None:
        with self.assertRaises(ValueError):
            next_run_after(datetime(2026, 3, 1), "not a cron")

    def test_scheduler_rejects_invalid_expression(self) -> None:
        """A bad expression fails at construction, not at the first sleep."""
        with self.assertRaises(ValueError):
            PriceCheckScheduler(
                MagicMock(), MagicMock(), seed_urls=[],
                cron_expression="every twelve hours",
            )

    def test_defaults_to_configured_expression(self) -> None:
        scheduler = PriceCheckScheduler(MagicMock(), MagicMock(), seed_urls=[])
        self.assertEqual(scheduler.cron_expression, Settings.CHECK_CRON)


class TestRunCycle(unittest.TestCase):
    """One check-and-notify cycle."""

    def test_seeds_then_checks_then_notifies(self) -> None:
        """Seed URLs are added before the check; results are notified."""
        result = CheckResult(
            updates=[PriceUpdate("Tee", 10.0, 8.0, -20.0, "USD")],
            new_items=[NewItem("Cap", 5.0, "USD")],
        )
        scheduler, orchestrator, notifier = _make_scheduler(result)

        returned = scheduler.run_cycle()

        self.assertIs(returned, result)
        self.assertEqual(
            [c.args[0] for c in orchestrator.add_url.call_args_list], SEEDS,
        )
        orchestrator.check_all_prices.assert_called_once_with()
        notifier.notify_changes.assert_called_once_with(
            result.updates, result.new_items,
        )
        self.assertEqual(scheduler.cycles_run, 1)

    def test_cycle_number_bound_while_running(self) -> None:
        """Work inside a cycle sees its number; it is cleared afterwards."""
        scheduler, _, notifier = _make_scheduler()
        seen: list[int | None] = []
        notifier.notify_changes.side_effect = (
            lambda *_: seen.append(current_cycle())
        )
        scheduler.run_cycle()
        scheduler.run_cycle()
        self.assertEqual(seen, [1, 2])
        self.assertIsNone(current_cycle())

    def test_seed_extraction_failure_does_not_abort(self) -> None:
        """A seed URL that cannot be extracted is logged and skipped."""
        scheduler, orchestrator, notifier = _make_scheduler()
        orchestrator.add_url.side_effect = [
            ExtractionFailed(SEEDS[0], "blocked"), None,
        ]
        with self.assertLogs("price_tracker.scheduler", level="WARNING"):
            scheduler.run_cycle()
        self.assertEqual(orchestrator.add_url.call_count, 2)
        orchestrator.check_all_prices.assert_called_once()
        notifier.notify_changes.assert_called_once()


class TestRun(unittest.IsolatedAsyncioTestCase):
    """Startup and recurring loop."""

    async def test_single_run_without_schedule(self) -> None:
        """Without scheduling exactly one cycle runs."""
        scheduler, orchestrator, _ = _make_scheduler()
        await scheduler.run(schedule=False)
        self.assertEqual(scheduler.cycles_run, 1)
        orchestrator.check_all_prices.assert_called_once()

    async def test_schedule_runs_again_after_each_sleep(self) -> None:
        """Each completed sleep triggers one more cycle."""
        scheduler, orchestrator, _ = _make_scheduler()
        with patch.object(
            scheduler,
            "_sleep_until_next_slot",
            new_callable=AsyncMock,
            side_effect=[True, True, False],
        ):
            await scheduler.run(schedule=True)
        self.assertEqual(scheduler.cycles_run, 3)
        self.assertEqual(orchestrator.check_all_prices.call_count, 3)

    async def test_failed_cycle_does_not_stop_schedule(self) -> None:
        """An exception in one cycle is logged; the next still runs."""
        scheduler, orchestrator, _ = _make_scheduler()
        orchestrator.check_all_prices.side_effect = [
            RuntimeError("db down"), CheckResult(),
        ]
        with patch.object(
            scheduler,
            "_sleep_until_next_slot",
            new_callable=AsyncMock,
            side_effect=[True, False],
        ), self.assertLogs("price_tracker.scheduler", level="ERROR"):
            await scheduler.run(schedule=True)
        self.assertEqual(orchestrator.check_all_prices.call_count, 2)
        self.assertEqual(scheduler.cycles_run, 1)

    async def test_sleep_returns_true_when_slot_reached(self) -> None:
        """A slot microseconds away completes the sleep."""
        scheduler, _, _ = _make_scheduler(
            clock=datetime(2026, 3, 1, 11, 59, 59, 999990),
        )
        self.assertTrue(await scheduler._sleep_until_next_slot())

    async def test_stop_interrupts_sleep(self) -> None:
        """stop() ends a pending sleep and the loop."""
        scheduler, _, _ = _make_scheduler(clock=datetime(2026, 3, 1, 0, 0))
        scheduler.stop()
        self.assertFalse(await scheduler._sleep_until_next_slot())
        await scheduler.run(schedule=True)
        self.assertEqual(scheduler.cycles_run, 1)


if __name__ == "__main__":
    unittest.main()
