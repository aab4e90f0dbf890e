# tests/test_logging_config.py

"""Tests for run and scheduler log files and cycle tagging."""

import logging
import logging.handlers
import unittest
from pathlib import Path

from price_tracker.config.logging_config import (
    SCHEDULED_LOG_NAME,
    bind_cycle,
    current_cycle,
    setup_logging,
)
from price_tracker.config.settings import Settings


class LoggingTestCase(unittest.TestCase):
    """Starts and ends every test with a bare ``price_tracker`` logger."""

    def setUp(self) -> None:
        self.logger = logging.getLogger("price_tracker")
        self._close_handlers()

    def tearDown(self) -> None:
        self._close_handlers()

    def _close_handlers(self) -> None:
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

    def _file_handlers(self) -> list[logging.FileHandler]:
        return [
            h for h in self.logger.handlers
            if isinstance(h, logging.FileHandler)
        ]

    def _read(self, path: Path) -> str:
        for handler in self.logger.handlers:
            handler.flush()
        return path.read_text(encoding="utf-8")


class TestLogFiles(LoggingTestCase):
    """Which file a run writes to."""

    def test_one_shot_run_gets_its_own_file(self) -> None:
        log_path = setup_logging()
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")
        self.assertEqual(log_path.parent, Settings.LOGS_DIR)
        [handler] = self._file_handlers()
        self.assertNotIsInstance(
            handler, logging.handlers.RotatingFileHandler,
        )

    def test_scheduled_run_rotates_a_single_file(self) -> None:
        log_path = setup_logging(scheduled=True)
        self.assertEqual(log_path, Settings.LOGS_DIR / SCHEDULED_LOG_NAME)
        [handler] = self._file_handlers()
        self.assertIsInstance(handler, logging.handlers.RotatingFileHandler)
        self.assertEqual(handler.maxBytes, Settings.LOG_MAX_BYTES)
        self.assertEqual(handler.backupCount, Settings.LOG_BACKUP_COUNT)

    def test_file_gets_debug_and_stderr_gets_warnings(self) -> None:
        setup_logging()
        levels = {
            "file" if isinstance(h, logging.FileHandler) else "stderr": h.level
            for h in self.logger.handlers
        }
        self.assertEqual(
            levels, {"file": logging.DEBUG, "stderr": logging.WARNING},
        )

    def test_second_call_reuses_first_file(self) -> None:
        """A later scheduled setup keeps the file chosen first."""
        first = setup_logging()
        handler_count = len(self.logger.handlers)
        self.assertEqual(setup_logging(scheduled=True), first)
        self.assertEqual(len(self.logger.handlers), handler_count)


class TestCycleTagging(LoggingTestCase):
    """Records carry the check cycle they were logged in."""

    def test_records_inside_a_cycle_carry_its_number(self) -> None:
        log_path = setup_logging(scheduled=True)
        orchestrator_log = logging.getLogger("price_tracker.orchestrator")

        orchestrator_log.info("Tracker idle")
        with bind_cycle(7):
            orchestrator_log.info("Checking %d URLs...", 2)

        lines = self._read(log_path).splitlines()
        [idle] = [line for line in lines if "Tracker idle" in line]
        [checking] = [line for line in lines if "Checking 2 URLs..." in line]
        self.assertIn("| cycle -    |", idle)
        self.assertIn("| cycle #7   |", checking)

    def test_binding_is_undone_after_the_block(self) -> None:
        self.assertIsNone(current_cycle())
        with bind_cycle(3):
            self.assertEqual(current_cycle(), 3)
            with bind_cycle(4):
                self.assertEqual(current_cycle(), 4)
            self.assertEqual(current_cycle(), 3)
        self.assertIsNone(current_cycle())

    def test_binding_is_undone_when_the_cycle_raises(self) -> None:
        with self.assertRaises(RuntimeError):
            with bind_cycle(5):
                raise RuntimeError("db down")
        self.assertIsNone(current_cycle())


if __name__ == "__main__":
    unittest.main()
