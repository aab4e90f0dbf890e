# price_tracker/config/logging_config.py

"""Logging setup for one-shot runs and the long-running scheduler.

One-shot commands (``add``, ``list``, a single ``run``) get their own
``logs/run_<timestamp>.log``.  A scheduled tracker lives for weeks, so it
writes to a single size-rotated ``logs/tracker.log`` instead.

Every record carries the check-cycle number it was emitted in (``#3``),
or ``-`` outside a cycle, so one cycle can be grepped out of the log.
"""

import logging
import logging.handlers
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path

from price_tracker.config.settings import Settings

_CYCLE_VAR: ContextVar[int | None] = ContextVar("check_cycle", default=None)

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | cycle %(cycle)-4s | %(name)s | "
    "%(funcName)s:%(lineno)d | %(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SCHEDULED_LOG_NAME = "tracker.log"


def current_cycle() -> int | None:
    """Number of the check cycle running in this context, if any."""
    return _CYCLE_VAR.get()


@contextmanager
def bind_cycle(number: int) -> Iterator[None]:
    """Tag every record logged inside the block with cycle *number*."""
    token = _CYCLE_VAR.set(number)
    try:
        yield
    finally:
        _CYCLE_VAR.reset(token)


class CycleFilter(logging.Filter):
    """Adds a ``cycle`` attribute to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        number = _CYCLE_VAR.get()
        record.cycle = f"#{number}" if number is not None else "-"
        return True


def _file_handler(logs_dir: Path, scheduled: bool) -> logging.FileHandler:
    if scheduled:
        return logging.handlers.RotatingFileHandler(
            logs_dir / SCHEDULED_LOG_NAME,
            maxBytes=Settings.LOG_MAX_BYTES,
            backupCount=Settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return logging.FileHandler(
        logs_dir / f"run_{timestamp}.log", encoding="utf-8",
    )


def setup_logging(scheduled: bool = False) -> Path:
    """Attach file and stderr handlers to the ``price_tracker`` logger.

    Returns:
        Path of the log file in use.  Repeated calls keep the handlers
        installed by the first call and return its file.
    """
    root_logger = logging.getLogger("price_tracker")
    root_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)

    logs_dir = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    cycle_filter = CycleFilter()

    file_handler = _file_handler(logs_dir, scheduled)
    file_handler.setLevel(logging.DEBUG)
    file_handler.addFilter(cycle_filter)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    log_file = Path(file_handler.baseFilename)
    root_logger.info(
        "Logging to %s (%s)", log_file, "rotating" if scheduled else "per run",
    )
    return log_file
