# tests/conftest.py

"""Shared pytest fixtures for all price tracker tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from price_tracker.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path: Path) -> Generator[None, None, None]:
    """Point the database and log directory at a per-test temp dir."""
    with patch.object(
        Settings, "PRICE_DB_PATH", tmp_path / "data" / "prices.db",
    ), patch.object(Settings, "LOGS_DIR", tmp_path / "logs"):
        yield
