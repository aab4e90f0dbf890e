# price_tracker/storage/price_store.py

"""Price store interface and its SQLite implementation."""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Protocol

from price_tracker.config.settings import Settings
from price_tracker.errors import StoreUnavailable
from price_tracker.models.price_observation import PriceObservation
from price_tracker.models.tracked_url import (
    CreateResult,
    CreateStatus,
    TrackedURL,
)

logger = logging.getLogger("price_tracker.store")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS tracked_urls (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    url        TEXT    NOT NULL UNIQUE,
    created_at TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS prices (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    tracked_url_id INTEGER NOT NULL
                   REFERENCES tracked_urls(id) ON DELETE CASCADE,
    title          TEXT    NOT NULL,
    price          REAL    NOT NULL CHECK (price >= 0),
    currency       TEXT    NOT NULL DEFAULT 'USD',
    is_available   INTEGER NOT NULL DEFAULT 1,
    metadata       TEXT,
    created_at     TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_prices_url_date
    ON prices(tracked_url_id, created_at);
"""

_PRICE_COLUMNS = (
    "id, tracked_url_id, title, price, currency, "
    "is_available, metadata, created_at"
)

MEMORY = ":memory:"


class PriceStore(Protocol):
    """Durable storage of tracked URLs and their price history."""

    def create_tracked_url(
        self, url: str, observation: PriceObservation,
    ) -> CreateResult: ...

    def find_tracked_url(self, url: str) -> TrackedURL | None: ...

    def delete_tracked_url(self, url: str) -> TrackedURL | None: ...

    def list_tracked_urls(self, limit: int = 3) -> list[TrackedURL]: ...

    def add_observation(
        self, tracked_url_id: int, observation: PriceObservation,
    ) -> PriceObservation: ...

    def get_observations(
        self, tracked_url_id: int, limit: int | None = None,
    ) -> list[PriceObservation]: ...

    def count_observations(self, tracked_url_id: int) -> int: ...

    def close(self) -> None: ...


def _row_to_observation(row: sqlite3.Row) -> PriceObservation:
    return PriceObservation(
        id=row["id"],
        tracked_url_id=row["tracked_url_id"],
        title=row["title"],
        price=row["price"],
        currency=row["currency"],
        is_available=bool(row["is_available"]),
        metadata=row["metadata"] or "{}",
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _row_to_tracked_url(row: sqlite3.Row) -> TrackedURL:
    return TrackedURL(
        id=row["id"],
        url=row["url"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class SQLitePriceStore:
    """SQLite-backed store for tracked URLs and price observations."""

    def __init__(self, db_path: Path | str | None = None) -> None:
        path = db_path or Settings.PRICE_DB_PATH
        try:
            if str(path) != MEMORY:
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                str(path), check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
            if str(path) != MEMORY:
                self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.executescript(_SCHEMA)
        except (sqlite3.Error, OSError) as exc:
            raise StoreUnavailable(
                f"Cannot open price store at {path}: {exc}"
            ) from exc
        logger.debug("SQLitePriceStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Tracked URLs ─────────────────────────────────────

    def create_tracked_url(
        self, url: str, observation: PriceObservation,
    ) -> CreateResult:
        """Insert a URL together with its first observation.

        Both rows land in one transaction.  An existing URL is reported
        as ``ALREADY_TRACKED`` and nothing is written.
        """
        created_at = observation.created_at
        with self._conn:
            cur = self._conn.execute(
                "INSERT INTO tracked_urls (url, created_at) "
                "VALUES (?, ?) "
                "ON CONFLICT(url) DO NOTHING",
                (url, created_at.isoformat()),
            )
            if cur.rowcount == 0:
                return CreateResult(CreateStatus.ALREADY_TRACKED)
            tracked_id = cur.lastrowid
            if tracked_id is None:
                raise StoreUnavailable(f"No row id returned for {url}")
            saved = self._insert_observation(tracked_id, observation)

        tracked = TrackedURL(
            id=tracked_id,
            url=url,
            created_at=created_at,
            observations=[saved],
        )
        logger.info("Created tracked URL %s (id=%d)", url, tracked_id)
        return CreateResult(CreateStatus.CREATED, tracked)

    def find_tracked_url(self, url: str) -> TrackedURL | None:
        """Return the tracked URL record, without observations."""
        row = self._conn.execute(
            "SELECT id, url, created_at FROM tracked_urls WHERE url = ?",
            (url,),
        ).fetchone()
        return _row_to_tracked_url(row) if row else None

    def delete_tracked_url(self, url: str) -> TrackedURL | None:
        """Delete a tracked URL and, by cascade, its observations."""
        tracked = self.find_tracked_url(url)
        if tracked is None:
            return None
        with self._conn:
            self._conn.execute(
                "DELETE FROM tracked_urls WHERE id = ?", (tracked.id,),
            )
        logger.info("Deleted tracked URL %s (id=%d)", url, tracked.id)
        return tracked

    def list_tracked_urls(self, limit: int = 3) -> list[TrackedURL]:
        """Return every tracked URL with its newest *limit* prices."""
        rows = self._conn.execute(
            "SELECT id, url, created_at FROM tracked_urls ORDER BY id",
        ).fetchall()
        results: list[TrackedURL] = []
        for row in rows:
            tracked = _row_to_tracked_url(row)
            tracked.observations = self.get_observations(
                tracked.id, limit=limit,
            )
            results.append(tracked)
        return results

    # ── Observations ─────────────────────────────────────

    def _insert_observation(
        self, tracked_url_id: int, observation: PriceObservation,
    ) -> PriceObservation:
        cur = self._conn.execute(
            "INSERT INTO prices "
            "(tracked_url_id, title, price, currency, "
            " is_available, metadata, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                tracked_url_id,
                observation.title,
                observation.price,
                observation.currency,
                int(observation.is_available),
                observation.metadata,
                observation.created_at.isoformat(),
            ),
        )
        return PriceObservation(
            id=cur.lastrowid,
            tracked_url_id=tracked_url_id,
            title=observation.title,
            price=observation.price,
            currency=observation.currency,
            is_available=observation.is_available,
            metadata=observation.metadata,
            created_at=observation.created_at,
        )

    def add_observation(
        self, tracked_url_id: int, observation: PriceObservation,
    ) -> PriceObservation:
        """Append a price observation to a tracked URL's history."""
        with self._conn:
            saved = self._insert_observation(tracked_url_id, observation)
        logger.debug(
            "Recorded price %s %s for tracked URL %d",
            saved.price,
            saved.currency,
            tracked_url_id,
        )
        return saved

    def get_observations(
        self, tracked_url_id: int, limit: int | None = None,
    ) -> list[PriceObservation]:
        """Return observations newest first, optionally capped."""
        sql = (
            f"SELECT {_PRICE_COLUMNS} FROM prices "
            "WHERE tracked_url_id = ? "
            "ORDER BY created_at DESC, id DESC"
        )
        params: tuple[int, ...] = (tracked_url_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (tracked_url_id, limit)
        rows = self._conn.execute(sql, params).fetchall()
        return [_row_to_observation(r) for r in rows]

    def count_observations(self, tracked_url_id: int) -> int:
        """Number of observations recorded for a tracked URL."""
        row = self._conn.execute(
            "SELECT COUNT(id) FROM prices WHERE tracked_url_id = ?",
            (tracked_url_id,),
        ).fetchone()
        return int(row[0])
