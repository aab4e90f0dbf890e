# price_tracker/services/tracking_orchestrator.py

"""Orchestrates tracking, untracking and price check cycles."""

import logging
import math

from price_tracker.config.settings import Settings
from price_tracker.errors import ExtractionFailed, NotFound
from price_tracker.extraction.firecrawl_client import Extractor
from price_tracker.models.changes import CheckResult, NewItem, PriceUpdate
from price_tracker.models.price_observation import PriceObservation
from price_tracker.models.product_record import PRODUCT_SCHEMA, ProductRecord
from price_tracker.models.tracked_url import TrackedURL
from price_tracker.storage.price_store import PriceStore

logger = logging.getLogger("price_tracker.orchestrator")


def normalize_url(url: str) -> str:
    """Strip surrounding whitespace; blank URLs are rejected."""
    if not url or not url.strip():
        raise ValueError("url must be a non-empty string")
    return url.strip()


def percent_change(old_price: float, new_price: float) -> float:
    """Relative price change in percent; infinite when *old_price* is 0."""
    if old_price == 0:
        return math.copysign(math.inf, new_price - old_price)
    return (new_price - old_price) / old_price * 100


class PriceTrackingOrchestrator:
    """Coordinates the extraction client and the price store.

    Holds no state of its own; everything it knows comes from the store.
    """

    def __init__(self, store: PriceStore, extractor: Extractor) -> None:
        self.settings = Settings()
        self.store = store
        self.extractor = extractor

    def _extract(self, url: str) -> ProductRecord:
        result = self.extractor.scrape(url, PRODUCT_SCHEMA)
        if not result.success or result.record is None:
            raise ExtractionFailed(url, result.error or "unknown error")
        return result.record

    # ── Tracking ─────────────────────────────────────────

    def add_url(self, url: str) -> TrackedURL | None:
        """Start tracking *url* and record its first price.

        Returns ``None`` when the URL is already tracked.

        Raises:
            ValueError: *url* is empty.
            ExtractionFailed: the page could not be extracted; nothing
                is stored.
        """
        url = normalize_url(url)
        record = self._extract(url)
        outcome = self.store.create_tracked_url(
            url, PriceObservation.from_record(record),
        )
        if not outcome.created:
            logger.info("URL %s is already being tracked", url)
            return None

        logger.info("Added URL %s to database", url)
        return outcome.tracked_url

    def remove_url(self, url: str) -> TrackedURL:
        """Stop tracking *url*; its history is deleted with it.

        Raises:
            ValueError: *url* is empty.
            NotFound: *url* is not tracked.
        """
        url = normalize_url(url)
        removed = self.store.delete_tracked_url(url)
        if removed is None:
            raise NotFound(url)
        logger.info("Removed URL %s", url)
        return removed

    def list_urls(self) -> list[TrackedURL]:
        """All tracked URLs with their most recent prices, newest first."""
        return self.store.list_tracked_urls(
            limit=self.settings.RECENT_OBSERVATIONS,
        )

    # ── Check cycle ──────────────────────────────────────

    def _check_one(self, tracked: TrackedURL, result: CheckResult) -> None:
        record = self._extract(tracked.url)
        previous = tracked.observations
        saved = self.store.add_observation(
            tracked.id,
            PriceObservation.from_record(record, tracked_url_id=tracked.id),
        )

        if len(previous) == 1:
            result.new_items.append(
                NewItem(
                    title=saved.title,
                    price=saved.price,
                    currency=saved.currency,
                )
            )
            return

        if not previous:
            logger.warning(
                "Tracked URL %s had no price history; recorded baseline",
                tracked.url,
            )
            return

        last = previous[0]
        if last.price != saved.price:
            result.updates.append(
                PriceUpdate(
                    title=saved.title,
                    old_price=last.price,
                    new_price=saved.price,
                    percent_change=percent_change(last.price, saved.price),
                    currency=saved.currency,
                )
            )

    def check_all_prices(self) -> CheckResult:
        """Re-extract every tracked URL and classify the new prices.

        URLs are processed one at a time.  Any failure while handling a
        URL, extraction or storage, skips that URL for this cycle only.
        Failing to list the tracked URLs propagates.
        """
        tracked_urls = self.list_urls()
        logger.info("Checking %d URLs...", len(tracked_urls))
        result = CheckResult()

        for tracked in tracked_urls:
            try:
                self._check_one(tracked, result)
            except ExtractionFailed as exc:
                logger.error("Failed to scrape %s: %s", tracked.url, exc.reason)
                continue
            except Exception:
                logger.exception("Error processing %s", tracked.url)
                continue

        return result
