# price_tracker/errors.py

"""Exceptions surfaced by the price tracker."""


class PriceTrackerError(Exception):
    """Base class for price tracker failures."""


class ExtractionFailed(PriceTrackerError):
    """The extraction service could not produce a product record."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to scrape URL {url}: {reason}")
        self.url = url
        self.reason = reason


class NotFound(PriceTrackerError):
    """The URL is not being tracked."""

    def __init__(self, url: str) -> None:
        super().__init__(f"URL {url} is not being tracked")
        self.url = url


class StoreUnavailable(PriceTrackerError):
    """The price store could not be opened."""
