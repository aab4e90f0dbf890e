# price_tracker/models/tracked_url.py

"""Tracked URL model and store creation outcome."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from price_tracker.models.price_observation import PriceObservation


@dataclass
class TrackedURL:
    """A product page URL being monitored.

    ``observations`` holds the most recent prices, newest first, when the
    store loads them alongside the URL.
    """

    id: int
    url: str
    created_at: datetime
    observations: list[PriceObservation] = field(
        default_factory=lambda: list[PriceObservation]()
    )

    @property
    def latest(self) -> PriceObservation | None:
        """Most recent loaded observation, if any."""
        return self.observations[0] if self.observations else None


class CreateStatus(Enum):
    """Outcome of asking the store to start tracking a URL."""

    CREATED = "created"
    ALREADY_TRACKED = "already_tracked"


@dataclass
class CreateResult:
    """Tagged result of ``PriceStore.create_tracked_url``."""

    status: CreateStatus
    tracked_url: TrackedURL | None = None

    @property
    def created(self) -> bool:
        return self.status is CreateStatus.CREATED
