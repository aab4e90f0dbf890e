# price_tracker/models/price_observation.py

"""Point-in-time price observation for a tracked URL."""

import json
from dataclasses import dataclass
from datetime import datetime

from price_tracker.models.product_record import ProductRecord


def build_metadata(record: ProductRecord) -> str:
    """Serialise brand / description to the opaque metadata blob.

    Absent fields are omitted rather than stored as ``null``.
    """
    fields = {
        "brand": record.brand,
        "description": record.description,
    }
    return json.dumps(
        {k: v for k, v in fields.items() if v is not None},
        ensure_ascii=False,
    )


@dataclass
class PriceObservation:
    """A single recorded price snapshot; never modified after insert."""

    tracked_url_id: int
    title: str
    price: float
    currency: str
    is_available: bool
    metadata: str
    created_at: datetime
    id: int | None = None

    @classmethod
    def from_record(
        cls,
        record: ProductRecord,
        tracked_url_id: int = 0,
        created_at: datetime | None = None,
    ) -> "PriceObservation":
        """Build an unsaved observation with currency/availability defaults."""
        return cls(
            tracked_url_id=tracked_url_id,
            title=record.title,
            price=record.price,
            currency=record.resolved_currency,
            is_available=record.resolved_availability,
            metadata=build_metadata(record),
            created_at=created_at or datetime.now(),
        )

    @property
    def metadata_dict(self) -> dict[str, str]:
        """Decoded metadata blob (empty dict when unreadable)."""
        try:
            data = json.loads(self.metadata)
        except (json.JSONDecodeError, TypeError):
            return {}
        return data if isinstance(data, dict) else {}
