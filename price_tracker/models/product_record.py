# price_tracker/models/product_record.py

"""Typed product record returned by the extraction service."""

import math
from dataclasses import dataclass
from typing import Any

from price_tracker.config.settings import Settings

# JSON schema sent to the extraction service
PRODUCT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "price": {"type": "number"},
        "currency": {"type": "string"},
        "availability": {"type": "boolean"},
        "brand": {"type": "string"},
        "description": {"type": "string"},
    },
    "required": ["title", "price"],
}

_OPTIONAL_STRINGS: tuple[str, ...] = ("currency", "brand", "description")


@dataclass(frozen=True)
class ProductRecord:
    """Structured product fields extracted from a retailer page."""

    title: str
    price: float
    currency: str | None = None
    availability: bool | None = None
    brand: str | None = None
    description: str | None = None

    @property
    def resolved_currency(self) -> str:
        """Currency code, defaulting to USD when the page omits it."""
        return self.currency or Settings.DEFAULT_CURRENCY

    @property
    def resolved_availability(self) -> bool:
        """Availability flag, defaulting to in stock."""
        return True if self.availability is None else self.availability


@dataclass(frozen=True)
class ExtractionResult:
    """Either a product record or the reason extraction failed."""

    success: bool
    record: ProductRecord | None = None
    error: str | None = None

    @classmethod
    def ok(cls, record: ProductRecord) -> "ExtractionResult":
        return cls(success=True, record=record)

    @classmethod
    def failed(cls, reason: str) -> "ExtractionResult":
        return cls(success=False, error=reason)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_product_record(payload: object) -> ExtractionResult:
    """Validate a raw extraction payload against the product schema.

    Schema mismatches come back as a failed result naming the field;
    nothing here raises.  ``None`` on an optional field means absent.
    """
    if not isinstance(payload, dict):
        return ExtractionResult.failed(
            f"expected an object, got {type(payload).__name__}"
        )

    title = payload.get("title")
    if not isinstance(title, str) or not title.strip():
        return ExtractionResult.failed("missing or empty 'title'")

    price = payload.get("price")
    if not _is_number(price):
        return ExtractionResult.failed("missing or non-numeric 'price'")
    price = float(price)
    if not math.isfinite(price) or price < 0:
        return ExtractionResult.failed(f"invalid 'price' value {price}")

    for key in _OPTIONAL_STRINGS:
        value = payload.get(key)
        if value is not None and not isinstance(value, str):
            return ExtractionResult.failed(f"'{key}' must be a string")

    availability = payload.get("availability")
    if availability is not None and not isinstance(availability, bool):
        return ExtractionResult.failed("'availability' must be a boolean")

    return ExtractionResult.ok(
        ProductRecord(
            title=title.strip(),
            price=price,
            currency=payload.get("currency") or None,
            availability=availability,
            brand=payload.get("brand"),
            description=payload.get("description"),
        )
    )
