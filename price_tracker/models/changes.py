# price_tracker/models/changes.py

"""Change events produced by a check cycle."""

from dataclasses import dataclass, field


@dataclass
class NewItem:
    """A tracked URL whose second-ever observation was just recorded."""

    title: str
    price: float
    currency: str


@dataclass
class PriceUpdate:
    """A price that moved since the previous observation."""

    title: str
    old_price: float
    new_price: float
    percent_change: float
    currency: str


@dataclass
class CheckResult:
    """Aggregated output of one check cycle."""

    updates: list[PriceUpdate] = field(
        default_factory=lambda: list[PriceUpdate]()
    )
    new_items: list[NewItem] = field(
        default_factory=lambda: list[NewItem]()
    )

    @property
    def has_changes(self) -> bool:
        return bool(self.updates or self.new_items)
