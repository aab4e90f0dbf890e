# price_tracker/services/notifier.py

"""Console notifier for price changes."""

import logging

from rich.console import Console

from price_tracker.models.changes import NewItem, PriceUpdate

logger = logging.getLogger("price_tracker.notifier")


def format_price(price: float, currency: str) -> str:
    """Render a price as stored: ``2999 INR``, ``19.99 USD``."""
    value = int(price) if float(price).is_integer() else price
    return f"{value} {currency}"


class ChangeNotifier:
    """Print a human-readable summary of detected price changes."""

    def __init__(self, console: Console | None = None) -> None:
        # Titles come from third-party pages; print them verbatim
        self.console = console or Console(
            markup=False, highlight=False, emoji=False,
        )

    def _line(self, text: str = "") -> None:
        self.console.print(
            text, markup=False, highlight=False, emoji=False, soft_wrap=True,
        )

    def notify_changes(
        self,
        updates: list[PriceUpdate],
        new_items: list[NewItem],
    ) -> None:
        """Print new items first, then price updates.

        Nothing is printed when both lists are empty.
        """
        if not updates and not new_items:
            logger.debug("No price changes to report")
            return

        if new_items:
            self._line()
            self._line("🆕 New items tracked:")
            for item in new_items:
                self._line(
                    f"{item.title}: {format_price(item.price, item.currency)}"
                )

        if updates:
            self._line()
            self._line("💰 Price updates:")
            for update in updates:
                self._line()
                self._line(f"{update.title}:")
                self._line(
                    f"Old: {format_price(update.old_price, update.currency)}"
                )
                self._line(
                    f"New: {format_price(update.new_price, update.currency)}"
                )
                self._line(f"Change: {update.percent_change:.2f}%")

        self._line()
        logger.info(
            "Notified %d new items and %d price updates",
            len(new_items),
            len(updates),
        )
