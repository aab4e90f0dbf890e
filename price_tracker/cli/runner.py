# price_tracker/cli/runner.py

"""CLI command handlers for the price tracker."""

import logging
from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from price_tracker.config.settings import Settings
from price_tracker.errors import ExtractionFailed, NotFound
from price_tracker.extraction.firecrawl_client import FirecrawlClient
from price_tracker.models.tracked_url import TrackedURL
from price_tracker.services.notifier import ChangeNotifier, format_price
from price_tracker.services.scheduler import PriceCheckScheduler
from price_tracker.services.tracking_orchestrator import (
    PriceTrackingOrchestrator,
)
from price_tracker.storage.price_store import SQLitePriceStore

logger = logging.getLogger("price_tracker.cli")

# Stderr console for status messages so stdout carries only results
_err = Console(stderr=True)


@dataclass
class Components:
    """Wired-up collaborators for one CLI invocation."""

    store: SQLitePriceStore
    extractor: FirecrawlClient
    orchestrator: PriceTrackingOrchestrator
    notifier: ChangeNotifier

    def close(self) -> None:
        self.extractor.close()
        self.store.close()


def build_components(console: Console | None = None) -> Components:
    """Construct the store, extraction client and services."""
    store = SQLitePriceStore(Settings.PRICE_DB_PATH)
    extractor = FirecrawlClient()
    if not extractor.api_key:
        logger.warning("FIRECRAWL_API_KEY is not set; extraction will fail")
    return Components(
        store=store,
        extractor=extractor,
        orchestrator=PriceTrackingOrchestrator(store, extractor),
        notifier=ChangeNotifier(console),
    )


def _print_tracked_table(
    tracked_urls: list[TrackedURL], console: Console,
) -> None:
    """Render a Rich table of tracked URLs and their recent prices."""
    table = Table(
        title="Tracked URLs",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", max_width=50)
    table.add_column("Latest", justify="right", style="green")
    table.add_column("Previous", justify="right")
    table.add_column("In stock", justify="center")
    table.add_column("URL", overflow="fold", style="dim")

    for idx, tracked in enumerate(tracked_urls, 1):
        latest = tracked.latest
        previous = ", ".join(
            format_price(o.price, o.currency)
            for o in tracked.observations[1:]
        )
        table.add_row(
            str(idx),
            latest.title if latest else "—",
            format_price(latest.price, latest.currency) if latest else "—",
            previous or "—",
            ("yes" if latest.is_available else "no") if latest else "—",
            tracked.url,
        )

    console.print(table)


def run_add(url: str, components: Components) -> int:
    """Track a URL and report its first observation."""
    try:
        tracked = components.orchestrator.add_url(url)
    except ExtractionFailed as exc:
        _err.print(f"[red]{escape(str(exc))}[/red]")
        return 1
    except ValueError as exc:
        _err.print(f"[red]{escape(str(exc))}[/red]")
        return 1

    if tracked is None:
        _err.print(f"[yellow]Already tracking {url}[/yellow]")
        return 0

    first = tracked.latest
    price = format_price(first.price, first.currency) if first else "?"
    _err.print(f"[green]✓ Tracking {url}[/green] [dim]({price})[/dim]")
    return 0


def run_remove(url: str, components: Components) -> int:
    """Untrack a URL."""
    try:
        components.orchestrator.remove_url(url)
    except NotFound as exc:
        _err.print(f"[red]{escape(str(exc))}[/red]")
        return 1
    _err.print(f"[green]✓ Removed {url}[/green]")
    return 0


def run_list(components: Components, console: Console | None = None) -> int:
    """Print every tracked URL with its last three prices."""
    tracked_urls = components.orchestrator.list_urls()
    if not tracked_urls:
        _err.print("[yellow]No URLs are being tracked.[/yellow]")
        return 0
    _print_tracked_table(tracked_urls, console or Console())
    return 0


def run_check(components: Components) -> int:
    """Run a single check-and-notify cycle without seeding URLs."""
    result = components.orchestrator.check_all_prices()
    components.notifier.notify_changes(result.updates, result.new_items)
    _err.print(
        f"[dim]{len(result.updates)} updates, "
        f"{len(result.new_items)} new items[/dim]"
    )
    return 0


async def run_tracker(components: Components, schedule: bool) -> int:
    """Run the startup cycle and optionally the recurring schedule."""
    scheduler = PriceCheckScheduler(
        components.orchestrator, components.notifier,
    )
    await scheduler.run(schedule=schedule)
    return 0
