# src/cli/runner.py

"""Headless CLI commands over the price-monitoring engine."""

import logging
import threading
from decimal import Decimal, InvalidOperation

from rich.console import Console
from rich.table import Table

from src.models.errors import PriceTrackerError, RegistrationError
from src.models.money import format_price
from src.models.tracked_item import TrackedItem
from src.services.analytics import summarize_savings
from src.services.notifier import AlertDispatcher, EmailNotifier
from src.services.price_monitor import PriceMonitor, SweepReport
from src.services.scheduler import SweepScheduler
from src.storage.item_store import ItemStore

logger = logging.getLogger("price_tracker.cli")

# Stderr console for status messages so stdout stays clean for tables
_err = Console(stderr=True)


def parse_price(raw: str | None) -> Decimal | None:
    """Parse a user-supplied price; ``None`` passes through.

    Raises ``SystemExit`` on garbage input.
    """
    if raw is None:
        return None
    try:
        value = Decimal(raw.strip().lstrip("$").replace(",", ""))
    except InvalidOperation:
        _err.print(f"[red]Not a price: {raw}[/red]")
        raise SystemExit(1)
    if not value.is_finite():
        _err.print(f"[red]Not a price: {raw}[/red]")
        raise SystemExit(1)
    if value < 0:
        _err.print(f"[red]Price cannot be negative: {raw}[/red]")
        raise SystemExit(1)
    return value


def build_monitor(store: ItemStore | None = None) -> PriceMonitor:
    """Wire the engine with its default collaborators."""
    return PriceMonitor(
        store=store or ItemStore(),
        dispatcher=AlertDispatcher(EmailNotifier()),
    )


def _print_items(items: list[TrackedItem]) -> None:
    """Render a Rich table of tracked items to stdout."""
    table = Table(
        title="Tracked Items",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("ID", style="dim", width=5)
    table.add_column("Title", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Target", justify="right")
    table.add_column("Store", style="magenta")
    table.add_column("Checked", style="dim")
    table.add_column("Active", justify="center")

    for item in items:
        table.add_row(
            str(item.id),
            item.title[:50],
            format_price(item.current_price),
            format_price(item.target_price),
            item.store,
            item.last_checked.strftime("%Y-%m-%d %H:%M"),
            "✓" if item.is_active else "✗",
        )

    Console().print(table)


def _print_report(report: SweepReport) -> None:
    """Summarise a sweep on stderr."""
    _err.print(
        f"[green]✓ {report.checked} checked, "
        f"{len(report.updated)} updated, "
        f"{len(report.notified)} notified[/green] "
        f"[dim]({report.elapsed:.1f}s)[/dim]"
    )
    for failure in report.failures:
        _err.print(
            f"[red]✗ item {failure.item_id} ({failure.stage}): "
            f"{failure.message}[/red]"
        )
    if report.cancelled:
        _err.print("[yellow]Sweep cancelled before finishing.[/yellow]")


def cli_add(url: str, owner_id: str, target_raw: str | None) -> int:
    """Register a product URL for tracking."""
    target = parse_price(target_raw)
    store = ItemStore()
    try:
        monitor = build_monitor(store)
        _err.print(f"[bold]Fetching:[/bold] {url}")
        try:
            item = monitor.register_item(url, target, owner_id)
        except RegistrationError as exc:
            _err.print(f"[red]{exc}[/red]")
            return 1
        _err.print(
            f"[green]✓ Tracking #{item.id}: {item.title} "
            f"at {format_price(item.current_price)}[/green]"
        )
        return 0
    except PriceTrackerError as exc:
        logger.error("Add failed: %s", exc, exc_info=True)
        _err.print(f"[red]{exc}[/red]")
        return 1
    finally:
        store.close()


def cli_list(owner_id: str, include_inactive: bool) -> int:
    """Show an owner's tracked items."""
    store = ItemStore()
    try:
        items = store.list_for_owner(owner_id, include_inactive)
    except PriceTrackerError as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1
    finally:
        store.close()
    if not items:
        _err.print("[yellow]No tracked items.[/yellow]")
        return 0
    _print_items(items)
    return 0


def cli_history(item_id: int, owner_id: str) -> int:
    """Show the retained price observations of one item."""
    store = ItemStore()
    try:
        item = store.get_item(item_id, owner_id)
    except PriceTrackerError as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1
    finally:
        store.close()
    if item is None:
        _err.print(f"[red]Item {item_id} not found.[/red]")
        return 1

    table = Table(title=f"Price History: {item.title[:50]}")
    table.add_column("Observed", style="dim")
    table.add_column("Price", justify="right", style="green")
    for obs in item.history:
        table.add_row(
            obs.observed_at.strftime("%Y-%m-%d %H:%M:%S"),
            format_price(obs.price),
        )
    Console().print(table)
    return 0


def cli_set_target(item_id: int, owner_id: str, target_raw: str) -> int:
    """Change (or clear, with 'none') an item's target price."""
    target = None if target_raw.lower() == "none" else parse_price(target_raw)
    store = ItemStore()
    try:
        item = store.set_target_price(item_id, owner_id, target)
    except PriceTrackerError as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1
    finally:
        store.close()
    if item is None:
        _err.print(f"[red]Item {item_id} not found.[/red]")
        return 1
    _err.print(
        f"[green]✓ Target for #{item_id} set to "
        f"{format_price(item.target_price)}[/green]"
    )
    return 0


def cli_remove(item_id: int, owner_id: str) -> int:
    """Stop tracking an item (history is kept)."""
    store = ItemStore()
    try:
        removed = store.deactivate(item_id, owner_id)
    except PriceTrackerError as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1
    finally:
        store.close()
    if not removed:
        _err.print(f"[red]Item {item_id} not found.[/red]")
        return 1
    _err.print(f"[green]✓ Item {item_id} removed from tracking[/green]")
    return 0


def cli_savings(owner_id: str) -> int:
    """Summarise how much an owner's tracked prices have dropped."""
    store = ItemStore()
    try:
        items = store.list_for_owner(owner_id)
    except PriceTrackerError as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1
    finally:
        store.close()

    summary = summarize_savings(items)
    table = Table(title="Savings", title_style="bold cyan")
    table.add_column("Tracked", justify="right")
    table.add_column("Total Savings", justify="right", style="green")
    table.add_column("Best Deal", max_width=50)
    table.add_column("Was", justify="right")
    table.add_column("Now", justify="right", style="green")
    table.add_column("Off", justify="right")

    best = summary.best_deal
    table.add_row(
        str(summary.tracked_items),
        format_price(summary.total_savings),
        best.title[:50] if best else "—",
        format_price(best.original_price) if best else "—",
        format_price(best.current_price) if best else "—",
        (
            f"{best.savings_percent}%"
            if best and best.savings_percent is not None
            else "—"
        ),
    )
    Console().print(table)
    return 0


def cli_sweep() -> int:
    """Run one sweep in the foreground."""
    store = ItemStore()
    try:
        monitor = build_monitor(store)
        _err.print("[bold]Checking prices...[/bold]")
        report = monitor.run_sweep(trigger="manual")
    finally:
        store.close()
    if report is None:
        return 1
    _print_report(report)
    return 1 if report.failures else 0


def cli_daemon(stop_event: threading.Event | None = None) -> int:
    """Run scheduled sweeps until interrupted."""
    store = ItemStore()
    scheduler = SweepScheduler(build_monitor(store))
    stop = stop_event or threading.Event()
    scheduler.start()
    _err.print(
        f"[bold]Price checking scheduled[/bold] "
        f"[dim]cron='{scheduler.cron}', next run "
        f"{scheduler.next_run_time}[/dim]"
    )
    try:
        while not stop.wait(1.0):
            pass
    except KeyboardInterrupt:
        _err.print("[dim]Shutting down...[/dim]")
    finally:
        scheduler.stop()
        store.close()
    return 0
