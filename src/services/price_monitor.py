# src/services/price_monitor.py

"""Registers items and runs price sweeps over every active item."""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation

from src.config.settings import Settings
from src.extractors.registry import ExtractorRegistry
from src.models.errors import (
    ExtractionFailure,
    FetchFailure,
    PersistenceFailure,
    RegistrationError,
)
from src.models.extraction_result import ExtractionResult
from src.models.money import quantize_price
from src.models.price_history import PriceHistory
from src.models.price_observation import PriceObservation
from src.models.tracked_item import TrackedItem
from src.services.fetcher import Fetcher
from src.services.notifier import AlertDispatcher
from src.services.pacing import Pacer
from src.services.reconciler import ReconcileOutcome, Reconciler
from src.storage.item_store import ItemStore, normalize_url

logger = logging.getLogger("price_tracker.monitor")


def _resolved_price(result: ExtractionResult, store: str | None) -> Decimal:
    """Return the extracted price, or fail when there is none."""
    if result.price is None:
        raise ExtractionFailure("No price in extraction result", store=store)
    return result.price


@dataclass
class ItemFailure:
    """Why one item could not be checked during a sweep."""

    item_id: int | None
    url: str
    stage: str  # "fetch", "extract", "persist", "unexpected"
    message: str


@dataclass
class SweepReport:
    """Summary of one pass over the active items."""

    trigger: str
    started_at: datetime
    finished_at: datetime | None = None
    checked: int = 0
    updated: list[int] = field(
        default_factory=lambda: list[int]()
    )
    notified: list[int] = field(
        default_factory=lambda: list[int]()
    )
    failures: list[ItemFailure] = field(
        default_factory=lambda: list[ItemFailure]()
    )
    cancelled: bool = False
    elapsed: float = 0.0


class PriceMonitor:
    """The price-monitoring engine.

    Items inside a sweep are processed one at a time with a fixed pause
    between consecutive fetches; that pause is the rate limit.  Only one
    sweep runs at once: a second call while one is in flight returns
    ``None`` straight away.
    """

    def __init__(
        self,
        store: ItemStore,
        fetcher: Fetcher | None = None,
        registry: ExtractorRegistry | None = None,
        dispatcher: AlertDispatcher | None = None,
        pacer: Pacer | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.fetcher = fetcher or Fetcher()
        self.registry = registry or ExtractorRegistry()
        self.dispatcher = dispatcher
        self.pacer = pacer or Pacer(Settings.ITEM_DELAY)
        self._clock = clock
        self.reconciler = Reconciler(store, clock=clock)
        self._sweep_lock = threading.Lock()

    @property
    def is_sweeping(self) -> bool:
        """True while a sweep holds the in-flight guard."""
        return self._sweep_lock.locked()

    # ── Registration ─────────────────────────────────────

    @staticmethod
    def _checked_target(target_price: Decimal) -> Decimal:
        """Quantise a target price, rejecting negative or unusable values."""
        if not target_price.is_finite():
            raise RegistrationError("Target price must be a number.")
        try:
            target = quantize_price(target_price)
        except InvalidOperation as exc:
            raise RegistrationError("Target price is out of range.") from exc
        if target < 0:
            raise RegistrationError("Target price cannot be negative.")
        if target > Settings.MAX_PRICE:
            raise RegistrationError("Target price is out of range.")
        return target

    def register_item(
        self,
        url: str,
        target_price: Decimal | None,
        owner_id: str,
    ) -> TrackedItem:
        """Start tracking *url* after one synchronous extraction.

        Raises:
            RegistrationError: the store is unknown, the page could not
                be fetched, no price could be found, or the target is
                negative or not a usable number.  Nothing is stored in
                that case.
        """
        if target_price is not None:
            target_price = self._checked_target(target_price)

        store_key = self.registry.classify(url)
        if store_key is None:
            logger.warning(
                "Registration rejected, unknown store: %s (supported: %s)",
                url,
                ", ".join(self.registry.store_ids),
            )
            raise RegistrationError()

        try:
            content = self.fetcher.fetch(url)
            result = self.registry.extract(store_key, content)
        except (FetchFailure, ExtractionFailure) as exc:
            logger.warning("Registration failed for %s: %s", url, exc)
            raise RegistrationError() from exc

        price = _resolved_price(result, store_key)
        now = self._clock()
        history = PriceHistory(self.store.history_cap)
        history.append(PriceObservation(price=price, observed_at=now))
        item = TrackedItem(
            url=normalize_url(url),
            title=result.title,
            current_price=price,
            target_price=target_price,
            image=result.image,
            store=result.store,
            owner_id=owner_id,
            created_at=now,
            last_checked=now,
            history=history,
        )
        return self.store.add_item(item)

    # ── Checking ─────────────────────────────────────────

    def check_item(self, item: TrackedItem) -> ReconcileOutcome:
        """Fetch, extract and reconcile a single item.

        Raises:
            FetchFailure, ExtractionFailure, PersistenceFailure
        """
        content = self.fetcher.fetch(item.url)
        result = self.registry.extract_for_url(item.url, content)
        price = _resolved_price(result, item.store)
        return self.reconciler.reconcile(item, price)

    def _check_and_notify(
        self, item: TrackedItem, report: SweepReport,
    ) -> None:
        try:
            outcome = self.check_item(item)
        except FetchFailure as exc:
            self._record_failure(report, item, "fetch", exc)
            return
        except ExtractionFailure as exc:
            self._record_failure(report, item, "extract", exc)
            return
        except PersistenceFailure as exc:
            self._record_failure(report, item, "persist", exc)
            return
        except Exception as exc:
            logger.exception("Unexpected error checking item %s", item.id)
            self._record_failure(report, item, "unexpected", exc)
            return

        item_id = outcome.item_id
        report.updated.append(item_id)
        if outcome.event is None:
            return
        if self.dispatcher is None:
            logger.info(
                "No dispatcher configured; drop for item %d not sent",
                item_id,
            )
            return
        try:
            sent = self.dispatcher.dispatch(outcome.event)
        except Exception:
            # The price update is already committed; keep it.
            logger.exception("Dispatcher crashed for item %d", item_id)
            sent = False
        if sent:
            report.notified.append(item_id)

    @staticmethod
    def _record_failure(
        report: SweepReport,
        item: TrackedItem,
        stage: str,
        exc: Exception,
    ) -> None:
        if stage != "unexpected":
            logger.warning(
                "Error checking %s (%s): %s", item.title, stage, exc,
            )
        report.failures.append(
            ItemFailure(
                item_id=item.id,
                url=item.url,
                stage=stage,
                message=str(exc),
            )
        )

    # ── Sweeping ─────────────────────────────────────────

    def run_sweep(self, trigger: str = "scheduled") -> SweepReport | None:
        """Check every active item once.

        Returns ``None`` without doing anything when another sweep is
        already running.
        """
        if not self._sweep_lock.acquire(blocking=False):
            logger.warning(
                "Sweep (%s) skipped: another sweep is in progress", trigger,
            )
            return None
        try:
            return self._sweep(trigger)
        finally:
            self._sweep_lock.release()

    def _sweep(self, trigger: str) -> SweepReport:
        report = SweepReport(trigger=trigger, started_at=self._clock())
        start = time.monotonic()
        logger.info("Starting price check (%s)", trigger)

        try:
            items = self.store.list_active()
        except PersistenceFailure as exc:
            logger.error("Price check aborted, cannot list items: %s", exc)
            report.failures.append(
                ItemFailure(None, "", "persist", str(exc))
            )
            items = []

        for index, item in enumerate(items):
            if self.pacer.cancelled:
                report.cancelled = True
                break
            if index and not self.pacer.pause():
                report.cancelled = True
                break
            report.checked += 1
            self._check_and_notify(item, report)

        report.finished_at = self._clock()
        report.elapsed = time.monotonic() - start
        if report.cancelled:
            logger.warning(
                "Price check cancelled after %d of %d items",
                report.checked,
                len(items),
            )
        logger.info(
            "Price check completed: %d checked, %d updated, "
            "%d notified, %d failed in %.1fs",
            report.checked,
            len(report.updated),
            len(report.notified),
            len(report.failures),
            report.elapsed,
        )
        return report

    def stop(self) -> None:
        """Abandon the running sweep at the next item boundary."""
        self.pacer.cancel()

    def resume(self) -> None:
        """Allow sweeps to run again after :meth:`stop`."""
        self.pacer.reset()

