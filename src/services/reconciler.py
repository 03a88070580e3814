# src/services/reconciler.py

"""Folds a fresh price observation into a tracked item's state."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.models.money import format_price, quantize_price
from src.models.notification_event import (
    NotificationEvent,
    savings,
    savings_percent,
)
from src.models.price_observation import PriceObservation
from src.models.tracked_item import TrackedItem
from src.storage.item_store import ItemStore

logger = logging.getLogger("price_tracker.reconciler")

__all__ = [
    "ReconcileOutcome",
    "Reconciler",
    "savings",
    "savings_percent",
    "should_notify",
]


def should_notify(
    previous_price: Decimal,
    new_price: Decimal,
    target_price: Decimal | None,
) -> bool:
    """Return True for a notification-worthy drop.

    The new price must be at or under the target *and* strictly below
    the previous price, so a price sitting still under the target does
    not re-alert on every sweep.
    """
    if target_price is None:
        return False
    return new_price <= target_price and new_price < previous_price


@dataclass
class ReconcileOutcome:
    """Result of reconciling one observation."""

    item: TrackedItem
    item_id: int
    previous_price: Decimal
    new_price: Decimal
    observation: PriceObservation
    event: NotificationEvent | None = None

    @property
    def changed(self) -> bool:
        """True when the new price differs from the previous one."""
        return self.new_price != self.previous_price


class Reconciler:
    """Records observations and decides whether to notify.

    The store write happens first; the in-memory item is only touched
    once it succeeded, so a :class:`PersistenceFailure` leaves the
    caller's item exactly as it was.  The reconciler never sends
    anything itself: the caller dispatches ``outcome.event``.
    """

    def __init__(
        self,
        store: ItemStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._clock = clock

    def reconcile(
        self, item: TrackedItem, observation_price: Decimal,
    ) -> ReconcileOutcome:
        """Persist *observation_price* for *item* and decide on an alert.

        Raises:
            PersistenceFailure: the store write failed; *item* is unchanged.
            ValueError: the item was never stored, or the clock is behind
                the latest observation.
        """
        item_id = item.id
        if item_id is None:
            raise ValueError("Cannot reconcile an item that was never stored")

        new_price = quantize_price(observation_price)
        previous_price = item.current_price
        observation = PriceObservation(
            price=new_price, observed_at=self._clock(),
        )
        latest = item.history.latest
        if latest is not None and observation.observed_at < latest.observed_at:
            raise ValueError(
                f"Clock went backwards for item {item_id}: "
                f"{observation.observed_at} < {latest.observed_at}"
            )

        self._store.record_observation(item_id, observation)

        item.history.append(observation)
        item.current_price = new_price
        item.last_checked = observation.observed_at

        outcome = ReconcileOutcome(
            item=item,
            item_id=item_id,
            previous_price=previous_price,
            new_price=new_price,
            observation=observation,
        )
        if should_notify(previous_price, new_price, item.target_price):
            outcome.event = NotificationEvent(
                item=item,
                previous_price=previous_price,
                new_price=new_price,
            )
            logger.info(
                "Price drop for item %d: %s -> %s (target %s)",
                item_id,
                format_price(previous_price),
                format_price(new_price),
                format_price(item.target_price),
            )

        if outcome.changed:
            logger.info(
                "Updated %s: %s -> %s",
                item.title,
                format_price(previous_price),
                format_price(new_price),
            )
        else:
            logger.debug(
                "Unchanged %s at %s", item.title, format_price(new_price),
            )
        return outcome
