# src/models/notification_event.py

"""Price-drop events handed to the notifier."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from src.models.money import quantize_price
from src.models.tracked_item import TrackedItem


def savings(old_price: Decimal, new_price: Decimal) -> Decimal:
    """Absolute saving between two prices, two decimal places."""
    return quantize_price(old_price - new_price)


def savings_percent(
    old_price: Decimal, new_price: Decimal,
) -> int | None:
    """Whole-number saving percentage, or ``None`` when ``old`` is zero."""
    if old_price == 0:
        return None
    ratio = (old_price - new_price) / old_price * 100
    return int(ratio.to_integral_value(rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class NotificationEvent:
    """A notification-worthy price drop for one tracked item."""

    item: TrackedItem
    previous_price: Decimal
    new_price: Decimal

    @property
    def savings(self) -> Decimal:
        return savings(self.previous_price, self.new_price)

    @property
    def savings_percent(self) -> int | None:
        return savings_percent(self.previous_price, self.new_price)
