# src/services/analytics.py

"""Per-owner savings summary across tracked items."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from src.models.money import quantize_price
from src.models.notification_event import savings, savings_percent
from src.models.tracked_item import TrackedItem


@dataclass(frozen=True)
class BestDeal:
    """The item whose price fell the most since tracking began."""

    item_id: int | None
    title: str
    original_price: Decimal
    current_price: Decimal
    savings: Decimal
    savings_percent: int | None


@dataclass
class SavingsSummary:
    """Savings an owner has seen across their tracked items."""

    tracked_items: int = 0
    total_savings: Decimal = field(default_factory=lambda: Decimal("0.00"))
    best_deal: BestDeal | None = None


def summarize_savings(items: Iterable[TrackedItem]) -> SavingsSummary:
    """Sum price drops from each item's oldest retained observation.

    Only items with more than one observation and a current price below
    that first observation contribute.  The best deal is the largest
    absolute saving; ties keep the earlier item.
    """
    summary = SavingsSummary()
    for item in items:
        summary.tracked_items += 1
        first = item.history.earliest
        if first is None or len(item.history) < 2:
            continue
        saved = savings(first.price, item.current_price)
        if saved <= 0:
            continue
        summary.total_savings = quantize_price(summary.total_savings + saved)
        best = summary.best_deal
        if best is None or saved > best.savings:
            summary.best_deal = BestDeal(
                item_id=item.id,
                title=item.title,
                original_price=first.price,
                current_price=item.current_price,
                savings=saved,
                savings_percent=savings_percent(
                    first.price, item.current_price,
                ),
            )
    return summary
