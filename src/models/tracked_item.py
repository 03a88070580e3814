# src/models/tracked_item.py

"""Tracked product data model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.config.settings import Settings
from src.models.price_history import PriceHistory


@dataclass
class TrackedItem:
    """A product URL whose price is checked on every sweep."""

    url: str
    title: str
    current_price: Decimal
    store: str
    owner_id: str
    target_price: Decimal | None = None
    image: str = ""
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    last_checked: datetime = field(default_factory=datetime.now)
    history: PriceHistory = field(
        default_factory=lambda: PriceHistory(Settings.HISTORY_CAP)
    )
    id: int | None = None
