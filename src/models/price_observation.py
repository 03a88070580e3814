# src/models/price_observation.py

"""A single recorded price for a tracked item."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class PriceObservation:
    """One price reading, immutable once recorded."""

    price: Decimal
    observed_at: datetime
