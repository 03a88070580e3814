# src/models/extraction_result.py

"""Structured data pulled out of a product page."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class ExtractionResult:
    """Price, title, image and store label for one product page.

    ``price`` is ``None`` when no price could be resolved; that is an
    extraction failure, never a zero price.
    """

    price: Decimal | None
    title: str
    image: str
    store: str

    @property
    def has_price(self) -> bool:
        """True when a price was resolved."""
        return self.price is not None
