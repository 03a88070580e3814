# src/models/money.py

"""Fixed-point helpers for prices.

Prices travel through the engine as two-place :class:`~decimal.Decimal`
values and are persisted as integer minor units (cents).
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def quantize_price(value: Decimal | int | str) -> Decimal:
    """Round a price to two decimal places, half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(price: Decimal) -> int:
    """Convert a price to integer cents."""
    return int(
        (quantize_price(price) * 100).to_integral_value(
            rounding=ROUND_HALF_UP
        )
    )


def from_minor_units(cents: int) -> Decimal:
    """Convert integer cents back to a two-place price."""
    return quantize_price(Decimal(cents) / 100)


def format_price(price: Decimal | None) -> str:
    """Render a price for humans, e.g. ``$1,299.99``."""
    if price is None:
        return "—"
    return f"${quantize_price(price):,.2f}"
