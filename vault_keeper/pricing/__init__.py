"""
Pricing Module.

Pool-derived token prices.
"""

from .resolver import (
    PRICE_SCALE,
    PriceQuote,
    PriceResolver,
    price_from_sqrt_price,
)

__all__ = [
    "PRICE_SCALE",
    "PriceQuote",
    "PriceResolver",
    "price_from_sqrt_price",
]
