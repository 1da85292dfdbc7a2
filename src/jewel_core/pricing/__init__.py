"""Pricing domain module.

Pure invoice pricing (gold value, making charges, GST, totals) and the
optional live gold rate lookup.

Example:
    >>> from jewel_core.pricing import CartLine, price_cart
    >>> totals = price_cart([CartLine("it-1", weight=5, making_charge=500)], gold_rate=5000)
    >>> totals.total_amount
    28325.0
"""

from jewel_core.pricing.engine import (
    CartLine,
    InvoiceTotals,
    LinePricing,
    gold_value,
    grand_total,
    gst,
    making_charges,
    price_cart,
    price_line,
)
from jewel_core.pricing.rates import GoldRateQuote, carat_from_purity, fetch_gold_rates, rate_for_carat

__all__ = [
    "CartLine",
    "GoldRateQuote",
    "InvoiceTotals",
    "LinePricing",
    "carat_from_purity",
    "fetch_gold_rates",
    "gold_value",
    "grand_total",
    "gst",
    "making_charges",
    "price_cart",
    "price_line",
    "rate_for_carat",
]
