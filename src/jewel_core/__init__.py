"""Jewel Core - pricing and reporting core for a jewellery store.

This package holds the business rules of the store's point of sale and
back office as pure functions over in-memory tables:

- **Pricing**: gold value, making charges, GST and invoice totals
- **Reports**: sales, GST, customers, inventory, performance and profit
- **QA**: integrity checks for stored invoices

Module Structure:
    jewel_core.pricing: Pricing engine and live gold rate lookup
    jewel_core.reports: Report aggregator
    jewel_core.qa: Invoice integrity checks
    jewel_core.tables: Loading the store tables from CSV exports
    jewel_core.config: DataPaths and StoreSettings

Quick Start:
    >>> from jewel_core import DataPaths
    >>> from jewel_core.pricing import CartLine, price_cart
    >>> from jewel_core.reports import daily_sales
    >>> from jewel_core.tables import load_tables
    >>>
    >>> # Price a cart at the live rate
    >>> totals = price_cart([CartLine("it-1", weight=5, making_charge=500)], gold_rate=5000)
    >>> totals.total_amount
    28325.0
    >>>
    >>> # Daily sales from CSV exports
    >>> tables = load_tables(DataPaths.from_root("data"))
    >>> daily = daily_sales(tables.invoices, tz=tables.settings.timezone)
"""

__version__ = "0.1.0"

from jewel_core.config import DataPaths, StoreSettings, load_store_settings
from jewel_core.exceptions import (
    ConfigError,
    DataQualityError,
    InvalidInputError,
    JewelCoreError,
)

__all__ = [
    "ConfigError",
    "DataPaths",
    "DataQualityError",
    "InvalidInputError",
    "JewelCoreError",
    "StoreSettings",
    "__version__",
    "load_store_settings",
]
