"""Load the store tables from CSV exports.

The reports never read files themselves; this module is the bridge used by
the CLI (and handy in notebooks) to turn a directory of exports into the
in-memory tables the reports take.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

from jewel_core.config import StoreSettings, load_store_settings

if TYPE_CHECKING:
    from jewel_core.config import DataPaths

logger = logging.getLogger(__name__)

# Ids and phone numbers stay text so leading zeros survive
TEXT_COLUMNS = {
    "id": str,
    "owner_id": str,
    "customer_id": str,
    "invoice_id": str,
    "item_id": str,
    "phone": str,
    "sku": str,
    "invoice_number": str,
}


@dataclass
class StoreTables:
    """The four tables of one store plus its settings."""

    items: pd.DataFrame = field(default_factory=pd.DataFrame)
    customers: pd.DataFrame = field(default_factory=pd.DataFrame)
    invoices: pd.DataFrame = field(default_factory=pd.DataFrame)
    invoice_items: pd.DataFrame = field(default_factory=pd.DataFrame)
    settings: StoreSettings = field(default_factory=StoreSettings)


def read_table(path: Path) -> pd.DataFrame:
    """Read one CSV export. A missing file is an empty table."""
    if not path.exists():
        logger.warning("Table file not found, treating as empty: %s", path)
        return pd.DataFrame()

    df = pd.read_csv(path, encoding="utf-8-sig", dtype=TEXT_COLUMNS)
    logger.debug("Loaded %d row(s) from %s", len(df), path.name)
    return df


def load_tables(paths: DataPaths) -> StoreTables:
    """Load items, customers, invoices, invoice lines and settings.

    Args:
        paths: DataPaths pointing at the CSV exports.

    Returns:
        StoreTables.

    Raises:
        FileNotFoundError: If the data root does not exist.
        ConfigError: If the settings file is invalid.
    """
    if not paths.data_root.is_dir():
        raise FileNotFoundError(f"Data directory not found: {paths.data_root}")

    tables = StoreTables(
        items=read_table(paths.items),
        customers=read_table(paths.customers),
        invoices=read_table(paths.invoices),
        invoice_items=read_table(paths.invoice_items),
        settings=load_store_settings(paths.settings_json),
    )
    logger.info(
        "Loaded %d item(s), %d customer(s), %d invoice(s), %d invoice line(s)",
        len(tables.items),
        len(tables.customers),
        len(tables.invoices),
        len(tables.invoice_items),
    )
    return tables
