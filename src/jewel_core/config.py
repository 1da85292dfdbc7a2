"""Unified configuration for the jewellery retail core.

This module provides the filesystem layout used by the CLI and the
per-owner store settings read by the pricing engine and the reports.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from jewel_core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_GST_RATE = 3.0
DEFAULT_TIMEZONE = "Asia/Kolkata"
DEFAULT_LOW_STOCK_THRESHOLD = 5


@dataclass
class StoreSettings:
    """Settings for a single store owner.

    Attributes:
        gst_rate: GST rate in percent applied to gold value + making charges.
        store_name: Display name printed on invoices.
        gst_number: Store GSTIN printed on invoices.
        address: Store address printed on invoices.
        timezone: IANA timezone of the store. Report dates are calendar
            dates in this timezone, not UTC dates.
        currency: ISO currency code for display.
        low_stock_threshold: Items with quantity below this are low stock.
    """

    gst_rate: float = DEFAULT_GST_RATE
    store_name: str = ""
    gst_number: str = ""
    address: str = ""
    timezone: str = DEFAULT_TIMEZONE
    currency: str = "INR"
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD

    def __post_init__(self) -> None:
        if self.gst_rate is None:
            self.gst_rate = DEFAULT_GST_RATE
        try:
            self.gst_rate = float(self.gst_rate)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid gst_rate {self.gst_rate!r}") from e
        if self.gst_rate < 0:
            raise ConfigError(f"gst_rate must be >= 0, got {self.gst_rate}")
        if self.low_stock_threshold < 0:
            raise ConfigError(
                f"low_stock_threshold must be >= 0, got {self.low_stock_threshold}"
            )
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"Unknown timezone '{self.timezone}'") from e

    @classmethod
    def from_dict(cls, data: dict) -> StoreSettings:
        """Build settings from a settings row, ignoring unknown keys.

        Args:
            data: Mapping as stored for the owner (e.g. a settings table row).

        Returns:
            StoreSettings instance.

        Examples:
            >>> StoreSettings.from_dict({"gst_rate": 3, "store_name": "Shree"}).gst_rate
            3.0
        """
        known = set(cls.__dataclass_fields__)
        unknown = sorted(k for k in data if k not in known)
        if unknown:
            logger.debug("Ignoring unknown settings keys: %s", unknown)
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict:
        return asdict(self)


def load_store_settings(settings_path: Path | None) -> StoreSettings:
    """Load store settings from a JSON file.

    A missing path (None) or a missing file yields the defaults, matching
    a store that has never saved its settings.

    Args:
        settings_path: Path to a JSON object with StoreSettings fields.

    Returns:
        StoreSettings instance.

    Raises:
        ConfigError: If the file is not valid JSON or holds invalid values.
    """
    if settings_path is None or not settings_path.exists():
        logger.info("No settings file found, using default store settings")
        return StoreSettings()

    try:
        data = json.loads(settings_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Could not parse settings file {settings_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {settings_path} must contain a JSON object")

    return StoreSettings.from_dict(data)


@dataclass
class DataPaths:
    """Filesystem paths used when running reports from table exports.

    Attributes:
        data_root: Directory holding one CSV export per table.
        settings_json: Path to the store settings JSON file.

    Directory Structure:
        data_root/
        ├── items.csv           # inventory items
        ├── customers.csv
        ├── invoices.csv
        ├── invoice_items.csv   # invoice lines
        └── settings.json       # optional store settings
    """

    data_root: Path
    settings_json: Path

    @classmethod
    def from_root(
        cls,
        data_root: str | Path,
        settings_json: str | Path | None = None,
    ) -> DataPaths:
        """Create DataPaths from a root directory and optional settings file.

        Args:
            data_root: Directory with the CSV exports.
            settings_json: Path to settings JSON. Defaults to
                data_root / "settings.json".

        Returns:
            DataPaths instance.

        Examples:
            >>> paths = DataPaths.from_root("data")
            >>> paths.invoices
            PosixPath('data/invoices.csv')
        """
        if isinstance(data_root, str):
            data_root = Path(data_root)
        if settings_json is None:
            settings_json = data_root / "settings.json"
        elif isinstance(settings_json, str):
            settings_json = Path(settings_json)

        return cls(data_root=data_root, settings_json=settings_json)

    @property
    def items(self) -> Path:
        return self.data_root / "items.csv"

    @property
    def customers(self) -> Path:
        return self.data_root / "customers.csv"

    @property
    def invoices(self) -> Path:
        return self.data_root / "invoices.csv"

    @property
    def invoice_items(self) -> Path:
        return self.data_root / "invoice_items.csv"
