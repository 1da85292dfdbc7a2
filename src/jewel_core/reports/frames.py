"""Input preparation shared by all reports.

Every report takes plain tables (DataFrames or lists of row mappings) that
the caller already fetched for one store owner. This module turns them into
DataFrames with the columns the aggregations expect:

- ids are normalised to strings so CSV exports (where a nullable integer
  id becomes a float) still join,
- money and quantity columns are numeric (unparseable values become 0),
- ``created_at`` is converted to the owner's local timezone, so a sale at
  00:30 IST is bucketed on its Indian calendar date, not the UTC one,
- rows of other owners are dropped when an ``owner_id`` is given,
- invoice lines are joined with their invoice and item; lines whose item
  was deleted are kept and labelled "Unknown".

Inputs are never modified in place.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from typing import Any, Union

import numpy as np
import pandas as pd

from jewel_core.config import DEFAULT_TIMEZONE
from jewel_core.exceptions import DataQualityError
from jewel_core.reports.config import NO_SKU, UNKNOWN
from jewel_core.utils import parse_date

logger = logging.getLogger(__name__)

Table = Union[pd.DataFrame, Iterable[Mapping[str, Any]], None]
DateLike = Union[str, date, None]

ID_COLUMNS = ["id", "owner_id", "customer_id", "invoice_id", "item_id"]

INVOICE_MONEY_COLUMNS = ["gold_value", "making_charges", "gst_amount", "total_amount"]
ITEM_NUMERIC_COLUMNS = ["net_weight", "making_charge", "quantity"]


def normalize_id(value: Any) -> str:
    # 12.0 -> "12" so float-typed CSV ids match integer ids
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_frame(data: Table) -> pd.DataFrame:
    """Return a private DataFrame copy of a table with normalised ids."""
    if data is None:
        df = pd.DataFrame()
    elif isinstance(data, pd.DataFrame):
        df = data.copy()
    else:
        df = pd.DataFrame(list(data))

    for col in ID_COLUMNS:
        if col in df.columns:
            df[col] = df[col].map(normalize_id, na_action="ignore")
    return df


def require_columns(df: pd.DataFrame, required: Sequence[str], table: str) -> pd.DataFrame:
    """Check that a table has the columns a report reads.

    An empty table is always valid; its missing columns are added.

    Raises:
        DataQualityError: If a non-empty table lacks a required column.
    """
    missing = [col for col in required if col not in df.columns]
    if not missing:
        return df
    if df.empty:
        for col in missing:
            df[col] = pd.Series(dtype=object)
        return df
    raise DataQualityError(
        f"Missing required columns in {table}: {missing}. Required: {list(required)}"
    )


def coerce_numeric(df: pd.DataFrame, columns: Sequence[str], fill: float = 0.0) -> pd.DataFrame:
    """Make columns numeric, filling absent columns and bad values with ``fill``."""
    for col in columns:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").fillna(fill)
        else:
            df[col] = fill
        df[col] = df[col].astype(float)
    return df


def scope_to_owner(df: pd.DataFrame, owner_id: Any, table: str) -> pd.DataFrame:
    """Drop rows belonging to any other owner.

    A no-op when owner_id is None or the table has no owner_id column
    (the caller already scoped it).
    """
    if owner_id is None or "owner_id" not in df.columns:
        return df
    mask = df["owner_id"] == normalize_id(owner_id)
    dropped = int((~mask).sum())
    if dropped:
        logger.debug("Dropped %d %s row(s) of other owners", dropped, table)
    return df[mask].copy()


def to_local(series: pd.Series, tz: str = DEFAULT_TIMEZONE) -> pd.Series:
    """Parse timestamps and convert them to the store timezone.

    Naive timestamps are taken as UTC. Unparseable values become NaT.
    """
    if pd.api.types.is_datetime64_any_dtype(series):
        ts = series
        if ts.dt.tz is None:
            ts = ts.dt.tz_localize("UTC")
    else:
        ts = pd.to_datetime(series, utc=True, errors="coerce", format="ISO8601")
    return ts.dt.tz_convert(tz)


def resolve_now(as_of: Any = None, tz: str = DEFAULT_TIMEZONE) -> pd.Timestamp:
    """Reference time for day counts, in the store timezone.

    Args:
        as_of: Optional datetime/date/ISO string. Naive values are UTC.
            Defaults to the current time.
    """
    if as_of is None:
        return pd.Timestamp.now(tz=tz)
    ts = pd.Timestamp(as_of)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts.tz_convert(tz)


def to_date(value: DateLike) -> date | None:
    if value is None or isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    return parse_date(value)


def filter_date_range(
    df: pd.DataFrame,
    start_date: DateLike = None,
    end_date: DateLike = None,
    column: str = "local_date",
) -> pd.DataFrame:
    """Keep rows whose local date is within [start_date, end_date] (inclusive)."""
    start = to_date(start_date)
    end = to_date(end_date)
    if start is not None and end is not None and start > end:
        raise ValueError(f"start_date {start} is after end_date {end}")
    if start is not None:
        df = df[df[column] >= start]
    if end is not None:
        df = df[df[column] <= end]
    return df


def prepare_invoices(
    invoices: Table,
    tz: str = DEFAULT_TIMEZONE,
    owner_id: Any = None,
    required: Sequence[str] = ("id", "created_at", "total_amount"),
    drop_undated: bool = True,
) -> pd.DataFrame:
    """Prepare the invoices table.

    Adds ``local_ts`` (timezone-aware) and ``local_date`` columns. Money
    columns that are not required default to 0.

    Args:
        invoices: Invoices table.
        tz: Store timezone.
        owner_id: Optional owner to scope to.
        required: Columns that must be present in a non-empty table.
        drop_undated: Drop invoices whose created_at cannot be parsed.
    """
    df = to_frame(invoices)
    df = require_columns(df, required, "invoices")
    df = scope_to_owner(df, owner_id, "invoices")
    if "id" not in df.columns:
        df["id"] = pd.Series(dtype=object)
    if "customer_id" not in df.columns:
        df["customer_id"] = None
    if "created_at" not in df.columns:
        df["created_at"] = None
    df = coerce_numeric(df, INVOICE_MONEY_COLUMNS)

    df["local_ts"] = to_local(df["created_at"], tz)
    df["local_date"] = df["local_ts"].dt.date

    if drop_undated:
        undated = df["local_ts"].isna()
        if undated.any():
            logger.warning("Skipping %d invoice(s) without a valid created_at", int(undated.sum()))
            df = df[~undated].copy()
    return df


def prepare_items(items: Table, owner_id: Any = None) -> pd.DataFrame:
    """Prepare the inventory items table.

    Missing descriptive columns are filled with placeholders and numeric
    columns with 0. When owner_id is None the table is not scoped, which is
    what line joins need to recognise items of other owners.
    """
    df = to_frame(items)
    df = require_columns(df, ["id"], "items")
    df = scope_to_owner(df, owner_id, "items")
    for col, placeholder in (("name", UNKNOWN), ("sku", NO_SKU), ("metal_type", UNKNOWN)):
        if col not in df.columns:
            df[col] = placeholder
        else:
            df[col] = df[col].fillna(placeholder)
    df = coerce_numeric(df, ITEM_NUMERIC_COLUMNS)
    df["quantity"] = df["quantity"].astype(int)
    return df


def prepare_customers(customers: Table, owner_id: Any = None) -> pd.DataFrame:
    """Prepare the customers table (id and name are required)."""
    df = to_frame(customers)
    df = require_columns(df, ["id", "name"], "customers")
    df = scope_to_owner(df, owner_id, "customers")
    for col in ("phone", "created_at"):
        if col not in df.columns:
            df[col] = None
    return df


def prepare_lines(lines: Table, owner_id: Any = None) -> pd.DataFrame:
    """Prepare the invoice lines table.

    ``price`` is the unit price of the line (gold value + making charges
    for one piece). Tables that only carry ``subtotal`` use it as the price.
    Adds ``revenue = price * quantity``.
    """
    df = to_frame(lines)
    if "price" not in df.columns and "subtotal" in df.columns:
        df["price"] = df["subtotal"]
    df = require_columns(df, ["invoice_id", "item_id", "quantity", "price"], "invoice lines")
    df = scope_to_owner(df, owner_id, "invoice lines")
    df = coerce_numeric(df, ["quantity", "price"])
    df["quantity"] = df["quantity"].astype(int)
    df["revenue"] = df["price"] * df["quantity"]
    return df


def join_lines(
    lines: pd.DataFrame,
    invoices: pd.DataFrame,
    items: pd.DataFrame,
    owner_id: Any = None,
) -> pd.DataFrame:
    """Attach invoice and item details to prepared invoice lines.

    Lines whose invoice is absent (deleted, undated, other owner or outside
    the prepared range) are dropped: they cannot be dated or attributed.
    Lines whose item is absent are kept with "Unknown" labels. Lines whose
    item belongs to another owner are dropped.

    Args:
        lines: Output of prepare_lines.
        invoices: Output of prepare_invoices.
        items: Output of prepare_items (unscoped, so foreign items are known).
        owner_id: Optional owner to scope to.

    Returns:
        One row per line with invoice_id, item_id, quantity, price, revenue,
        customer_id, created_at, local_ts, local_date, item_name, sku,
        metal_type.
    """
    line_cols = ["invoice_id", "item_id", "quantity", "price", "revenue"]
    invoice_part = invoices[["id", "customer_id", "created_at", "local_ts", "local_date"]].rename(
        columns={"id": "invoice_id"}
    )
    joined = lines[line_cols].merge(invoice_part, on="invoice_id", how="inner")

    orphaned = len(lines) - len(joined)
    if orphaned:
        logger.debug("Skipping %d invoice line(s) with no matching invoice", orphaned)

    item_cols = ["id", "name", "sku", "metal_type"]
    if "owner_id" in items.columns:
        item_cols.append("owner_id")
    item_part = items[item_cols].rename(
        columns={"id": "item_id", "name": "item_name", "owner_id": "item_owner"}
    )
    item_part = item_part.drop_duplicates(subset="item_id")
    joined = joined.merge(item_part, on="item_id", how="left")

    if owner_id is not None and "item_owner" in joined.columns:
        foreign = joined["item_owner"].notna() & (joined["item_owner"] != normalize_id(owner_id))
        if foreign.any():
            logger.debug("Dropped %d invoice line(s) for items of other owners", int(foreign.sum()))
            joined = joined[~foreign]
    if "item_owner" in joined.columns:
        joined = joined.drop(columns="item_owner")

    unknown = joined["item_name"].isna()
    if unknown.any():
        logger.warning(
            "%d invoice line(s) reference missing items; labelled '%s'",
            int(unknown.sum()),
            UNKNOWN,
        )
    joined["item_name"] = joined["item_name"].fillna(UNKNOWN)
    joined["sku"] = joined["sku"].fillna(NO_SKU)
    joined["metal_type"] = joined["metal_type"].fillna(UNKNOWN)
    return joined.reset_index(drop=True)


def _plain(value: Any) -> Any:
    if isinstance(value, (list, dict, tuple)):
        return value
    if value is None or value is pd.NaT or value is pd.NA:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return value.isoformat()
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return None if np.isnan(value) else float(value)
    if isinstance(value, np.bool_):
        return bool(value)
    return value


def to_records(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a report table to JSON-ready rows (ISO dates, None for gaps)."""
    return [{k: _plain(v) for k, v in row.items()} for row in df.to_dict("records")]
