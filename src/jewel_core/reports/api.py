"""Run any report by name against loaded store tables.

This is the entry point used by the CLI. It picks the tables each report
needs from StoreTables, applies the store settings (timezone and low stock
threshold) and returns the report as a DataFrame.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pandas as pd

from jewel_core.reports.config import MOVEMENT_WINDOW_DAYS, TOP_SELLING_LIMIT
from jewel_core.reports.customers import customer_history, customer_segments
from jewel_core.reports.inventory import inventory_analytics, stock_summary
from jewel_core.reports.performance import performance_metrics
from jewel_core.reports.sales import (
    daily_sales,
    gst_summary,
    profit_margin,
    sold_items,
    top_selling,
)

if TYPE_CHECKING:
    from jewel_core.tables import StoreTables

logger = logging.getLogger(__name__)

REPORTS = (
    "daily",
    "gst",
    "segments",
    "history",
    "inventory",
    "stock",
    "performance",
    "profit",
    "top-selling",
    "sold",
)


def run_report(name: str, tables: StoreTables, **options: Any) -> pd.DataFrame:
    """Run a report and return it as a table.

    Args:
        name: One of REPORTS.
        tables: Loaded store tables and settings.
        **options: Report options. Recognised keys are start_date, end_date,
            as_of, owner_id, gold_rate, days, limit, customer_id and
            metal_type; options a report does not take are ignored.
            Options set to None are treated as not given.

    Returns:
        DataFrame. Reports with a summary (gst, profit) return their main
        breakdown; single-row reports (stock, performance) return one row.

    Raises:
        ValueError: If name is not a known report.

    Examples:
        >>> from jewel_core import DataPaths
        >>> from jewel_core.tables import load_tables
        >>> tables = load_tables(DataPaths.from_root("data"))
        >>> df = run_report("daily", tables, start_date="2025-01-01")
        >>> df = run_report("top-selling", tables, limit=5)
    """
    if name not in REPORTS:
        raise ValueError(f"Invalid report '{name}'. Must be one of: {', '.join(REPORTS)}.")

    options = {k: v for k, v in options.items() if v is not None}
    settings = tables.settings
    tz = settings.timezone
    owner_id = options.get("owner_id")
    start_date = options.get("start_date")
    end_date = options.get("end_date")
    as_of = options.get("as_of")

    logger.info("Running %s report", name)

    if name == "daily":
        return daily_sales(
            tables.invoices, tz=tz, start_date=start_date, end_date=end_date, owner_id=owner_id
        )
    elif name == "gst":
        return gst_summary(
            tables.invoices, tz=tz, start_date=start_date, end_date=end_date, owner_id=owner_id
        ).to_frame()
    elif name == "segments":
        return customer_segments(
            tables.customers, tables.invoices, as_of=as_of, tz=tz, owner_id=owner_id
        )
    elif name == "history":
        customer_id = options.get("customer_id")
        if customer_id is None:
            raise ValueError("The history report needs a customer_id.")
        history = customer_history(
            customer_id,
            tables.invoices,
            tables.invoice_items,
            tables.items,
            tables.customers,
            tz=tz,
            owner_id=owner_id,
        )
        return history.lines.merge(
            history.invoices.rename(columns={"id": "invoice_id"}), on="invoice_id", how="right"
        )
    elif name == "inventory":
        return inventory_analytics(
            tables.items,
            tables.invoice_items,
            tables.invoices,
            gold_rate=options.get("gold_rate", 0.0),
            days=options.get("days", MOVEMENT_WINDOW_DAYS),
            as_of=as_of,
            tz=tz,
            owner_id=owner_id,
        ).to_frame()
    elif name == "stock":
        summary = stock_summary(
            tables.items, low_stock_threshold=settings.low_stock_threshold, owner_id=owner_id
        )
        return pd.DataFrame([summary])
    elif name == "performance":
        return performance_metrics(
            tables.invoices,
            tables.customers,
            start_date=start_date,
            end_date=end_date,
            as_of=as_of,
            tz=tz,
            owner_id=owner_id,
        ).to_frame()
    elif name == "profit":
        return profit_margin(
            tables.invoices,
            tables.invoice_items,
            tables.items,
            tz=tz,
            start_date=start_date,
            end_date=end_date,
            owner_id=owner_id,
        ).to_frame()
    elif name == "top-selling":
        return top_selling(
            tables.invoice_items,
            tables.invoices,
            tables.items,
            limit=options.get("limit", TOP_SELLING_LIMIT),
            tz=tz,
            start_date=start_date,
            end_date=end_date,
            owner_id=owner_id,
        )
    else:  # sold
        return sold_items(
            tables.invoice_items,
            tables.invoices,
            tables.items,
            customer_id=options.get("customer_id"),
            metal_type=options.get("metal_type"),
            tz=tz,
            owner_id=owner_id,
        )
