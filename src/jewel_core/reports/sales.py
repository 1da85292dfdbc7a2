"""Sales reports: daily sales, monthly GST, item rankings and profit margin.

All functions are pure. They take already-fetched invoices, invoice lines
and items for one store and return new tables; nothing is cached between
calls.

Grain Reference:
    daily_sales:   one row per local calendar date, newest first
    gst_summary:   one row per local month (YYYY-MM), oldest first
    top_selling:   one row per item, most pieces sold first, limited
    sold_items:    one row per item, most recently sold first
    profit_margin: one row per metal type plus overall totals
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from jewel_core.config import DEFAULT_TIMEZONE
from jewel_core.reports.config import ESTIMATED_COST_RATIO, TOP_SELLING_LIMIT
from jewel_core.reports.frames import (
    DateLike,
    Table,
    filter_date_range,
    join_lines,
    normalize_id,
    prepare_invoices,
    prepare_items,
    prepare_lines,
    to_records,
)

logger = logging.getLogger(__name__)

DAILY_COLUMNS = [
    "date",
    "total_invoices",
    "total_revenue",
    "total_gst",
    "total_gold_value",
    "total_making_charges",
]

MONTHLY_COLUMNS = ["month", "total_sales", "total_gst", "taxable_amount", "invoice_count"]

ITEM_SALES_COLUMNS = [
    "item_id",
    "item_name",
    "sku",
    "metal_type",
    "quantity_sold",
    "total_revenue",
    "times_sold",
    "last_sold_date",
]

PROFIT_COLUMNS = ["metal_type", "revenue", "cost", "profit", "margin"]


def daily_sales(
    invoices: Table,
    *,
    tz: str = DEFAULT_TIMEZONE,
    start_date: DateLike = None,
    end_date: DateLike = None,
    owner_id: Any = None,
) -> pd.DataFrame:
    """Bucket invoices by the store's local calendar date.

    Args:
        invoices: Invoices with created_at, total_amount, gst_amount,
            gold_value and making_charges.
        tz: Store timezone used to pick each invoice's calendar date.
        start_date: Optional first local date (inclusive, YYYY-MM-DD).
        end_date: Optional last local date (inclusive, YYYY-MM-DD).
        owner_id: Optional owner to scope to.

    Returns:
        DataFrame with columns: date, total_invoices, total_revenue,
        total_gst, total_gold_value, total_making_charges. Newest date first.

    Examples:
        >>> rows = [{"id": 1, "created_at": "2024-03-01T19:00:00+00:00", "total_amount": 100,
        ...          "gst_amount": 3, "gold_value": 90, "making_charges": 7}]
        >>> daily_sales(rows)["date"].iloc[0]
        datetime.date(2024, 3, 2)
    """
    df = prepare_invoices(
        invoices,
        tz=tz,
        owner_id=owner_id,
        required=["id", "created_at", "total_amount", "gst_amount", "gold_value", "making_charges"],
    )
    df = filter_date_range(df, start_date, end_date)

    if df.empty:
        return pd.DataFrame(columns=DAILY_COLUMNS)

    daily = (
        df.groupby("local_date")
        .agg(
            total_invoices=("total_amount", "size"),
            total_revenue=("total_amount", "sum"),
            total_gst=("gst_amount", "sum"),
            total_gold_value=("gold_value", "sum"),
            total_making_charges=("making_charges", "sum"),
        )
        .reset_index()
        .rename(columns={"local_date": "date"})
    )

    logger.info("Daily sales: %d invoice(s) across %d day(s)", len(df), len(daily))
    return daily.sort_values("date", ascending=False).reset_index(drop=True)[DAILY_COLUMNS]


@dataclass
class GSTReport:
    """Monthly GST breakdown.

    Attributes:
        monthly_breakdown: One row per month (YYYY-MM), oldest first, with
            total_sales, total_gst, taxable_amount and invoice_count.
        summary: total_sales, total_gst, total_taxable_amount and
            total_invoices across all months.
    """

    monthly_breakdown: pd.DataFrame
    summary: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "monthly_breakdown": to_records(self.monthly_breakdown),
            "summary": dict(self.summary),
        }

    def to_frame(self) -> pd.DataFrame:
        return self.monthly_breakdown


def gst_summary(
    invoices: Table,
    *,
    tz: str = DEFAULT_TIMEZONE,
    start_date: DateLike = None,
    end_date: DateLike = None,
    owner_id: Any = None,
) -> GSTReport:
    """Group invoices by local (year, month) for GST filing.

    taxable_amount is total_sales minus total_gst. Months are listed oldest
    first, the opposite order of daily_sales.

    Args:
        invoices: Invoices with created_at, total_amount and gst_amount.
        tz: Store timezone.
        start_date: Optional first local date (inclusive).
        end_date: Optional last local date (inclusive).
        owner_id: Optional owner to scope to.

    Returns:
        GSTReport.
    """
    df = prepare_invoices(
        invoices,
        tz=tz,
        owner_id=owner_id,
        required=["id", "created_at", "total_amount", "gst_amount"],
    )
    df = filter_date_range(df, start_date, end_date)

    if df.empty:
        monthly = pd.DataFrame(columns=MONTHLY_COLUMNS)
    else:
        df["month"] = df["local_ts"].dt.strftime("%Y-%m")
        monthly = (
            df.groupby("month")
            .agg(
                total_sales=("total_amount", "sum"),
                total_gst=("gst_amount", "sum"),
                invoice_count=("total_amount", "size"),
            )
            .reset_index()
            .sort_values("month")
            .reset_index(drop=True)
        )
        monthly["taxable_amount"] = monthly["total_sales"] - monthly["total_gst"]
        monthly = monthly[MONTHLY_COLUMNS]

    summary = {
        "total_sales": float(monthly["total_sales"].sum()),
        "total_gst": float(monthly["total_gst"].sum()),
        "total_taxable_amount": float(monthly["taxable_amount"].sum()),
        "total_invoices": int(len(df)),
    }
    return GSTReport(monthly_breakdown=monthly, summary=summary)


def _sold_lines(
    lines: Table,
    invoices: Table,
    items: Table,
    tz: str,
    owner_id: Any,
) -> pd.DataFrame:
    """Invoice lines joined with their invoice date and item details."""
    prepared_lines = prepare_lines(lines, owner_id=owner_id)
    prepared_invoices = prepare_invoices(invoices, tz=tz, owner_id=owner_id, required=["id", "created_at"])
    prepared_items = prepare_items(items)
    return join_lines(prepared_lines, prepared_invoices, prepared_items, owner_id=owner_id)


def _aggregate_by_item(sold: pd.DataFrame) -> pd.DataFrame:
    """Fold joined lines into one row per item."""
    if sold.empty:
        return pd.DataFrame(columns=ITEM_SALES_COLUMNS)
    return (
        sold.groupby("item_id", sort=False)
        .agg(
            item_name=("item_name", "first"),
            sku=("sku", "first"),
            metal_type=("metal_type", "first"),
            quantity_sold=("quantity", "sum"),
            total_revenue=("revenue", "sum"),
            times_sold=("invoice_id", "size"),
            last_sold_date=("local_ts", "max"),
        )
        .reset_index()[ITEM_SALES_COLUMNS]
    )


def top_selling(
    lines: Table,
    invoices: Table,
    items: Table,
    *,
    limit: int = TOP_SELLING_LIMIT,
    tz: str = DEFAULT_TIMEZONE,
    start_date: DateLike = None,
    end_date: DateLike = None,
    owner_id: Any = None,
) -> pd.DataFrame:
    """Rank items by pieces sold.

    Args:
        lines: Invoice lines (invoice_id, item_id, quantity, price).
        invoices: Invoices (id, created_at).
        items: Inventory items (id, name, sku, metal_type).
        limit: Number of items to return (default: 10).
        tz: Store timezone for the date range.
        start_date: Optional first local date (inclusive).
        end_date: Optional last local date (inclusive).
        owner_id: Optional owner to scope to.

    Returns:
        DataFrame with item_id, item_name, sku, metal_type, quantity_sold,
        total_revenue, times_sold, last_sold_date; quantity_sold descending.

    Raises:
        ValueError: If limit is negative.
    """
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")

    sold = _sold_lines(lines, invoices, items, tz, owner_id)
    sold = filter_date_range(sold, start_date, end_date)
    ranked = _aggregate_by_item(sold)
    ranked = ranked.sort_values("quantity_sold", ascending=False, kind="mergesort")
    return ranked.head(limit).reset_index(drop=True)


def sold_items(
    lines: Table,
    invoices: Table,
    items: Table,
    *,
    customer_id: Any = None,
    metal_type: str | None = None,
    tz: str = DEFAULT_TIMEZONE,
    owner_id: Any = None,
) -> pd.DataFrame:
    """All items that have been sold, most recently sold first.

    Args:
        lines: Invoice lines.
        invoices: Invoices (id, created_at, customer_id).
        items: Inventory items.
        customer_id: Only count sales to this customer.
        metal_type: Only include items of this metal type.
        tz: Store timezone.
        owner_id: Optional owner to scope to.

    Returns:
        DataFrame with the same columns as top_selling, no limit.
    """
    sold = _sold_lines(lines, invoices, items, tz, owner_id)
    if customer_id is not None:
        sold = sold[sold["customer_id"] == normalize_id(customer_id)]
    if metal_type is not None:
        sold = sold[sold["metal_type"] == metal_type]

    result = _aggregate_by_item(sold)
    result = result.sort_values("last_sold_date", ascending=False, kind="mergesort")
    return result.reset_index(drop=True)


@dataclass
class ProfitMarginReport:
    """Estimated profit.

    Cost price is not tracked, so each line's cost is estimated as a flat
    80% of its revenue.

    Attributes:
        total_revenue: Sum of invoice totals.
        total_cost: Sum of estimated line costs.
        total_profit: total_revenue - total_cost.
        profit_margin: total_profit / total_revenue * 100 (0 without revenue).
        by_metal_type: metal_type, revenue, cost, profit, margin per metal
            type ("Unknown" for lines whose item is missing).
    """

    total_revenue: float
    total_cost: float
    total_profit: float
    profit_margin: float
    by_metal_type: pd.DataFrame

    def to_dict(self) -> dict:
        return {
            "total_revenue": self.total_revenue,
            "total_cost": self.total_cost,
            "total_profit": self.total_profit,
            "profit_margin": self.profit_margin,
            "by_metal_type": to_records(self.by_metal_type),
        }

    def to_frame(self) -> pd.DataFrame:
        overall = pd.DataFrame(
            [
                {
                    "metal_type": "Total",
                    "revenue": self.total_revenue,
                    "cost": self.total_cost,
                    "profit": self.total_profit,
                    "margin": self.profit_margin,
                }
            ]
        )
        if self.by_metal_type.empty:
            return overall
        return pd.concat([self.by_metal_type, overall], ignore_index=True)


def profit_margin(
    invoices: Table,
    lines: Table,
    items: Table,
    *,
    tz: str = DEFAULT_TIMEZONE,
    start_date: DateLike = None,
    end_date: DateLike = None,
    owner_id: Any = None,
) -> ProfitMarginReport:
    """Estimate profit overall and per metal type.

    Overall revenue is the sum of invoice totals; per-metal revenue is the
    sum of line price x quantity. Each line's cost is estimated at
    ESTIMATED_COST_RATIO of its revenue.

    Args:
        invoices: Invoices (id, created_at, total_amount).
        lines: Invoice lines (invoice_id, item_id, quantity, price).
        items: Inventory items (id, metal_type).
        tz: Store timezone for the date range.
        start_date: Optional first local date (inclusive).
        end_date: Optional last local date (inclusive).
        owner_id: Optional owner to scope to.

    Returns:
        ProfitMarginReport.
    """
    prepared_invoices = prepare_invoices(invoices, tz=tz, owner_id=owner_id)
    prepared_invoices = filter_date_range(prepared_invoices, start_date, end_date)
    prepared_lines = prepare_lines(lines, owner_id=owner_id)
    sold = join_lines(prepared_lines, prepared_invoices, prepare_items(items), owner_id=owner_id)

    sold["cost"] = sold["revenue"] * ESTIMATED_COST_RATIO

    total_revenue = float(prepared_invoices["total_amount"].sum())
    total_cost = float(sold["cost"].sum())
    total_profit = total_revenue - total_cost
    overall_margin = total_profit / total_revenue * 100 if total_revenue > 0 else 0.0

    if sold.empty:
        by_metal = pd.DataFrame(columns=PROFIT_COLUMNS)
    else:
        by_metal = (
            sold.groupby("metal_type")
            .agg(revenue=("revenue", "sum"), cost=("cost", "sum"))
            .reset_index()
        )
        by_metal["profit"] = by_metal["revenue"] - by_metal["cost"]
        positive = by_metal["revenue"].where(by_metal["revenue"] > 0)
        by_metal["margin"] = np.where(positive.notna(), by_metal["profit"] / positive * 100, 0.0)
        by_metal = (
            by_metal.sort_values("revenue", ascending=False, kind="mergesort")
            .reset_index(drop=True)[PROFIT_COLUMNS]
        )

    logger.info(
        "Profit margin over %d invoice(s): revenue %.2f, estimated cost %.2f",
        len(prepared_invoices),
        total_revenue,
        total_cost,
    )
    return ProfitMarginReport(
        total_revenue=total_revenue,
        total_cost=total_cost,
        total_profit=total_profit,
        profit_margin=overall_margin,
        by_metal_type=by_metal,
    )
