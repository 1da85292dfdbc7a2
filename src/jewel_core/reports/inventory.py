"""Inventory reports: stock valuation, movement and stock summary.

Stock valuation uses rough per-metal estimates, not a cost model:

    Gold:    net_weight x gold_rate + making_charge  (when gold_rate > 0)
    Silver:  net_weight x (gold_rate / 100) + making_charge
    other:   making_charge x 10  (also Gold without a rate)

each multiplied by the quantity in stock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from jewel_core.config import DEFAULT_LOW_STOCK_THRESHOLD, DEFAULT_TIMEZONE
from jewel_core.pricing.engine import validate_amount
from jewel_core.reports.config import (
    FAST_MIN_QUANTITY,
    FAST_MIN_TIMES_SOLD,
    MOVEMENT_LIST_SIZE,
    MOVEMENT_WINDOW_DAYS,
    OTHER_METAL_MAKING_MULTIPLIER,
    SILVER_RATE_DIVISOR,
    SLOW_AFTER_DAYS,
)
from jewel_core.reports.frames import (
    Table,
    join_lines,
    prepare_invoices,
    prepare_items,
    prepare_lines,
    resolve_now,
    to_records,
)

logger = logging.getLogger(__name__)

MOVEMENT_COLUMNS = [
    "item_id",
    "item_name",
    "sku",
    "metal_type",
    "quantity_sold",
    "times_sold",
    "last_sold_date",
    "days_since_last_sale",
]


@dataclass
class StockValue:
    """Estimated value of the stock on hand."""

    total: float
    by_metal_type: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"total": self.total, "by_metal_type": dict(self.by_metal_type)}


def item_values(items: pd.DataFrame, gold_rate: float) -> pd.Series:
    """Estimated value of one piece of each prepared item row."""
    weight = items["net_weight"]
    making = items["making_charge"]
    metal = items["metal_type"]
    return pd.Series(
        np.select(
            [(metal == "Gold") & (gold_rate > 0), metal == "Silver"],
            [
                weight * gold_rate + making,
                weight * (gold_rate / SILVER_RATE_DIVISOR) + making,
            ],
            default=making * OTHER_METAL_MAKING_MULTIPLIER,
        ),
        index=items.index,
        dtype=float,
    )


def stock_value(items: Table, gold_rate: float = 0.0, *, owner_id: Any = None) -> StockValue:
    """Estimate the value of all stock, overall and per metal type.

    Args:
        items: Inventory items (id, metal_type, net_weight, making_charge,
            quantity).
        gold_rate: 24K gold rate per gram. Without a rate (0), gold is
            valued like any other metal at ten times its making charge.
        owner_id: Optional owner to scope to.

    Returns:
        StockValue.

    Raises:
        InvalidInputError: If gold_rate is negative or not finite.

    Examples:
        >>> items = [{"id": 1, "metal_type": "Gold", "net_weight": 10,
        ...           "making_charge": 500, "quantity": 2}]
        >>> stock_value(items, gold_rate=6000).total
        121000.0
    """
    gold_rate = validate_amount("gold_rate", gold_rate)
    df = prepare_items(items, owner_id=owner_id)
    if df.empty:
        return StockValue(total=0.0)

    df["stock_value"] = item_values(df, gold_rate) * df["quantity"]
    by_metal = df.groupby("metal_type", sort=False)["stock_value"].sum()
    return StockValue(
        total=float(df["stock_value"].sum()),
        by_metal_type={str(k): float(v) for k, v in by_metal.items()},
    )


def turnover_rate(total_items_sold: float, total_items_in_stock: float) -> float:
    """Share of sold pieces among sold plus remaining pieces, in percent.

    Examples:
        >>> turnover_rate(25, 75)
        25.0
        >>> turnover_rate(0, 0)
        0.0
    """
    denominator = total_items_in_stock + total_items_sold
    if denominator <= 0:
        return 0.0
    return float(total_items_sold) / denominator * 100


@dataclass
class InventoryAnalytics:
    """Result of inventory_analytics.

    Attributes:
        stock_value: Estimated value of the stock on hand.
        movement: One row per item with quantity_sold, times_sold,
            last_sold_date and days_since_last_sale over the window.
        fast_moving_items: Top items by quantity sold among those sold at
            least 3 times or 10 pieces.
        slow_moving_items: Items unsold in the window or unsold for more than
            60 days; stalest first, never-sold items last.
        turnover_rate: Percent of pieces sold out of sold plus in stock.
        total_items_sold: Pieces sold in the window.
        total_items_in_stock: Pieces currently in stock.
        analysis_period_days: Window length in days.
    """

    stock_value: StockValue
    movement: pd.DataFrame
    fast_moving_items: pd.DataFrame
    slow_moving_items: pd.DataFrame
    turnover_rate: float
    total_items_sold: int
    total_items_in_stock: int
    analysis_period_days: int

    def to_dict(self) -> dict:
        return {
            "stock_value": self.stock_value.to_dict(),
            "fast_moving_items": to_records(self.fast_moving_items),
            "slow_moving_items": to_records(self.slow_moving_items),
            "turnover_rate": self.turnover_rate,
            "total_items_sold": self.total_items_sold,
            "total_items_in_stock": self.total_items_in_stock,
            "analysis_period_days": self.analysis_period_days,
        }

    def to_frame(self) -> pd.DataFrame:
        return self.movement


def item_movement(
    items: Table,
    lines: Table,
    invoices: Table,
    *,
    days: int = MOVEMENT_WINDOW_DAYS,
    as_of: Any = None,
    tz: str = DEFAULT_TIMEZONE,
    owner_id: Any = None,
) -> pd.DataFrame:
    """Sales movement of every item over a trailing window.

    Only sales from ``as_of - days`` up to ``as_of`` count. times_sold is the number
    of distinct invoices the item appears on. Lines for items that are no
    longer in inventory are ignored.

    Returns:
        DataFrame with columns: item_id, item_name, sku, metal_type,
        quantity_sold, times_sold, last_sold_date, days_since_last_sale.
        In inventory order.
    """
    if days < 0:
        raise ValueError(f"days must be >= 0, got {days}")

    now = resolve_now(as_of, tz)
    stock = prepare_items(items, owner_id=owner_id)
    sold = join_lines(
        prepare_lines(lines, owner_id=owner_id),
        prepare_invoices(invoices, tz=tz, owner_id=owner_id, required=["id", "created_at"]),
        prepare_items(items),
        owner_id=owner_id,
    )
    sold = sold[(sold["local_ts"] >= now - pd.Timedelta(days=days)) & (sold["local_ts"] <= now)]

    per_item = (
        sold.groupby("item_id")
        .agg(
            quantity_sold=("quantity", "sum"),
            times_sold=("invoice_id", "nunique"),
            last_sold_date=("local_ts", "max"),
        )
        .reset_index()
    )

    movement = stock[["id", "name", "sku", "metal_type"]].rename(
        columns={"id": "item_id", "name": "item_name"}
    )
    movement = movement.merge(per_item, on="item_id", how="left")
    movement["quantity_sold"] = movement["quantity_sold"].fillna(0).astype(int)
    movement["times_sold"] = movement["times_sold"].fillna(0).astype(int)
    movement["last_sold_date"] = pd.to_datetime(movement["last_sold_date"], utc=True).dt.tz_convert(tz)
    movement["days_since_last_sale"] = (now - movement["last_sold_date"]).dt.days.astype("Int64")
    return movement[MOVEMENT_COLUMNS]


def fast_moving(movement: pd.DataFrame, limit: int = MOVEMENT_LIST_SIZE) -> pd.DataFrame:
    """Items sold often or in volume, most pieces sold first."""
    fast = movement[
        (movement["times_sold"] >= FAST_MIN_TIMES_SOLD)
        | (movement["quantity_sold"] >= FAST_MIN_QUANTITY)
    ]
    fast = fast.sort_values("quantity_sold", ascending=False, kind="mergesort")
    return fast.head(limit).reset_index(drop=True)


def slow_moving(movement: pd.DataFrame, limit: int = MOVEMENT_LIST_SIZE) -> pd.DataFrame:
    """Items not sold in the window or not sold recently.

    Sold items come first, longest since the last sale first; never-sold
    items follow in inventory order.
    """
    never_sold = movement[movement["times_sold"] == 0]
    stale = movement[
        (movement["times_sold"] > 0)
        & (movement["days_since_last_sale"].fillna(0) > SLOW_AFTER_DAYS)
    ]
    stale = stale.sort_values("days_since_last_sale", ascending=False, kind="mergesort")
    return pd.concat([stale, never_sold]).head(limit).reset_index(drop=True)


def inventory_analytics(
    items: Table,
    lines: Table,
    invoices: Table,
    *,
    gold_rate: float = 0.0,
    days: int = MOVEMENT_WINDOW_DAYS,
    as_of: Any = None,
    tz: str = DEFAULT_TIMEZONE,
    owner_id: Any = None,
) -> InventoryAnalytics:
    """Stock value, movement classification and turnover.

    Args:
        items: Inventory items.
        lines: Invoice lines (invoice_id, item_id, quantity).
        invoices: Invoices (id, created_at).
        gold_rate: 24K gold rate per gram for stock valuation.
        days: Trailing window for movement analysis (default: 90).
        as_of: End of the window (default: now).
        tz: Store timezone.
        owner_id: Optional owner to scope to.

    Returns:
        InventoryAnalytics.
    """
    value = stock_value(items, gold_rate, owner_id=owner_id)
    movement = item_movement(
        items, lines, invoices, days=days, as_of=as_of, tz=tz, owner_id=owner_id
    )

    total_sold = int(movement["quantity_sold"].sum())
    in_stock = int(prepare_items(items, owner_id=owner_id)["quantity"].sum())
    rate = turnover_rate(total_sold, in_stock)

    logger.info(
        "Inventory over %d day(s): %d sold, %d in stock, turnover %.1f%%",
        days,
        total_sold,
        in_stock,
        rate,
    )
    return InventoryAnalytics(
        stock_value=value,
        movement=movement,
        fast_moving_items=fast_moving(movement),
        slow_moving_items=slow_moving(movement),
        turnover_rate=rate,
        total_items_sold=total_sold,
        total_items_in_stock=in_stock,
        analysis_period_days=days,
    )


def stock_summary(
    items: Table,
    *,
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    owner_id: Any = None,
) -> dict:
    """Counts of items and pieces in stock.

    Returns:
        Dict with total_items, total_quantity, total_gold_items,
        total_silver_items, total_diamond_items and low_stock_items
        (items with quantity below the threshold).
    """
    df = prepare_items(items, owner_id=owner_id)
    metal = df["metal_type"]
    return {
        "total_items": int(len(df)),
        "total_quantity": int(df["quantity"].sum()),
        "total_gold_items": int((metal == "Gold").sum()),
        "total_silver_items": int((metal == "Silver").sum()),
        "total_diamond_items": int((metal == "Diamond").sum()),
        "low_stock_items": int((df["quantity"] < low_stock_threshold).sum()),
    }
