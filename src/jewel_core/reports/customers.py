"""Customer reports: segmentation and purchase history."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from jewel_core.config import DEFAULT_TIMEZONE
from jewel_core.reports.config import (
    INACTIVE,
    INACTIVE_AFTER_DAYS,
    NEW,
    REGULAR,
    REGULAR_MIN_PURCHASES,
    REGULAR_MIN_VALUE,
    UNKNOWN,
    VIP,
    VIP_MIN_PURCHASES,
    VIP_MIN_VALUE,
)
from jewel_core.reports.frames import (
    Table,
    normalize_id,
    prepare_customers,
    prepare_invoices,
    prepare_items,
    prepare_lines,
    resolve_now,
    to_records,
)

logger = logging.getLogger(__name__)

SEGMENT_COLUMNS = [
    "customer_id",
    "customer_name",
    "phone",
    "purchase_count",
    "total_purchases",
    "total_value",
    "average_order_value",
    "last_purchase_date",
    "days_since_last_purchase",
    "segment",
]


def classify_customer(
    purchase_count: int,
    total_value: float,
    days_since_last_purchase: int | None,
) -> str:
    """Assign a customer segment.

    Rules are evaluated in order and the first match wins:

    1. no purchases                                   -> New
    2. purchases but no known last purchase date      -> Inactive
    3. last purchase more than 90 days ago            -> Inactive
    4. total value >= 100000 or at least 10 purchases  -> VIP
    5. at least 2 purchases or total value >= 10000    -> Regular
    6. otherwise                                      -> New

    Args:
        purchase_count: Number of invoices.
        total_value: Sum of invoice totals.
        days_since_last_purchase: Whole days since the last invoice, or
            None when no invoice has a date.

    Returns:
        One of "VIP", "Regular", "New", "Inactive".

    Examples:
        >>> classify_customer(12, 150000, 10)
        'VIP'
        >>> classify_customer(1, 500, 200)
        'Inactive'
    """
    if purchase_count == 0:
        return NEW
    if days_since_last_purchase is None:
        return INACTIVE
    if days_since_last_purchase > INACTIVE_AFTER_DAYS:
        return INACTIVE
    if total_value >= VIP_MIN_VALUE or purchase_count >= VIP_MIN_PURCHASES:
        return VIP
    if purchase_count >= REGULAR_MIN_PURCHASES or total_value >= REGULAR_MIN_VALUE:
        return REGULAR
    return NEW


def customer_segments(
    customers: Table,
    invoices: Table,
    *,
    as_of: Any = None,
    tz: str = DEFAULT_TIMEZONE,
    owner_id: Any = None,
) -> pd.DataFrame:
    """Purchase statistics and segment for every customer.

    Customers without invoices are included (segment New). Invoices of
    walk-in or unknown customers are ignored, as are invoices dated after
    as_of. Invoices without a valid created_at still count as purchases but
    cannot set the last purchase date.

    Args:
        customers: Customers (id, name, phone).
        invoices: Invoices (id, customer_id, created_at, total_amount).
        as_of: Reference time for days since last purchase (default: now).
        tz: Store timezone.
        owner_id: Optional owner to scope to.

    Returns:
        DataFrame with columns: customer_id, customer_name, phone,
        purchase_count, total_purchases, total_value, average_order_value,
        last_purchase_date, days_since_last_purchase, segment.
        Sorted by total_value descending.
    """
    people = prepare_customers(customers, owner_id=owner_id)
    df = prepare_invoices(
        invoices,
        tz=tz,
        owner_id=owner_id,
        required=["id", "customer_id", "total_amount"],
        drop_undated=False,
    )
    now = resolve_now(as_of, tz)
    df = df[df["local_ts"].isna() | (df["local_ts"] <= now)]

    known = df["customer_id"].isin(people["id"])
    skipped = int((df["customer_id"].notna() & ~known).sum())
    if skipped:
        logger.warning("Ignoring %d invoice(s) of unknown customers", skipped)
    df = df[known]

    stats = (
        df.groupby("customer_id")
        .agg(
            purchase_count=("total_amount", "size"),
            total_value=("total_amount", "sum"),
            last_purchase_date=("local_ts", "max"),
        )
        .reset_index()
    )

    result = people[["id", "name", "phone"]].rename(
        columns={"id": "customer_id", "name": "customer_name"}
    )
    result = result.merge(stats, on="customer_id", how="left")
    result["purchase_count"] = result["purchase_count"].fillna(0).astype(int)
    result["total_purchases"] = result["purchase_count"]
    result["total_value"] = result["total_value"].fillna(0.0).astype(float)
    result["last_purchase_date"] = pd.to_datetime(result["last_purchase_date"], utc=True).dt.tz_convert(tz)
    result["average_order_value"] = np.where(
        result["purchase_count"] > 0,
        result["total_value"] / result["purchase_count"].clip(lower=1),
        0.0,
    )

    # Timedelta.days floors to whole days
    result["days_since_last_purchase"] = (now - result["last_purchase_date"]).dt.days.astype("Int64")
    result["segment"] = [
        classify_customer(count, value, None if pd.isna(days) else int(days))
        for count, value, days in zip(
            result["purchase_count"],
            result["total_value"],
            result["days_since_last_purchase"],
        )
    ]

    logger.info(
        "Segmented %d customer(s): %s",
        len(result),
        result["segment"].value_counts().to_dict(),
    )
    result = result.sort_values("total_value", ascending=False, kind="mergesort")
    return result.reset_index(drop=True)[SEGMENT_COLUMNS]


@dataclass
class CustomerHistory:
    """A customer's invoices and what was bought on each.

    Attributes:
        customer_id: The customer.
        invoices: id, invoice_number, total_amount, created_at; newest first.
        lines: invoice_id, item_name, quantity, price for those invoices.
    """

    customer_id: str
    invoices: pd.DataFrame
    lines: pd.DataFrame

    @property
    def is_empty(self) -> bool:
        return self.invoices.empty

    def to_dict(self) -> list[dict]:
        """Nest each invoice's lines under an ``items`` key."""
        records = []
        for invoice in to_records(self.invoices):
            invoice_lines = self.lines[self.lines["invoice_id"] == invoice["id"]]
            invoice["items"] = to_records(invoice_lines.drop(columns="invoice_id"))
            records.append(invoice)
        return records

    def to_frame(self) -> pd.DataFrame:
        return self.invoices


def customer_history(
    customer_id: Any,
    invoices: Table,
    lines: Table,
    items: Table,
    customers: Table = None,
    *,
    tz: str = DEFAULT_TIMEZONE,
    owner_id: Any = None,
) -> CustomerHistory:
    """Purchase history of one customer.

    When a customers table is given and the customer is not in it (or
    belongs to another owner), the history is empty.

    Args:
        customer_id: The customer to look up.
        invoices: Invoices (id, customer_id, created_at, total_amount).
        lines: Invoice lines (invoice_id, item_id, quantity, price).
        items: Inventory items (id, name).
        customers: Optional customers table used to verify the customer.
        tz: Store timezone.
        owner_id: Optional owner to scope to.

    Returns:
        CustomerHistory.
    """
    key = normalize_id(customer_id)
    invoice_cols = ["id", "invoice_number", "total_amount", "created_at"]
    line_cols = ["invoice_id", "item_name", "quantity", "price"]
    empty = CustomerHistory(
        customer_id=key,
        invoices=pd.DataFrame(columns=invoice_cols),
        lines=pd.DataFrame(columns=line_cols),
    )

    if customers is not None:
        people = prepare_customers(customers, owner_id=owner_id)
        if key not in set(people["id"]):
            logger.info("Customer %s not found", key)
            return empty

    df = prepare_invoices(
        invoices,
        tz=tz,
        owner_id=owner_id,
        required=["id", "customer_id", "total_amount"],
        drop_undated=False,
    )
    df = df[df["customer_id"] == key]
    if df.empty:
        return empty
    if "invoice_number" not in df.columns:
        df["invoice_number"] = None

    df = df.sort_values("local_ts", ascending=False, na_position="last", kind="mergesort")
    history = df.assign(created_at=df["local_ts"])[invoice_cols].reset_index(drop=True)

    bought = prepare_lines(lines, owner_id=owner_id)
    bought = bought[bought["invoice_id"].isin(history["id"])]
    names = prepare_items(items, owner_id=owner_id)[["id", "name"]].rename(
        columns={"id": "item_id", "name": "item_name"}
    )
    bought = bought.merge(names.drop_duplicates(subset="item_id"), on="item_id", how="left")
    bought["item_name"] = bought["item_name"].fillna(UNKNOWN)

    return CustomerHistory(
        customer_id=key,
        invoices=history,
        lines=bought[line_cols].reset_index(drop=True),
    )
