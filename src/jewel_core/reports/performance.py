"""Store performance metrics over a date range."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any

import pandas as pd

from jewel_core.config import DEFAULT_TIMEZONE
from jewel_core.reports.config import PERFORMANCE_WINDOW_DAYS
from jewel_core.reports.frames import (
    DateLike,
    Table,
    filter_date_range,
    prepare_customers,
    prepare_invoices,
    resolve_now,
    to_date,
    to_local,
)

logger = logging.getLogger(__name__)


@dataclass
class PerformanceMetrics:
    """Headline metrics for one period.

    conversion_rate is transactions per active customer. No visit or lead
    data exists, so it is a proxy and not a funnel conversion.
    """

    average_transaction_value: float
    total_transactions: int
    total_revenue: float
    conversion_rate: float
    customer_acquisition_rate: float
    new_customers: int
    active_customers: int
    period_start: date
    period_end: date

    def to_dict(self) -> dict:
        data = asdict(self)
        data["period_start"] = self.period_start.isoformat()
        data["period_end"] = self.period_end.isoformat()
        return data

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([self.to_dict()])


def performance_metrics(
    invoices: Table,
    customers: Table,
    *,
    start_date: DateLike = None,
    end_date: DateLike = None,
    as_of: Any = None,
    tz: str = DEFAULT_TIMEZONE,
    owner_id: Any = None,
) -> PerformanceMetrics:
    """Transactions, revenue and customer metrics for a period.

    Args:
        invoices: Invoices (id, customer_id, created_at, total_amount).
        customers: Customers (id, name, created_at).
        start_date: First local date (default: 30 days before end_date).
        end_date: Last local date (default: today, or the date of as_of).
        as_of: Reference time used for the default period.
        tz: Store timezone.
        owner_id: Optional owner to scope to.

    Returns:
        PerformanceMetrics. Rates are 0 when their denominator is 0.
    """
    period_end = to_date(end_date) or resolve_now(as_of, tz).date()
    period_start = to_date(start_date) or period_end - timedelta(days=PERFORMANCE_WINDOW_DAYS)

    df = prepare_invoices(invoices, tz=tz, owner_id=owner_id)
    df = filter_date_range(df, period_start, period_end)

    total_transactions = int(len(df))
    total_revenue = float(df["total_amount"].sum())
    average = total_revenue / total_transactions if total_transactions else 0.0

    active_customers = int(df["customer_id"].dropna().nunique())
    conversion = total_transactions / active_customers if active_customers else 0.0

    people = prepare_customers(customers, owner_id=owner_id)
    joined = to_local(people["created_at"], tz).dt.date.dropna()
    in_period = (joined >= period_start) & (joined <= period_end)
    new_customers = int(in_period.sum())
    total_customers = int(len(people))
    acquisition = new_customers / total_customers * 100 if total_customers else 0.0

    logger.info(
        "Performance %s to %s: %d transaction(s), %d active customer(s)",
        period_start,
        period_end,
        total_transactions,
        active_customers,
    )
    return PerformanceMetrics(
        average_transaction_value=average,
        total_transactions=total_transactions,
        total_revenue=total_revenue,
        conversion_rate=conversion,
        customer_acquisition_rate=acquisition,
        new_customers=new_customers,
        active_customers=active_customers,
        period_start=period_start,
        period_end=period_end,
    )
