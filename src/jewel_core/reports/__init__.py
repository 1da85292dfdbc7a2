"""Report aggregator.

Each report is a pure function over already-fetched tables (DataFrames or
lists of row mappings) of one store:

- **daily_sales**: invoices bucketed by local calendar date, newest first.
- **gst_summary**: invoices bucketed by month for GST filing, oldest first.
- **customer_segments**: purchase stats and VIP / Regular / New / Inactive
  segment per customer.
- **customer_history**: one customer's invoices with their lines.
- **inventory_analytics**: stock value, fast / slow movers and turnover.
- **stock_summary**: item and piece counts, low stock count.
- **performance_metrics**: transactions, revenue and customer rates.
- **profit_margin**: estimated profit overall and per metal type.
- **top_selling** / **sold_items**: per-item sales rankings.

Example:
    >>> from jewel_core.reports import daily_sales, top_selling
    >>>
    >>> daily = daily_sales(invoices_df, start_date="2025-01-01", end_date="2025-01-31")
    >>> top = top_selling(lines_df, invoices_df, items_df, limit=5)
"""

from jewel_core.reports.api import REPORTS, run_report
from jewel_core.reports.customers import (
    CustomerHistory,
    classify_customer,
    customer_history,
    customer_segments,
)
from jewel_core.reports.inventory import (
    InventoryAnalytics,
    StockValue,
    inventory_analytics,
    stock_summary,
    stock_value,
    turnover_rate,
)
from jewel_core.reports.performance import PerformanceMetrics, performance_metrics
from jewel_core.reports.sales import (
    GSTReport,
    ProfitMarginReport,
    daily_sales,
    gst_summary,
    profit_margin,
    sold_items,
    top_selling,
)

__all__ = [
    "REPORTS",
    "CustomerHistory",
    "GSTReport",
    "InventoryAnalytics",
    "PerformanceMetrics",
    "ProfitMarginReport",
    "StockValue",
    "classify_customer",
    "customer_history",
    "customer_segments",
    "daily_sales",
    "gst_summary",
    "inventory_analytics",
    "performance_metrics",
    "profit_margin",
    "run_report",
    "sold_items",
    "stock_summary",
    "stock_value",
    "top_selling",
    "turnover_rate",
]
