r"""Command-line entry point for the store reports.

Reads the CSV exports of one store from a data directory and prints a
report, or writes it as CSV.

Examples:
    Command-line usage:
        # Daily sales for January
        jewel-report daily --data-root data --start 2025-01-01 --end 2025-01-31

        # Top 5 sellers written to a file
        jewel-report top-selling --limit 5 --out reports/top.csv

        # Inventory movement valued at today's gold rate
        jewel-report inventory --gold-rate 7150

        # Check stored invoices against the GST rate in settings.json
        python -m jewel_core.cli qa --data-root data

        # Live 24K / 22K / 18K rates
        jewel-report rates
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pandas as pd

from jewel_core.config import DataPaths
from jewel_core.exceptions import JewelCoreError
from jewel_core.pricing.rates import fetch_gold_rates
from jewel_core.qa import run_invoice_qa
from jewel_core.reports import REPORTS, run_report
from jewel_core.reports.config import METAL_TYPES
from jewel_core.tables import StoreTables, load_tables
from jewel_core.utils import parse_date

logger = logging.getLogger(__name__)

COMMANDS = list(REPORTS) + ["qa", "rates"]


@dataclass
class Args:
    command: str
    data_root: Path
    settings: Optional[Path]
    out: Optional[Path]
    owner_id: Optional[str]
    start: Optional[str]
    end: Optional[str]
    as_of: Optional[str]
    gold_rate: Optional[float]
    days: Optional[int]
    limit: Optional[int]
    customer_id: Optional[str]
    metal_type: Optional[str]
    quiet: bool


def parse_args(argv: list[str] | None = None) -> Args:
    parser = argparse.ArgumentParser(
        prog="jewel-report",
        description="Run jewellery store reports over CSV exports of the store tables.",
    )
    parser.add_argument("command", choices=COMMANDS, help="Report to run.")
    parser.add_argument(
        "--data-root",
        type=str,
        default="data",
        help="Directory with items.csv, customers.csv, invoices.csv and invoice_items.csv "
        "(default: ./data)",
    )
    parser.add_argument(
        "--settings",
        type=str,
        default=None,
        help="Store settings JSON (default: <data-root>/settings.json)",
    )
    parser.add_argument("--out", type=str, default=None, help="Write the report to this CSV file.")
    parser.add_argument("--owner-id", type=str, default=None, help="Only use rows of this owner.")
    parser.add_argument("--start", type=str, default=None, help="First local date (YYYY-MM-DD).")
    parser.add_argument("--end", type=str, default=None, help="Last local date (YYYY-MM-DD).")
    parser.add_argument(
        "--as-of",
        type=str,
        default=None,
        help="Reference time for day counts (ISO 8601, default: now).",
    )
    parser.add_argument(
        "--gold-rate",
        type=float,
        default=None,
        help="24K gold rate per gram for stock valuation (inventory).",
    )
    parser.add_argument(
        "--days", type=int, default=None, help="Movement window in days (inventory, default: 90)."
    )
    parser.add_argument(
        "--limit", type=int, default=None, help="Number of items (top-selling, default: 10)."
    )
    parser.add_argument("--customer-id", type=str, default=None, help="Customer (history, sold).")
    parser.add_argument(
        "--metal-type",
        type=str,
        default=None,
        choices=METAL_TYPES,
        help="Metal type filter (sold).",
    )
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors.")
    ns = parser.parse_args(argv)

    for flag in ("start", "end"):
        value = getattr(ns, flag)
        if value is not None:
            try:
                parse_date(value)
            except ValueError:
                parser.error(f"--{flag}: invalid date '{value}' (expected YYYY-MM-DD)")

    return Args(
        command=ns.command,
        data_root=Path(ns.data_root),
        settings=Path(ns.settings) if ns.settings else None,
        out=Path(ns.out) if ns.out else None,
        owner_id=ns.owner_id,
        start=ns.start,
        end=ns.end,
        as_of=ns.as_of,
        gold_rate=ns.gold_rate,
        days=ns.days,
        limit=ns.limit,
        customer_id=ns.customer_id,
        metal_type=ns.metal_type,
        quiet=ns.quiet,
    )


def _emit(df: pd.DataFrame, out: Optional[Path]) -> None:
    if out is None:
        if df.empty:
            print("(no rows)")
        else:
            print(df.to_string(index=False))
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, index=False, encoding="utf-8-sig")
    logger.info("Wrote %d row(s) to %s", len(df), out)


def _rates(args: Args) -> int:
    quote = fetch_gold_rates()
    df = pd.DataFrame(
        [{"carat": carat, "rate_per_gram": rate} for carat, rate in quote.rates.items()]
    )
    _emit(df, args.out)
    print(f"Source: {quote.source}")
    if quote.note:
        print(f"Note: {quote.note}")
    return 0


def _qa(args: Args, tables: StoreTables) -> int:
    result = run_invoice_qa(
        tables.invoices,
        tables.invoice_items,
        gst_rate=tables.settings.gst_rate,
        owner_id=args.owner_id,
    )
    for key, value in result.summary.items():
        print(f"{key}: {value}")
    if result.has_issues:
        _emit(result.issues(), args.out)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the jewel-report command-line tool.

    Returns:
        Exit status: 0 on success, 1 when the qa command finds issues,
        130 when interrupted with Ctrl-C.

    Raises:
        SystemExit: If the data directory is missing, the settings are
            invalid or a report option is rejected.
    """
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        return _run(args)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


def _run(args: Args) -> int:
    if args.command == "rates":
        return _rates(args)

    paths = DataPaths.from_root(args.data_root, args.settings)
    try:
        tables = load_tables(paths)
        if args.command == "qa":
            return _qa(args, tables)
        df = run_report(
            args.command,
            tables,
            owner_id=args.owner_id,
            start_date=args.start,
            end_date=args.end,
            as_of=args.as_of,
            gold_rate=args.gold_rate,
            days=args.days,
            limit=args.limit,
            customer_id=args.customer_id,
            metal_type=args.metal_type,
        )
    except (JewelCoreError, FileNotFoundError, ValueError) as e:
        raise SystemExit(f"ERROR: {e}") from e

    _emit(df, args.out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
