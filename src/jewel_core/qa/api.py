"""Public API for the invoice QA checks.

Runs the checks in jewel_core.qa.checks in memory, without reading or
writing files.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import pandas as pd

from jewel_core.exceptions import DataQualityError
from jewel_core.qa.checks import (
    DEFAULT_TOLERANCE,
    MONEY_COLUMNS,
    REQUIRED_COLUMNS,
    detect_duplicate_invoice_numbers,
    detect_gst_mismatches,
    detect_line_mismatches,
    detect_orphan_lines,
    detect_total_mismatches,
)
from jewel_core.reports.frames import Table, coerce_numeric, prepare_lines, scope_to_owner, to_frame

logger = logging.getLogger(__name__)


@dataclass
class InvoiceQAResult:
    """Result of the invoice QA checks.

    Attributes:
        summary: Dictionary with counts and flags.
        total_mismatches: Invoices whose total is not gold + making + GST,
            or None if none found.
        gst_mismatches: Invoices whose GST does not match the rate, or None
            (also None when no rate was given).
        line_mismatches: Invoices whose lines do not sum to gold + making,
            or None.
        orphan_lines: Lines without an invoice, or None.
        duplicate_numbers: Invoices sharing an invoice_number, or None.
    """

    summary: dict
    total_mismatches: pd.DataFrame | None
    gst_mismatches: pd.DataFrame | None
    line_mismatches: pd.DataFrame | None
    orphan_lines: pd.DataFrame | None
    duplicate_numbers: pd.DataFrame | None

    @property
    def has_issues(self) -> bool:
        return bool(self.summary["schema_errors"]) or any(
            frame is not None
            for frame in (
                self.total_mismatches,
                self.gst_mismatches,
                self.line_mismatches,
                self.orphan_lines,
                self.duplicate_numbers,
            )
        )

    def issues(self) -> pd.DataFrame:
        """All flagged invoices in one table with a ``check`` column."""
        frames = []
        for check, frame in (
            ("total_mismatch", self.total_mismatches),
            ("gst_mismatch", self.gst_mismatches),
            ("line_mismatch", self.line_mismatches),
            ("orphan_line", self.orphan_lines),
            ("duplicate_number", self.duplicate_numbers),
        ):
            if frame is not None:
                frames.append(frame.assign(check=check))
        if not frames:
            return pd.DataFrame(columns=["check"])
        return pd.concat(frames, ignore_index=True)


def run_invoice_qa(
    invoices: Table,
    lines: Table = None,
    *,
    gst_rate: Optional[float] = None,
    tolerance: float = DEFAULT_TOLERANCE,
    owner_id: Any = None,
) -> InvoiceQAResult:
    """Check stored invoices for pricing integrity.

    Args:
        invoices: Invoices with id, gold_value, making_charges, gst_amount
            and total_amount.
        lines: Optional invoice lines. Enables the line-sum and orphan
            checks.
        gst_rate: Optional GST rate in percent. Enables the GST check.
        tolerance: Largest allowed difference in currency units
            (default: 0.01, one paisa).
        owner_id: Optional owner to scope to.

    Returns:
        InvoiceQAResult.

    Raises:
        DataQualityError: If the invoices table lacks a required column.
    """
    df = to_frame(invoices)
    missing_cols = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_cols and not df.empty:
        raise DataQualityError(
            f"Missing required columns in invoices: {missing_cols}. Required: {REQUIRED_COLUMNS}"
        )
    for col in missing_cols:
        df[col] = pd.Series(dtype=object)
    df = scope_to_owner(df, owner_id, "invoices")

    # Schema errors are collected before numeric coercion hides them
    schema_errors = []
    for col in MONEY_COLUMNS:
        values = pd.to_numeric(df[col], errors="coerce")
        bad_count = int((values.isna() & df[col].notna()).sum())
        if bad_count:
            schema_errors.append(f"{col}: {bad_count} non-numeric values")
        null_count = int(df[col].isna().sum())
        if null_count:
            schema_errors.append(f"{col}: {null_count} nulls")
        neg_count = int((values < 0).sum())
        if neg_count:
            schema_errors.append(f"{col}: {neg_count} negative values")
    df = coerce_numeric(df, MONEY_COLUMNS)

    logger.info("Running invoice QA on %d invoice(s)", len(df))

    total_mismatches = detect_total_mismatches(df, tolerance)
    gst_mismatches = None
    if gst_rate is not None:
        gst_mismatches = detect_gst_mismatches(df, gst_rate, tolerance)

    line_mismatches = None
    orphan_lines = None
    if lines is not None:
        prepared = prepare_lines(lines, owner_id=owner_id)
        line_mismatches = detect_line_mismatches(df, prepared, tolerance)
        orphan_lines = detect_orphan_lines(df, prepared)

    duplicate_numbers = detect_duplicate_invoice_numbers(df)

    def _count(frame: pd.DataFrame | None) -> int:
        return len(frame) if frame is not None else 0

    summary = {
        "total_invoices": len(df),
        "total_mismatch_count": _count(total_mismatches),
        "gst_mismatch_count": _count(gst_mismatches),
        "line_mismatch_count": _count(line_mismatches),
        "orphan_line_count": _count(orphan_lines),
        "duplicate_number_count": _count(duplicate_numbers),
        "gst_checked": gst_rate is not None,
        "lines_checked": lines is not None,
        "schema_errors": schema_errors,
    }

    logger.info(
        "QA complete: %d total mismatch(es), %d GST mismatch(es), "
        "%d line mismatch(es), %d orphan line(s)",
        summary["total_mismatch_count"],
        summary["gst_mismatch_count"],
        summary["line_mismatch_count"],
        summary["orphan_line_count"],
    )

    return InvoiceQAResult(
        summary=summary,
        total_mismatches=total_mismatches,
        gst_mismatches=gst_mismatches,
        line_mismatches=line_mismatches,
        orphan_lines=orphan_lines,
        duplicate_numbers=duplicate_numbers,
    )
