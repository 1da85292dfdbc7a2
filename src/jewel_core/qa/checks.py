"""Integrity checks for stored invoices.

Every invoice must satisfy

    total_amount = gold_value + making_charges + gst_amount
    gst_amount   = (gold_value + making_charges) x gst_rate / 100
    gold_value + making_charges = sum of its lines' price x quantity

to the paisa. Each detector returns the offending rows, or None when there
are none.
"""

from __future__ import annotations

import pandas as pd

REQUIRED_COLUMNS = ["id", "gold_value", "making_charges", "gst_amount", "total_amount"]

MONEY_COLUMNS = ["gold_value", "making_charges", "gst_amount", "total_amount"]

DEFAULT_TOLERANCE = 0.01

# Absorbs float noise so a difference of exactly one paisa is not flagged
_EPSILON = 1e-9


def _label(df: pd.DataFrame) -> pd.DataFrame:
    cols = ["id", "invoice_number"] if "invoice_number" in df.columns else ["id"]
    return df[cols].copy()


def detect_total_mismatches(
    df: pd.DataFrame, tolerance: float = DEFAULT_TOLERANCE
) -> pd.DataFrame | None:
    """Find invoices whose total is not gold value + making charges + GST.

    Examples:
        >>> df = pd.DataFrame({"id": ["a", "b"], "gold_value": [100.0, 100.0],
        ...                    "making_charges": [10.0, 10.0], "gst_amount": [3.3, 3.3],
        ...                    "total_amount": [113.3, 120.0]})
        >>> detect_total_mismatches(df)["id"].tolist()
        ['b']
    """
    if df.empty:
        return None

    expected = df["gold_value"] + df["making_charges"] + df["gst_amount"]
    difference = df["total_amount"] - expected
    flags = difference.abs() > tolerance + _EPSILON
    if not flags.any():
        return None

    out = _label(df[flags])
    out["expected_total"] = expected[flags]
    out["total_amount"] = df.loc[flags, "total_amount"]
    out["difference"] = difference[flags]
    return out.reset_index(drop=True)


def detect_gst_mismatches(
    df: pd.DataFrame, gst_rate: float, tolerance: float = DEFAULT_TOLERANCE
) -> pd.DataFrame | None:
    """Find invoices whose GST was not charged at gst_rate on the combined base."""
    if df.empty:
        return None

    expected = (df["gold_value"] + df["making_charges"]) * gst_rate / 100
    difference = df["gst_amount"] - expected
    flags = difference.abs() > tolerance + _EPSILON
    if not flags.any():
        return None

    out = _label(df[flags])
    out["expected_gst"] = expected[flags]
    out["gst_amount"] = df.loc[flags, "gst_amount"]
    out["difference"] = difference[flags]
    return out.reset_index(drop=True)


def detect_line_mismatches(
    invoices: pd.DataFrame,
    lines: pd.DataFrame,
    tolerance: float = DEFAULT_TOLERANCE,
) -> pd.DataFrame | None:
    """Find invoices whose lines do not add up to their taxable base.

    Invoices without any lines are not checked here.

    Args:
        invoices: Invoices with id, gold_value and making_charges.
        lines: Prepared invoice lines with invoice_id and revenue
            (price x quantity).
    """
    if invoices.empty or lines.empty:
        return None

    line_sums = lines.groupby("invoice_id")["revenue"].sum().rename("lines_total")
    merged = invoices.merge(line_sums, left_on="id", right_index=True, how="inner")
    taxable = merged["gold_value"] + merged["making_charges"]
    difference = taxable - merged["lines_total"]
    flags = difference.abs() > tolerance + _EPSILON
    if not flags.any():
        return None

    out = _label(merged[flags])
    out["taxable_amount"] = taxable[flags]
    out["lines_total"] = merged.loc[flags, "lines_total"]
    out["difference"] = difference[flags]
    return out.reset_index(drop=True)


def detect_orphan_lines(invoices: pd.DataFrame, lines: pd.DataFrame) -> pd.DataFrame | None:
    """Find invoice lines whose invoice does not exist."""
    if lines.empty:
        return None

    orphans = ~lines["invoice_id"].isin(invoices["id"])
    if not orphans.any():
        return None
    return lines.loc[orphans, ["invoice_id", "item_id", "quantity", "price"]].reset_index(drop=True)


def detect_duplicate_invoice_numbers(df: pd.DataFrame) -> pd.DataFrame | None:
    """Find invoice numbers used by more than one invoice."""
    if df.empty or "invoice_number" not in df.columns:
        return None

    numbered = df[df["invoice_number"].notna()]
    dup_mask = numbered.duplicated(subset=["invoice_number"], keep=False)
    if not dup_mask.any():
        return None
    return _label(numbered[dup_mask]).sort_values("invoice_number").reset_index(drop=True)
