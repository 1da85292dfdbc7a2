"""Shared utilities for the jewellery retail core.

Date parsing and the display helpers used by invoices and reports.

Examples:
    >>> from jewel_core.utils import format_inr, format_invoice_number
    >>> format_inr(1234567.5)
    '₹12,34,567.50'
    >>> format_invoice_number(7)
    'INV-007'

"""

from __future__ import annotations

from datetime import date, datetime

from jewel_core.exceptions import InvalidInputError

INVOICE_PREFIX = "INV"


def parse_date(s: str) -> date:
    """Parse a date string in YYYY-MM-DD format.

    Args:
        s: Date string in ISO format (YYYY-MM-DD).

    Returns:
        Parsed date object.

    Raises:
        ValueError: If the date string is not in YYYY-MM-DD format.

    Examples:
        >>> parse_date("2024-03-15")
        datetime.date(2024, 3, 15)

    """
    return datetime.strptime(s, "%Y-%m-%d").date()


def format_invoice_number(sequence: int) -> str:
    """Format a sequential invoice id for display.

    Sequences are zero-padded to three digits; longer sequences are kept
    as they are.

    Args:
        sequence: 1-based invoice sequence for the store.

    Returns:
        Display id such as "INV-001".

    Raises:
        InvalidInputError: If sequence is below 1.

    Examples:
        >>> format_invoice_number(42)
        'INV-042'
        >>> format_invoice_number(1234)
        'INV-1234'

    """
    if sequence < 1:
        raise InvalidInputError(f"Invoice sequence must be >= 1, got {sequence}")
    return f"{INVOICE_PREFIX}-{sequence:03d}"


def _group_indian(whole: str) -> str:
    # Last three digits, then groups of two: 12,34,567
    if len(whole) <= 3:
        return whole
    head, tail = whole[:-3], whole[-3:]
    groups: list[str] = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join([*groups, tail])


def format_inr(amount: float) -> str:
    """Format an amount as Indian rupees with lakh/crore digit grouping.

    This is a presentation helper only. Pricing and reports never round.

    Args:
        amount: Amount in rupees.

    Returns:
        String like "₹28,325.00".

    Examples:
        >>> format_inr(825)
        '₹825.00'
        >>> format_inr(-150000)
        '-₹1,50,000.00'

    """
    sign = "-" if amount < 0 else ""
    whole, frac = f"{abs(amount):.2f}".split(".")
    return f"{sign}₹{_group_indian(whole)}.{frac}"
