"""Invoice integrity checks.

Example:
    >>> from jewel_core.qa import run_invoice_qa
    >>>
    >>> result = run_invoice_qa(invoices_df, lines_df, gst_rate=3.0)
    >>> print(result.summary)
    >>> if result.has_issues:
    ...     print(result.issues())
"""

from jewel_core.qa.api import InvoiceQAResult, run_invoice_qa

__all__ = ["InvoiceQAResult", "run_invoice_qa"]
