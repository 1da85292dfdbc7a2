"""Invoice pricing engine.

Converts item weight, the live metal rate, the making charge and the GST
rate into an itemized invoice. Every function here is pure: the same
inputs always give the same figures, so a stored invoice can be
reproduced for audit.

Pricing rules:
    gold value     = weight x rate per gram
    making charges = weight x making charge per gram (never a flat fee)
    GST            = (gold value + making charges) x GST rate / 100
    total          = gold value + making charges + GST

For a cart, gold value and making charges are summed across lines
(weighted by quantity) and GST is computed once on the summed base.

Nothing is rounded here; rounding is a display concern
(see jewel_core.utils.format_inr).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

from jewel_core.config import DEFAULT_GST_RATE
from jewel_core.exceptions import InvalidInputError

logger = logging.getLogger(__name__)


def validate_amount(name: str, value: float) -> float:
    """Reject negative or non-finite amounts instead of clamping them."""
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{name} must be a number, got {value!r}") from e
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} must be finite, got {value}")
    if value < 0:
        raise InvalidInputError(f"{name} must be >= 0, got {value}")
    return value


def gold_value(weight: float, rate_per_gram: float) -> float:
    """Metal value of a piece: weight (g) x live rate per gram.

    Raises:
        InvalidInputError: If weight or rate is negative or not finite.

    Examples:
        >>> gold_value(5, 5000)
        25000.0
    """
    weight = validate_amount("weight", weight)
    rate_per_gram = validate_amount("rate_per_gram", rate_per_gram)
    return weight * rate_per_gram


def making_charges(weight: float, charge_per_gram: float) -> float:
    """Labour charge of a piece, charged per gram of weight.

    Raises:
        InvalidInputError: If weight or charge is negative or not finite.

    Examples:
        >>> making_charges(5, 500)
        2500.0
    """
    weight = validate_amount("weight", weight)
    charge_per_gram = validate_amount("charge_per_gram", charge_per_gram)
    return weight * charge_per_gram


def gst(gold_value: float, making_charges: float, gst_rate: float) -> float:
    """GST on the combined taxable base (metal value + labour).

    Args:
        gold_value: Metal value component.
        making_charges: Making charge component.
        gst_rate: GST rate in percent (e.g. 3.0).

    Returns:
        GST amount.

    Raises:
        InvalidInputError: If any argument is negative or not finite.

    Examples:
        >>> gst(25000, 2500, 3)
        825.0
    """
    gold_value = validate_amount("gold_value", gold_value)
    making_charges = validate_amount("making_charges", making_charges)
    gst_rate = validate_amount("gst_rate", gst_rate)
    return (gold_value + making_charges) * gst_rate / 100


def grand_total(gold_value: float, making_charges: float, gst_amount: float) -> float:
    """Invoice total: gold value + making charges + GST."""
    return (
        validate_amount("gold_value", gold_value)
        + validate_amount("making_charges", making_charges)
        + validate_amount("gst_amount", gst_amount)
    )


@dataclass(frozen=True)
class CartLine:
    """One line of a point-of-sale cart.

    Attributes:
        item_id: Inventory item id.
        weight: Billed weight in grams. Editable per line, so it may differ
            from the item's catalog net weight.
        making_charge: Making charge per gram for the item.
        quantity: Number of identical pieces on this line.
    """

    item_id: str
    weight: float
    making_charge: float
    quantity: int = 1

    @classmethod
    def from_item(
        cls,
        item: Mapping[str, Any],
        weight: float | None = None,
        quantity: int = 1,
    ) -> CartLine:
        """Seed a cart line from an inventory row.

        Args:
            item: Inventory row with id, net_weight and making_charge.
            weight: Optional billed weight overriding the catalog weight.
            quantity: Number of pieces (default: 1).

        Returns:
            CartLine for the item.

        Examples:
            >>> row = {"id": "it-1", "net_weight": 5.0, "making_charge": 500.0}
            >>> CartLine.from_item(row).weight
            5.0
        """
        return cls(
            item_id=str(item["id"]),
            weight=float(item["net_weight"] if weight is None else weight),
            making_charge=float(item.get("making_charge") or 0.0),
            quantity=quantity,
        )


@dataclass(frozen=True)
class LinePricing:
    """Derived per-unit figures for one cart line.

    These are recomputed whenever the line weight or the live rate changes.
    """

    item_id: str
    weight: float
    quantity: int
    gold_value: float
    making_charges: float
    subtotal: float

    @property
    def line_total(self) -> float:
        """Subtotal for all pieces on the line (before GST)."""
        return self.subtotal * self.quantity


@dataclass
class InvoiceTotals:
    """Fully itemized invoice figures.

    Attributes:
        gold_value: Sum of line gold values x quantities.
        making_charges: Sum of line making charges x quantities.
        taxable_amount: gold_value + making_charges.
        gst_rate: GST rate in percent used for the invoice.
        gst_amount: GST computed once on taxable_amount.
        total_amount: taxable_amount + gst_amount.
        lines: Per-line derived figures, in cart order.
    """

    gold_value: float
    making_charges: float
    taxable_amount: float
    gst_rate: float
    gst_amount: float
    total_amount: float
    lines: list[LinePricing] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        for line_data, line in zip(data["lines"], self.lines):
            line_data["line_total"] = line.line_total
        return data


def price_line(line: CartLine, gold_rate: float) -> LinePricing:
    """Compute the derived fields of a cart line at the live rate.

    Raises:
        InvalidInputError: If weight, rate or making charge is negative,
            or quantity is below 1.
    """
    quantity = validate_amount("quantity", line.quantity)
    if not quantity.is_integer() or quantity < 1:
        raise InvalidInputError(
            f"quantity must be a whole number >= 1, got {line.quantity} for item {line.item_id}"
        )
    line_gold = gold_value(line.weight, gold_rate)
    line_making = making_charges(line.weight, line.making_charge)
    return LinePricing(
        item_id=line.item_id,
        weight=float(line.weight),
        quantity=int(line.quantity),
        gold_value=line_gold,
        making_charges=line_making,
        subtotal=line_gold + line_making,
    )


def price_cart(
    lines: Iterable[CartLine],
    gold_rate: float,
    gst_rate: float = DEFAULT_GST_RATE,
) -> InvoiceTotals:
    """Price a whole cart.

    Gold value and making charges are summed across lines, each multiplied
    by its quantity. GST and the grand total are computed once on those
    sums, never per line and then added up.

    Args:
        lines: Cart lines.
        gold_rate: Live metal rate per gram.
        gst_rate: GST rate in percent (default: 3.0).

    Returns:
        InvoiceTotals. An empty cart prices to all zeros.

    Raises:
        InvalidInputError: If any amount is invalid.

    Examples:
        >>> totals = price_cart([CartLine("it-1", 5, 500)], gold_rate=5000, gst_rate=3)
        >>> totals.gst_amount, totals.total_amount
        (825.0, 28325.0)
    """
    gold_rate = validate_amount("gold_rate", gold_rate)
    gst_rate = validate_amount("gst_rate", gst_rate)

    priced = [price_line(line, gold_rate) for line in lines]

    total_gold = sum(p.gold_value * p.quantity for p in priced)
    total_making = sum(p.making_charges * p.quantity for p in priced)
    gst_amount = gst(total_gold, total_making, gst_rate)
    total = grand_total(total_gold, total_making, gst_amount)

    logger.debug(
        "Priced cart of %d line(s) at rate %.2f: taxable %.2f, GST %.2f, total %.2f",
        len(priced),
        gold_rate,
        total_gold + total_making,
        gst_amount,
        total,
    )

    return InvoiceTotals(
        gold_value=total_gold,
        making_charges=total_making,
        taxable_amount=total_gold + total_making,
        gst_rate=gst_rate,
        gst_amount=gst_amount,
        total_amount=total,
        lines=priced,
    )
