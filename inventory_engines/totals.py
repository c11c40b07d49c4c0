"""
Module: inventory_engines.totals
Responsibility:
    Purchase order arithmetic: line totals, subtotal and order total.

        line_total = quantity * unit_price
        subtotal   = sum(line_total)
        total      = subtotal + tax - discount

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic; amounts are quantized to cents with
      ROUND_HALF_UP.
    - quantity >= 1, unit_price >= 0, tax >= 0, discount >= 0, total >= 0.

Failure modes:
    - ValueError on any negative amount or a total below zero.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineAmount:
    quantity: int
    unit_price: Decimal

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"line quantity must be at least 1, got {self.quantity}")
        if self.unit_price < 0:
            raise ValueError(f"unit price cannot be negative, got {self.unit_price}")

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


def compute_order_totals(
    lines: Iterable[LineAmount],
    tax: Decimal = Decimal("0"),
    discount: Decimal = Decimal("0"),
) -> OrderTotals:
    """
    Totals for a set of order lines.

    Raises:
        ValueError: tax or discount negative, or total below zero.
    """
    if tax < 0:
        raise ValueError(f"tax cannot be negative, got {tax}")
    if discount < 0:
        raise ValueError(f"discount cannot be negative, got {discount}")

    subtotal = to_money(sum((line.line_total for line in lines), Decimal("0")))
    total = subtotal + to_money(tax) - to_money(discount)
    if total < 0:
        raise ValueError(f"discount {discount} exceeds subtotal plus tax")
    return OrderTotals(
        subtotal=subtotal,
        tax=to_money(tax),
        discount=to_money(discount),
        total=to_money(total),
    )
