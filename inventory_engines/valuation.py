"""
Module: inventory_engines.valuation
Responsibility:
    Stock valuation (at cost or selling price) and inventory summary
    statistics over a set of stock levels and their products.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - total_value == available_value + reserved_value for every record and
      every aggregate (quantity = available + reserved).
    - Decimal-only arithmetic.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from uuid import UUID

from inventory_engines.alerts import StockStatus, classify_level
from inventory_engines.totals import to_money
from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.dtos import ProductInfo, StockLevel


class ValuationMethod(str, Enum):
    COST = "cost"
    SELLING = "selling"


@dataclass(frozen=True)
class ValuationLine:
    product_id: UUID
    sku: str
    warehouse_id: UUID
    quantity: int
    reserved_quantity: int
    unit_value: Decimal
    total_value: Decimal
    available_value: Decimal
    reserved_value: Decimal


@dataclass
class WarehouseValuation:
    warehouse_id: UUID
    product_count: int = 0
    total_value: Decimal = Decimal("0")
    available_value: Decimal = Decimal("0")
    reserved_value: Decimal = Decimal("0")


@dataclass(frozen=True)
class ValuationReport:
    method: ValuationMethod
    lines: tuple[ValuationLine, ...]
    by_warehouse: dict[UUID, WarehouseValuation] = field(default_factory=dict)

    @property
    def total_value(self) -> Decimal:
        return sum((line.total_value for line in self.lines), Decimal("0"))

    @property
    def available_value(self) -> Decimal:
        return sum((line.available_value for line in self.lines), Decimal("0"))

    @property
    def reserved_value(self) -> Decimal:
        return sum((line.reserved_value for line in self.lines), Decimal("0"))


@traced_engine("valuation", "1.0", fingerprint_fields=("method",))
def value_stock(
    items: Iterable[tuple[StockLevel, ProductInfo]],
    *,
    method: ValuationMethod = ValuationMethod.COST,
) -> ValuationReport:
    """Value each stock level at the product's cost or selling price."""
    method = ValuationMethod(method)
    lines: list[ValuationLine] = []
    by_warehouse: dict[UUID, WarehouseValuation] = {}

    for level, product in items:
        unit_value = product.cost_price if method is ValuationMethod.COST else product.selling_price
        available_value = to_money(unit_value * level.available_quantity)
        reserved_value = to_money(unit_value * level.reserved_quantity)
        line = ValuationLine(
            product_id=product.id,
            sku=product.sku,
            warehouse_id=level.warehouse_id,
            quantity=level.quantity,
            reserved_quantity=level.reserved_quantity,
            unit_value=unit_value,
            total_value=available_value + reserved_value,
            available_value=available_value,
            reserved_value=reserved_value,
        )
        lines.append(line)

        bucket = by_warehouse.setdefault(level.warehouse_id, WarehouseValuation(level.warehouse_id))
        bucket.product_count += 1
        bucket.total_value += line.total_value
        bucket.available_value += line.available_value
        bucket.reserved_value += line.reserved_value

    return ValuationReport(method=method, lines=tuple(lines), by_warehouse=by_warehouse)


@dataclass
class WarehouseStats:
    warehouse_id: UUID
    product_count: int = 0
    total_quantity: int = 0
    reserved_quantity: int = 0


@dataclass(frozen=True)
class InventorySummary:
    record_count: int
    total_quantity: int
    reserved_quantity: int
    available_quantity: int
    total_cost_value: Decimal
    low_stock_count: int
    out_of_stock_count: int
    overstock_count: int
    by_warehouse: dict[UUID, WarehouseStats]


@traced_engine("inventory_summary", "1.0")
def summarize_stock(items: Iterable[tuple[StockLevel, ProductInfo]]) -> InventorySummary:
    """Totals and status counts over the given stock levels."""
    record_count = total = reserved = 0
    cost_value = Decimal("0")
    counts = {status: 0 for status in StockStatus}
    by_warehouse: dict[UUID, WarehouseStats] = {}

    for level, product in items:
        record_count += 1
        total += level.quantity
        reserved += level.reserved_quantity
        cost_value += to_money(product.cost_price * level.quantity)
        counts[classify_level(level, product).status] += 1

        stats = by_warehouse.setdefault(level.warehouse_id, WarehouseStats(level.warehouse_id))
        stats.product_count += 1
        stats.total_quantity += level.quantity
        stats.reserved_quantity += level.reserved_quantity

    return InventorySummary(
        record_count=record_count,
        total_quantity=total,
        reserved_quantity=reserved,
        available_quantity=total - reserved,
        total_cost_value=cost_value,
        low_stock_count=counts[StockStatus.LOW_STOCK],
        out_of_stock_count=counts[StockStatus.OUT_OF_STOCK],
        overstock_count=counts[StockStatus.OVERSTOCK],
        by_warehouse=by_warehouse,
    )
