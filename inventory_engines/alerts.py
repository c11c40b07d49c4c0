"""
Module: inventory_engines.alerts
Responsibility:
    Classify a stock level against its product's thresholds into
    out-of-stock, low-stock, overstock or in-stock, and assemble the
    severity-ordered alert listing served by the alerts read path.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel/domain (and sibling engine modules).

Invariants enforced:
    - Purity: alerts are recomputed on every query; nothing is persisted.
    - Rules are checked in a fixed order, so a record has exactly one status:
        1. out_of_stock  if quantity == 0                    (critical)
        2. low_stock     if 0 < quantity <= reorder_level    (high when
                         quantity <= reorder_level / 2, else medium)
        3. overstock     if max_stock_level > 0 and
                         quantity > max_stock_level          (medium)
        4. in_stock      otherwise                           (no alert)

Usage:
    from inventory_engines.alerts import classify_stock

    result = classify_stock(quantity=4, reorder_level=20, max_stock_level=1000)
    result.status    # StockStatus.LOW_STOCK
    result.severity  # AlertSeverity.HIGH
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.dtos import ProductInfo, StockLevel


class StockStatus(str, Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    OVERSTOCK = "overstock"


class AlertSeverity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"

    @property
    def rank(self) -> int:
        """Sort key: critical first."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.CRITICAL: 0,
    AlertSeverity.HIGH: 1,
    AlertSeverity.MEDIUM: 2,
}


@dataclass(frozen=True)
class StockClassification:
    """Status of one stock level; ``severity`` is None when in stock."""

    status: StockStatus
    severity: AlertSeverity | None

    @property
    def is_alert(self) -> bool:
        return self.severity is not None


def classify_stock(
    quantity: int,
    reorder_level: int,
    max_stock_level: int,
) -> StockClassification:
    """
    Classify an on-hand quantity against product thresholds.

    Raises:
        ValueError: quantity is negative.
    """
    if quantity < 0:
        raise ValueError(f"quantity cannot be negative: {quantity}")

    if quantity == 0:
        return StockClassification(StockStatus.OUT_OF_STOCK, AlertSeverity.CRITICAL)
    if quantity <= reorder_level:
        # quantity <= reorder_level / 2, kept in integers
        severity = AlertSeverity.HIGH if quantity * 2 <= reorder_level else AlertSeverity.MEDIUM
        return StockClassification(StockStatus.LOW_STOCK, severity)
    if max_stock_level > 0 and quantity > max_stock_level:
        return StockClassification(StockStatus.OVERSTOCK, AlertSeverity.MEDIUM)
    return StockClassification(StockStatus.IN_STOCK, None)


def classify_level(level: StockLevel, product: ProductInfo) -> StockClassification:
    return classify_stock(
        quantity=level.quantity,
        reorder_level=product.reorder_level,
        max_stock_level=product.max_stock_level,
    )


@dataclass(frozen=True)
class StockAlert:
    product_id: UUID
    sku: str
    product_name: str
    warehouse_id: UUID
    quantity: int
    available_quantity: int
    reorder_level: int
    max_stock_level: int
    status: StockStatus
    severity: AlertSeverity

    @property
    def shortfall(self) -> int:
        """Units needed to get back above the reorder level (0 if overstocked)."""
        return max(self.reorder_level - self.quantity, 0)


@dataclass(frozen=True)
class AlertReport:
    alerts: tuple[StockAlert, ...]
    critical: int
    high: int
    medium: int

    @property
    def total(self) -> int:
        return len(self.alerts)


@traced_engine("alerts", "1.0", fingerprint_fields=("severity", "include_overstock"))
def build_alert_report(
    items: Iterable[tuple[StockLevel, ProductInfo]],
    *,
    severity: AlertSeverity | None = None,
    include_overstock: bool = True,
) -> AlertReport:
    """
    Classify every (stock level, product) pair and keep the alerts.

    Args:
        items: Stock levels paired with the product they belong to.
        severity: Keep only alerts of this severity.
        include_overstock: Whether overstock counts as an alert.

    Returns:
        Alerts ordered critical, high, medium (then by SKU), plus counts
        per severity over the returned alerts.
    """
    alerts: list[StockAlert] = []
    for level, product in items:
        result = classify_level(level, product)
        if not result.is_alert:
            continue
        if result.status is StockStatus.OVERSTOCK and not include_overstock:
            continue
        if severity is not None and result.severity is not AlertSeverity(severity):
            continue
        alerts.append(
            StockAlert(
                product_id=product.id,
                sku=product.sku,
                product_name=product.name,
                warehouse_id=level.warehouse_id,
                quantity=level.quantity,
                available_quantity=level.available_quantity,
                reorder_level=product.reorder_level,
                max_stock_level=product.max_stock_level,
                status=result.status,
                severity=result.severity,
            )
        )

    alerts.sort(key=lambda a: (a.severity.rank, a.sku, str(a.warehouse_id)))
    return AlertReport(
        alerts=tuple(alerts),
        critical=sum(1 for a in alerts if a.severity is AlertSeverity.CRITICAL),
        high=sum(1 for a in alerts if a.severity is AlertSeverity.HIGH),
        medium=sum(1 for a in alerts if a.severity is AlertSeverity.MEDIUM),
    )
