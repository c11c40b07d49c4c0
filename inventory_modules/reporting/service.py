"""
Reporting Module Service (``inventory_modules.reporting.service``).

Responsibility
--------------
Read paths over the ledger: stock alerts, movement history, valuation,
inventory summary and purchase summary.  Stock-derived reports are
computed on every call by the pure engines in ``inventory_engines``;
nothing is persisted.

Architecture position
---------------------
**Modules layer** -- read-only orchestration.  Never commits or writes.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from inventory_config.schema import EngineSettings
from inventory_engines.alerts import AlertReport, AlertSeverity, build_alert_report
from inventory_engines.totals import to_money
from inventory_engines.valuation import (
    InventorySummary,
    ValuationMethod,
    ValuationReport,
    summarize_stock,
    value_stock,
)
from inventory_kernel.exceptions import ValidationError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.selectors.movement_selector import (
    MovementDirection,
    MovementPage,
    MovementSelector,
)
from inventory_kernel.selectors.stock_selector import StockSelector
from inventory_modules._paging import check_paging
from inventory_modules.purchasing.orm import PurchaseOrderModel
from inventory_modules.reporting.models import PurchaseSummary

logger = get_logger("modules.reporting.service")


def _parse(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ValidationError(f"invalid {field}: {value!r}", field=field) from exc


class ReportingService:
    """Read-only reports.  Safe to call on any session at any time."""

    def __init__(self, session: Session, settings: EngineSettings | None = None):
        self._session = session
        self._settings = settings or EngineSettings()
        self._stock = StockSelector(session)
        self._movements = MovementSelector(session)

    def _stock_items(self, warehouse_id: UUID | None):
        return [
            (row.stock, row.product)
            for row in self._stock.list_with_products(warehouse_id=warehouse_id)
        ]

    def alerts(
        self,
        *,
        warehouse_id: UUID | None = None,
        severity: AlertSeverity | str | None = None,
    ) -> AlertReport:
        """Stock alerts, critical first, with per-severity counts."""
        if severity is not None:
            severity = _parse(AlertSeverity, severity, "severity")
        report = build_alert_report(
            self._stock_items(warehouse_id),
            severity=severity,
            include_overstock=self._settings.alerts.include_overstock,
        )
        logger.debug(
            "alerts_computed",
            extra={
                "warehouse_id": str(warehouse_id) if warehouse_id else None,
                "critical": report.critical,
                "high": report.high,
                "medium": report.medium,
            },
        )
        return report

    def movements(
        self,
        *,
        warehouse_id: UUID | None = None,
        product_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        direction: MovementDirection | str = MovementDirection.ALL,
        page: int = 1,
        limit: int | None = None,
    ) -> MovementPage:
        """Movement history, newest first.  ``limit`` is capped by settings."""
        inventory = self._settings.inventory
        limit = check_paging(
            page, limit or inventory.movement_page_limit, inventory.max_page_limit,
        )
        return self._movements.history(
            warehouse_id=warehouse_id,
            product_id=product_id,
            start=start,
            end=end,
            direction=_parse(MovementDirection, direction, "direction"),
            page=page,
            limit=limit,
        )

    def valuation(
        self,
        *,
        warehouse_id: UUID | None = None,
        method: ValuationMethod | str = ValuationMethod.COST,
    ) -> ValuationReport:
        return value_stock(
            self._stock_items(warehouse_id),
            method=_parse(ValuationMethod, method, "method"),
        )

    def summary(self, *, warehouse_id: UUID | None = None) -> InventorySummary:
        return summarize_stock(self._stock_items(warehouse_id))

    def purchase_summary(
        self,
        *,
        warehouse_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> PurchaseSummary:
        """
        Order count, total and average amount, and count per status for
        orders placed in ``[start, end]``.
        """
        conditions = []
        if warehouse_id is not None:
            conditions.append(PurchaseOrderModel.warehouse_id == warehouse_id)
        if start is not None:
            conditions.append(PurchaseOrderModel.order_date >= start)
        if end is not None:
            conditions.append(PurchaseOrderModel.order_date <= end)

        rows = self._session.execute(
            select(
                PurchaseOrderModel.status,
                func.count(),
                func.coalesce(func.sum(PurchaseOrderModel.total_amount), 0),
            )
            .where(*conditions)
            .group_by(PurchaseOrderModel.status)
        ).all()

        breakdown: dict[str, int] = {}
        count = 0
        total = Decimal("0")
        for status, status_count, amount in rows:
            breakdown[status] = status_count
            count += status_count
            total += Decimal(str(amount))

        return PurchaseSummary(
            order_count=count,
            total_amount=to_money(total),
            average_amount=to_money(total / count) if count else Decimal("0.00"),
            status_breakdown=breakdown,
            warehouse_id=warehouse_id,
            start=start,
            end=end,
        )
