"""
Module: inventory_kernel.selectors.stock_selector
Responsibility: Read paths over stock records joined with their products,
    feeding the alert classifier, valuation and summary reports.
Architecture position: Kernel > Selectors.  Read-only.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.dtos import ProductInfo, StockLevel
from inventory_kernel.models.catalog import Product
from inventory_kernel.models.stock_record import StockRecord
from inventory_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class StockWithProduct:
    """A stock level paired with the product whose thresholds apply to it."""

    stock: StockLevel
    product: ProductInfo


class StockSelector(BaseSelector[StockRecord]):
    """Query stock records, optionally narrowed to one warehouse or product."""

    def list_levels(
        self,
        warehouse_id: UUID | None = None,
        product_id: UUID | None = None,
    ) -> list[StockLevel]:
        stmt = select(StockRecord).order_by(StockRecord.warehouse_id, StockRecord.product_id)
        if warehouse_id is not None:
            stmt = stmt.where(StockRecord.warehouse_id == warehouse_id)
        if product_id is not None:
            stmt = stmt.where(StockRecord.product_id == product_id)
        return [r.to_dto() for r in self.session.execute(stmt).scalars()]

    def list_with_products(
        self,
        warehouse_id: UUID | None = None,
        active_products_only: bool = True,
    ) -> list[StockWithProduct]:
        stmt = (
            select(StockRecord, Product)
            .join(Product, Product.id == StockRecord.product_id)
            .order_by(Product.sku, StockRecord.warehouse_id)
        )
        if warehouse_id is not None:
            stmt = stmt.where(StockRecord.warehouse_id == warehouse_id)
        if active_products_only:
            stmt = stmt.where(Product.is_active.is_(True))
        return [
            StockWithProduct(stock=record.to_dto(), product=product.to_dto())
            for record, product in self.session.execute(stmt).all()
        ]

    def total_quantity(self, product_id: UUID) -> int:
        """On-hand quantity of a product across all warehouses."""
        return sum(level.quantity for level in self.list_levels(product_id=product_id))
