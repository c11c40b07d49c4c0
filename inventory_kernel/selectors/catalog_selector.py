"""Catalog lookups: products, warehouses and suppliers by id or natural key."""

from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.dtos import ProductInfo, SupplierInfo, WarehouseInfo
from inventory_kernel.exceptions import (
    ProductNotFoundError,
    SupplierNotFoundError,
    WarehouseNotFoundError,
)
from inventory_kernel.models.catalog import Product, Supplier, Warehouse
from inventory_kernel.selectors.base import BaseSelector


class CatalogSelector(BaseSelector[Product]):
    """Read access to the catalog tables."""

    def get_product(self, product_id: UUID) -> ProductInfo | None:
        product = self.session.get(Product, product_id)
        return product.to_dto() if product is not None else None

    def require_product(self, product_id: UUID) -> ProductInfo:
        """Product by id.

        Raises:
            ProductNotFoundError: Unknown id.
        """
        product = self.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))
        return product

    def get_product_by_sku(self, sku: str) -> ProductInfo | None:
        product = self.session.execute(
            select(Product).where(Product.sku == sku.strip().upper())
        ).scalar_one_or_none()
        return product.to_dto() if product is not None else None

    def get_warehouse(self, warehouse_id: UUID) -> WarehouseInfo | None:
        warehouse = self.session.get(Warehouse, warehouse_id)
        return warehouse.to_dto() if warehouse is not None else None

    def require_warehouse(self, warehouse_id: UUID) -> WarehouseInfo:
        """Warehouse by id.

        Raises:
            WarehouseNotFoundError: Unknown id.
        """
        warehouse = self.get_warehouse(warehouse_id)
        if warehouse is None:
            raise WarehouseNotFoundError(str(warehouse_id))
        return warehouse

    def require_supplier(self, supplier_id: UUID) -> SupplierInfo:
        supplier = self.session.get(Supplier, supplier_id)
        if supplier is None:
            raise SupplierNotFoundError(str(supplier_id))
        return supplier.to_dto()

    def list_warehouses(self, active_only: bool = False) -> list[WarehouseInfo]:
        stmt = select(Warehouse).order_by(Warehouse.code)
        if active_only:
            stmt = stmt.where(Warehouse.is_active.is_(True))
        return [w.to_dto() for w in self.session.execute(stmt).scalars()]
