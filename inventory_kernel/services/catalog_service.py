"""
CatalogService -- minimal write side for products, warehouses and suppliers.

Responsibility:
    Registers the catalog entities the ledger references and updates the
    mutable parts of a product (pricing and stock thresholds).  Full catalog
    management (images, categories, descriptions) belongs to the CRUD layer.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.

Invariants enforced:
    - SKU and warehouse code are normalized to upper case and unique.
    - Product identity (SKU, unit) is immutable after registration.
    - Prices >= 0; min_stock_level <= reorder_level; max_stock_level >= 0.

Failure modes:
    - DuplicateEntityError on an existing SKU, code or supplier name.
    - ValidationError on malformed values.
    - ProductNotFoundError when updating an unknown product.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.dtos import (
    ProductInfo,
    SupplierInfo,
    UnitOfMeasure,
    WarehouseInfo,
)
from inventory_kernel.exceptions import (
    DuplicateEntityError,
    ProductNotFoundError,
    ValidationError,
    WarehouseNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.catalog import Product, Supplier, Warehouse
from inventory_kernel.services.base import BaseService

logger = get_logger("services.catalog")


def _check_thresholds(reorder_level: int, min_stock_level: int, max_stock_level: int) -> None:
    if reorder_level < 0 or min_stock_level < 0 or max_stock_level < 0:
        raise ValidationError("Stock thresholds cannot be negative", field="reorder_level")
    if min_stock_level > reorder_level:
        raise ValidationError(
            "min_stock_level cannot exceed reorder_level", field="min_stock_level",
        )


def _check_prices(cost_price: Decimal, selling_price: Decimal) -> None:
    if cost_price < 0:
        raise ValidationError("cost_price cannot be negative", field="cost_price")
    if selling_price < 0:
        raise ValidationError("selling_price cannot be negative", field="selling_price")


class CatalogService(BaseService[Product]):
    """Registers catalog entities referenced by stock records."""

    def register_product(
        self,
        sku: str,
        name: str,
        *,
        actor_id: UUID,
        unit: UnitOfMeasure = UnitOfMeasure.PIECE,
        cost_price: Decimal = Decimal("0"),
        selling_price: Decimal = Decimal("0"),
        reorder_level: int = 20,
        min_stock_level: int = 10,
        max_stock_level: int = 1000,
    ) -> ProductInfo:
        sku = (sku or "").strip().upper()
        if not sku:
            raise ValidationError("SKU is required", field="sku")
        if not (name or "").strip():
            raise ValidationError("Product name is required", field="name")
        _check_prices(cost_price, selling_price)
        _check_thresholds(reorder_level, min_stock_level, max_stock_level)

        exists = self.session.execute(
            select(Product.id).where(Product.sku == sku)
        ).scalar_one_or_none()
        if exists is not None:
            raise DuplicateEntityError("Product", sku)

        product = Product(
            sku=sku,
            name=name.strip(),
            unit=UnitOfMeasure(unit).value,
            cost_price=cost_price,
            selling_price=selling_price,
            reorder_level=reorder_level,
            min_stock_level=min_stock_level,
            max_stock_level=max_stock_level,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(product)
        self.session.flush()
        logger.info("product_registered", extra={"product_id": str(product.id), "sku": sku})
        return product.to_dto()

    def update_product(
        self,
        product_id: UUID,
        *,
        actor_id: UUID,
        name: str | None = None,
        cost_price: Decimal | None = None,
        selling_price: Decimal | None = None,
        reorder_level: int | None = None,
        min_stock_level: int | None = None,
        max_stock_level: int | None = None,
        is_active: bool | None = None,
    ) -> ProductInfo:
        """Update pricing, thresholds, name or active flag.  SKU is fixed."""
        product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))

        new_cost = product.cost_price if cost_price is None else cost_price
        new_selling = product.selling_price if selling_price is None else selling_price
        new_reorder = product.reorder_level if reorder_level is None else reorder_level
        new_min = product.min_stock_level if min_stock_level is None else min_stock_level
        new_max = product.max_stock_level if max_stock_level is None else max_stock_level
        _check_prices(new_cost, new_selling)
        _check_thresholds(new_reorder, new_min, new_max)

        if name is not None:
            if not name.strip():
                raise ValidationError("Product name is required", field="name")
            product.name = name.strip()
        product.cost_price = new_cost
        product.selling_price = new_selling
        product.reorder_level = new_reorder
        product.min_stock_level = new_min
        product.max_stock_level = new_max
        if is_active is not None:
            product.is_active = is_active
        product.updated_by_id = actor_id
        self.session.flush()
        logger.info("product_updated", extra={"product_id": str(product_id)})
        return product.to_dto()

    def register_warehouse(
        self,
        code: str,
        name: str,
        *,
        actor_id: UUID,
        capacity: int = 0,
    ) -> WarehouseInfo:
        code = (code or "").strip().upper()
        if not code:
            raise ValidationError("Warehouse code is required", field="code")
        if capacity < 0:
            raise ValidationError("capacity cannot be negative", field="capacity")

        exists = self.session.execute(
            select(Warehouse.id).where(Warehouse.code == code)
        ).scalar_one_or_none()
        if exists is not None:
            raise DuplicateEntityError("Warehouse", code)

        warehouse = Warehouse(
            code=code,
            name=(name or code).strip(),
            capacity=capacity,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(warehouse)
        self.session.flush()
        logger.info(
            "warehouse_registered",
            extra={"warehouse_id": str(warehouse.id), "code": code},
        )
        return warehouse.to_dto()

    def set_warehouse_active(self, warehouse_id: UUID, active: bool, *, actor_id: UUID) -> WarehouseInfo:
        warehouse = self.session.get(Warehouse, warehouse_id)
        if warehouse is None:
            raise WarehouseNotFoundError(str(warehouse_id))
        warehouse.is_active = active
        warehouse.updated_by_id = actor_id
        self.session.flush()
        return warehouse.to_dto()

    def register_supplier(
        self,
        name: str,
        *,
        actor_id: UUID,
        email: str | None = None,
    ) -> SupplierInfo:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Supplier name is required", field="name")

        exists = self.session.execute(
            select(Supplier.id).where(Supplier.name == name)
        ).scalar_one_or_none()
        if exists is not None:
            raise DuplicateEntityError("Supplier", name)

        supplier = Supplier(name=name, email=email, is_active=True, created_by_id=actor_id)
        self.session.add(supplier)
        self.session.flush()
        logger.info("supplier_registered", extra={"supplier_id": str(supplier.id)})
        return supplier.to_dto()
