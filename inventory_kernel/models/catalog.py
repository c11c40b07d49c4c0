"""
Module: inventory_kernel.models.catalog
Responsibility: Catalog tables referenced by the stock ledger: products,
    warehouses and suppliers.  Catalog management proper lives outside the
    engine; these tables are the minimum the ledger needs to validate
    references, classify alerts and value stock.
Architecture position: Kernel > Models.  Inherits from TrackedBase.

Invariants enforced:
    - Product SKU and warehouse code are unique and stored upper-case.
    - Supplier name is unique.
    - Prices are Decimal (Numeric) -- never float.

Failure modes:
    - IntegrityError on a duplicate SKU, code or supplier name.  The
      CatalogService checks first and raises DuplicateEntityError.
"""

from decimal import Decimal

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase
from inventory_kernel.domain.dtos import (
    ProductInfo,
    SupplierInfo,
    UnitOfMeasure,
    WarehouseInfo,
)


class Product(TrackedBase):
    """Product with pricing and stock thresholds."""

    __tablename__ = "products"

    sku: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit: Mapped[str] = mapped_column(String(20), default=UnitOfMeasure.PIECE.value)

    cost_price: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    selling_price: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    reorder_level: Mapped[int] = mapped_column(default=20)
    min_stock_level: Mapped[int] = mapped_column(default=10)
    max_stock_level: Mapped[int] = mapped_column(default=1000)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def to_dto(self) -> ProductInfo:
        return ProductInfo(
            id=self.id,
            sku=self.sku,
            name=self.name,
            unit=UnitOfMeasure(self.unit),
            cost_price=Decimal(self.cost_price),
            selling_price=Decimal(self.selling_price),
            reorder_level=self.reorder_level,
            min_stock_level=self.min_stock_level,
            max_stock_level=self.max_stock_level,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<Product {self.sku}>"


class Warehouse(TrackedBase):
    """Physical stock location."""

    __tablename__ = "warehouses"

    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    capacity: Mapped[int] = mapped_column(default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def to_dto(self) -> WarehouseInfo:
        return WarehouseInfo(
            id=self.id,
            code=self.code,
            name=self.name,
            capacity=self.capacity,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<Warehouse {self.code}>"


class Supplier(TrackedBase):
    """Vendor referenced by purchase orders."""

    __tablename__ = "suppliers"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def to_dto(self) -> SupplierInfo:
        return SupplierInfo(
            id=self.id,
            name=self.name,
            email=self.email,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<Supplier {self.name}>"
