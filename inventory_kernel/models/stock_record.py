"""
Module: inventory_kernel.models.stock_record
Responsibility: ORM model for per (product, warehouse) stock state -- the
    ledger's source of truth for on-hand and reserved quantity.
Architecture position: Kernel > Models.  Written ONLY by
    inventory_kernel.services.stock_store.StockStore.

Invariants enforced:
    - (product_id, warehouse_id) is unique.
    - CHECK constraints: quantity >= 0, reserved_quantity >= 0,
      reserved_quantity <= quantity.  The store's conditional UPDATE keeps
      writes inside these bounds; the CHECKs catch anything that bypasses it.
    - version increments on every write.
    - Records are never deleted; quantities are zeroed instead.

Failure modes:
    - IntegrityError if a write bypasses StockStore and breaks a CHECK.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase
from inventory_kernel.domain.dtos import StockLevel


class StockRecord(TrackedBase):
    """On-hand and reserved quantity of one product in one warehouse."""

    __tablename__ = "stock_records"

    __table_args__ = (
        UniqueConstraint("product_id", "warehouse_id", name="uq_stock_product_warehouse"),
        CheckConstraint("quantity >= 0", name="quantity_non_negative"),
        CheckConstraint("reserved_quantity >= 0", name="reserved_non_negative"),
        CheckConstraint("reserved_quantity <= quantity", name="reserved_within_quantity"),
        Index("idx_stock_warehouse", "warehouse_id"),
    )

    # Catalog references (no FK)
    product_id: Mapped[UUID] = mapped_column(nullable=False)
    warehouse_id: Mapped[UUID] = mapped_column(nullable=False)

    quantity: Mapped[int] = mapped_column(nullable=False, default=0)
    reserved_quantity: Mapped[int] = mapped_column(nullable=False, default=0)
    version: Mapped[int] = mapped_column(nullable=False, default=0)

    # Bin location
    aisle: Mapped[str | None] = mapped_column(String(32), nullable=True)
    shelf: Mapped[str | None] = mapped_column(String(32), nullable=True)
    bin: Mapped[str | None] = mapped_column(String(32), nullable=True)

    last_restocked_at: Mapped[datetime | None] = mapped_column(nullable=True)
    last_sold_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def to_dto(self) -> StockLevel:
        return StockLevel(
            id=self.id,
            product_id=self.product_id,
            warehouse_id=self.warehouse_id,
            quantity=self.quantity,
            reserved_quantity=self.reserved_quantity,
            version=self.version,
            aisle=self.aisle,
            shelf=self.shelf,
            bin=self.bin,
            last_restocked_at=self.last_restocked_at,
            last_sold_at=self.last_sold_at,
        )

    def __repr__(self) -> str:
        return (
            f"<StockRecord product={self.product_id} warehouse={self.warehouse_id} "
            f"qty={self.quantity} reserved={self.reserved_quantity} v{self.version}>"
        )
