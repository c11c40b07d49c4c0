"""
Inventory Module Service (``inventory_modules.inventory.service``).

Responsibility
--------------
Manual stock operations: reason-coded adjustments (increase, decrease,
set), all-or-nothing bulk set, sales reservations and shipments.  Each
stock mutation goes through ``StockStore.apply_delta`` and is followed,
in the same transaction, by exactly one ``MovementLog`` entry (reserve
and release change no on-hand quantity and write none).

Architecture position
---------------------
**Modules layer** -- thin orchestration.  Validation and pre-checks live
here; atomic persistence lives in the kernel services.

Invariants enforced
-------------------
* Each public method owns the transaction boundary (``commit`` on
  success, ``rollback`` on exception) unless constructed with
  ``auto_commit=False``, in which case the caller owns it.  The purchasing
  service composes this service that way for receipts.
* ``set`` passes the quantity it read as ``expected_quantity``; a
  concurrent writer surfaces as ``OptimisticLockError``.
* A zero-delta adjustment still writes its movement entry.

Failure modes
-------------
* ``ValidationError`` -- quantity not a non-negative integer, unknown
  adjustment type or reason.
* ``ProductNotFoundError`` / ``WarehouseNotFoundError``.
* ``InsufficientStockError`` -- a decrease beyond available, a set below
  the reserved quantity, a reservation or shipment that is short.
* ``OptimisticLockError`` / ``InvariantViolationError`` from the store.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import MovementType, StockLevel
from inventory_kernel.exceptions import InsufficientStockError, ValidationError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.selectors.catalog_selector import CatalogSelector
from inventory_kernel.services.movement_log import MovementLog
from inventory_kernel.services.stock_store import StockStore
from inventory_modules.inventory.models import (
    AdjustmentReason,
    AdjustmentResult,
    AdjustmentType,
    ReservationResult,
    SetAdjustment,
)

logger = get_logger("modules.inventory.service")


def _check_quantity(quantity: int, *, positive: bool = False) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(
            f"quantity must be a whole number, got {quantity!r}", field="quantity",
        )
    if quantity < 0 or (positive and quantity == 0):
        bound = "positive" if positive else "non-negative"
        raise ValidationError(f"quantity must be {bound}, got {quantity}", field="quantity")


def _parse_enum(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ValidationError(f"invalid {field}: {value!r}", field=field) from exc


class InventoryService:
    """
    Orchestrates manual stock operations through the kernel store and log.

    Contract
    --------
    * ``adjust`` and ``ship`` return an ``AdjustmentResult`` holding the new
      stock state and the movement written.
    * ``reserve`` / ``release`` return a ``ReservationResult``.
    * ``bulk_adjust`` applies every row or none.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._auto_commit = auto_commit
        self._store = StockStore(session, self._clock)
        self._movements = MovementLog(session, self._clock)
        self._catalog = CatalogSelector(session)

    def _commit(self) -> None:
        if self._auto_commit:
            self._session.commit()

    def _rollback(self) -> None:
        if self._auto_commit:
            self._session.rollback()

    # =========================================================================
    # Adjustments
    # =========================================================================

    def adjust(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        adjustment_type: AdjustmentType | str,
        quantity: int,
        reason: AdjustmentReason | str,
        *,
        actor_id: UUID,
        notes: str | None = None,
        movement_type: MovementType = MovementType.ADJUSTMENT,
        reference: str | None = None,
        resulting_status: str = "completed",
    ) -> AdjustmentResult:
        """
        Apply a reason-coded adjustment and log the movement.

        Args:
            product_id: Product to adjust.
            warehouse_id: Warehouse holding the stock.
            adjustment_type: increase, decrease or set.
            quantity: Non-negative whole units.
            reason: Reason code.
            actor_id: Who made the adjustment.
            notes: Free text stored on the movement.
            movement_type: Movement type to log; workflows pass their own.
            reference: Movement reference; defaults to the reason code.
            resulting_status: Status of the originating document.

        Raises:
            InsufficientStockError: A decrease beyond available, or a set
                below the reserved quantity.
        """
        try:
            result = self._adjust(
                product_id, warehouse_id, adjustment_type, quantity, reason,
                actor_id=actor_id,
                notes=notes,
                movement_type=movement_type,
                reference=reference,
                resulting_status=resulting_status,
            )
            self._commit()
            return result
        except Exception:
            self._rollback()
            raise

    def _adjust(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        adjustment_type: AdjustmentType | str,
        quantity: int,
        reason: AdjustmentReason | str,
        *,
        actor_id: UUID,
        notes: str | None,
        movement_type: MovementType,
        reference: str | None,
        resulting_status: str,
    ) -> AdjustmentResult:
        adjustment_type = _parse_enum(AdjustmentType, adjustment_type, "adjustment_type")
        reason = _parse_enum(AdjustmentReason, reason, "reason")
        if reason.is_system and movement_type is MovementType.ADJUSTMENT:
            raise ValidationError(
                f"reason {reason.value!r} is reserved for workflow movements", field="reason",
            )
        _check_quantity(quantity)
        self._catalog.require_product(product_id)
        self._catalog.require_warehouse(warehouse_id)

        current = self._store.get_or_empty(product_id, warehouse_id)
        expected_quantity = None

        if adjustment_type is AdjustmentType.INCREASE:
            delta = quantity
        elif adjustment_type is AdjustmentType.DECREASE:
            if quantity > current.available_quantity:
                raise InsufficientStockError(
                    product_id=str(product_id),
                    warehouse_id=str(warehouse_id),
                    requested=quantity,
                    available=current.available_quantity,
                )
            delta = -quantity
        else:
            if quantity < current.reserved_quantity:
                raise InsufficientStockError(
                    product_id=str(product_id),
                    warehouse_id=str(warehouse_id),
                    requested=current.quantity - quantity,
                    available=current.available_quantity,
                )
            delta = quantity - current.quantity
            expected_quantity = current.quantity

        logger.info(
            "inventory_adjustment_started",
            extra={
                "product_id": str(product_id),
                "warehouse_id": str(warehouse_id),
                "adjustment_type": adjustment_type.value,
                "quantity": quantity,
                "quantity_delta": delta,
                "reason": reason.value,
            },
        )

        level = self._store.apply_delta(
            product_id, warehouse_id, delta, 0,
            actor_id=actor_id,
            expected_quantity=expected_quantity,
        )
        movement = self._movements.record(
            movement_type, level, delta,
            actor_id=actor_id,
            reason=reason.value,
            reference=reference or reason.value,
            notes=notes,
            resulting_status=resulting_status,
        )
        return AdjustmentResult(stock=level, movement=movement)

    def bulk_adjust(
        self,
        updates: Sequence[SetAdjustment],
        *,
        actor_id: UUID,
    ) -> list[AdjustmentResult]:
        """
        Set the on-hand quantity of several keys in one transaction.

        Rows with a location also update the record's bin location.  If
        any row fails nothing is applied.
        """
        if not updates:
            raise ValidationError("bulk update needs at least one row", field="updates")
        try:
            results: list[AdjustmentResult] = []
            for row in updates:
                result = self._adjust(
                    row.product_id, row.warehouse_id, AdjustmentType.SET,
                    row.quantity, row.reason,
                    actor_id=actor_id,
                    notes=None,
                    movement_type=MovementType.ADJUSTMENT,
                    reference=None,
                    resulting_status="completed",
                )
                if row.has_location and result.stock.exists:
                    located = self._store.set_location(
                        row.product_id, row.warehouse_id,
                        actor_id=actor_id,
                        aisle=row.aisle, shelf=row.shelf, bin=row.bin,
                    )
                    result = AdjustmentResult(stock=located, movement=result.movement)
                results.append(result)
            self._commit()
            logger.info(
                "inventory_bulk_adjust_committed",
                extra={"row_count": len(results)},
            )
            return results
        except Exception:
            self._rollback()
            logger.warning(
                "inventory_bulk_adjust_rolled_back",
                extra={"row_count": len(updates)},
            )
            raise

    def set_location(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        *,
        actor_id: UUID,
        aisle: str | None = None,
        shelf: str | None = None,
        bin: str | None = None,
    ) -> StockLevel:
        """Record the bin location of an existing stock record.

        Raises:
            ValidationError: No stock record exists for the key.
        """
        try:
            level = self._store.set_location(
                product_id, warehouse_id,
                actor_id=actor_id, aisle=aisle, shelf=shelf, bin=bin,
            )
            if level is None:
                raise ValidationError(
                    f"no stock record for product {product_id} in warehouse {warehouse_id}",
                    field="warehouse_id",
                )
            self._commit()
            return level
        except Exception:
            self._rollback()
            raise

    # =========================================================================
    # Reservations and shipments
    # =========================================================================

    def reserve(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        quantity: int,
        *,
        actor_id: UUID,
        reference: str | None = None,
    ) -> ReservationResult:
        """Earmark available units for a sales order.

        Raises:
            InsufficientStockError: available < quantity.
        """
        try:
            _check_quantity(quantity, positive=True)
            self._catalog.require_product(product_id)
            self._catalog.require_warehouse(warehouse_id)
            current = self._store.get_or_empty(product_id, warehouse_id)
            if quantity > current.available_quantity:
                raise InsufficientStockError(
                    product_id=str(product_id),
                    warehouse_id=str(warehouse_id),
                    requested=quantity,
                    available=current.available_quantity,
                )
            level = self._store.apply_delta(
                product_id, warehouse_id, 0, quantity, actor_id=actor_id,
            )
            self._commit()
        except Exception:
            self._rollback()
            raise

        logger.info(
            "stock_reserved",
            extra={
                "product_id": str(product_id),
                "warehouse_id": str(warehouse_id),
                "quantity": quantity,
                "reference": reference,
            },
        )
        return ReservationResult(stock=level, reference=reference, reserved_delta=quantity)

    def release(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        quantity: int,
        *,
        actor_id: UUID,
        reference: str | None = None,
    ) -> ReservationResult:
        """Return reserved units to available.

        Raises:
            ValidationError: quantity exceeds the reserved quantity.
        """
        try:
            _check_quantity(quantity, positive=True)
            self._catalog.require_product(product_id)
            self._catalog.require_warehouse(warehouse_id)
            current = self._store.get_or_empty(product_id, warehouse_id)
            if quantity > current.reserved_quantity:
                raise ValidationError(
                    f"cannot release {quantity}: only {current.reserved_quantity} reserved",
                    field="quantity",
                )
            level = self._store.apply_delta(
                product_id, warehouse_id, 0, -quantity, actor_id=actor_id,
            )
            self._commit()
        except Exception:
            self._rollback()
            raise

        logger.info(
            "stock_released",
            extra={
                "product_id": str(product_id),
                "warehouse_id": str(warehouse_id),
                "quantity": quantity,
                "reference": reference,
            },
        )
        return ReservationResult(stock=level, reference=reference, reserved_delta=-quantity)

    def ship(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        quantity: int,
        *,
        actor_id: UUID,
        reference: str | None = None,
        from_reservation: bool = True,
        notes: str | None = None,
    ) -> AdjustmentResult:
        """
        Ship units to a customer.

        With ``from_reservation`` the units leave the reserved quantity as
        well; otherwise they must be available.  Stamps ``last_sold_at``.

        Raises:
            InsufficientStockError: Not enough reserved (or available) units.
        """
        try:
            _check_quantity(quantity, positive=True)
            self._catalog.require_product(product_id)
            self._catalog.require_warehouse(warehouse_id)
            current = self._store.get_or_empty(product_id, warehouse_id)
            pool = current.reserved_quantity if from_reservation else current.available_quantity
            if quantity > pool:
                raise InsufficientStockError(
                    product_id=str(product_id),
                    warehouse_id=str(warehouse_id),
                    requested=quantity,
                    available=pool,
                )
            level = self._store.apply_delta(
                product_id, warehouse_id,
                -quantity, -quantity if from_reservation else 0,
                actor_id=actor_id,
                mark_sold=True,
            )
            movement = self._movements.record(
                MovementType.SALE_SHIPMENT, level, -quantity,
                actor_id=actor_id,
                reason=AdjustmentReason.SALE_SHIPMENT.value,
                reference=reference,
                notes=notes,
            )
            self._commit()
            return AdjustmentResult(stock=level, movement=movement)
        except Exception:
            self._rollback()
            raise
