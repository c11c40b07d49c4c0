"""
StockStore -- atomic persistence of per (product, warehouse) stock records.

Responsibility:
    The only writer of ``stock_records``.  Every mutation goes through
    ``apply_delta``, which issues ONE conditional UPDATE that both changes
    the quantities and proves the post-condition in its WHERE clause:

        UPDATE stock_records
           SET quantity = quantity + :dq,
               reserved_quantity = reserved_quantity + :dr,
               version = version + 1
         WHERE product_id = :p AND warehouse_id = :w
           AND quantity + :dq >= 0
           AND reserved_quantity + :dr >= 0
           AND reserved_quantity + :dr <= quantity + :dq
           [AND quantity = :expected_quantity]
           [AND version = :expected_version]

    There is no read-then-write path, so two callers racing on the same
    key can never lose an update.  A zero row count is then diagnosed by
    re-reading the record.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only; the caller owns
    the transaction.

Invariants enforced:
    - RESERVATION_BOUNDS: 0 <= reserved_quantity <= quantity after every
      successful call.  A call that would break it writes nothing.
    - ATOMIC_STOCK_UPDATE: single conditional UPDATE per call.
    - Records are created lazily on the first positive delta and never
      deleted.

Failure modes:
    - InvariantViolationError: the post-condition would not hold.  Logged
      at ERROR with the key, the current values and the attempted deltas.
    - OptimisticLockError: ``expected_quantity`` / ``expected_version`` no
      longer match the stored record (retryable by the caller).
"""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import StockLevel
from inventory_kernel.exceptions import InvariantViolationError, OptimisticLockError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.stock_record import StockRecord
from inventory_kernel.services.base import BaseService

logger = get_logger("services.stock_store")


class StockStore(BaseService[StockRecord]):
    """
    Conditional-update store for stock records.

    Contract:
        ``get`` returns the committed-or-flushed state of a key, or None.
        ``apply_delta`` either applies both deltas atomically and returns
        the new state, or raises and leaves the record untouched.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _load(self, product_id: UUID, warehouse_id: UUID) -> StockRecord | None:
        return self.session.execute(
            select(StockRecord)
            .where(
                StockRecord.product_id == product_id,
                StockRecord.warehouse_id == warehouse_id,
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get(self, product_id: UUID, warehouse_id: UUID) -> StockLevel | None:
        """Current stock level, or None if no stock event ever touched the key."""
        record = self._load(product_id, warehouse_id)
        return record.to_dto() if record is not None else None

    def get_or_empty(self, product_id: UUID, warehouse_id: UUID) -> StockLevel:
        """Current stock level, or an unsaved zero snapshot."""
        return self.get(product_id, warehouse_id) or StockLevel.empty(
            product_id, warehouse_id,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def apply_delta(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        quantity_delta: int,
        reserved_delta: int,
        *,
        actor_id: UUID,
        expected_quantity: int | None = None,
        expected_version: int | None = None,
        mark_sold: bool = False,
    ) -> StockLevel:
        """
        Atomically add ``quantity_delta`` and ``reserved_delta`` to a record.

        Args:
            product_id: Product key.
            warehouse_id: Warehouse key.
            quantity_delta: Signed change to on-hand quantity.
            reserved_delta: Signed change to reserved quantity.
            actor_id: Recorded as updated_by_id (created_by_id on insert).
            expected_quantity: If given, the update only applies while the
                stored quantity still equals this value.
            expected_version: If given, the update only applies while the
                stored version still equals this value.
            mark_sold: Stamp ``last_sold_at``.

        Returns:
            The record state after the update.

        Raises:
            InvariantViolationError: The result would break
                0 <= reserved_quantity <= quantity.
            OptimisticLockError: An expected value no longer matches.
        """
        return self._apply(
            product_id, warehouse_id, quantity_delta, reserved_delta,
            actor_id=actor_id,
            expected_quantity=expected_quantity,
            expected_version=expected_version,
            mark_sold=mark_sold,
            allow_insert=True,
        )

    def _apply(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        quantity_delta: int,
        reserved_delta: int,
        *,
        actor_id: UUID,
        expected_quantity: int | None,
        expected_version: int | None,
        mark_sold: bool,
        allow_insert: bool,
    ) -> StockLevel:
        now = self._clock.now()
        new_quantity = StockRecord.quantity + quantity_delta
        new_reserved = StockRecord.reserved_quantity + reserved_delta

        stmt = (
            update(StockRecord)
            .where(
                StockRecord.product_id == product_id,
                StockRecord.warehouse_id == warehouse_id,
                new_quantity >= 0,
                new_reserved >= 0,
                new_reserved <= new_quantity,
            )
        )
        if expected_quantity is not None:
            stmt = stmt.where(StockRecord.quantity == expected_quantity)
        if expected_version is not None:
            stmt = stmt.where(StockRecord.version == expected_version)

        values: dict = {
            "quantity": new_quantity,
            "reserved_quantity": new_reserved,
            "version": StockRecord.version + 1,
            "updated_by_id": actor_id,
        }
        if quantity_delta > 0:
            values["last_restocked_at"] = now
        if mark_sold:
            values["last_sold_at"] = now

        result = self.session.execute(
            stmt.values(**values).execution_options(synchronize_session=False)
        )

        if result.rowcount == 1:
            level = self._load(product_id, warehouse_id).to_dto()
            logger.debug(
                "stock_delta_applied",
                extra={
                    "product_id": str(product_id),
                    "warehouse_id": str(warehouse_id),
                    "quantity_delta": quantity_delta,
                    "reserved_delta": reserved_delta,
                    "quantity": level.quantity,
                    "reserved_quantity": level.reserved_quantity,
                    "version": level.version,
                },
            )
            return level

        current = self._load(product_id, warehouse_id)
        if current is None:
            return self._materialize(
                product_id, warehouse_id, quantity_delta, reserved_delta,
                actor_id=actor_id,
                expected_quantity=expected_quantity,
                expected_version=expected_version,
                mark_sold=mark_sold,
                allow_insert=allow_insert,
            )

        if (
            expected_quantity is not None and current.quantity != expected_quantity
        ) or (
            expected_version is not None and current.version != expected_version
        ):
            logger.warning(
                "stock_optimistic_conflict",
                extra={
                    "product_id": str(product_id),
                    "warehouse_id": str(warehouse_id),
                    "expected_quantity": expected_quantity,
                    "actual_quantity": current.quantity,
                    "expected_version": expected_version,
                    "actual_version": current.version,
                },
            )
            raise OptimisticLockError(
                entity_type="StockRecord",
                entity_id=f"{product_id}/{warehouse_id}",
            )

        self._raise_violation(
            product_id, warehouse_id,
            current.quantity, current.reserved_quantity,
            quantity_delta, reserved_delta,
        )

    def _materialize(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        quantity_delta: int,
        reserved_delta: int,
        *,
        actor_id: UUID,
        expected_quantity: int | None,
        expected_version: int | None,
        mark_sold: bool,
        allow_insert: bool,
    ) -> StockLevel:
        """Create the record for a key that has never had a stock event."""
        if expected_quantity not in (None, 0) or expected_version not in (None, 0):
            raise OptimisticLockError(
                entity_type="StockRecord",
                entity_id=f"{product_id}/{warehouse_id}",
            )
        if quantity_delta < 0 or reserved_delta < 0 or reserved_delta > quantity_delta:
            self._raise_violation(
                product_id, warehouse_id, 0, 0, quantity_delta, reserved_delta,
            )
        if quantity_delta == 0:
            return StockLevel.empty(product_id, warehouse_id)
        if not allow_insert:
            # The concurrent insert that beat us is not visible; give up
            # rather than loop.
            raise OptimisticLockError(
                entity_type="StockRecord",
                entity_id=f"{product_id}/{warehouse_id}",
            )

        now = self._clock.now()
        savepoint = self.session.begin_nested()
        try:
            record = StockRecord(
                product_id=product_id,
                warehouse_id=warehouse_id,
                quantity=quantity_delta,
                reserved_quantity=reserved_delta,
                version=1,
                last_restocked_at=now,
                last_sold_at=now if mark_sold else None,
                created_by_id=actor_id,
            )
            self.session.add(record)
            self.session.flush()
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
            logger.debug(
                "stock_record_insert_race_retry",
                extra={
                    "product_id": str(product_id),
                    "warehouse_id": str(warehouse_id),
                },
            )
            return self._apply(
                product_id, warehouse_id, quantity_delta, reserved_delta,
                actor_id=actor_id,
                expected_quantity=expected_quantity,
                expected_version=expected_version,
                mark_sold=mark_sold,
                allow_insert=False,
            )

        logger.info(
            "stock_record_created",
            extra={
                "product_id": str(product_id),
                "warehouse_id": str(warehouse_id),
                "quantity": quantity_delta,
                "reserved_quantity": reserved_delta,
            },
        )
        return record.to_dto()

    def _raise_violation(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        quantity: int,
        reserved_quantity: int,
        quantity_delta: int,
        reserved_delta: int,
    ):
        error = InvariantViolationError(
            product_id=str(product_id),
            warehouse_id=str(warehouse_id),
            quantity=quantity,
            reserved_quantity=reserved_quantity,
            quantity_delta=quantity_delta,
            reserved_delta=reserved_delta,
        )
        logger.error(
            "stock_invariant_violation",
            extra={
                "product_id": str(product_id),
                "warehouse_id": str(warehouse_id),
                "quantity": quantity,
                "reserved_quantity": reserved_quantity,
                "quantity_delta": quantity_delta,
                "reserved_delta": reserved_delta,
            },
        )
        raise error

    def set_location(
        self,
        product_id: UUID,
        warehouse_id: UUID,
        *,
        actor_id: UUID,
        aisle: str | None = None,
        shelf: str | None = None,
        bin: str | None = None,
    ) -> StockLevel | None:
        """Record the bin location of an existing stock record.

        Quantities are untouched.  Returns None if the record does not exist.
        """
        result = self.session.execute(
            update(StockRecord)
            .where(
                StockRecord.product_id == product_id,
                StockRecord.warehouse_id == warehouse_id,
            )
            .values(aisle=aisle, shelf=shelf, bin=bin, updated_by_id=actor_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return self.get(product_id, warehouse_id)
