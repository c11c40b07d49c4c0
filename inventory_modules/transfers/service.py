"""
Transfer Module Service (``inventory_modules.transfers.service``).

Responsibility
--------------
Moves stock between warehouses through the transfer workflow:

* ``create`` reserves the quantity on the source and opens the transfer
  as ``pending`` under a freshly allocated ``TRF-YYYYMMDD-NNNN`` number.
* ``approve`` puts it ``in_transit``; no stock change.
* ``complete`` takes the quantity (and its reservation) off the source,
  adds it to the destination and writes a ``transfer_out`` and a
  ``transfer_in`` movement sharing the transfer number.
* ``cancel`` releases the reservation.

Architecture position
---------------------
**Modules layer** -- orchestration.  Stock writes go through
``StockStore``; status changes through ``TransitionLog.apply``.

Invariants enforced
-------------------
* Each public method owns the transaction boundary (``commit`` on success,
  ``rollback`` on exception).  ``complete`` is all three writes or none.
* Conservation: ``complete`` leaves the product's total quantity across
  all warehouses unchanged.
* The status UPDATE is conditional on the status read, so two callers
  racing to transition the same transfer cannot both succeed.

Failure modes
-------------
* ``ValidationError`` -- same source and destination, non-positive
  quantity, unknown reason.
* ``TransferNotFoundError``, ``ProductNotFoundError``,
  ``WarehouseNotFoundError``.
* ``InsufficientStockError`` -- source available below the quantity.
* ``InvalidStateTransitionError`` -- action not allowed from the status.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from inventory_config.schema import EngineSettings
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import MovementRecord, MovementType, TransitionRecord
from inventory_kernel.exceptions import (
    InsufficientStockError,
    TransferNotFoundError,
    ValidationError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.selectors.base import fetch_page
from inventory_kernel.selectors.catalog_selector import CatalogSelector
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.selectors.transition_selector import TransitionSelector
from inventory_kernel.services.movement_log import MovementLog
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.stock_store import StockStore
from inventory_kernel.services.transition_log import TransitionLog
from inventory_modules._paging import Page, check_paging
from inventory_modules.transfers.models import TransferReason, TransferRecord, TransferStatus
from inventory_modules.transfers.orm import TransferModel
from inventory_modules.transfers.workflows import TRANSFER_WORKFLOW

logger = get_logger("modules.transfers.service")


class TransferService:
    """
    Orchestrates inter-warehouse transfers.

    Contract
    --------
    * Write methods return the ``TransferRecord`` as stored after commit.
    * Read methods (``get``, ``list``, ``history``, ``movements``) never
      write.

    Guarantees
    ----------
    * While a transfer is ``pending`` or ``in_transit`` its quantity is
      held in the source's ``reserved_quantity``; ``complete`` and
      ``cancel`` both give it back exactly once.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: EngineSettings | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._settings = settings or EngineSettings()
        self._store = StockStore(session, self._clock)
        self._movements = MovementLog(session, self._clock)
        self._transitions = TransitionLog(session, self._clock)
        self._sequences = SequenceService(session)
        self._catalog = CatalogSelector(session)

    def _load(self, transfer_id: UUID) -> TransferModel:
        model = self._session.execute(
            select(TransferModel)
            .where(TransferModel.id == transfer_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if model is None:
            raise TransferNotFoundError(str(transfer_id))
        return model

    # =========================================================================
    # Workflow
    # =========================================================================

    def create(
        self,
        product_id: UUID,
        from_warehouse_id: UUID,
        to_warehouse_id: UUID,
        quantity: int,
        reason: TransferReason | str,
        *,
        actor_id: UUID,
        notes: str | None = None,
    ) -> TransferRecord:
        """
        Open a transfer and reserve its quantity on the source warehouse.

        Raises:
            ValidationError: Source equals destination, quantity is not a
                positive whole number, or the reason is unknown.
            InsufficientStockError: Source available quantity is short.
        """
        try:
            try:
                reason = TransferReason(reason)
            except ValueError as exc:
                raise ValidationError(f"invalid reason: {reason!r}", field="reason") from exc
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise ValidationError(
                    f"quantity must be a positive whole number, got {quantity!r}",
                    field="quantity",
                )
            if from_warehouse_id == to_warehouse_id:
                raise ValidationError(
                    "source and destination warehouse must differ",
                    field="to_warehouse_id",
                )
            self._catalog.require_product(product_id)
            self._catalog.require_warehouse(from_warehouse_id)
            self._catalog.require_warehouse(to_warehouse_id)

            source = self._store.get_or_empty(product_id, from_warehouse_id)
            if source.available_quantity < quantity:
                raise InsufficientStockError(
                    product_id=str(product_id),
                    warehouse_id=str(from_warehouse_id),
                    requested=quantity,
                    available=source.available_quantity,
                )
            self._store.apply_delta(
                product_id, from_warehouse_id, 0, quantity, actor_id=actor_id,
            )

            now = self._clock.now()
            number = self._sequences.next_document_number(
                SequenceService.TRANSFER, self._settings.transfers.number_prefix, now,
            )
            model = TransferModel(
                transfer_number=number,
                product_id=product_id,
                from_warehouse_id=from_warehouse_id,
                to_warehouse_id=to_warehouse_id,
                quantity=quantity,
                reason=reason.value,
                notes=notes,
                status=TRANSFER_WORKFLOW.initial_state,
                initiated_by_id=actor_id,
                transfer_date=now,
                created_by_id=actor_id,
            )
            self._session.add(model)
            self._session.flush()
            self._transitions.record(
                TRANSFER_WORKFLOW.name, model.id, "create",
                None, model.status, actor_id=actor_id,
            )
            record = model.to_dto()
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "transfer_created",
            extra={
                "transfer_id": str(record.id),
                "transfer_number": record.transfer_number,
                "product_id": str(product_id),
                "from_warehouse_id": str(from_warehouse_id),
                "to_warehouse_id": str(to_warehouse_id),
                "quantity": quantity,
            },
        )
        return record

    def approve(
        self,
        transfer_id: UUID,
        *,
        actor_id: UUID,
        carrier: str | None = None,
        tracking_number: str | None = None,
        estimated_delivery: date | None = None,
    ) -> TransferRecord:
        """``pending -> in_transit``, optionally recording tracking info."""
        try:
            model = self._load(transfer_id)
            self._transitions.apply(
                TRANSFER_WORKFLOW, TransferModel, transfer_id, model.status, "approve",
                actor_id=actor_id,
                values={
                    "approved_by_id": actor_id,
                    "approved_at": self._clock.now(),
                    "carrier": carrier,
                    "tracking_number": tracking_number,
                    "estimated_delivery": estimated_delivery,
                },
            )
            record = self._load(transfer_id).to_dto()
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "transfer_approved",
            extra={"transfer_id": str(transfer_id), "transfer_number": record.transfer_number},
        )
        return record

    def complete(self, transfer_id: UUID, *, actor_id: UUID) -> TransferRecord:
        """
        ``in_transit -> completed``: move the stock in one transaction.

        Source loses ``quantity`` from both on-hand and reserved,
        destination gains ``quantity`` on-hand.
        """
        try:
            model = self._load(transfer_id)
            with LogContext.bind(document_id=model.transfer_number):
                self._transitions.apply(
                    TRANSFER_WORKFLOW, TransferModel, transfer_id, model.status, "complete",
                    actor_id=actor_id,
                    values={"completed_by_id": actor_id, "completed_at": self._clock.now()},
                )
                transfer = self._load(transfer_id).to_dto()
                q = transfer.quantity

                source = self._store.apply_delta(
                    transfer.product_id, transfer.from_warehouse_id, -q, -q,
                    actor_id=actor_id,
                )
                self._movements.record(
                    MovementType.TRANSFER_OUT, source, -q,
                    actor_id=actor_id,
                    reason=transfer.reason.value,
                    reference=transfer.transfer_number,
                    notes=transfer.notes,
                    related_warehouse_id=transfer.to_warehouse_id,
                )
                destination = self._store.apply_delta(
                    transfer.product_id, transfer.to_warehouse_id, q, 0,
                    actor_id=actor_id,
                )
                self._movements.record(
                    MovementType.TRANSFER_IN, destination, q,
                    actor_id=actor_id,
                    reason=transfer.reason.value,
                    reference=transfer.transfer_number,
                    notes=transfer.notes,
                    related_warehouse_id=transfer.from_warehouse_id,
                )
            self._session.commit()
        except Exception:
            self._session.rollback()
            logger.warning(
                "transfer_complete_rolled_back",
                extra={"transfer_id": str(transfer_id)},
            )
            raise

        logger.info(
            "transfer_completed",
            extra={
                "transfer_id": str(transfer_id),
                "transfer_number": transfer.transfer_number,
                "quantity": q,
                "source_quantity": source.quantity,
                "destination_quantity": destination.quantity,
            },
        )
        return transfer

    def cancel(self, transfer_id: UUID, *, actor_id: UUID) -> TransferRecord:
        """``pending|in_transit -> cancelled``; releases the reservation."""
        try:
            model = self._load(transfer_id)
            self._transitions.apply(
                TRANSFER_WORKFLOW, TransferModel, transfer_id, model.status, "cancel",
                actor_id=actor_id,
                values={"cancelled_by_id": actor_id, "cancelled_at": self._clock.now()},
            )
            transfer = self._load(transfer_id).to_dto()
            self._store.apply_delta(
                transfer.product_id, transfer.from_warehouse_id, 0, -transfer.quantity,
                actor_id=actor_id,
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "transfer_cancelled",
            extra={
                "transfer_id": str(transfer_id),
                "transfer_number": transfer.transfer_number,
                "released_quantity": transfer.quantity,
            },
        )
        return transfer

    # =========================================================================
    # Read paths
    # =========================================================================

    def get(self, transfer_id: UUID) -> TransferRecord:
        return self._load(transfer_id).to_dto()

    def list(
        self,
        *,
        status: TransferStatus | str | None = None,
        warehouse_id: UUID | None = None,
        product_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> Page[TransferRecord]:
        """
        Transfers newest first.  ``warehouse_id`` matches either end of
        the transfer.
        """
        inventory = self._settings.inventory
        limit = check_paging(
            page, limit or inventory.movement_page_limit, inventory.max_page_limit,
        )
        conditions = []
        if status is not None:
            try:
                status = TransferStatus(status)
            except ValueError as exc:
                raise ValidationError(f"invalid status: {status!r}", field="status") from exc
            conditions.append(TransferModel.status == status.value)
        if warehouse_id is not None:
            conditions.append(or_(
                TransferModel.from_warehouse_id == warehouse_id,
                TransferModel.to_warehouse_id == warehouse_id,
            ))
        if product_id is not None:
            conditions.append(TransferModel.product_id == product_id)
        if start is not None:
            conditions.append(TransferModel.transfer_date >= start)
        if end is not None:
            conditions.append(TransferModel.transfer_date <= end)

        rows, total = fetch_page(
            self._session, TransferModel, conditions,
            (TransferModel.transfer_date.desc(), TransferModel.transfer_number.desc()),
            page, limit,
        )
        return Page(items=tuple(r.to_dto() for r in rows), total=total, page=page, limit=limit)

    def history(self, transfer_id: UUID) -> list[TransitionRecord]:
        """Status changes of a transfer, starting with its creation."""
        self._load(transfer_id)
        return TransitionSelector(self._session).history(TRANSFER_WORKFLOW.name, transfer_id)

    def movements(self, transfer_id: UUID) -> list[MovementRecord]:
        """The movement entries posted by a completed transfer."""
        transfer = self._load(transfer_id)
        return MovementSelector(self._session).for_reference(transfer.transfer_number)
