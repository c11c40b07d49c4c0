"""
Purchasing Module Service (``inventory_modules.purchasing.service``).

Responsibility
--------------
Drives purchase orders through ``PURCHASE_ORDER_WORKFLOW``: draft
editing, approval routing, supplier handoff and receipt.  Receipts post
``purchase_receipt`` movements to the order's warehouse through the
inventory module's adjustment path, referencing the order number.

Architecture position
---------------------
**Modules layer** -- orchestration.  Totals come from
``inventory_engines.totals``; status changes go through
``TransitionLog.apply``; stock goes through ``InventoryService`` composed
with ``auto_commit=False`` so receipts share this service's transaction.

Invariants enforced
-------------------
* Each public method owns the transaction boundary (``commit`` on success,
  ``rollback`` on exception).
* Only ``draft`` orders can be edited or deleted; totals are recomputed on
  every edit.
* Cumulative receipt per line never exceeds the ordered quantity.
* ``mark_cancelled`` leaves posted receipts in place.

Failure modes
-------------
* ``PurchaseOrderNotFoundError``, ``SupplierNotFoundError``,
  ``WarehouseNotFoundError``, ``ProductNotFoundError``.
* ``ValidationError`` -- bad amounts, empty order on submit, empty
  rejection reason, receipt quantities out of range.
* ``InvalidStateTransitionError`` -- action not allowed from the status.

Usage::

    service = PurchasingService(session, clock=clock, settings=settings)
    order = service.create(
        supplier_id, warehouse_id,
        [PurchaseLine(product_id, 10, Decimal("5.00"))],
        actor_id=actor_id,
    )
    service.submit_for_approval(order.id, actor_id=actor_id)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_config.schema import EngineSettings
from inventory_engines.totals import LineAmount, OrderTotals, compute_order_totals
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import MovementRecord, MovementType, TransitionRecord
from inventory_kernel.exceptions import (
    InvalidStateTransitionError,
    PurchaseOrderNotFoundError,
    ValidationError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.selectors.base import fetch_page
from inventory_kernel.selectors.catalog_selector import CatalogSelector
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.selectors.transition_selector import TransitionSelector
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.transition_log import TransitionLog
from inventory_modules._paging import Page, check_paging
from inventory_modules.inventory.models import AdjustmentReason, AdjustmentType
from inventory_modules.inventory.service import InventoryService
from inventory_modules.purchasing.models import (
    ApprovalStatus,
    POStatus,
    Priority,
    PurchaseLine,
    PurchaseOrderRecord,
)
from inventory_modules.purchasing.orm import PurchaseOrderLineModel, PurchaseOrderModel
from inventory_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW

logger = get_logger("modules.purchasing.service")

_WORKFLOW = PURCHASE_ORDER_WORKFLOW


def _money(value: Decimal | int | str, field: str) -> Decimal:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError(f"{field} is not a number: {value!r}", field=field) from exc
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite amount, got {value!r}", field=field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    return amount


def _priority(value: Priority | str) -> Priority:
    try:
        return Priority(value)
    except ValueError as exc:
        raise ValidationError(f"invalid priority: {value!r}", field="priority") from exc


class PurchasingService:
    """
    Orchestrates the purchase order lifecycle.

    Contract
    --------
    * Write methods return the ``PurchaseOrderRecord`` as stored after
      commit (``delete_draft`` returns nothing).
    * ``mark_partial`` takes the quantities received in THIS delivery, per
      product, and promotes the order to ``received`` when every line is
      complete.
    * ``mark_received`` receives whatever is still outstanding.

    Guarantees
    ----------
    * Receipts, line updates and the status change commit together or not
      at all.
    * Clock is injectable for deterministic testing.
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
        self._transitions = TransitionLog(session, self._clock)
        self._sequences = SequenceService(session)
        self._catalog = CatalogSelector(session)
        # Receipts post inside our transaction.
        self._inventory = InventoryService(session, self._clock, auto_commit=False)

    def _load(self, order_id: UUID, *, for_update: bool = False) -> PurchaseOrderModel:
        stmt = (
            select(PurchaseOrderModel)
            .where(PurchaseOrderModel.id == order_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        model = self._session.execute(stmt).scalar_one_or_none()
        if model is None:
            raise PurchaseOrderNotFoundError(str(order_id))
        return model

    def _require_draft(self, model: PurchaseOrderModel, action: str) -> None:
        if model.status != POStatus.DRAFT.value:
            raise InvalidStateTransitionError(
                workflow=_WORKFLOW.name, current_state=model.status, action=action,
            )

    def _build_lines(
        self,
        items: Sequence[PurchaseLine],
        actor_id: UUID,
    ) -> tuple[list[PurchaseOrderLineModel], list[LineAmount]]:
        models: list[PurchaseOrderLineModel] = []
        amounts: list[LineAmount] = []
        seen: set[UUID] = set()
        for number, item in enumerate(items, start=1):
            if item.product_id in seen:
                raise ValidationError(
                    f"product {item.product_id} appears on more than one line",
                    field="items",
                )
            seen.add(item.product_id)
            self._catalog.require_product(item.product_id)
            amount = LineAmount(quantity=item.quantity, unit_price=item.unit_price)
            amounts.append(amount)
            models.append(
                PurchaseOrderLineModel(
                    line_number=number,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    line_total=amount.line_total,
                    received_quantity=0,
                    created_by_id=actor_id,
                )
            )
        return models, amounts

    @staticmethod
    def _totals(amounts: Sequence[LineAmount], tax: Decimal, discount: Decimal) -> OrderTotals:
        try:
            return compute_order_totals(amounts, tax=tax, discount=discount)
        except ValueError as exc:
            raise ValidationError(str(exc), field="discount") from exc

    # =========================================================================
    # Draft
    # =========================================================================

    def create(
        self,
        supplier_id: UUID,
        warehouse_id: UUID,
        items: Sequence[PurchaseLine] = (),
        *,
        actor_id: UUID,
        tax: Decimal | int | str = Decimal("0"),
        discount: Decimal | int | str = Decimal("0"),
        priority: Priority | str | None = None,
        expected_delivery_date: date | None = None,
        notes: str | None = None,
    ) -> PurchaseOrderRecord:
        """
        Create a draft order with a freshly allocated order number.

        ``items`` may be empty; lines can be added with ``update_draft``.
        """
        try:
            self._catalog.require_supplier(supplier_id)
            self._catalog.require_warehouse(warehouse_id)
            priority = _priority(priority or self._settings.purchasing.default_priority)
            tax = _money(tax, "tax")
            discount = _money(discount, "discount")
            lines, amounts = self._build_lines(items, actor_id)
            totals = self._totals(amounts, tax, discount)

            now = self._clock.now()
            number = self._sequences.next_document_number(
                SequenceService.PURCHASE_ORDER,
                self._settings.purchasing.number_prefix,
                now,
            )
            model = PurchaseOrderModel(
                order_number=number,
                supplier_id=supplier_id,
                warehouse_id=warehouse_id,
                status=_WORKFLOW.initial_state,
                approval_status=ApprovalStatus.NOT_SUBMITTED.value,
                priority=priority.value,
                subtotal=totals.subtotal,
                tax=totals.tax,
                discount=totals.discount,
                total_amount=totals.total,
                order_date=now,
                expected_delivery_date=expected_delivery_date,
                notes=notes,
                created_by_id=actor_id,
                lines=lines,
            )
            self._session.add(model)
            self._session.flush()
            self._transitions.record(
                _WORKFLOW.name, model.id, "create", None, model.status, actor_id=actor_id,
            )
            record = model.to_dto()
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "purchase_order_created",
            extra={
                "order_id": str(record.id),
                "order_number": record.order_number,
                "line_count": len(record.lines),
                "total_amount": str(record.total_amount),
            },
        )
        return record

    def update_draft(
        self,
        order_id: UUID,
        *,
        actor_id: UUID,
        items: Sequence[PurchaseLine] | None = None,
        supplier_id: UUID | None = None,
        warehouse_id: UUID | None = None,
        tax: Decimal | int | str | None = None,
        discount: Decimal | int | str | None = None,
        priority: Priority | str | None = None,
        expected_delivery_date: date | None = None,
        notes: str | None = None,
    ) -> PurchaseOrderRecord:
        """
        Edit a draft order.  Arguments left as None are unchanged; ``items``
        replaces every line.  Totals are recomputed.
        """
        try:
            model = self._load(order_id, for_update=True)
            self._require_draft(model, "update_draft")

            if supplier_id is not None:
                self._catalog.require_supplier(supplier_id)
                model.supplier_id = supplier_id
            if warehouse_id is not None:
                self._catalog.require_warehouse(warehouse_id)
                model.warehouse_id = warehouse_id
            if priority is not None:
                model.priority = _priority(priority).value
            if expected_delivery_date is not None:
                model.expected_delivery_date = expected_delivery_date
            if notes is not None:
                model.notes = notes

            new_tax = _money(tax, "tax") if tax is not None else model.tax
            new_discount = _money(discount, "discount") if discount is not None else model.discount

            if items is not None:
                new_lines, amounts = self._build_lines(items, actor_id)
                # Old lines must be gone before the replacements reuse
                # their line numbers.
                model.lines.clear()
                self._session.flush()
                model.lines.extend(new_lines)
            else:
                amounts = [
                    LineAmount(quantity=line.quantity, unit_price=line.unit_price)
                    for line in model.lines
                ]

            totals = self._totals(amounts, new_tax, new_discount)
            model.subtotal = totals.subtotal
            model.tax = totals.tax
            model.discount = totals.discount
            model.total_amount = totals.total
            model.updated_by_id = actor_id
            self._session.flush()
            record = model.to_dto()
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "purchase_order_draft_updated",
            extra={
                "order_id": str(order_id),
                "line_count": len(record.lines),
                "total_amount": str(record.total_amount),
            },
        )
        return record

    def delete_draft(self, order_id: UUID, *, actor_id: UUID) -> None:
        """Delete a draft order and its lines.  Its history rows remain."""
        try:
            model = self._load(order_id, for_update=True)
            self._require_draft(model, "delete_draft")
            order_number = model.order_number
            self._session.delete(model)
            self._session.flush()
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "purchase_order_draft_deleted",
            extra={
                "order_id": str(order_id),
                "order_number": order_number,
                "actor_id": str(actor_id),
            },
        )

    # =========================================================================
    # Approval and supplier handoff
    # =========================================================================

    def _transition(
        self,
        order_id: UUID,
        action: str,
        *,
        actor_id: UUID,
        values: dict[str, Any] | None = None,
        note: str | None = None,
        check: Callable[[PurchaseOrderModel], None] | None = None,
    ) -> PurchaseOrderRecord:
        """Guarded status change without stock effects, in its own transaction."""
        try:
            model = self._load(order_id, for_update=True)
            from_state = model.status
            _WORKFLOW.transition_for(from_state, action)
            if check is not None:
                check(model)
            transition = self._transitions.apply(
                _WORKFLOW, PurchaseOrderModel, order_id, from_state, action,
                actor_id=actor_id, note=note, values=values,
            )
            record = self._load(order_id).to_dto()
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "purchase_order_transitioned",
            extra={
                "order_id": str(order_id),
                "order_number": record.order_number,
                "action": action,
                "from_state": transition.from_state,
                "to_state": transition.to_state,
            },
        )
        return record

    def submit_for_approval(self, order_id: UUID, *, actor_id: UUID) -> PurchaseOrderRecord:
        """
        ``draft -> pending_approval``.

        When ``purchasing.approval_threshold`` is set and the order total is
        below it, the order goes straight to ``approved`` with approval
        status ``not_required``.

        Raises:
            ValidationError: The order has no lines.
        """
        model = self._load(order_id)
        threshold = self._settings.purchasing.approval_threshold
        now = self._clock.now()

        def has_lines(order: PurchaseOrderModel) -> None:
            if not order.lines:
                raise ValidationError(
                    "order needs at least one line item before submission", field="items",
                )

        if threshold is not None and model.total_amount < threshold:
            return self._transition(
                order_id, "auto_approve",
                actor_id=actor_id,
                check=has_lines,
                note=f"total {model.total_amount} below approval threshold {threshold}",
                values={
                    "approval_status": ApprovalStatus.NOT_REQUIRED.value,
                    "submitted_at": now,
                    "approved_at": now,
                },
            )
        return self._transition(
            order_id, "submit",
            actor_id=actor_id,
            check=has_lines,
            values={
                "approval_status": ApprovalStatus.PENDING.value,
                "submitted_at": now,
            },
        )

    def approve(self, order_id: UUID, *, actor_id: UUID) -> PurchaseOrderRecord:
        """``pending_approval -> approved``."""
        return self._transition(
            order_id, "approve",
            actor_id=actor_id,
            values={
                "approval_status": ApprovalStatus.APPROVED.value,
                "approved_by_id": actor_id,
                "approved_at": self._clock.now(),
            },
        )

    def reject(self, order_id: UUID, reason: str, *, actor_id: UUID) -> PurchaseOrderRecord:
        """``pending_approval -> rejected``.

        Raises:
            ValidationError: ``reason`` is empty.
        """
        reason = (reason or "").strip()

        def reason_given(_order: PurchaseOrderModel) -> None:
            if not reason:
                raise ValidationError("rejection reason is required", field="reason")

        return self._transition(
            order_id, "reject",
            actor_id=actor_id,
            check=reason_given,
            note=reason,
            values={
                "approval_status": ApprovalStatus.REJECTED.value,
                "rejected_by_id": actor_id,
                "rejected_at": self._clock.now(),
                "rejection_reason": reason,
            },
        )

    def mark_sent(self, order_id: UUID, *, actor_id: UUID) -> PurchaseOrderRecord:
        return self._transition(
            order_id, "mark_sent", actor_id=actor_id, values={"sent_at": self._clock.now()},
        )

    def mark_confirmed(self, order_id: UUID, *, actor_id: UUID) -> PurchaseOrderRecord:
        return self._transition(
            order_id, "mark_confirmed",
            actor_id=actor_id,
            values={"confirmed_at": self._clock.now()},
        )

    def mark_cancelled(
        self,
        order_id: UUID,
        *,
        actor_id: UUID,
        reason: str | None = None,
    ) -> PurchaseOrderRecord:
        """``sent|confirmed|partial -> cancelled``.  Posted receipts stand."""
        record = self._transition(
            order_id, "mark_cancelled",
            actor_id=actor_id,
            note=reason,
            values={"cancelled_at": self._clock.now()},
        )
        received = sum(line.received_quantity for line in record.lines)
        if received:
            logger.warning(
                "purchase_order_cancelled_with_receipts",
                extra={
                    "order_id": str(order_id),
                    "order_number": record.order_number,
                    "received_quantity": received,
                },
            )
        return record

    # =========================================================================
    # Receipt
    # =========================================================================

    def _post_receipts(
        self,
        model: PurchaseOrderModel,
        quantities: Mapping[UUID, int],
        *,
        actor_id: UUID,
        resulting_status: str,
        notes: str | None,
    ) -> None:
        for line in model.lines:
            quantity = quantities.get(line.product_id, 0)
            if quantity <= 0:
                continue
            line.received_quantity += quantity
            line.updated_by_id = actor_id
            self._inventory.adjust(
                line.product_id, model.warehouse_id,
                AdjustmentType.INCREASE, quantity, AdjustmentReason.PURCHASE_RECEIPT,
                actor_id=actor_id,
                notes=notes,
                movement_type=MovementType.PURCHASE_RECEIPT,
                reference=model.order_number,
                resulting_status=resulting_status,
            )

    def _receive(
        self,
        order_id: UUID,
        action: str,
        quantities_for: Callable[[PurchaseOrderModel], dict[UUID, int]],
        *,
        actor_id: UUID,
        notes: str | None,
    ) -> PurchaseOrderRecord:
        try:
            model = self._load(order_id, for_update=True)
            from_state = model.status
            _WORKFLOW.transition_for(from_state, action)
            quantities = quantities_for(model)

            complete = all(
                line.received_quantity + quantities.get(line.product_id, 0) == line.quantity
                for line in model.lines
            )
            if action == "mark_partial" and complete:
                action = "mark_received"
            if action == "mark_received" and not complete:
                raise ValidationError("not every line is fully received", field="items")
            transition = _WORKFLOW.transition_for(from_state, action)

            with LogContext.bind(document_id=model.order_number):
                self._post_receipts(
                    model, quantities,
                    actor_id=actor_id,
                    resulting_status=transition.to_state,
                    notes=notes,
                )
                values = {"actual_delivery_at": self._clock.now()} if complete else None
                self._transitions.apply(
                    _WORKFLOW, PurchaseOrderModel, order_id, from_state, action,
                    actor_id=actor_id, note=notes, values=values,
                )
            record = self._load(order_id).to_dto()
            self._session.commit()
        except Exception:
            self._session.rollback()
            logger.warning(
                "purchase_order_receipt_rolled_back",
                extra={"order_id": str(order_id), "action": action},
            )
            raise

        logger.info(
            "purchase_order_received",
            extra={
                "order_id": str(order_id),
                "order_number": record.order_number,
                "to_state": record.status.value,
                "units_received": sum(quantities.values()),
            },
        )
        return record

    def mark_partial(
        self,
        order_id: UUID,
        received: Mapping[UUID, int],
        *,
        actor_id: UUID,
        notes: str | None = None,
    ) -> PurchaseOrderRecord:
        """
        Record one delivery.

        Args:
            order_id: Order in ``confirmed`` or ``partial``.
            received: Units received in this delivery, per product.  Every
                product must be on the order, every quantity >= 0 and at
                least one positive; cumulative receipt may not exceed the
                ordered quantity.

        Returns:
            The order in ``partial``, or ``received`` when every line is now
            complete.
        """
        def validate(model: PurchaseOrderModel) -> dict[UUID, int]:
            by_product = {line.product_id: line for line in model.lines}
            quantities: dict[UUID, int] = {}
            for product_id, quantity in received.items():
                line = by_product.get(product_id)
                if line is None:
                    raise ValidationError(
                        f"product {product_id} is not on order {model.order_number}",
                        field="received",
                    )
                if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
                    raise ValidationError(
                        f"received quantity must be a non-negative whole number, got {quantity!r}",
                        field="received",
                    )
                if line.received_quantity + quantity > line.quantity:
                    raise ValidationError(
                        f"receiving {quantity} of product {product_id} would exceed "
                        f"ordered {line.quantity} (already received {line.received_quantity})",
                        field="received",
                    )
                quantities[product_id] = quantity
            if not any(q > 0 for q in quantities.values()):
                raise ValidationError("at least one received quantity must be positive", field="received")
            return quantities

        return self._receive(order_id, "mark_partial", validate, actor_id=actor_id, notes=notes)

    def mark_received(
        self,
        order_id: UUID,
        *,
        actor_id: UUID,
        notes: str | None = None,
    ) -> PurchaseOrderRecord:
        """Receive every line's outstanding quantity and close the order."""
        def outstanding(model: PurchaseOrderModel) -> dict[UUID, int]:
            return {
                line.product_id: line.quantity - line.received_quantity
                for line in model.lines
            }

        return self._receive(order_id, "mark_received", outstanding, actor_id=actor_id, notes=notes)

    # =========================================================================
    # Read paths
    # =========================================================================

    def get(self, order_id: UUID) -> PurchaseOrderRecord:
        return self._load(order_id).to_dto()

    def list(
        self,
        *,
        status: POStatus | str | None = None,
        warehouse_id: UUID | None = None,
        supplier_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> Page[PurchaseOrderRecord]:
        """Orders newest first."""
        inventory = self._settings.inventory
        limit = check_paging(
            page, limit or inventory.movement_page_limit, inventory.max_page_limit,
        )
        conditions = []
        if status is not None:
            try:
                status = POStatus(status)
            except ValueError as exc:
                raise ValidationError(f"invalid status: {status!r}", field="status") from exc
            conditions.append(PurchaseOrderModel.status == status.value)
        if warehouse_id is not None:
            conditions.append(PurchaseOrderModel.warehouse_id == warehouse_id)
        if supplier_id is not None:
            conditions.append(PurchaseOrderModel.supplier_id == supplier_id)
        if start is not None:
            conditions.append(PurchaseOrderModel.order_date >= start)
        if end is not None:
            conditions.append(PurchaseOrderModel.order_date <= end)

        rows, total = fetch_page(
            self._session, PurchaseOrderModel, conditions,
            (PurchaseOrderModel.order_date.desc(), PurchaseOrderModel.order_number.desc()),
            page, limit,
        )
        return Page(items=tuple(r.to_dto() for r in rows), total=total, page=page, limit=limit)

    def history(self, order_id: UUID) -> list[TransitionRecord]:
        """Status changes of an order, starting with its creation."""
        self._load(order_id)
        return TransitionSelector(self._session).history(_WORKFLOW.name, order_id)

    def receipts(self, order_id: UUID) -> list[MovementRecord]:
        """Purchase receipt movements posted for an order."""
        order = self._load(order_id)
        return MovementSelector(self._session).for_reference(order.order_number)
