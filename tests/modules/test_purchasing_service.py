"""
PurchasingService: draft editing, approval routing, supplier handoff and
receipt posting through the stock ledger.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_config import EngineSettings, PurchasingSettings
from inventory_kernel.domain.dtos import MovementType
from inventory_kernel.exceptions import (
    InvalidStateTransitionError,
    PurchaseOrderNotFoundError,
    ProductNotFoundError,
    SupplierNotFoundError,
    ValidationError,
)
from inventory_kernel.services.stock_store import StockStore
from inventory_modules.purchasing import (
    ApprovalStatus,
    POStatus,
    Priority,
    PurchaseLine,
    PurchasingService,
)


@pytest.fixture
def lines(product, second_product):
    return [
        PurchaseLine(product.id, 10, Decimal("5.00")),
        PurchaseLine(second_product.id, 5, Decimal("20.00")),
    ]


@pytest.fixture
def draft(purchasing_service, supplier, warehouse, lines, test_actor_id):
    return purchasing_service.create(supplier.id, warehouse.id, lines, actor_id=test_actor_id)


@pytest.fixture
def confirmed(purchasing_service, draft, test_actor_id):
    purchasing_service.submit_for_approval(draft.id, actor_id=test_actor_id)
    purchasing_service.approve(draft.id, actor_id=test_actor_id)
    purchasing_service.mark_sent(draft.id, actor_id=test_actor_id)
    return purchasing_service.mark_confirmed(draft.id, actor_id=test_actor_id)


class TestDraft:

    def test_create_computes_totals(self, draft):
        assert draft.order_number == "PO20240101-0001"
        assert draft.status is POStatus.DRAFT
        assert draft.approval_status is ApprovalStatus.NOT_SUBMITTED
        assert draft.priority is Priority.NORMAL
        assert draft.subtotal == Decimal("150.00")
        assert draft.total_amount == Decimal("150.00")
        assert [line.line_number for line in draft.lines] == [1, 2]
        assert draft.is_editable

    def test_tax_and_discount(self, purchasing_service, supplier, warehouse, lines, test_actor_id):
        order = purchasing_service.create(
            supplier.id, warehouse.id, lines,
            actor_id=test_actor_id, tax="12.50", discount=Decimal("2.50"), priority="urgent",
        )
        assert order.total_amount == Decimal("160.00")
        assert order.priority is Priority.URGENT

    def test_discount_beyond_total(self, purchasing_service, supplier, warehouse, lines, test_actor_id):
        with pytest.raises(ValidationError) as exc_info:
            purchasing_service.create(
                supplier.id, warehouse.id, lines, actor_id=test_actor_id, discount="151",
            )
        assert exc_info.value.field == "discount"

    @pytest.mark.parametrize("amount", ["NaN", "Infinity", "-Infinity", Decimal("sNaN")])
    @pytest.mark.parametrize("field", ["tax", "discount"])
    def test_non_finite_amounts_rejected(
        self, purchasing_service, supplier, warehouse, lines, test_actor_id, field, amount,
    ):
        with pytest.raises(ValidationError) as exc_info:
            purchasing_service.create(
                supplier.id, warehouse.id, lines, actor_id=test_actor_id, **{field: amount},
            )
        assert exc_info.value.field == field

    @pytest.mark.parametrize("amount", ["NaN", "Infinity"])
    def test_non_finite_amount_rejected_on_edit(self, purchasing_service, draft, test_actor_id, amount):
        with pytest.raises(ValidationError):
            purchasing_service.update_draft(draft.id, actor_id=test_actor_id, tax=amount)
        assert purchasing_service.get(draft.id).tax == Decimal("0")

    def test_duplicate_product_lines(self, purchasing_service, supplier, warehouse, product, test_actor_id):
        with pytest.raises(ValidationError):
            purchasing_service.create(
                supplier.id, warehouse.id,
                [PurchaseLine(product.id, 1, Decimal("1")), PurchaseLine(product.id, 2, Decimal("1"))],
                actor_id=test_actor_id,
            )

    def test_unknown_references(self, purchasing_service, supplier, warehouse, test_actor_id):
        with pytest.raises(SupplierNotFoundError):
            purchasing_service.create(uuid4(), warehouse.id, actor_id=test_actor_id)
        with pytest.raises(ProductNotFoundError):
            purchasing_service.create(
                supplier.id, warehouse.id, [PurchaseLine(uuid4(), 1, Decimal("1"))],
                actor_id=test_actor_id,
            )

    def test_invalid_line_values(self, product):
        with pytest.raises(ValueError):
            PurchaseLine(product.id, 0, Decimal("1"))
        with pytest.raises(ValueError):
            PurchaseLine(product.id, 1, Decimal("-1"))
        with pytest.raises(ValueError, match="finite"):
            PurchaseLine(product.id, 1, Decimal("NaN"))

    def test_update_replaces_lines(self, purchasing_service, draft, product, test_actor_id):
        updated = purchasing_service.update_draft(
            draft.id, actor_id=test_actor_id,
            items=[PurchaseLine(product.id, 4, Decimal("2.50"))],
            notes="smaller order",
        )
        assert len(updated.lines) == 1
        assert updated.subtotal == Decimal("10.00")
        assert updated.notes == "smaller order"

    def test_update_tax_keeps_lines(self, purchasing_service, draft, test_actor_id):
        updated = purchasing_service.update_draft(draft.id, actor_id=test_actor_id, tax=Decimal("15"))
        assert len(updated.lines) == 2
        assert updated.total_amount == Decimal("165.00")

    def test_delete_draft(self, purchasing_service, draft, test_actor_id):
        purchasing_service.delete_draft(draft.id, actor_id=test_actor_id)
        with pytest.raises(PurchaseOrderNotFoundError):
            purchasing_service.get(draft.id)

    def test_submitted_order_is_frozen(self, purchasing_service, draft, test_actor_id):
        purchasing_service.submit_for_approval(draft.id, actor_id=test_actor_id)
        with pytest.raises(InvalidStateTransitionError):
            purchasing_service.update_draft(draft.id, actor_id=test_actor_id, notes="late edit")
        with pytest.raises(InvalidStateTransitionError):
            purchasing_service.delete_draft(draft.id, actor_id=test_actor_id)


class TestApproval:

    def test_submit_requires_lines(self, purchasing_service, supplier, warehouse, test_actor_id):
        empty = purchasing_service.create(supplier.id, warehouse.id, actor_id=test_actor_id)
        with pytest.raises(ValidationError):
            purchasing_service.submit_for_approval(empty.id, actor_id=test_actor_id)
        assert purchasing_service.get(empty.id).status is POStatus.DRAFT

    def test_submit_then_approve(self, purchasing_service, draft, test_actor_id):
        pending = purchasing_service.submit_for_approval(draft.id, actor_id=test_actor_id)
        assert pending.status is POStatus.PENDING_APPROVAL
        assert pending.approval_status is ApprovalStatus.PENDING
        assert pending.submitted_at is not None

        approved = purchasing_service.approve(draft.id, actor_id=test_actor_id)
        assert approved.status is POStatus.APPROVED
        assert approved.approved_by_id == test_actor_id

    def test_reject_needs_reason(self, purchasing_service, draft, test_actor_id):
        purchasing_service.submit_for_approval(draft.id, actor_id=test_actor_id)
        with pytest.raises(ValidationError):
            purchasing_service.reject(draft.id, "  ", actor_id=test_actor_id)

        rejected = purchasing_service.reject(draft.id, "over budget", actor_id=test_actor_id)
        assert rejected.status is POStatus.REJECTED
        assert rejected.rejection_reason == "over budget"
        assert purchasing_service.history(draft.id)[-1].note == "over budget"

    def test_below_threshold_skips_approval(self, session, clock, supplier, warehouse, lines, test_actor_id):
        service = PurchasingService(
            session, clock,
            EngineSettings(purchasing=PurchasingSettings(approval_threshold=Decimal("500"))),
        )
        order = service.create(supplier.id, warehouse.id, lines, actor_id=test_actor_id)
        submitted = service.submit_for_approval(order.id, actor_id=test_actor_id)
        assert submitted.status is POStatus.APPROVED
        assert submitted.approval_status is ApprovalStatus.NOT_REQUIRED

    def test_above_threshold_needs_approval(self, session, clock, supplier, warehouse, lines, test_actor_id):
        service = PurchasingService(
            session, clock,
            EngineSettings(purchasing=PurchasingSettings(approval_threshold=Decimal("100"))),
        )
        order = service.create(supplier.id, warehouse.id, lines, actor_id=test_actor_id)
        assert service.submit_for_approval(order.id, actor_id=test_actor_id).status is POStatus.PENDING_APPROVAL

    def test_cannot_send_unapproved(self, purchasing_service, draft, test_actor_id):
        with pytest.raises(InvalidStateTransitionError):
            purchasing_service.mark_sent(draft.id, actor_id=test_actor_id)


class TestReceipt:

    def test_mark_received_posts_every_line(self, session, purchasing_service, confirmed, product, second_product, warehouse, test_actor_id):
        received = purchasing_service.mark_received(confirmed.id, actor_id=test_actor_id)

        assert received.status is POStatus.RECEIVED
        assert received.is_fully_received
        assert received.actual_delivery_at is not None
        store = StockStore(session)
        assert store.get(product.id, warehouse.id).quantity == 10
        assert store.get(second_product.id, warehouse.id).quantity == 5

        receipts = purchasing_service.receipts(confirmed.id)
        assert sorted(m.quantity_delta for m in receipts) == [5, 10]
        assert {m.movement_type for m in receipts} == {MovementType.PURCHASE_RECEIPT}
        assert {m.reference for m in receipts} == {confirmed.order_number}
        assert {m.resulting_status for m in receipts} == {"received"}

    def test_partial_deliveries(self, session, purchasing_service, confirmed, product, second_product, warehouse, test_actor_id):
        first = purchasing_service.mark_partial(
            confirmed.id, {product.id: 4}, actor_id=test_actor_id,
        )
        assert first.status is POStatus.PARTIAL
        assert first.line_for(product.id).outstanding_quantity == 6

        second = purchasing_service.mark_partial(
            confirmed.id, {product.id: 2, second_product.id: 5}, actor_id=test_actor_id,
        )
        assert second.status is POStatus.PARTIAL

        final = purchasing_service.mark_received(confirmed.id, actor_id=test_actor_id)
        assert final.status is POStatus.RECEIVED
        assert StockStore(session).get(product.id, warehouse.id).quantity == 10
        assert sum(m.quantity_delta for m in purchasing_service.receipts(confirmed.id)) == 15

    def test_partial_that_completes_becomes_received(self, purchasing_service, confirmed, product, second_product, test_actor_id):
        order = purchasing_service.mark_partial(
            confirmed.id, {product.id: 10, second_product.id: 5}, actor_id=test_actor_id,
        )
        assert order.status is POStatus.RECEIVED
        assert [h.action for h in purchasing_service.history(confirmed.id)][-1] == "mark_received"

    @pytest.mark.parametrize("received", [{"over": 11}, {"zero": 0}, {"stranger": 1}])
    def test_invalid_partial(self, session, purchasing_service, confirmed, product, warehouse, test_actor_id, received):
        key, quantity = next(iter(received.items()))
        product_id = uuid4() if key == "stranger" else product.id
        with pytest.raises(ValidationError):
            purchasing_service.mark_partial(confirmed.id, {product_id: quantity}, actor_id=test_actor_id)
        assert purchasing_service.get(confirmed.id).status is POStatus.CONFIRMED
        assert StockStore(session).get(product.id, warehouse.id) is None

    def test_cannot_receive_before_confirmation(self, purchasing_service, draft, test_actor_id):
        with pytest.raises(InvalidStateTransitionError):
            purchasing_service.mark_received(draft.id, actor_id=test_actor_id)

    def test_cancel_keeps_receipts(self, session, purchasing_service, confirmed, product, warehouse, test_actor_id, captured_logs):
        purchasing_service.mark_partial(confirmed.id, {product.id: 3}, actor_id=test_actor_id)
        cancelled = purchasing_service.mark_cancelled(
            confirmed.id, actor_id=test_actor_id, reason="supplier closed",
        )
        assert cancelled.status is POStatus.CANCELLED
        assert StockStore(session).get(product.id, warehouse.id).quantity == 3
        assert any(r["message"] == "purchase_order_cancelled_with_receipts" for r in captured_logs())

    def test_received_order_is_terminal(self, purchasing_service, confirmed, test_actor_id):
        purchasing_service.mark_received(confirmed.id, actor_id=test_actor_id)
        with pytest.raises(InvalidStateTransitionError):
            purchasing_service.mark_cancelled(confirmed.id, actor_id=test_actor_id)


class TestReadPaths:

    def test_history(self, purchasing_service, confirmed):
        assert [h.to_state for h in purchasing_service.history(confirmed.id)] == [
            "draft", "pending_approval", "approved", "sent", "confirmed",
        ]

    def test_list_filters(self, purchasing_service, clock, draft, confirmed, supplier, warehouse, second_warehouse, lines, test_actor_id):
        clock.tick()
        other = purchasing_service.create(supplier.id, second_warehouse.id, lines, actor_id=test_actor_id)

        assert purchasing_service.list().total == 2
        assert [o.id for o in purchasing_service.list(warehouse_id=warehouse.id).items] == [draft.id]
        assert [o.id for o in purchasing_service.list(status="draft").items] == [other.id]
        assert purchasing_service.list(supplier_id=supplier.id).items[0].id == other.id

    def test_unknown_order(self, purchasing_service, engine):
        with pytest.raises(PurchaseOrderNotFoundError):
            purchasing_service.get(uuid4())
