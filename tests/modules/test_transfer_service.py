"""
TransferService: reservation on create, stock moved once on complete,
reservation released on cancel.
"""

from datetime import date, datetime, timedelta
from uuid import uuid4

import pytest

from inventory_config import EngineSettings, TransferSettings
from inventory_kernel.domain.dtos import MovementType
from inventory_kernel.exceptions import (
    InsufficientStockError,
    InvalidStateTransitionError,
    TransferNotFoundError,
    ValidationError,
)
from inventory_kernel.services.stock_store import StockStore
from inventory_modules.transfers import TransferService, TransferStatus


@pytest.fixture
def stocked(stock_up, product, warehouse, second_warehouse):
    """Source holds 50, destination 10."""
    stock_up(product.id, warehouse.id, 50)
    stock_up(product.id, second_warehouse.id, 10)


@pytest.fixture
def open_transfer(transfer_service, stocked, product, warehouse, second_warehouse, test_actor_id):
    return transfer_service.create(
        product.id, warehouse.id, second_warehouse.id, 20, "restock",
        actor_id=test_actor_id, notes="weekly top-up",
    )


class TestCreate:

    def test_reserves_on_source(self, session, open_transfer, product, warehouse, second_warehouse):
        assert open_transfer.status is TransferStatus.PENDING
        assert open_transfer.transfer_number == "TRF-20240101-0001"
        assert open_transfer.holds_reservation

        store = StockStore(session)
        source = store.get(product.id, warehouse.id)
        assert (source.quantity, source.reserved_quantity) == (50, 20)
        assert store.get(product.id, second_warehouse.id).quantity == 10

    def test_numbers_increase(self, transfer_service, open_transfer, product, warehouse, second_warehouse, test_actor_id):
        second = transfer_service.create(
            product.id, warehouse.id, second_warehouse.id, 5, "demand", actor_id=test_actor_id,
        )
        assert second.transfer_number == "TRF-20240101-0002"

    def test_prefix_from_settings(self, session, clock, stocked, product, warehouse, second_warehouse, test_actor_id):
        service = TransferService(
            session, clock, EngineSettings(transfers=TransferSettings(number_prefix="XFER-")),
        )
        record = service.create(
            product.id, warehouse.id, second_warehouse.id, 1, "other", actor_id=test_actor_id,
        )
        assert record.transfer_number.startswith("XFER-20240101-")

    def test_same_warehouse(self, transfer_service, stocked, product, warehouse, test_actor_id):
        with pytest.raises(ValidationError):
            transfer_service.create(
                product.id, warehouse.id, warehouse.id, 5, "restock", actor_id=test_actor_id,
            )

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_non_positive_quantity(self, transfer_service, stocked, product, warehouse, second_warehouse, test_actor_id, quantity):
        with pytest.raises(ValidationError):
            transfer_service.create(
                product.id, warehouse.id, second_warehouse.id, quantity, "restock",
                actor_id=test_actor_id,
            )

    def test_insufficient_available(self, session, transfer_service, open_transfer, product, warehouse, second_warehouse, test_actor_id):
        with pytest.raises(InsufficientStockError) as exc_info:
            transfer_service.create(
                product.id, warehouse.id, second_warehouse.id, 31, "restock",
                actor_id=test_actor_id,
            )
        assert exc_info.value.available == 30
        assert StockStore(session).get(product.id, warehouse.id).reserved_quantity == 20


class TestComplete:

    def test_moves_stock(self, session, transfer_service, open_transfer, product, warehouse, second_warehouse, test_actor_id):
        transfer_service.approve(open_transfer.id, actor_id=test_actor_id)
        done = transfer_service.complete(open_transfer.id, actor_id=test_actor_id)

        assert done.status is TransferStatus.COMPLETED
        assert done.completed_by_id == test_actor_id
        store = StockStore(session)
        source = store.get(product.id, warehouse.id)
        assert (source.quantity, source.reserved_quantity) == (30, 0)
        assert store.get(product.id, second_warehouse.id).quantity == 30

    def test_writes_both_legs(self, transfer_service, open_transfer, warehouse, second_warehouse, test_actor_id):
        transfer_service.approve(open_transfer.id, actor_id=test_actor_id)
        transfer_service.complete(open_transfer.id, actor_id=test_actor_id)

        legs = {m.movement_type: m for m in transfer_service.movements(open_transfer.id)}
        out, inbound = legs[MovementType.TRANSFER_OUT], legs[MovementType.TRANSFER_IN]
        assert (out.warehouse_id, out.quantity_delta, out.quantity_after) == (warehouse.id, -20, 30)
        assert out.related_warehouse_id == second_warehouse.id
        assert (inbound.warehouse_id, inbound.quantity_delta, inbound.quantity_after) == (second_warehouse.id, 20, 30)
        assert out.reference == inbound.reference == open_transfer.transfer_number

    def test_complete_requires_in_transit(self, transfer_service, open_transfer, test_actor_id):
        with pytest.raises(InvalidStateTransitionError):
            transfer_service.complete(open_transfer.id, actor_id=test_actor_id)

    def test_second_complete_is_rejected(self, session, transfer_service, open_transfer, product, second_warehouse, test_actor_id):
        transfer_service.approve(open_transfer.id, actor_id=test_actor_id)
        transfer_service.complete(open_transfer.id, actor_id=test_actor_id)
        with pytest.raises(InvalidStateTransitionError):
            transfer_service.complete(open_transfer.id, actor_id=test_actor_id)
        assert StockStore(session).get(product.id, second_warehouse.id).quantity == 30

    def test_completion_log_carries_document(self, transfer_service, open_transfer, test_actor_id, captured_logs):
        transfer_service.approve(open_transfer.id, actor_id=test_actor_id)
        transfer_service.complete(open_transfer.id, actor_id=test_actor_id)
        legs = [r for r in captured_logs() if r["message"] == "movement_recorded"]
        assert legs and all(r["document_id"] == open_transfer.transfer_number for r in legs)


class TestApproveAndCancel:

    def test_approve_records_tracking(self, transfer_service, open_transfer, test_actor_id):
        approved = transfer_service.approve(
            open_transfer.id, actor_id=test_actor_id,
            carrier="DHL", tracking_number="1Z999", estimated_delivery=date(2024, 1, 3),
        )
        assert approved.status is TransferStatus.IN_TRANSIT
        assert approved.approved_by_id == test_actor_id
        assert (approved.carrier, approved.tracking_number) == ("DHL", "1Z999")
        assert approved.estimated_delivery == date(2024, 1, 3)

    @pytest.mark.parametrize("approve_first", [False, True])
    def test_cancel_restores_reserved(self, session, transfer_service, open_transfer, product, warehouse, test_actor_id, approve_first):
        if approve_first:
            transfer_service.approve(open_transfer.id, actor_id=test_actor_id)
        cancelled = transfer_service.cancel(open_transfer.id, actor_id=test_actor_id)

        assert cancelled.status is TransferStatus.CANCELLED
        assert not cancelled.holds_reservation
        source = StockStore(session).get(product.id, warehouse.id)
        assert (source.quantity, source.reserved_quantity) == (50, 0)
        assert transfer_service.movements(open_transfer.id) == []

    def test_cannot_cancel_completed(self, transfer_service, open_transfer, test_actor_id):
        transfer_service.approve(open_transfer.id, actor_id=test_actor_id)
        transfer_service.complete(open_transfer.id, actor_id=test_actor_id)
        with pytest.raises(InvalidStateTransitionError):
            transfer_service.cancel(open_transfer.id, actor_id=test_actor_id)

    def test_unknown_transfer(self, transfer_service, engine, test_actor_id):
        with pytest.raises(TransferNotFoundError):
            transfer_service.approve(uuid4(), actor_id=test_actor_id)


class TestList:

    def test_filters(self, transfer_service, clock, open_transfer, stocked, product, second_product, warehouse, second_warehouse, test_actor_id):
        clock.tick()
        back = transfer_service.create(
            product.id, second_warehouse.id, warehouse.id, 5, "relocation", actor_id=test_actor_id,
        )
        transfer_service.cancel(back.id, actor_id=test_actor_id)

        everything = transfer_service.list()
        assert everything.total == 2
        assert [t.id for t in everything.items] == [back.id, open_transfer.id]

        assert [t.id for t in transfer_service.list(status="pending").items] == [open_transfer.id]
        assert transfer_service.list(warehouse_id=second_warehouse.id).total == 2
        assert transfer_service.list(product_id=second_product.id).total == 0

    def test_date_range(self, transfer_service, open_transfer):
        day = datetime(2024, 1, 1)
        assert transfer_service.list(start=day, end=day + timedelta(days=1)).total == 1
        assert transfer_service.list(start=day + timedelta(days=1)).total == 0

    def test_paging(self, transfer_service, open_transfer):
        page = transfer_service.list(page=1, limit=1)
        assert page.pages == 1
        with pytest.raises(ValidationError):
            transfer_service.list(page=0)

    def test_invalid_status(self, transfer_service, engine):
        with pytest.raises(ValidationError):
            transfer_service.list(status="lost")
