"""
Race safety of the stock ledger and document workflows.

Two independent sessions interleave a read and a write: the first caller
reads, a second caller commits a change, then the first caller writes
based on what it read.  The conditional UPDATE in StockStore and the
guarded status UPDATE in TransitionLog must reject the stale write.

SQLite serializes writers, so each reader commits its read before the
competing writer runs.
"""

import pytest

from inventory_kernel.exceptions import (
    InvalidStateTransitionError,
    InvariantViolationError,
    OptimisticLockError,
)
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.services.stock_store import StockStore
from inventory_kernel.services.transition_log import TransitionLog
from inventory_modules.inventory import InventoryService
from inventory_modules.transfers import TransferService
from inventory_modules.transfers.orm import TransferModel
from inventory_modules.transfers.workflows import TRANSFER_WORKFLOW

pytestmark = pytest.mark.slow


@pytest.fixture
def two_sessions(session_factory):
    a, b = session_factory(), session_factory()
    yield a, b
    for s in (a, b):
        s.rollback()
        s.close()


class TestStockRaces:

    def test_stale_set_is_rejected(self, two_sessions, clock, stock_up, product, warehouse, test_actor_id):
        stock_up(product.id, warehouse.id, 100)
        a, b = two_sessions

        seen = StockStore(a, clock).get(product.id, warehouse.id)
        a.commit()

        InventoryService(b, clock).adjust(
            product.id, warehouse.id, "decrease", 10, "damage", actor_id=test_actor_id,
        )

        with pytest.raises(OptimisticLockError):
            StockStore(a, clock).apply_delta(
                product.id, warehouse.id, 50 - seen.quantity, 0,
                actor_id=test_actor_id, expected_quantity=seen.quantity,
            )
        a.rollback()
        assert StockStore(a, clock).get(product.id, warehouse.id).quantity == 90

    def test_competing_reservations_cannot_oversell(self, two_sessions, clock, stock_up, product, warehouse, test_actor_id):
        stock_up(product.id, warehouse.id, 10)
        a, b = two_sessions

        seen = StockStore(a, clock).get(product.id, warehouse.id)
        assert seen.available_quantity >= 8
        a.commit()

        InventoryService(b, clock).reserve(product.id, warehouse.id, 8, actor_id=test_actor_id)

        with pytest.raises(InvariantViolationError):
            StockStore(a, clock).apply_delta(product.id, warehouse.id, 0, 8, actor_id=test_actor_id)
        a.rollback()

        level = StockStore(a, clock).get(product.id, warehouse.id)
        assert (level.quantity, level.reserved_quantity) == (10, 8)

    def test_concurrent_increases_are_not_lost(self, two_sessions, clock, stock_up, product, warehouse, test_actor_id):
        stock_up(product.id, warehouse.id, 1)
        a, b = two_sessions

        StockStore(a, clock).get(product.id, warehouse.id)
        a.commit()
        InventoryService(b, clock).adjust(
            product.id, warehouse.id, "increase", 5, "found", actor_id=test_actor_id,
        )
        InventoryService(a, clock).adjust(
            product.id, warehouse.id, "increase", 7, "found", actor_id=test_actor_id,
        )

        assert StockStore(b, clock).get(product.id, warehouse.id).quantity == 13
        assert MovementSelector(b).net_delta(product.id, warehouse.id) == 13


class TestWorkflowRaces:

    def test_double_complete_moves_stock_once(
        self, two_sessions, clock, transfer_service, stock_up, product, warehouse, second_warehouse, test_actor_id,
    ):
        stock_up(product.id, warehouse.id, 50)
        transfer = transfer_service.create(
            product.id, warehouse.id, second_warehouse.id, 20, "restock", actor_id=test_actor_id,
        )
        transfer_service.approve(transfer.id, actor_id=test_actor_id)
        a, b = two_sessions

        status_seen_by_a = a.get(TransferModel, transfer.id).status
        a.commit()

        TransferService(b, clock).complete(transfer.id, actor_id=test_actor_id)

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            TransitionLog(a, clock).apply(
                TRANSFER_WORKFLOW, TransferModel, transfer.id, status_seen_by_a, "complete",
                actor_id=test_actor_id,
            )
        assert exc_info.value.current_state == "completed"
        a.rollback()

        store = StockStore(a, clock)
        assert store.get(product.id, second_warehouse.id).quantity == 20
        source = store.get(product.id, warehouse.id)
        assert (source.quantity, source.reserved_quantity) == (30, 0)

    def test_cancel_after_complete_is_rejected(
        self, two_sessions, clock, transfer_service, stock_up, product, warehouse, second_warehouse, test_actor_id,
    ):
        stock_up(product.id, warehouse.id, 50)
        transfer = transfer_service.create(
            product.id, warehouse.id, second_warehouse.id, 20, "restock", actor_id=test_actor_id,
        )
        transfer_service.approve(transfer.id, actor_id=test_actor_id)
        a, b = two_sessions

        TransferService(b, clock).complete(transfer.id, actor_id=test_actor_id)

        with pytest.raises(InvalidStateTransitionError):
            TransferService(a, clock).cancel(transfer.id, actor_id=test_actor_id)
        source = StockStore(a, clock).get(product.id, warehouse.id)
        assert source.reserved_quantity == 0
