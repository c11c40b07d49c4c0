"""MovementLog writes one consistent, append-only entry per stock mutation."""

from uuid import uuid4

from inventory_kernel.domain.dtos import MovementType
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.services.movement_log import MovementLog


class TestMovementLog:

    def test_before_is_derived_from_after_and_delta(self, session, clock, stock_store, product, warehouse, test_actor_id):
        stock_store.apply_delta(product.id, warehouse.id, 100, 0, actor_id=test_actor_id)
        after = stock_store.apply_delta(product.id, warehouse.id, -30, 0, actor_id=test_actor_id)

        movement = MovementLog(session, clock).record(
            MovementType.ADJUSTMENT, after, -30,
            actor_id=test_actor_id, reason="damage", reference="damage",
        )

        assert movement.quantity_before == 100
        assert movement.quantity_after == 70
        assert movement.quantity_delta == -30
        assert movement.occurred_at.replace(tzinfo=None) == clock.now().replace(tzinfo=None)
        assert movement.resulting_status == "completed"

    def test_related_warehouse_is_kept(self, session, clock, stock_store, product, warehouse, test_actor_id):
        after = stock_store.apply_delta(product.id, warehouse.id, 5, 0, actor_id=test_actor_id)
        other = uuid4()
        movement = MovementLog(session, clock).record(
            MovementType.TRANSFER_IN, after, 5,
            actor_id=test_actor_id, reference="TRF-1", related_warehouse_id=other,
        )
        assert movement.related_warehouse_id == other

    def test_net_delta_matches_quantity(self, session, inventory_service, stock_up, product, warehouse, test_actor_id):
        stock_up(product.id, warehouse.id, 100)
        inventory_service.adjust(
            product.id, warehouse.id, "decrease", 30, "damage", actor_id=test_actor_id,
        )
        inventory_service.adjust(
            product.id, warehouse.id, "set", 50, "recount", actor_id=test_actor_id,
        )
        assert MovementSelector(session).net_delta(product.id, warehouse.id) == 50
