"""
StockStore: conditional updates keep 0 <= reserved <= quantity.

A call that would break the invariant writes nothing; a stale expected
value surfaces as OptimisticLockError.
"""

import pytest

from inventory_kernel.exceptions import InvariantViolationError, OptimisticLockError


class TestApplyDelta:

    def test_first_positive_delta_creates_record(self, stock_store, session, product, warehouse, test_actor_id):
        assert stock_store.get(product.id, warehouse.id) is None
        level = stock_store.apply_delta(product.id, warehouse.id, 40, 0, actor_id=test_actor_id)
        session.commit()
        assert level.quantity == 40
        assert level.version == 1
        assert level.exists

    def test_zero_delta_on_missing_record_creates_nothing(self, stock_store, product, warehouse, test_actor_id):
        level = stock_store.apply_delta(product.id, warehouse.id, 0, 0, actor_id=test_actor_id)
        assert not level.exists
        assert stock_store.get(product.id, warehouse.id) is None

    def test_deltas_accumulate_and_bump_version(self, stock_store, product, warehouse, test_actor_id):
        stock_store.apply_delta(product.id, warehouse.id, 50, 0, actor_id=test_actor_id)
        stock_store.apply_delta(product.id, warehouse.id, 0, 20, actor_id=test_actor_id)
        level = stock_store.apply_delta(product.id, warehouse.id, -10, -10, actor_id=test_actor_id)
        assert (level.quantity, level.reserved_quantity, level.available_quantity) == (40, 10, 30)
        assert level.version == 3

    def test_negative_quantity_rejected(self, stock_store, product, warehouse, test_actor_id):
        stock_store.apply_delta(product.id, warehouse.id, 5, 0, actor_id=test_actor_id)
        with pytest.raises(InvariantViolationError) as exc_info:
            stock_store.apply_delta(product.id, warehouse.id, -6, 0, actor_id=test_actor_id)
        assert exc_info.value.quantity == 5
        assert exc_info.value.quantity_delta == -6
        assert stock_store.get(product.id, warehouse.id).quantity == 5

    def test_reserved_above_quantity_rejected(self, stock_store, product, warehouse, test_actor_id):
        stock_store.apply_delta(product.id, warehouse.id, 10, 8, actor_id=test_actor_id)
        with pytest.raises(InvariantViolationError):
            stock_store.apply_delta(product.id, warehouse.id, -5, 0, actor_id=test_actor_id)
        level = stock_store.get(product.id, warehouse.id)
        assert (level.quantity, level.reserved_quantity) == (10, 8)

    def test_negative_reserved_rejected(self, stock_store, product, warehouse, test_actor_id):
        stock_store.apply_delta(product.id, warehouse.id, 10, 2, actor_id=test_actor_id)
        with pytest.raises(InvariantViolationError):
            stock_store.apply_delta(product.id, warehouse.id, 0, -3, actor_id=test_actor_id)

    def test_negative_delta_on_missing_record(self, stock_store, product, warehouse, test_actor_id):
        with pytest.raises(InvariantViolationError):
            stock_store.apply_delta(product.id, warehouse.id, -1, 0, actor_id=test_actor_id)

    def test_violation_is_logged_at_error(self, stock_store, product, warehouse, test_actor_id, captured_logs):
        with pytest.raises(InvariantViolationError):
            stock_store.apply_delta(product.id, warehouse.id, -1, 0, actor_id=test_actor_id)
        errors = [r for r in captured_logs() if r["message"] == "stock_invariant_violation"]
        assert errors and errors[0]["level"] == "ERROR"


class TestOptimisticChecks:

    def test_expected_quantity_match(self, stock_store, product, warehouse, test_actor_id):
        stock_store.apply_delta(product.id, warehouse.id, 100, 0, actor_id=test_actor_id)
        level = stock_store.apply_delta(
            product.id, warehouse.id, -50, 0,
            actor_id=test_actor_id, expected_quantity=100,
        )
        assert level.quantity == 50

    def test_expected_quantity_mismatch(self, stock_store, product, warehouse, test_actor_id):
        stock_store.apply_delta(product.id, warehouse.id, 100, 0, actor_id=test_actor_id)
        with pytest.raises(OptimisticLockError):
            stock_store.apply_delta(
                product.id, warehouse.id, -50, 0,
                actor_id=test_actor_id, expected_quantity=90,
            )
        assert stock_store.get(product.id, warehouse.id).quantity == 100

    def test_expected_version_mismatch(self, stock_store, product, warehouse, test_actor_id):
        level = stock_store.apply_delta(product.id, warehouse.id, 10, 0, actor_id=test_actor_id)
        stock_store.apply_delta(product.id, warehouse.id, 1, 0, actor_id=test_actor_id)
        with pytest.raises(OptimisticLockError):
            stock_store.apply_delta(
                product.id, warehouse.id, 1, 0,
                actor_id=test_actor_id, expected_version=level.version,
            )

    def test_expected_nonzero_on_missing_record(self, stock_store, product, warehouse, test_actor_id):
        with pytest.raises(OptimisticLockError):
            stock_store.apply_delta(
                product.id, warehouse.id, 5, 0,
                actor_id=test_actor_id, expected_quantity=3,
            )


class TestSetLocation:

    def test_location_on_existing_record(self, stock_store, product, warehouse, test_actor_id):
        stock_store.apply_delta(product.id, warehouse.id, 3, 0, actor_id=test_actor_id)
        level = stock_store.set_location(
            product.id, warehouse.id, actor_id=test_actor_id, aisle="A", shelf="2", bin="07",
        )
        assert (level.aisle, level.shelf, level.bin) == ("A", "2", "07")
        assert level.quantity == 3

    def test_location_on_missing_record(self, stock_store, product, warehouse, test_actor_id):
        assert stock_store.set_location(product.id, warehouse.id, actor_id=test_actor_id, aisle="A") is None
