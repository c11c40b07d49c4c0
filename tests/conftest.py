"""
Pytest fixtures for the inventory engine test suite.

Provides:
- A fresh database per test: a temporary SQLite file by default, or the
  database named by DATABASE_URL (e.g. PostgreSQL) when set
- Sessions, a deterministic clock and a fixed test actor
- Catalog seed data (products, warehouses, supplier)
- Module services wired to the test session and clock
- Captured structured logs

Environment Variables:
- DATABASE_URL: optional connection URL; tables are dropped and recreated
  for every test.
"""

import json
import logging
import os
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from inventory_config import EngineSettings
from inventory_kernel.db.engine import (
    drop_tables,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from inventory_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.stock_store import StockStore
from inventory_modules import create_all_tables, import_all_orm_models
from inventory_modules.inventory import AdjustmentReason, AdjustmentType, InventoryService
from inventory_modules.purchasing import PurchasingService
from inventory_modules.reporting import ReportingService
from inventory_modules.transfers import TransferService

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture inventory_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, inventory_service):
            inventory_service.adjust(...)
            logs = captured_logs()
            assert any(r["message"] == "movement_recorded" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def _immutability_listeners():
    """Append-only enforcement stays on for the whole suite."""
    import_all_orm_models()
    register_immutability_listeners()
    yield
    unregister_immutability_listeners()


@pytest.fixture
def database_url(tmp_path) -> str:
    return os.environ.get("DATABASE_URL") or f"sqlite:///{tmp_path / 'inventory.db'}"


@pytest.fixture
def engine(database_url):
    """Engine with a freshly created schema."""
    eng = init_engine_from_url(database_url, echo=False, pool_size=5, max_overflow=5)
    drop_tables()
    create_all_tables()
    yield eng
    drop_tables()
    reset_engine()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    s = get_session()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def session_factory(engine):
    """For tests that need several independent sessions."""
    return get_session_factory()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings()


# =============================================================================
# Catalog seed data
# =============================================================================


@pytest.fixture
def catalog(session) -> CatalogService:
    return CatalogService(session)


@pytest.fixture
def product(session, catalog):
    p = catalog.register_product(
        "widget-1", "Widget",
        actor_id=TEST_ACTOR_ID,
        cost_price=Decimal("5.00"),
        selling_price=Decimal("8.00"),
        reorder_level=20,
        max_stock_level=1000,
    )
    session.commit()
    return p


@pytest.fixture
def second_product(session, catalog):
    p = catalog.register_product(
        "gadget-2", "Gadget",
        actor_id=TEST_ACTOR_ID,
        cost_price=Decimal("20.00"),
        selling_price=Decimal("30.00"),
        reorder_level=10,
        max_stock_level=100,
    )
    session.commit()
    return p


@pytest.fixture
def warehouse(session, catalog):
    w = catalog.register_warehouse("wh-main", "Main Warehouse", actor_id=TEST_ACTOR_ID, capacity=10_000)
    session.commit()
    return w


@pytest.fixture
def second_warehouse(session, catalog):
    w = catalog.register_warehouse("wh-east", "East Warehouse", actor_id=TEST_ACTOR_ID, capacity=5_000)
    session.commit()
    return w


@pytest.fixture
def supplier(session, catalog):
    s = catalog.register_supplier("Acme Supply", actor_id=TEST_ACTOR_ID, email="orders@acme.test")
    session.commit()
    return s


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def stock_store(session, clock) -> StockStore:
    return StockStore(session, clock)


@pytest.fixture
def inventory_service(session, clock) -> InventoryService:
    return InventoryService(session, clock)


@pytest.fixture
def transfer_service(session, clock, settings) -> TransferService:
    return TransferService(session, clock, settings)


@pytest.fixture
def purchasing_service(session, clock, settings) -> PurchasingService:
    return PurchasingService(session, clock, settings)


@pytest.fixture
def reporting_service(session, settings) -> ReportingService:
    return ReportingService(session, settings)


@pytest.fixture
def stock_up(inventory_service, clock):
    """Put ``quantity`` units of a product in a warehouse (one movement)."""

    def _stock_up(product_id, warehouse_id, quantity):
        result = inventory_service.adjust(
            product_id, warehouse_id, AdjustmentType.INCREASE, quantity,
            AdjustmentReason.FOUND, actor_id=TEST_ACTOR_ID,
        )
        clock.tick()
        return result.stock

    return _stock_up


@pytest.fixture
def test_actor_id():
    return TEST_ACTOR_ID
