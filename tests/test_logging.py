"""Structured JSON logging: formatter, context binding and configuration."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from inventory_kernel.exceptions import InsufficientStockError
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    get_logger,
)


def _format(record_fn) -> dict:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    logger = logging.getLogger("inventory_kernel.tests.logging")
    logger.addHandler(handler)
    try:
        record_fn(logger)
    finally:
        logger.removeHandler(handler)
    return json.loads(stream.getvalue().strip().splitlines()[-1])


class TestStructuredFormatter:

    def test_emits_one_json_object_with_extras(self):
        product_id = uuid4()
        data = _format(lambda log: log.info(
            "stock_delta_applied",
            extra={"product_id": product_id, "amount": Decimal("1.50"), "quantity": 3},
        ))
        assert data["message"] == "stock_delta_applied"
        assert data["level"] == "INFO"
        assert data["product_id"] == str(product_id)
        assert data["amount"] == "1.50"
        assert data["quantity"] == 3

    def test_context_fields_are_included(self):
        with LogContext.bind(correlation_id="corr-1", document_id="TRF-20240101-0001"):
            data = _format(lambda log: log.info("transfer_completed"))
        assert data["correlation_id"] == "corr-1"
        assert data["document_id"] == "TRF-20240101-0001"

    def test_context_is_restored_after_bind(self):
        with LogContext.bind(actor_id="someone"):
            pass
        assert "actor_id" not in LogContext.get_all()

    def test_unknown_context_field_is_rejected(self):
        with pytest.raises(ValueError, match="unknown log context field"):
            with LogContext.bind(warehouse="WH-MAIN"):
                pass

    def test_exception_carries_error_code(self):
        def log_error(log):
            try:
                raise InsufficientStockError("p", "w", requested=5, available=2)
            except InsufficientStockError:
                log.exception("adjustment_failed")

        data = _format(log_error)
        assert data["level"] == "ERROR"
        assert data["error"]["code"] == "INSUFFICIENT_STOCK"
        assert data["error"]["http_status"] == 409
        assert data["error"]["details"]["available"] == 2


class TestGetLogger:

    def test_loggers_live_under_kernel_namespace(self):
        assert get_logger("modules.inventory.service").name == (
            "inventory_kernel.modules.inventory.service"
        )

    def test_captured_logs_fixture_sees_module_events(self, captured_logs):
        get_logger("tests").info("probe_event", extra={"n": 1})
        assert any(r["message"] == "probe_event" for r in captured_logs())
