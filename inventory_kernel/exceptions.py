"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the CRUD layer, background jobs, tests) must react to failures by
kind, never by parsing message text:

    try:
        adjustments.adjust(...)
    except InsufficientStockError as e:
        respond(e.http_status, code=e.code, available=e.available)

Every exception therefore carries:
  1. A ``code`` class attribute (machine-readable, API-safe)
  2. An ``http_status`` hint the CRUD layer maps to a 4xx response
  3. Structured attributes (product_id, requested, available, ...)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- ValidationError
    |
    +-- NotFoundError
    |   +-- ProductNotFoundError
    |   +-- WarehouseNotFoundError
    |   +-- SupplierNotFoundError
    |   +-- TransferNotFoundError
    |   +-- PurchaseOrderNotFoundError
    |
    +-- DuplicateEntityError
    |
    +-- StockError
    |   +-- InsufficientStockError
    |   +-- InvariantViolationError
    |
    +-- WorkflowError
    |   +-- InvalidStateTransitionError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
PROPAGATION
===============================================================================

Nothing in the engine retries automatically or clamps a value to make an
operation succeed.  Module services roll back the session and re-raise.
``InvariantViolationError`` is additionally logged at ERROR by the store
because it signals a race or a logic defect rather than user error.
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses define a ``code`` and an ``http_status``.
    """

    code: str = "INVENTORY_KERNEL_ERROR"
    http_status: int = 500


class ValidationError(InventoryKernelError):
    """Missing or invalid input (zero quantity, same warehouses, empty reason)."""

    code: str = "VALIDATION_ERROR"
    http_status: int = 400

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


# Lookup failures


class NotFoundError(InventoryKernelError):
    """Unknown product, warehouse, supplier, transfer or order reference."""

    code: str = "NOT_FOUND"
    http_status: int = 404
    entity_type: str = "Entity"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity_type} not found: {entity_id}")


class ProductNotFoundError(NotFoundError):
    code: str = "PRODUCT_NOT_FOUND"
    entity_type: str = "Product"


class WarehouseNotFoundError(NotFoundError):
    code: str = "WAREHOUSE_NOT_FOUND"
    entity_type: str = "Warehouse"


class SupplierNotFoundError(NotFoundError):
    code: str = "SUPPLIER_NOT_FOUND"
    entity_type: str = "Supplier"


class TransferNotFoundError(NotFoundError):
    code: str = "TRANSFER_NOT_FOUND"
    entity_type: str = "Transfer"


class PurchaseOrderNotFoundError(NotFoundError):
    code: str = "PURCHASE_ORDER_NOT_FOUND"
    entity_type: str = "PurchaseOrder"


class DuplicateEntityError(InventoryKernelError):
    """A catalog entity with the same natural key already exists."""

    code: str = "DUPLICATE_ENTITY"
    http_status: int = 409

    def __init__(self, entity_type: str, key: str):
        self.entity_type = entity_type
        self.key = key
        super().__init__(f"{entity_type} already exists: {key}")


# Stock-related exceptions


class StockError(InventoryKernelError):
    """Base exception for stock ledger errors."""

    code: str = "STOCK_ERROR"
    http_status: int = 409


class InsufficientStockError(StockError):
    """
    A decrease, reservation or transfer needs more than is available.

    ``available`` is on-hand minus reserved at the time of the check.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_id: str,
        warehouse_id: str,
        requested: int,
        available: int,
    ):
        self.product_id = product_id
        self.warehouse_id = warehouse_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id} in warehouse "
            f"{warehouse_id}: requested {requested}, available {available}"
        )


class InvariantViolationError(StockError):
    """
    A stock mutation would break ``0 <= reserved_quantity <= quantity``.

    Always fatal to the operation and never clamped.  Reaching this error
    through the public workflows means a concurrent writer changed the
    record between the workflow's check and the store's conditional update,
    or a logic defect.
    """

    code: str = "INVARIANT_VIOLATION"

    def __init__(
        self,
        product_id: str,
        warehouse_id: str,
        quantity: int,
        reserved_quantity: int,
        quantity_delta: int,
        reserved_delta: int,
    ):
        self.product_id = product_id
        self.warehouse_id = warehouse_id
        self.quantity = quantity
        self.reserved_quantity = reserved_quantity
        self.quantity_delta = quantity_delta
        self.reserved_delta = reserved_delta
        super().__init__(
            f"Stock invariant violated for product {product_id} in warehouse "
            f"{warehouse_id}: quantity={quantity} reserved={reserved_quantity} "
            f"delta=({quantity_delta:+d}, {reserved_delta:+d})"
        )


# Workflow exceptions


class WorkflowError(InventoryKernelError):
    """Base exception for document workflow errors."""

    code: str = "WORKFLOW_ERROR"
    http_status: int = 409


class InvalidStateTransitionError(WorkflowError):
    """A workflow action was invoked from a state that does not permit it."""

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, workflow: str, current_state: str, action: str):
        self.workflow = workflow
        self.current_state = current_state
        self.action = action
        super().__init__(
            f"Cannot {action} {workflow} in state '{current_state}'"
        )


# Concurrency exceptions


class ConcurrencyError(InventoryKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"
    http_status: int = 409


class OptimisticLockError(ConcurrencyError):
    """The record changed since the caller read it; the caller may retry."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Immutability exceptions


class ImmutabilityError(InventoryKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"
    http_status: int = 409


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an append-only record.

    Movement log entries and workflow transition records are immutable
    from creation.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )
