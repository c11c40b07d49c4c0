"""
Engine settings schema.

Frozen dataclasses the YAML configuration sets are parsed into.  Module
services receive an ``EngineSettings`` (or one of its sections) by
constructor injection and never read files themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

PRIORITIES = ("low", "normal", "high", "urgent")


@dataclass(frozen=True)
class InventorySettings:
    """Movement history paging."""

    movement_page_limit: int = 10
    max_page_limit: int = 100

    def __post_init__(self) -> None:
        if self.movement_page_limit < 1:
            raise ValueError("inventory.movement_page_limit must be >= 1")
        if self.max_page_limit < self.movement_page_limit:
            raise ValueError("inventory.max_page_limit must be >= movement_page_limit")


@dataclass(frozen=True)
class TransferSettings:
    number_prefix: str = "TRF-"

    def __post_init__(self) -> None:
        if not self.number_prefix:
            raise ValueError("transfers.number_prefix cannot be empty")


@dataclass(frozen=True)
class PurchasingSettings:
    """
    Purchase order numbering and approval routing.

    ``approval_threshold``: when set, orders whose total is below it skip
    the approval step on submit.  None means every order needs approval.
    """

    number_prefix: str = "PO"
    approval_threshold: Decimal | None = None
    default_priority: str = "normal"

    def __post_init__(self) -> None:
        if not self.number_prefix:
            raise ValueError("purchasing.number_prefix cannot be empty")
        if self.approval_threshold is not None and self.approval_threshold < 0:
            raise ValueError("purchasing.approval_threshold cannot be negative")
        if self.default_priority not in PRIORITIES:
            raise ValueError(
                f"purchasing.default_priority must be one of {PRIORITIES}, "
                f"got {self.default_priority!r}"
            )


@dataclass(frozen=True)
class AlertSettings:
    include_overstock: bool = True


@dataclass(frozen=True)
class EngineSettings:
    """Complete settings for one tenant."""

    name: str = "default"
    inventory: InventorySettings = field(default_factory=InventorySettings)
    transfers: TransferSettings = field(default_factory=TransferSettings)
    purchasing: PurchasingSettings = field(default_factory=PurchasingSettings)
    alerts: AlertSettings = field(default_factory=AlertSettings)
    checksum: str = ""
