"""Shared pagination result for module list read paths."""

from dataclasses import dataclass
from typing import Generic, TypeVar

from inventory_kernel.exceptions import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: tuple[T, ...]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.total else 0


def check_paging(page: int, limit: int, max_limit: int) -> int:
    """Validate page/limit and return the limit clamped to ``max_limit``."""
    if page < 1:
        raise ValidationError("page must be >= 1", field="page")
    if limit < 1:
        raise ValidationError("limit must be >= 1", field="limit")
    return min(limit, max_limit)
