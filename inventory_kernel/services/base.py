"""
Write side of the kernel.

Kernel services (stock store, movement log, transition log, catalog,
sequences) take the tenant's ``Session`` and only ever ``flush()``. The
module service calling them owns commit and rollback. A transfer
completion's two stock updates, two movement entries and status change
therefore land together or not at all.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """Holds the session; reads belong in ``inventory_kernel.selectors``."""

    def __init__(self, session: Session):
        self.session = session
