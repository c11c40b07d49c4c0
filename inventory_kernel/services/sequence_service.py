"""
Document numbers for transfers and purchase orders.

Each transfer or purchase order number comes from a counter row that is
read ``FOR UPDATE``, incremented and flushed in the caller's transaction. Two
concurrent creates therefore serialize on the row instead of both counting
existing documents and colliding. Counters are keyed by kind and calendar
day:

    transfer:20240101        -> TRF-20240101-0001, TRF-20240101-0002, ...
    purchase_order:20240102  -> PO20240102-0001

A rolled-back create gives its number back.
"""

from datetime import datetime

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from inventory_kernel.db.base import Base
from inventory_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


def format_document_number(prefix: str, day: datetime, value: int) -> str:
    """``format_document_number("PO", 2024-01-05, 7) -> "PO20240105-0007"``."""
    return f"{prefix}{day:%Y%m%d}-{value:04d}"


class SequenceService:
    """Flush-only counter allocation; the caller commits."""

    TRANSFER = "transfer"
    PURCHASE_ORDER = "purchase_order"

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """Lock (or create) the counter row, bump it and return the new value."""
        counter = self._locked_counter(sequence_name)

        if counter is None:
            # first document of the day; a concurrent create may win the insert
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def next_document_number(self, kind: str, prefix: str, now: datetime) -> str:
        """
        Allocate the next document number for ``kind`` on ``now``'s day.

        Each calendar day has its own counter, so numbering restarts at 1.
        """
        value = self.next_value(f"{kind}:{now:%Y%m%d}")
        return format_document_number(prefix, now, value)

    def current_value(self, sequence_name: str) -> int | None:
        """Current value of a sequence without incrementing, or None."""
        counter = self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()

        return counter.current_value if counter else None
