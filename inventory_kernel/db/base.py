"""
Declarative base for every inventory table.

Column conventions, applied through ``type_annotation_map``:

    UUID      -> String(36)         portable across SQLite and PostgreSQL
    int       -> BigInteger         stock quantities are whole units
    Decimal   -> Numeric(18, 4)     prices and amounts, never float
    datetime  -> DateTime(tz=True)  always UTC-aware

Constraint names follow ``naming_convention`` so check-constraint failures
on stock records (``ck_stock_records_...``) are recognisable in logs.

Nothing here imports from models/, services/, selectors/ or domain/.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, MetaData, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class UUIDString(TypeDecorator):
    """UUID stored as its canonical 36-character string."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    type_annotation_map: ClassVar[dict] = {
        UUID: UUIDString(),
        int: BigInteger,
        Decimal: Numeric(18, 4),
        datetime: DateTime(timezone=True),
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Adds who/when columns to catalog entities, stock records, movements and
    workflow documents.

    ``created_by_id`` is mandatory: every row traces back to an actor.
    ``created_at`` is filled by the database and has second resolution on
    SQLite, so ordering by it needs distinct clock seconds.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False,
    )
    created_by_id: Mapped[UUID] = mapped_column(nullable=False)
    updated_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
