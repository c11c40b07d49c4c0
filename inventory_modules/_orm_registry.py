"""
Module ORM Registry (``inventory_modules._orm_registry``).

Responsibility
--------------
Ensure every module-level SQLAlchemy model is imported so that
``Base.metadata`` holds the transfer and purchase order tables before the
schema is created.  ``create_all_tables()`` is the one entry point that
scripts and ``tests/conftest.py`` use to build the complete schema.

Architecture position
---------------------
**Modules layer** -- utility.  Imports from sibling ``inventory_modules``
packages and from ``inventory_kernel.db.engine`` (modules -> kernel).
MUST NOT be imported by ``inventory_kernel``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``inventory_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    import inventory_kernel.models  # noqa: F401
    import inventory_modules.purchasing.orm  # noqa: F401
    import inventory_modules.transfers.orm  # noqa: F401


def create_all_tables() -> None:
    """Create kernel and module tables.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from inventory_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
