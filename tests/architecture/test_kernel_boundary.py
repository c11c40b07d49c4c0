"""
Kernel boundary and layering.

1. inventory_kernel/** may NOT import inventory_engines, inventory_modules
   or inventory_config.  The kernel never depends upward.
2. inventory_engines/** stays pure: no SQLAlchemy, no database modules,
   no module or config imports.
3. inventory_kernel/domain/** has no ORM or DB imports.
4. Only StockStore writes stock_records.

These tests read source code via AST; they cannot break anything.
"""

import ast
from pathlib import Path

from inventory_kernel.invariants import (
    ALL_KERNEL_INVARIANTS,
    FORBIDDEN_KERNEL_IMPORTS,
    KernelInvariant,
)

ROOT = Path(__file__).resolve().parents[2]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _python_files(package: str) -> list[Path]:
    return sorted((ROOT / package).rglob("*.py"))


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """(line_number, module) for every import in a file."""
    tree = ast.parse(filepath.read_text(), filename=str(filepath))
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            for prefix in forbidden:
                if module == prefix or module.startswith(f"{prefix}."):
                    found.append(f"  {filepath.relative_to(ROOT)}:{lineno} imports '{module}'")
    return found


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestKernelNoUpwardDependencies:

    def test_kernel_does_not_import_forbidden_packages(self):
        violations = _violations("inventory_kernel", FORBIDDEN_KERNEL_IMPORTS)
        assert not violations, (
            "Kernel boundary violation: inventory_kernel/** must not import "
            "upward packages:\n" + "\n".join(violations)
        )


class TestEnginePurity:

    FORBIDDEN = (
        "sqlalchemy",
        "inventory_kernel.db",
        "inventory_kernel.models",
        "inventory_kernel.services",
        "inventory_kernel.selectors",
        "inventory_modules",
        "inventory_config",
    )

    def test_engines_do_no_io(self):
        violations = _violations("inventory_engines", self.FORBIDDEN)
        assert not violations, (
            "Engine purity violation:\n" + "\n".join(violations)
        )


class TestKernelDomainPurity:

    FORBIDDEN = ("sqlalchemy", "psycopg2", "sqlite3", "inventory_kernel.db")

    def test_domain_no_orm_imports(self):
        violations = _violations("inventory_kernel/domain", self.FORBIDDEN)
        assert not violations, (
            "Domain purity violation:\n" + "\n".join(violations)
        )


class TestStockRecordWriters:

    def test_only_stock_store_imports_stock_record(self):
        allowed = {
            ROOT / "inventory_kernel/models/__init__.py",
            ROOT / "inventory_kernel/models/stock_record.py",
            ROOT / "inventory_kernel/services/stock_store.py",
            ROOT / "inventory_kernel/selectors/stock_selector.py",
        }
        offenders = []
        for package in ("inventory_kernel", "inventory_modules", "inventory_engines"):
            for filepath in _python_files(package):
                if filepath in allowed:
                    continue
                for lineno, module in _extract_imports(filepath):
                    if module == "inventory_kernel.models.stock_record":
                        offenders.append(f"  {filepath.relative_to(ROOT)}:{lineno}")
        assert not offenders, "stock_records written outside StockStore:\n" + "\n".join(offenders)


class TestInvariantsDeclaration:

    def test_invariants_declared(self):
        assert KernelInvariant.RESERVATION_BOUNDS in ALL_KERNEL_INVARIANTS
        assert len(ALL_KERNEL_INVARIANTS) == len(KernelInvariant)
