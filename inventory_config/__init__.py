"""
inventory_config -- single public entrypoint for engine settings.

Responsibility:
    ``get_active_settings()`` is the only way module services obtain
    configuration.  It loads ``sets/default.yaml``, overlays
    ``sets/<tenant>.yaml`` when present, validates the result into frozen
    dataclasses and emits a ``config_loaded`` log record with the
    settings checksum.

Architecture position:
    Configuration -- sits above ``inventory_kernel``.  The kernel MUST
    NEVER import from ``inventory_config``.

Failure modes:
    - ``FileNotFoundError`` -- the default set is missing from config_dir.
    - ``ValueError`` -- unknown keys or invalid values.
"""

from __future__ import annotations

from pathlib import Path

from inventory_config.loader import load_yaml_file, merge_settings, parse_settings
from inventory_config.schema import (
    AlertSettings,
    EngineSettings,
    InventorySettings,
    PurchasingSettings,
    TransferSettings,
)
from inventory_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

__all__ = [
    "AlertSettings",
    "EngineSettings",
    "InventorySettings",
    "PurchasingSettings",
    "TransferSettings",
    "get_active_settings",
]


def get_active_settings(
    tenant: str | None = None,
    config_dir: Path | None = None,
) -> EngineSettings:
    """The ONLY public configuration entrypoint.

    Args:
        tenant: Tenant code whose overlay file (``<tenant>.yaml``) is merged
            over the defaults, if it exists.
        config_dir: Override path to the configuration sets directory.

    Returns:
        Validated, frozen ``EngineSettings``.
    """
    sets_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR

    data = load_yaml_file(sets_dir / "default.yaml")
    overlay_path = None
    if tenant:
        candidate = sets_dir / f"{tenant}.yaml"
        if candidate.exists():
            overlay_path = candidate
            data = merge_settings(data, load_yaml_file(candidate))
            data["name"] = tenant

    settings = parse_settings(data)

    _logger.info(
        "config_loaded",
        extra={
            "trace_type": "config_loaded",
            "config_name": settings.name,
            "tenant": tenant,
            "overlay": str(overlay_path) if overlay_path else None,
            "checksum": settings.checksum,
        },
    )
    return settings
