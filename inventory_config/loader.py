"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Loads YAML configuration sets and parses them into the frozen
``inventory_config.schema`` dataclasses.  The single public entry point
for runtime settings is ``inventory_config.get_active_settings()``.

Invariants enforced
-------------------
* Unknown keys are rejected; a typo never silently falls back to a default.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the merged
  settings for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown section or key, or an invalid value  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import (
    AlertSettings,
    EngineSettings,
    InventorySettings,
    PurchasingSettings,
    TransferSettings,
)

_SECTIONS: dict[str, type] = {
    "inventory": InventorySettings,
    "transfers": TransferSettings,
    "purchasing": PurchasingSettings,
    "alerts": AlertSettings,
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def merge_settings(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Section-wise merge: overlay keys replace base keys inside each section."""
    merged: dict[str, Any] = {k: dict(v) if isinstance(v, dict) else v for k, v in base.items()}
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def _parse_decimal(value: Any, key: str) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{key}: not a number: {value!r}") from exc


def _parse_section(name: str, data: dict[str, Any] | None) -> Any:
    cls = _SECTIONS[name]
    data = data or {}
    if not isinstance(data, dict):
        raise ValueError(f"section {name!r} must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"unknown keys in section {name!r}: {sorted(unknown)}")
    kwargs = dict(data)
    if name == "purchasing" and "approval_threshold" in kwargs:
        kwargs["approval_threshold"] = _parse_decimal(
            kwargs["approval_threshold"], "purchasing.approval_threshold",
        )
    return cls(**kwargs)


def parse_settings(data: dict[str, Any]) -> EngineSettings:
    """
    Parse a merged settings dict into ``EngineSettings``.

    Raises:
        ValueError: unknown section/key or invalid value.
    """
    unknown = set(data) - set(_SECTIONS) - {"name"}
    if unknown:
        raise ValueError(f"unknown configuration sections: {sorted(unknown)}")
    return EngineSettings(
        name=str(data.get("name", "default")),
        inventory=_parse_section("inventory", data.get("inventory")),
        transfers=_parse_section("transfers", data.get("transfers")),
        purchasing=_parse_section("purchasing", data.get("purchasing")),
        alerts=_parse_section("alerts", data.get("alerts")),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 checksum of the canonical JSON serialization."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
