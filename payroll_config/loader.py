"""
Configuration Loader (``payroll_config.loader``).

Responsibility
--------------
Loads an integration YAML file and parses it into typed
``payroll_config.schema`` dataclass instances.  Callers use
``payroll_config.get_integration_config()``; the parse functions here are
exposed for tests.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Sections must be mappings; anything else raises ``ConfigurationError``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing or invalid fields  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import (
    BambooHRConfig,
    ClockifyConfig,
    CostingConfig,
    IntegrationConfig,
    SurePayrollConfig,
)
from payroll_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("integration", "<root>", "document must be a mapping")
    return data


def _section(data: dict[str, Any], name: str) -> dict[str, Any] | None:
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ConfigurationError(name, "<section>", "must be a mapping")
    return value


def parse_bamboohr(data: dict[str, Any]) -> BambooHRConfig:
    return BambooHRConfig(
        subdomain=data.get("subdomain", ""),
        api_key=data.get("api_key", ""),
    )


def parse_surepayroll(data: dict[str, Any]) -> SurePayrollConfig:
    kwargs: dict[str, Any] = {
        "client_id": data.get("client_id", ""),
        "api_key": data.get("api_key", ""),
    }
    if data.get("base_url"):
        kwargs["base_url"] = data["base_url"]
    return SurePayrollConfig(**kwargs)


def parse_clockify(data: dict[str, Any]) -> ClockifyConfig:
    workspace = data.get("workspace_id")
    return ClockifyConfig(
        api_key=data.get("api_key", ""),
        workspace_id=str(workspace) if workspace is not None else None,
    )


def parse_costing(data: dict[str, Any]) -> CostingConfig:
    """Parse the costing section; absent fields keep their defaults."""
    kwargs: dict[str, Any] = {}
    if "standard_hours_per_year" in data:
        try:
            kwargs["standard_hours_per_year"] = Decimal(str(data["standard_hours_per_year"]))
        except InvalidOperation as exc:
            raise ConfigurationError(
                "costing", "standard_hours_per_year", "must be a number",
            ) from exc
    if "default_currency" in data:
        kwargs["default_currency"] = str(data["default_currency"])
    if "default_pay_schedule" in data:
        kwargs["default_pay_schedule"] = str(data["default_pay_schedule"])
    return CostingConfig(**kwargs)


def parse_integration_config(data: dict[str, Any]) -> IntegrationConfig:
    """Parse a whole integration document."""
    bamboohr = _section(data, "bamboohr")
    surepayroll = _section(data, "surepayroll")
    clockify = _section(data, "clockify")
    costing = _section(data, "costing")
    return IntegrationConfig(
        payroll_system=data.get("payroll_system"),
        bamboohr=parse_bamboohr(bamboohr) if bamboohr is not None else None,
        surepayroll=parse_surepayroll(surepayroll) if surepayroll is not None else None,
        clockify=parse_clockify(clockify) if clockify is not None else None,
        costing=parse_costing(costing) if costing is not None else CostingConfig(),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
