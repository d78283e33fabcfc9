"""
payroll_config -- single public entrypoint for integration configuration.

Responsibility:
    Provides the way to obtain integration configuration at runtime
    through ``get_integration_config()``.  Returns a validated, frozen
    ``IntegrationConfig``.

Architecture position:
    Configuration -- sits above ``payroll_kernel`` and beside
    ``payroll_ingestion``.  The kernel and engines never import from
    ``payroll_config``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ConfigurationError`` -- a section or field is missing or invalid.

Every successful ``get_integration_config()`` call emits a
``PAYROLL_CONFIG_TRACE`` log entry with the checksum of the parsed
document and the configured systems (never the credentials).
"""

from __future__ import annotations

import logging
from pathlib import Path

from payroll_config.loader import compute_checksum, load_yaml_file, parse_integration_config
from payroll_config.schema import (
    BambooHRConfig,
    ClockifyConfig,
    CostingConfig,
    IntegrationConfig,
    SurePayrollConfig,
)

_logger = logging.getLogger("payroll_kernel.config")


def get_integration_config(path: Path | str) -> IntegrationConfig:
    """Load, validate and trace the integration configuration at ``path``."""
    data = load_yaml_file(Path(path))
    config = parse_integration_config(data)

    _logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "config_path": str(path),
            "checksum": compute_checksum(data),
            "payroll_system": config.payroll_system,
            "configured_systems": list(config.configured_systems),
        },
    )
    return config


__all__ = [
    "BambooHRConfig",
    "ClockifyConfig",
    "CostingConfig",
    "IntegrationConfig",
    "SurePayrollConfig",
    "get_integration_config",
]
