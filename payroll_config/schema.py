"""
Integration Configuration Schema (``payroll_config.schema``).

Frozen dataclasses describing how the profitability engine reaches its
payroll and time-tracking systems and how it costs time.  Every class
validates itself in ``__post_init__`` and raises ``ConfigurationError``
naming the offending section and field.

Credentials are excluded from ``repr`` so they never reach log lines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from payroll_engines.rates import PaySchedule
from payroll_kernel.exceptions import ConfigurationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("config.schema")

PAYROLL_SYSTEMS = frozenset({"bamboohr", "surepayroll"})
VALID_PAY_SCHEDULES = frozenset(s.value for s in PaySchedule)


def _require(section: str, name: str, value: str | None) -> None:
    if value is None or not str(value).strip():
        raise ConfigurationError(section, name, "is required")


@dataclass(frozen=True)
class BambooHRConfig:
    subdomain: str
    api_key: str = field(repr=False)

    def __post_init__(self) -> None:
        _require("bamboohr", "subdomain", self.subdomain)
        _require("bamboohr", "api_key", self.api_key)

    @property
    def base_url(self) -> str:
        return f"https://api.bamboohr.com/api/gateway.php/{self.subdomain}/v1"


@dataclass(frozen=True)
class SurePayrollConfig:
    client_id: str
    api_key: str = field(repr=False)
    base_url: str = "https://api.surepayroll.com/v1"

    def __post_init__(self) -> None:
        _require("surepayroll", "client_id", self.client_id)
        _require("surepayroll", "api_key", self.api_key)


@dataclass(frozen=True)
class ClockifyConfig:
    api_key: str = field(repr=False)
    workspace_id: str | None = None

    def __post_init__(self) -> None:
        _require("clockify", "api_key", self.api_key)


@dataclass(frozen=True)
class CostingConfig:
    """
    Costing defaults.

    Field defaults match a US 40-hour week paid monthly in USD.
    """

    standard_hours_per_year: Decimal = Decimal("2080")
    default_currency: str = "USD"
    default_pay_schedule: str = PaySchedule.MONTHLY.value

    def __post_init__(self) -> None:
        if self.standard_hours_per_year <= 0:
            raise ConfigurationError(
                "costing", "standard_hours_per_year", "must be positive",
            )
        if len(self.default_currency) != 3 or not self.default_currency.isalpha():
            raise ConfigurationError(
                "costing", "default_currency",
                f"must be a 3-letter currency code, got {self.default_currency!r}",
            )
        if self.default_pay_schedule not in VALID_PAY_SCHEDULES:
            raise ConfigurationError(
                "costing", "default_pay_schedule",
                f"must be one of {sorted(VALID_PAY_SCHEDULES)}, got {self.default_pay_schedule!r}",
            )
        logger.debug(
            "costing_config_initialized",
            extra={
                "standard_hours_per_year": str(self.standard_hours_per_year),
                "default_currency": self.default_currency,
                "default_pay_schedule": self.default_pay_schedule,
            },
        )


@dataclass(frozen=True)
class IntegrationConfig:
    """
    Top-level integration configuration.

    ``payroll_system`` names the payroll integration in use; its section
    must be present.  Time tracking is optional.
    """

    payroll_system: str | None = None
    bamboohr: BambooHRConfig | None = None
    surepayroll: SurePayrollConfig | None = None
    clockify: ClockifyConfig | None = None
    costing: CostingConfig = field(default_factory=CostingConfig)

    def __post_init__(self) -> None:
        if self.payroll_system is None:
            return
        if self.payroll_system not in PAYROLL_SYSTEMS:
            raise ConfigurationError(
                "integration", "payroll_system",
                f"must be one of {sorted(PAYROLL_SYSTEMS)}, got {self.payroll_system!r}",
            )
        if getattr(self, self.payroll_system) is None:
            raise ConfigurationError(
                self.payroll_system, "*",
                f"section is required when payroll_system is {self.payroll_system!r}",
            )

    @property
    def configured_systems(self) -> tuple[str, ...]:
        return tuple(
            name for name in ("bamboohr", "surepayroll", "clockify")
            if getattr(self, name) is not None
        )
