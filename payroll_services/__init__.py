"""Services -- stateful orchestration over the payroll engines."""

from payroll_services.profitability_service import ProfitabilityService

__all__ = ["ProfitabilityService"]
