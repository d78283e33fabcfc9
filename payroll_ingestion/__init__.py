"""
Payroll ingestion -- sources, payload mappers and the import service.

Adapters read exports, mappers turn system-specific payloads into
canonical records, and ``ImportService`` loads them into a
``ProfitabilityService``.
"""
