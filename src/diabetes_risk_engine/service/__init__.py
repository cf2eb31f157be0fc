"""
Service module - report orchestration.

USAGE:
------
from diabetes_risk_engine.service import get_report_service

service = get_report_service()
report = service.get_risk_report(3)
"""

from diabetes_risk_engine.service.report_service import (
    PatientLocks,
    RiskReportService,
    SystemClock,
    get_report_service,
)

__all__ = [
    "RiskReportService",
    "PatientLocks",
    "SystemClock",
    "get_report_service",
]
