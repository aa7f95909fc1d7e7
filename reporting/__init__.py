"""
Reporting module for the valuation engine.

Assembles valuation reports (adjustment grid, regression, valuation and
chart series) from a subject and its comps.

Usage:
    from reporting import generate_report

    report = generate_report(subject, comps, RegressionConfig())
    payload = report.to_dict()
"""

from .assembler import build_report_comps, generate_report, generate_report_id
from .charts import generate_chart_data
from .schemas import (
    MODEL_VERSION,
    PropertyAdjustments,
    ReportComp,
    ChartPoint,
    RegressionLinePoint,
    TrendPoint,
    ChartData,
    ReportMetadata,
    Report,
)

__all__ = [
    # Assembly
    "generate_report",
    "generate_report_id",
    "build_report_comps",
    "generate_chart_data",
    # Schemas
    "MODEL_VERSION",
    "PropertyAdjustments",
    "ReportComp",
    "ChartPoint",
    "RegressionLinePoint",
    "TrendPoint",
    "ChartData",
    "ReportMetadata",
    "Report",
]
