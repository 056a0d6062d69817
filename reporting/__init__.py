"""
Reporting module for Valorador Online.

Generates the downloadable PDF report of a saved valuation.

Usage:
    from reporting import generate_report

    result = generate_report(valuation, client)
    print(result.path)

Streaming (web):
    from reporting import ValuationReportGenerator

    pdf_bytes = ValuationReportGenerator().generate_to_buffer(valuation, client)
"""

from .valuation_report import (
    Palette,
    ReportSuccess,
    ValuationReportGenerator,
    generate_report,
    get_report_styles,
    report_filename,
)

__all__ = [
    "Palette",
    "ReportSuccess",
    "ValuationReportGenerator",
    "generate_report",
    "get_report_styles",
    "report_filename",
]
