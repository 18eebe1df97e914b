"""Reporting: aggregation of findings and output formatters."""

from convlint.report.aggregator import Aggregator, Report
from convlint.report.formatters import format_json, format_porcelain, format_rich

__all__ = [
    "Aggregator",
    "Report",
    "format_json",
    "format_porcelain",
    "format_rich",
]
