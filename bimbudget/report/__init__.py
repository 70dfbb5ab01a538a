"""Measurement reports.

Aggregates classified, measured elements into a chapter/subchapter tree and
exports it as CSV, JSON or Markdown.
"""

from bimbudget.report.aggregator import aggregate, aggregate_model
from bimbudget.report.cache import MeasurementCache
from bimbudget.report.exporter import ReportExporter
from bimbudget.report.tree import ChapterGroup, MeasurementRow, ReportTree, SubchapterGroup

__all__ = [
    "ChapterGroup",
    "MeasurementCache",
    "MeasurementRow",
    "ReportExporter",
    "ReportTree",
    "SubchapterGroup",
    "aggregate",
    "aggregate_model",
]
