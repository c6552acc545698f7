"""Service modules"""
from .compare import CompareService
from .reconciliation import DiffCounts, ReconciliationEngine
from .report import aggregate_by_protocol, build_compare_report
from .summary import SummaryAggregator

__all__ = [
    "CompareService",
    "DiffCounts",
    "ReconciliationEngine",
    "SummaryAggregator",
    "aggregate_by_protocol",
    "build_compare_report",
]
