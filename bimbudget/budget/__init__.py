"""Budget trees built from configuration or measurement reports."""

from bimbudget.budget.builder import BudgetConfigError, budget_from_report, build_budget
from bimbudget.budget.measurements import MeasurementSource, ModelMeasurementSource

__all__ = [
    "BudgetConfigError",
    "MeasurementSource",
    "ModelMeasurementSource",
    "budget_from_report",
    "build_budget",
]
