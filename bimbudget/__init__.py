"""bimbudget — quantity takeoff from BIM metadata and FIEBDC-3 budget export."""

__version__ = "1.0.0"

from bimbudget.bc3.exporter import export_bc3, write_bc3
from bimbudget.budget.builder import BudgetConfigError, budget_from_report, build_budget
from bimbudget.budget.measurements import ModelMeasurementSource
from bimbudget.classification.classifier import Classification, classify
from bimbudget.extraction.pipeline import ifc_to_metamodel, load_metamodel
from bimbudget.models.budget import BudgetNode, MeasurementLine
from bimbudget.models.element import MetaModel, MetaObject
from bimbudget.quantities.deriver import derive_quantity
from bimbudget.quantities.units import ResolvedQuantity, Unit
from bimbudget.report.aggregator import aggregate, aggregate_model
from bimbudget.report.cache import MeasurementCache
from bimbudget.report.exporter import ReportExporter
from bimbudget.report.tree import ReportTree
from bimbudget.settings import Settings, load_settings

__all__ = [
    "BudgetConfigError",
    "BudgetNode",
    "Classification",
    "MeasurementCache",
    "MeasurementLine",
    "MetaModel",
    "MetaObject",
    "ModelMeasurementSource",
    "ReportExporter",
    "ReportTree",
    "ResolvedQuantity",
    "Settings",
    "Unit",
    "aggregate",
    "aggregate_model",
    "budget_from_report",
    "build_budget",
    "classify",
    "derive_quantity",
    "export_bc3",
    "ifc_to_metamodel",
    "load_metamodel",
    "load_settings",
    "write_bc3",
]
