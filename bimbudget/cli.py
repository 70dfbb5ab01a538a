"""Command-line interface: measurement reports and BC3 budgets from a model."""

from __future__ import annotations

import argparse
import json
import logging
import pathlib
import sys

from bimbudget.bc3.exporter import write_bc3
from bimbudget.budget.builder import budget_from_report, build_budget
from bimbudget.budget.measurements import ModelMeasurementSource
from bimbudget.config import DEFAULT_OUTPUT_DIR
from bimbudget.extraction.pipeline import ifc_to_metamodel, load_metamodel
from bimbudget.models.budget import BudgetStructure, ItemConfig
from bimbudget.models.element import MetaModel
from bimbudget.report.aggregator import aggregate_model
from bimbudget.report.cache import MeasurementCache
from bimbudget.report.exporter import ReportExporter
from bimbudget.settings import load_settings

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("csv", "markdown", "json")


def load_model(path: pathlib.Path) -> MetaModel:
    """Read an ``.ifc`` file or viewer metadata ``.json``."""
    if path.suffix.lower() == ".ifc":
        return ifc_to_metamodel(path)
    return load_metamodel(path)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bimbudget",
        description="Quantity takeoff and FIEBDC-3 budgets from BIM models",
    )
    parser.add_argument("--project", default=".", help="Project directory holding .bimbudget/config.json")
    sub = parser.add_subparsers(dest="command", required=True)

    measurements = sub.add_parser("measurements", help="Aggregate element quantities by chapter")
    measurements.add_argument("model", help="IFC file or viewer metadata JSON")
    measurements.add_argument("--format", choices=REPORT_FORMATS, default="csv", help="Report format")
    measurements.add_argument("--output", help="Write the report here instead of stdout")

    bc3 = sub.add_parser("bc3", help="Export a FIEBDC-3/2020 budget")
    bc3.add_argument("model", help="IFC file or viewer metadata JSON")
    bc3.add_argument(
        "--budget",
        help="JSON with 'structure' and 'items'; without it the budget mirrors the measurement report",
    )
    bc3.add_argument("--name", help="Project title and file name")
    bc3.add_argument("--output-dir", default=str(DEFAULT_OUTPUT_DIR), help="Directory for the .bc3 file")
    return parser


def _run_measurements(args: argparse.Namespace, model: MetaModel) -> None:
    report = aggregate_model(model)
    exporter = ReportExporter()
    if args.format == "csv":
        if args.output:
            exporter.write_csv(report, args.output)
            return
        text = exporter.export_csv(report)
    elif args.format == "json":
        text = exporter.export_json(report)
    else:
        text = exporter.export_markdown(report)

    if args.output:
        out = pathlib.Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)


def _run_bc3(args: argparse.Namespace, model: MetaModel, project: pathlib.Path) -> pathlib.Path:
    settings = load_settings(project)
    cache = MeasurementCache()
    if args.budget:
        data = json.loads(pathlib.Path(args.budget).read_text(encoding="utf-8"))
        structure = BudgetStructure.model_validate(data.get("structure", {}))
        items = [ItemConfig.model_validate(item) for item in data.get("items", [])]
        budget = build_budget(structure, items)
    else:
        budget = budget_from_report(aggregate_model(model, cache=cache), name=args.name or "")

    return write_bc3(
        budget,
        args.output_dir,
        ModelMeasurementSource(model, cache),
        project_name=args.name,
        settings=settings,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    project = pathlib.Path(args.project).expanduser().resolve()
    settings = load_settings(project)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )

    model = load_model(pathlib.Path(args.model).expanduser().resolve())
    if args.command == "measurements":
        _run_measurements(args, model)
    else:
        path = _run_bc3(args, model, project)
        print(path)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
