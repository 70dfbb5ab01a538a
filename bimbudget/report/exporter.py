"""ReportExporter — CSV/JSON/Markdown export of a measurement report."""

from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path

from bimbudget.config import CSV_MEASURE_DECIMALS
from bimbudget.quantities.units import format_quantity
from bimbudget.report.tree import ReportTree

logger = logging.getLogger(__name__)

CSV_FIELDS = ["Chapter", "Subchapter", "TypeName", "Unit", "Measure", "Count", "ApproxFlag"]
CSV_DELIMITER = ";"


def _csv_text(value: object) -> str:
    """Fold line breaks into spaces so every row stays on one line."""
    return str(value).replace("\r\n", " ").replace("\r", " ").replace("\n", " ")


class ReportExporter:
    """Export a :class:`ReportTree` in various formats."""

    def export_csv(self, report: ReportTree) -> str:
        """Render the report as semicolon-separated CSV with CRLF rows.

        Fields containing ``;`` or ``"`` are quoted, with embedded quotes
        doubled.  Measures keep up to four decimals, counts are integers.
        """
        buf = io.StringIO()
        writer = csv.DictWriter(
            buf,
            fieldnames=CSV_FIELDS,
            delimiter=CSV_DELIMITER,
            lineterminator="\r\n",
            quoting=csv.QUOTE_MINIMAL,
        )
        writer.writeheader()
        for chapter, subchapter, row in report.iter_rows():
            writer.writerow({
                "Chapter": _csv_text(chapter),
                "Subchapter": _csv_text(subchapter),
                "TypeName": _csv_text(row.type_name),
                "Unit": _csv_text(row.unit),
                "Measure": format_quantity(row.total_magnitude, row.unit, CSV_MEASURE_DECIMALS),
                "Count": row.element_count,
                "ApproxFlag": "yes" if row.approximated else "no",
            })
        return buf.getvalue()

    def write_csv(self, report: ReportTree, path: str | Path) -> Path:
        """Write :meth:`export_csv` output to *path* (UTF-8 with BOM)."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(self.export_csv(report), encoding="utf-8-sig", newline="")
        logger.info("Wrote measurement CSV to %s", p)
        return p

    def export_json(self, report: ReportTree) -> str:
        """Export the full report tree, lines included, as JSON."""
        return json.dumps(report.model_dump(mode="json"), indent=2, ensure_ascii=False)

    def export_markdown(self, report: ReportTree) -> str:
        return report.to_markdown()
