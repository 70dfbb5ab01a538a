"""ReportTree — chapter → subchapter → (type, unit) rows with totals."""

from __future__ import annotations

from typing import Iterator

from pydantic import BaseModel, Field

from bimbudget.models.budget import MeasurementLine
from bimbudget.quantities.units import format_quantity


class MeasurementRow(BaseModel):
    """Sum of every element sharing a (type name, unit) key in one group."""

    type_name: str
    unit: str
    total_magnitude: float = 0.0
    element_count: int = 0
    approximated_count: int = 0
    """Contributions estimated from geometry rather than read from properties."""

    lines: list[MeasurementLine] = Field(default_factory=list)
    """One line per contributing element, in input order."""

    @property
    def approximated(self) -> bool:
        return self.approximated_count > 0


class SubchapterGroup(BaseModel):
    subchapter: str
    rows: list[MeasurementRow] = Field(default_factory=list)
    total_magnitude: float = 0.0
    element_count: int = 0


class ChapterGroup(BaseModel):
    chapter: str
    subgroups: list[SubchapterGroup] = Field(default_factory=list)
    total_magnitude: float = 0.0
    element_count: int = 0


class ReportTree(BaseModel):
    """Result of one aggregation run.

    Totals are filled bottom-up by the aggregator; the tree is rebuilt from
    scratch on every run and never updated in place.
    """

    chapters: list[ChapterGroup] = Field(default_factory=list)
    total_magnitude: float = 0.0
    element_count: int = 0

    def iter_rows(self) -> Iterator[tuple[str, str, MeasurementRow]]:
        """Yield ``(chapter, subchapter, row)`` in report order."""
        for chapter in self.chapters:
            for group in chapter.subgroups:
                for row in group.rows:
                    yield chapter.chapter, group.subchapter, row

    def chapter(self, code: str) -> ChapterGroup | None:
        for chapter in self.chapters:
            if chapter.chapter == code:
                return chapter
        return None

    @property
    def approximated_count(self) -> int:
        return sum(row.approximated_count for _, _, row in self.iter_rows())

    def to_markdown(self) -> str:
        """Render the report as a Markdown table per chapter."""
        lines = [
            "# Measurements",
            "",
            f"**Elements:** {self.element_count}  ",
            f"**Total:** {format_quantity(self.total_magnitude, None)}  ",
            f"**Approximated:** {self.approximated_count}",
            "",
        ]
        for chapter in self.chapters:
            lines.append(
                f"## {chapter.chapter} "
                f"({chapter.element_count} elements, "
                f"{format_quantity(chapter.total_magnitude, None)})"
            )
            lines.append("")
            lines.append("| Subchapter | Type | Unit | Measure | Count | Approx. |")
            lines.append("|---|---|---|---:|---:|---|")
            for group in chapter.subgroups:
                for row in group.rows:
                    lines.append(
                        f"| {group.subchapter} | {row.type_name} | {row.unit} "
                        f"| {format_quantity(row.total_magnitude, row.unit)} "
                        f"| {row.element_count} "
                        f"| {'~' if row.approximated else ''} |"
                    )
            lines.append("")
        return "\n".join(lines)
