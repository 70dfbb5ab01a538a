"""BC3 exporter — serialize a budget tree to FIEBDC-3/2020.

Record order: ``~V``, ``~K``, every ``~C``, every ``~T``, every ``~D``
(deepest parents first, root last) and every ``~M``.  Records end in CRLF
and the stream is single-byte ISO-8859-1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from bimbudget.bc3.codes import (
    CodeRegistry,
    chapter_code,
    item_code,
    subchapter_code,
    subsubchapter_code,
)
from bimbudget.bc3.escape import bc3_escape, bc3_filename, encode_bc3
from bimbudget.budget.measurements import MeasurementSource
from bimbudget.config import BC3_CHARSET, BC3_FORMAT_VERSION, BC3_ROOT_CODE
from bimbudget.models.budget import BudgetLevel, BudgetNode, MeasurementLine
from bimbudget.quantities.units import format_quantity, round_quantity
from bimbudget.settings import Settings

logger = logging.getLogger(__name__)

RECORD_END = "\r\n"
DEFAULT_TITLE = "Budget"

# Decomposition factor and yield written for every child
_CHILD_FACTORS = "1.000\\1.000\\"

_MINT = {
    BudgetLevel.SUBCHAPTER: subchapter_code,
    BudgetLevel.SUBSUBCHAPTER: subsubchapter_code,
    BudgetLevel.ITEM: item_code,
}


@dataclass
class _Records:
    concepts: list[str] = field(default_factory=list)
    texts: list[str] = field(default_factory=list)
    decompositions: list[str] = field(default_factory=list)
    measurements: list[str] = field(default_factory=list)


def _has_visible_items(node: BudgetNode) -> bool:
    if node.hidden:
        return False
    if node.is_item:
        return True
    return any(_has_visible_items(child) for child in node.children)


def _visible_children(node: BudgetNode) -> list[BudgetNode]:
    return [child for child in node.children if _has_visible_items(child)]


def item_lines(
    item: BudgetNode,
    measurement_source: MeasurementSource | None = None,
) -> list[MeasurementLine]:
    """Lines exported for *item*.

    Attached lines win; otherwise non-manual items ask the measurement
    source; otherwise one synthetic line carries the declared quantity.
    """
    if item.lines:
        return list(item.lines)
    if measurement_source is not None and not item.is_manual:
        lines = measurement_source.lines_for(item)
        if lines:
            return list(lines)
    return [MeasurementLine(comment=item.name, quantity=item.quantity or 0.0)]


def _line_field(line: MeasurementLine, unit: str) -> str:
    comment = bc3_escape(line.comment)
    if line.element_id:
        comment = f"{comment}#{bc3_escape(line.element_id)}"
    # TIPO \ COMMENT \ UNITS \ LENGTH \ WIDTH \ HEIGHT
    return f"\\{comment}\\{format_quantity(line.quantity, unit)}\\\\\\\\"


class Bc3Writer:
    """Walks a budget tree once and collects the records of each kind."""

    def __init__(self, measurement_source: MeasurementSource | None = None) -> None:
        self.measurement_source = measurement_source
        self.registry = CodeRegistry()
        self.records = _Records()

    def write_root(self, root: BudgetNode, title: str) -> None:
        self.registry.register(BC3_ROOT_CODE)
        self.records.concepts.append(f"~C|{BC3_ROOT_CODE}||{title}||")
        child_codes = []
        for index, chapter in enumerate(_visible_children(root), start=1):
            code = self.registry.register(chapter_code(index))
            self._write_node(chapter, code, (index,))
            child_codes.append(code)
        self._decomposition(BC3_ROOT_CODE, child_codes)

    def _write_node(self, node: BudgetNode, code: str, position: tuple[int, ...]) -> None:
        self.records.concepts.append(f"~C|{code}||{bc3_escape(node.name)}||")
        child_codes = []
        for index, child in enumerate(_visible_children(node), start=1):
            child_code = self.registry.register(_MINT[child.level](code, index))
            if child.is_item:
                self._write_item(child, child_code, code, position + (index,))
            else:
                self._write_node(child, child_code, position + (index,))
            child_codes.append(child_code)
        self._decomposition(code, child_codes)

    def _write_item(
        self,
        item: BudgetNode,
        code: str,
        parent_code: str,
        position: tuple[int, ...],
    ) -> None:
        unit = bc3_escape(item.unit)
        self.records.concepts.append(
            f"~C|{code}|{unit}|{bc3_escape(item.name)}|{item.price:.2f}|"
        )
        description = bc3_escape(item.description)
        if description:
            self.records.texts.append(f"~T|{code}|{description}|")

        lines = item_lines(item, self.measurement_source)
        total = round_quantity(sum(line.quantity for line in lines), item.unit)
        if total <= 0:
            logger.debug("Item %s has no measured quantity; no ~M record", code)
            return

        path = "\\".join(str(i) for i in position)
        detail = "".join(_line_field(line, item.unit) for line in lines)
        self.records.measurements.append(
            f"~M|{parent_code}\\{code}|{path}|{format_quantity(total, item.unit)}|{detail}|"
        )

    def _decomposition(self, parent_code: str, child_codes: list[str]) -> None:
        if not child_codes:
            return
        children = "".join(f"{child}\\{_CHILD_FACTORS}" for child in child_codes)
        self.records.decompositions.append(f"~D|{parent_code}|{children}|")


def _header_records(title: str, generated_on: date, settings: Settings) -> list[str]:
    general_expenses = format_quantity(settings.general_expenses, None)
    return [
        f"~V|{bc3_escape(settings.owner)}|{BC3_FORMAT_VERSION}\\{generated_on:%d%m%Y}"
        f"|{bc3_escape(settings.program)}|{title}\\P1|{BC3_CHARSET}"
        f"|{bc3_escape(settings.export_comment)}|2|",
        f"~K|2\\{general_expenses}\\{bc3_escape(settings.currency)}\\2\\2\\2\\2\\2\\3\\2\\3\\|",
    ]


def export_bc3(
    budget_tree: BudgetNode,
    measurement_source: MeasurementSource | None = None,
    *,
    project_name: str | None = None,
    generated_on: date | None = None,
    settings: Settings | None = None,
) -> bytes:
    """Serialize *budget_tree* to a FIEBDC-3/2020 byte stream.

    Parameters
    ----------
    budget_tree:
        Root node of a four-level budget tree.
    measurement_source:
        Supplies BIM-derived lines for items that carry none of their own.
    project_name:
        Title for the ``~V`` and root ``~C`` records; defaults to the root
        node's name.
    generated_on:
        Date written to ``~V``; today when omitted.
    settings:
        Header values (owner, program, currency, general expenses).

    Returns
    -------
    bytes
        ISO-8859-1 encoded text; unrepresentable characters become ``?``.

    Raises
    ------
    Bc3StructureError
        If an index overflows its code width or a code is minted twice.
    """
    if budget_tree.level is not BudgetLevel.ROOT:
        raise ValueError(f"Expected a root node, got {budget_tree.level.value}")
    settings = settings or Settings()
    title = bc3_escape(project_name or budget_tree.name) or DEFAULT_TITLE

    writer = Bc3Writer(measurement_source)
    writer.write_root(budget_tree, title)

    records = _header_records(title, generated_on or date.today(), settings)
    records.extend(writer.records.concepts)
    records.extend(writer.records.texts)
    records.extend(writer.records.decompositions)
    records.extend(writer.records.measurements)

    logger.info(
        "Exported BC3 '%s': %d concepts, %d measurements",
        title,
        len(writer.records.concepts),
        len(writer.records.measurements),
    )
    return encode_bc3("".join(record + RECORD_END for record in records))


def write_bc3(
    budget_tree: BudgetNode,
    output_dir: str | Path,
    measurement_source: MeasurementSource | None = None,
    *,
    project_name: str | None = None,
    generated_on: date | None = None,
    settings: Settings | None = None,
) -> Path:
    """Export *budget_tree* into *output_dir* under a sanitized file name."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    name = project_name or budget_tree.name
    path = out / bc3_filename(name)
    path.write_bytes(export_bc3(
        budget_tree,
        measurement_source,
        project_name=project_name,
        generated_on=generated_on,
        settings=settings,
    ))
    logger.info("Wrote %s", path)
    return path
