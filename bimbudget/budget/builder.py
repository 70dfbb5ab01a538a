"""Build budget trees from user configuration or from a measurement report."""

from __future__ import annotations

import logging
from typing import Iterable

from bimbudget.classification.classifier import chapter_label
from bimbudget.models.budget import (
    BudgetLevel,
    BudgetNode,
    BudgetStructure,
    ItemConfig,
    MeasurementLine,
)
from bimbudget.quantities.units import UNIT_LABELS, Unit, parse_unit
from bimbudget.report.tree import ReportTree

logger = logging.getLogger(__name__)


class BudgetConfigError(ValueError):
    """Raised when an item refers to a chapter, subchapter or sub-subchapter that does not exist."""


def _unit_code(value: str) -> str:
    unit = parse_unit(value)
    if unit is not None:
        return unit.value
    return (value or Unit.COUNT.value).strip().upper()


def _item_node(config: ItemConfig, index: int) -> BudgetNode:
    manual = sorted(config.manual_lines, key=lambda line: line.display_order)
    return BudgetNode(
        level=BudgetLevel.ITEM,
        code=config.id or f"{index:03d}",
        name=config.custom_name or config.type_name or config.ifc_category or config.id,
        unit=_unit_code(config.preferred_unit),
        description=config.description,
        quantity=config.measured_value,
        price=config.price,
        category=config.ifc_category or None,
        type_name=config.type_name or None,
        is_manual=config.is_manual,
        lines=[MeasurementLine(comment=line.comment or "", quantity=line.quantity) for line in manual],
    )


def build_budget(structure: BudgetStructure, items: Iterable[ItemConfig]) -> BudgetNode:
    """Assemble the four-level tree described by *structure* and *items*.

    Items are attached under the sub-subchapter their ids point to, in
    ``display_order``.  Manual measurement lines become the item's lines;
    BIM-derived lines are supplied later by a measurement source.

    Raises
    ------
    BudgetConfigError
        If an item refers to an unknown chapter, subchapter or sub-subchapter.
    """
    by_parent: dict[tuple[str, str, str], list[ItemConfig]] = {}
    known = {
        (chapter.code, sub.code, subsub.code)
        for chapter in structure.chapters
        for sub in chapter.subchapters
        for subsub in sub.subsubchapters
    }
    for config in items:
        key = (config.chapter_id, config.subchapter_id, config.subsubchapter_id)
        if key not in known:
            raise BudgetConfigError(
                f"Item '{config.id or config.type_name}' refers to unknown position "
                f"{'/'.join(key)}"
            )
        by_parent.setdefault(key, []).append(config)

    chapters = []
    for chapter in structure.chapters:
        subchapters = []
        for sub in chapter.subchapters:
            subsubchapters = []
            for subsub in sub.subsubchapters:
                configs = sorted(
                    by_parent.get((chapter.code, sub.code, subsub.code), []),
                    key=lambda c: c.display_order,
                )
                subsubchapters.append(BudgetNode(
                    level=BudgetLevel.SUBSUBCHAPTER,
                    code=subsub.code,
                    name=subsub.name,
                    hidden=subsub.hidden,
                    children=[_item_node(c, i) for i, c in enumerate(configs, start=1)],
                ))
            subchapters.append(BudgetNode(
                level=BudgetLevel.SUBCHAPTER,
                code=sub.code,
                name=sub.name,
                hidden=sub.hidden,
                children=subsubchapters,
            ))
        chapters.append(BudgetNode(
            level=BudgetLevel.CHAPTER,
            code=chapter.code,
            name=chapter.name,
            hidden=chapter.hidden,
            children=subchapters,
        ))

    root = BudgetNode(level=BudgetLevel.ROOT, name=structure.name, children=chapters)
    logger.info("Built budget '%s' with %d items", structure.name, sum(1 for _ in root.iter_items()))
    return root


def budget_from_report(report: ReportTree, name: str = "") -> BudgetNode:
    """Turn a measurement report into a budget tree.

    Report chapters and subchapters map one to one; inside a subchapter one
    sub-subchapter is created per unit, holding one item per report row with
    the row's per-element lines.
    """
    chapters = []
    for chapter in report.chapters:
        subchapters = []
        for group in chapter.subgroups:
            by_unit: dict[str, list[BudgetNode]] = {}
            for row in group.rows:
                items = by_unit.setdefault(row.unit, [])
                items.append(BudgetNode(
                    level=BudgetLevel.ITEM,
                    code=f"{len(items) + 1:03d}",
                    name=row.type_name,
                    unit=row.unit,
                    quantity=row.total_magnitude,
                    type_name=row.type_name,
                    lines=list(row.lines),
                ))
            subsubchapters = []
            for unit_code, items in by_unit.items():
                unit = parse_unit(unit_code)
                subsubchapters.append(BudgetNode(
                    level=BudgetLevel.SUBSUBCHAPTER,
                    code=unit_code,
                    name=UNIT_LABELS[unit] if unit is not None else unit_code,
                    children=items,
                ))
            subchapters.append(BudgetNode(
                level=BudgetLevel.SUBCHAPTER,
                code=group.subchapter,
                name=group.subchapter,
                children=subsubchapters,
            ))
        chapters.append(BudgetNode(
            level=BudgetLevel.CHAPTER,
            code=chapter.chapter,
            name=chapter_label(chapter.chapter),
            children=subchapters,
        ))
    return BudgetNode(level=BudgetLevel.ROOT, name=name, children=chapters)
