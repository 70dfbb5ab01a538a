"""Measurement sources — where BIM-derived lines for a budget item come from."""

from __future__ import annotations

import logging
from typing import Protocol

from bimbudget.models.budget import BudgetNode, MeasurementLine
from bimbudget.models.element import MetaModel
from bimbudget.quantities.lines import element_line
from bimbudget.quantities.units import Unit, parse_unit
from bimbudget.report.cache import MeasurementCache

logger = logging.getLogger(__name__)


class MeasurementSource(Protocol):
    def lines_for(self, item: BudgetNode) -> list[MeasurementLine]:
        ...


class ModelMeasurementSource:
    """Measure budget items against the elements of a loaded model.

    An item matches every element with the same category (case-insensitive)
    and type name.  Each element is measured in the item's unit and becomes
    one line; elements that cannot be measured in that unit are left out.
    Results are memoized per (category, type name, unit) in *cache*.
    """

    def __init__(self, model: MetaModel, cache: MeasurementCache | None = None) -> None:
        self.model = model
        self.cache = cache if cache is not None else MeasurementCache()

    def lines_for(self, item: BudgetNode) -> list[MeasurementLine]:
        category = item.category or ""
        type_name = item.type_name or ""
        if not category and not type_name:
            return []

        unit = parse_unit(item.unit) or Unit.COUNT
        key = (category, type_name, unit.value)
        cached = self.cache.lines(key)
        if cached is not None:
            return cached

        lines = []
        for element in self.model.building_elements():
            if category and element.category.lower() != category.lower():
                continue
            classification = self.cache.classification(element, self.model.property_sets)
            if type_name and classification.type_name != type_name:
                continue
            resolved = self.cache.quantity(
                element, unit, self.model.geometry_lookup, self.model.property_sets
            )
            if resolved.unit is not unit or resolved.magnitude <= 0:
                continue
            lines.append(
                element_line(element, resolved.magnitude, self.model.property_sets, self.model.get)
            )

        logger.debug("Measured %d lines for %s / %s in %s", len(lines), category, type_name, unit.value)
        self.cache.store_lines(key, lines)
        return lines
