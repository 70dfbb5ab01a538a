"""MeasurementCache — memoized lookups scoped to one aggregation or export run.

Create one per run and pass it in; call :meth:`clear` whenever the host
reloads the model.  Nothing here is module-level state.
"""

from __future__ import annotations

import logging
from typing import Mapping

from bimbudget.classification.classifier import Classification, classify
from bimbudget.extraction.geometry import GeometryLookup
from bimbudget.models.budget import MeasurementLine
from bimbudget.models.element import MetaObject, PropertySet
from bimbudget.quantities.deriver import derive_quantity
from bimbudget.quantities.units import ResolvedQuantity, Unit, parse_unit

logger = logging.getLogger(__name__)

LinesKey = tuple[str, str, str]
"""(category, type_name, unit code)"""


class MeasurementCache:
    """Per-run memo of classifications, quantities and measurement lines."""

    def __init__(self) -> None:
        self._classifications: dict[str, Classification] = {}
        self._quantities: dict[tuple[str, Unit | None], ResolvedQuantity] = {}
        self._lines: dict[LinesKey, list[MeasurementLine]] = {}

    def classification(
        self,
        element: MetaObject,
        property_sets: Mapping[str, PropertySet] | None = None,
    ) -> Classification:
        cached = self._classifications.get(element.id)
        if cached is None:
            cached = classify(element, property_sets)
            self._classifications[element.id] = cached
        return cached

    def quantity(
        self,
        element: MetaObject,
        preferred_unit: Unit | str | None = None,
        geometry_lookup: GeometryLookup | None = None,
        property_sets: Mapping[str, PropertySet] | None = None,
    ) -> ResolvedQuantity:
        key = (element.id, parse_unit(preferred_unit))
        cached = self._quantities.get(key)
        if cached is None:
            cached = derive_quantity(element, preferred_unit, geometry_lookup, property_sets)
            self._quantities[key] = cached
        return cached

    def lines(self, key: LinesKey) -> list[MeasurementLine] | None:
        """Return the memoized lines for *key*, or None when not computed."""
        lines = self._lines.get(key)
        return list(lines) if lines is not None else None

    def store_lines(self, key: LinesKey, lines: list[MeasurementLine]) -> None:
        self._lines[key] = list(lines)

    def clear(self) -> None:
        """Forget everything; call after the host reloads its model."""
        logger.debug(
            "Clearing measurement cache (%d quantities, %d line groups)",
            len(self._quantities),
            len(self._lines),
        )
        self._classifications.clear()
        self._quantities.clear()
        self._lines.clear()

    def __len__(self) -> int:
        return len(self._quantities)
