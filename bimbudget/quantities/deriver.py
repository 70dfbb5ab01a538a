"""Quantity derivation — pick the unit that applies to an element and measure it.

Authored properties win.  Area falls back to the bounding box (flagged as not
authoritative); anything else that cannot be measured is still countable and
degrades to ``Count = 1``.
"""

from __future__ import annotations

import logging
from typing import Mapping

from bimbudget.extraction.geometry import GeometryLookup, estimate_area
from bimbudget.extraction.properties import find_quantity_value, synonym_set
from bimbudget.models.element import MetaObject, PropertySet
from bimbudget.quantities.units import (
    UNIT_PRIORITY,
    UNIT_SYNONYMS,
    ResolvedQuantity,
    Unit,
    parse_unit,
)

logger = logging.getLogger(__name__)

_SYNONYM_KEYS: dict[Unit, frozenset[str]] = {
    unit: synonym_set(names) for unit, names in UNIT_SYNONYMS.items()
}


def authored_quantity(
    element: MetaObject,
    unit: Unit,
    property_sets: Mapping[str, PropertySet] | None = None,
) -> float | None:
    """Return the authored value of *unit*'s family on *element*, if any."""
    keys = _SYNONYM_KEYS.get(unit)
    if keys is None:
        return None
    return find_quantity_value(element, keys, property_sets)


def _measure(
    element: MetaObject,
    unit: Unit,
    geometry_lookup: GeometryLookup | None,
    property_sets: Mapping[str, PropertySet] | None,
) -> ResolvedQuantity | None:
    value = authored_quantity(element, unit, property_sets)
    if value is not None:
        return ResolvedQuantity(unit=unit, magnitude=value, authoritative=True)

    if unit is Unit.AREA:
        estimate = estimate_area(element.id, geometry_lookup)
        if estimate is not None:
            return ResolvedQuantity(unit=unit, magnitude=estimate, authoritative=False)
    return None


def derive_quantity(
    element: MetaObject,
    preferred_unit: Unit | str | None = None,
    geometry_lookup: GeometryLookup | None = None,
    property_sets: Mapping[str, PropertySet] | None = None,
) -> ResolvedQuantity:
    """Decide which unit applies to *element* and compute its magnitude.

    Parameters
    ----------
    element:
        The element to measure.
    preferred_unit:
        Unit requested by the caller (``Unit`` or a code such as ``"M2"``).
        Without one, Area, Volume, Length and Mass are tried in that order.
    geometry_lookup:
        Callable returning the bounding box for an element id.
    property_sets:
        The host model's shared property-set table.

    Returns
    -------
    ResolvedQuantity
        Never raises; unmeasurable elements come back as ``Count = 1``.
    """
    unit = parse_unit(preferred_unit)
    if preferred_unit is not None and unit is None:
        logger.debug("Unknown unit %r for %s; picking one automatically", preferred_unit, element.id)

    if unit is Unit.COUNT:
        return ResolvedQuantity.count()

    candidates = (unit,) if unit is not None else UNIT_PRIORITY
    for candidate in candidates:
        resolved = _measure(element, candidate, geometry_lookup, property_sets)
        if resolved is not None:
            return resolved

    return ResolvedQuantity.count()
