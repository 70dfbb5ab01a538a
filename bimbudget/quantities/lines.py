"""Per-element measurement lines, labelled the way estimators read them."""

from __future__ import annotations

from typing import Callable, Mapping

from bimbudget.extraction.properties import find_comment
from bimbudget.extraction.relationships import resolve_storey
from bimbudget.models.budget import MeasurementLine
from bimbudget.models.element import MetaObject, PropertySet

NO_COMMENT = "-"


def element_comment(
    element: MetaObject,
    property_sets: Mapping[str, PropertySet] | None = None,
    object_lookup: Callable[[str], MetaObject | None] | None = None,
) -> str:
    """Comment property, else the containing storey's name, else ``"-"``."""
    comment = find_comment(element, property_sets)
    if comment:
        return comment
    if object_lookup is not None:
        storey = resolve_storey(element, object_lookup, property_sets)
        if storey:
            return storey
    return NO_COMMENT


def element_line(
    element: MetaObject,
    quantity: float,
    property_sets: Mapping[str, PropertySet] | None = None,
    object_lookup: Callable[[str], MetaObject | None] | None = None,
) -> MeasurementLine:
    return MeasurementLine(
        comment=element_comment(element, property_sets, object_lookup),
        quantity=quantity,
        element_id=element.id,
    )
