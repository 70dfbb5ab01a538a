"""Resolve an element's building storey by walking parent ids."""

from __future__ import annotations

import logging
import re
from typing import Callable, Mapping

from bimbudget.extraction.properties import normalize_key, normalize_text
from bimbudget.models.element import MetaObject, PropertySet

logger = logging.getLogger(__name__)

STOREY_CATEGORIES = frozenset({"ifcbuildingstorey", "ifcstorey"})

_IDENTITY_PSETS = frozenset(
    normalize_key(n) for n in ("identity data", "datos de identidad", "dades d'identitat")
)
_NAME_KEYS = frozenset({"name", "nombre", "nom"})

# Some exporters write the storey elevation (e.g. "3.1500000") as its name
_ELEVATION_NAME_RE = re.compile(r"^\d+\.\d{5,}")


def resolve_storey(
    element: MetaObject,
    lookup: Callable[[str], MetaObject | None],
    property_sets: Mapping[str, PropertySet] | None = None,
) -> str | None:
    """Return the name of the storey containing *element*, or None.

    The graph may contain back-references, so each ancestor is visited at
    most once.
    """
    visited = {element.id}
    current = lookup(element.parent_id) if element.parent_id else None

    while current is not None and current.id not in visited:
        visited.add(current.id)
        if current.category.lower() in STOREY_CATEGORIES:
            return _storey_name(current, property_sets)
        current = lookup(current.parent_id) if current.parent_id else None

    return None


def _storey_name(
    storey: MetaObject,
    property_sets: Mapping[str, PropertySet] | None,
) -> str | None:
    """Prefer the Name in an identity-data set, then a non-numeric object name."""
    psets = list(storey.property_sets)
    if property_sets is not None:
        psets.extend(
            property_sets[pid] for pid in storey.property_set_ids if pid in property_sets
        )

    for pset in psets:
        if normalize_key(pset.name) not in _IDENTITY_PSETS:
            continue
        for prop in pset.properties:
            if normalize_key(prop.name) in _NAME_KEYS:
                text = normalize_text(prop.value)
                if text:
                    return text

    name = normalize_text(storey.name)
    if name and not _ELEVATION_NAME_RE.match(name):
        return name
    return None
