"""Type and budget classification of BIM elements.

An explicit chapter/subchapter property always wins; the element category is
only a safety net so that models without budget metadata still produce a
usable, if coarse, structure.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, NamedTuple

from bimbudget.classification.scoring import CandidatePool
from bimbudget.config import UNKNOWN_TYPE_NAME
from bimbudget.extraction.properties import (
    find_text,
    iter_properties,
    normalize_key,
    synonym_set,
)
from bimbudget.models.element import MetaObject, PropertySet

logger = logging.getLogger(__name__)

CHAPTER_NAMES = (
    "chapter", "capitol", "capitulo", "capítulo", "uniformat", "uniclass", "csi",
    "assemblycode", "assembly", "keynote", "notaclave", "nota clave", "partida",
    "capitolid", "capitolcode",
)
SUBCHAPTER_NAMES = (
    "subchapter", "subcapitol", "subcapitulo", "subcapítulo", "subcategory",
    "assemblydescription", "assembly description", "partidatitol",
    "partida titulo", "subcapitolid", "subcapitolcode",
)

_CHAPTER_KEYS = synonym_set(CHAPTER_NAMES)
_SUBCHAPTER_KEYS = synonym_set(SUBCHAPTER_NAMES)

# Category prefix -> fallback chapter code
CHAPTER_FALLBACKS = (
    ("ifcwall", "01"),
    ("ifcslab", "02"),
    ("ifcroof", "03"),
    ("ifcwindow", "04"),
    ("ifcdoor", "05"),
    ("ifccolumn", "06"),
    ("ifcbeam", "07"),
)
OTHER_CHAPTER = "99"

CHAPTER_LABELS = {
    "01": "Walls",
    "02": "Slabs / Floors",
    "03": "Roofs",
    "04": "Windows",
    "05": "Doors",
    "06": "Columns",
    "07": "Beams",
    "99": "Other",
}

# Abstract IFC classes that never make a useful type name
_GENERIC_CATEGORIES = frozenset({"ifcproduct", "ifcelement", "ifcbuildingelement"})
_TYPE_REFERENCE_KEYS = frozenset({"reference", "typename", "familyandtype", "familytype"})


class Classification(NamedTuple):
    type_name: str
    chapter: str
    subchapter: str


def _nested_name(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get("name", value.get("Name"))
    return None


def type_name(
    element: MetaObject,
    property_sets: Mapping[str, PropertySet] | None = None,
) -> str:
    """Return a human-readable type name for *element*.

    Candidates, strongest first: nested ``type.name``, ``ObjectType`` and
    ``TypeName``, ``Type``, any attribute whose key contains "type",
    type-like or ``Reference``/``FamilyAndType`` properties in the property
    sets, and finally the display name.  Falls back to the raw category.
    """
    category = element.category or ""
    base = category.lower()
    if base and base not in _GENERIC_CATEGORIES and not base.startswith("ifc"):
        return category

    attrs = element.attributes
    pool = CandidatePool()
    for key in ("type", "Type"):
        pool.add(_nested_name(attrs.get(key)), 10)
    pool.add(attrs.get("ObjectType"), 9)
    pool.add(attrs.get("TypeName"), 9)
    pool.add(attrs.get("Type"), 8)
    for key, value in attrs.items():
        if "type" in key.lower():
            pool.add(value, 7)

    for name, value in iter_properties(element, property_sets, include_attributes=False):
        nk = normalize_key(name)
        if "type" in nk or nk in _TYPE_REFERENCE_KEYS:
            pool.add(value, 6)

    pool.add(element.name or attrs.get("Name"), 5)

    best = pool.best()
    if best:
        return best
    return category or UNKNOWN_TYPE_NAME


def chapter_code(
    element: MetaObject,
    property_sets: Mapping[str, PropertySet] | None = None,
) -> str:
    """Return the chapter property, or a fallback code from the category."""
    explicit = find_text(element, _CHAPTER_KEYS, property_sets)
    if explicit:
        return explicit

    category = (element.category or "").lower()
    for prefix, code in CHAPTER_FALLBACKS:
        if category.startswith(prefix):
            return code
    return OTHER_CHAPTER


def subchapter_code(
    element: MetaObject,
    property_sets: Mapping[str, PropertySet] | None = None,
) -> str:
    """Return the subchapter property, or ``""`` when the element has none."""
    return find_text(element, _SUBCHAPTER_KEYS, property_sets)


def classify(
    element: MetaObject,
    property_sets: Mapping[str, PropertySet] | None = None,
) -> Classification:
    """Return ``(type_name, chapter, subchapter)`` for *element*."""
    return Classification(
        type_name=type_name(element, property_sets),
        chapter=chapter_code(element, property_sets),
        subchapter=subchapter_code(element, property_sets),
    )


def chapter_label(code: str) -> str:
    """Display name of a fallback chapter code; other codes are returned as-is."""
    return CHAPTER_LABELS.get(code, code)
