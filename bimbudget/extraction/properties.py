"""Locate named facts inside an element's property sets.

Property names arrive in several languages and spellings (``NetSideArea``,
``Net Side Area``, ``Superfície``).  Every name is folded into one key space
by :func:`normalize_key` and matched against pre-normalized synonym sets.
Lookups never raise: missing or unparseable data is reported as ``None``.
"""

from __future__ import annotations

import logging
import math
import re
import unicodedata
from typing import Any, Iterable, Iterator, Mapping

from bimbudget.config import REJECTED_QUANTITY, REJECTED_QUANTITY_TOLERANCE
from bimbudget.models.element import MetaObject, PropertySet

logger = logging.getLogger(__name__)

_COMBINING_MARKS_RE = re.compile(r"[\u0300-\u036f]")
_KEY_STRIP_RE = re.compile(r"[\s_\-.]")
_NUMBER_RE = re.compile(r"[-+]?\d*\.?\d+(?:[eE][-+]?\d+)?")

# Keys under which exporters wrap a scalar value
_WRAPPER_KEYS = ("value", "Value", "val", "Val", "NominalValue")

COMMENT_NAMES = (
    "comentarios", "comments", "comentaris", "descripcion", "descripció",
    "description", "remarks", "notes", "note", "tag", "mark",
)


def unwrap(value: Any) -> Any:
    """Unwrap one level of a ``{"value": ...}`` wrapper object."""
    if isinstance(value, Mapping):
        for key in ("value", "Value"):
            if key in value:
                return value[key]
    return value


def normalize_text(value: Any) -> str:
    """Return *value* as a trimmed string, unwrapping a value wrapper."""
    if value is None:
        return ""
    value = unwrap(value)
    if value is None:
        return ""
    return str(value).strip()


def fold_diacritics(text: str) -> str:
    """Decompose (NFD) and drop combining marks: ``"Nét"`` -> ``"Net"``."""
    return _COMBINING_MARKS_RE.sub("", unicodedata.normalize("NFD", text))


def normalize_key(value: Any) -> str:
    """Fold a property name into the shared synonym key space.

    Lower-case, NFD, combining diacritics stripped, whitespace, underscores,
    hyphens and dots removed.  ``"Nét-Side.Area"`` -> ``"netsidearea"``.
    """
    return _KEY_STRIP_RE.sub("", fold_diacritics(normalize_text(value).lower()))


def synonym_set(names: Iterable[str]) -> frozenset[str]:
    """Pre-normalize a table of acceptable property names."""
    return frozenset(normalize_key(n) for n in names)


def to_number(value: Any) -> float | None:
    """Coerce *value* to a finite float, or return None.

    Accepts native numbers, strings using ``.`` or ``,`` as decimal separator
    (the first numeric token is taken) and wrapper objects.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        match = _NUMBER_RE.search(value.replace(",", ".", 1))
        if not match:
            return None
        number = float(match.group(0))
        return number if math.isfinite(number) else None
    if isinstance(value, Mapping):
        for key in _WRAPPER_KEYS:
            if key in value:
                number = to_number(value[key])
                if number is not None:
                    return number
    return None


def is_rejected_quantity(value: float) -> bool:
    """True for the known bogus default some exporters write into area fields."""
    return abs(value - REJECTED_QUANTITY) < REJECTED_QUANTITY_TOLERANCE


def iter_properties(
    element: MetaObject,
    property_sets: Mapping[str, PropertySet] | None = None,
    *,
    include_attributes: bool = True,
) -> Iterator[tuple[str, Any]]:
    """Yield ``(name, raw_value)`` for every fact attached to *element*.

    Order: inline property sets, property sets referenced by id through the
    host's table, then the element's direct attributes.
    """
    for pset in element.property_sets:
        for prop in pset.properties:
            yield prop.name, prop.value

    if property_sets is not None:
        for pset_id in element.property_set_ids:
            pset = property_sets.get(pset_id)
            if pset is None:
                continue
            for prop in pset.properties:
                yield prop.name, prop.value

    if include_attributes:
        for name, value in element.attributes.items():
            yield name, value


def find_property(
    element: MetaObject,
    synonyms: frozenset[str],
    property_sets: Mapping[str, PropertySet] | None = None,
) -> Any | None:
    """Return the value of the first property whose name is in *synonyms*."""
    for name, value in iter_properties(element, property_sets):
        if normalize_key(name) in synonyms:
            return unwrap(value)
    return None


def find_text(
    element: MetaObject,
    synonyms: frozenset[str],
    property_sets: Mapping[str, PropertySet] | None = None,
) -> str:
    """Return the first non-empty text value among matching properties."""
    for name, value in iter_properties(element, property_sets):
        if normalize_key(name) in synonyms:
            text = normalize_text(value)
            if text:
                return text
    return ""


def find_quantity_value(
    element: MetaObject,
    synonyms: frozenset[str],
    property_sets: Mapping[str, PropertySet] | None = None,
) -> float | None:
    """Return the first matching value that is a usable positive number."""
    for name, value in iter_properties(element, property_sets):
        if normalize_key(name) not in synonyms:
            continue
        number = to_number(value)
        if number is None or number <= 0:
            continue
        if is_rejected_quantity(number):
            logger.debug("Rejected default quantity %s on %s.%s", number, element.id, name)
            continue
        return number
    return None


def find_comment(
    element: MetaObject,
    property_sets: Mapping[str, PropertySet] | None = None,
) -> str:
    """Return a comment-like text (Comments, Comentarios, Mark ...) or ``""``.

    Matching is by substring on the normalized property name, attributes
    first, then property sets.
    """
    keys = [normalize_key(k) for k in COMMENT_NAMES]

    def _matches(name: str) -> bool:
        norm = normalize_key(name)
        return any(k in norm for k in keys)

    for name, value in element.attributes.items():
        if _matches(name):
            text = _string_value(value)
            if text:
                return text

    for name, value in iter_properties(element, property_sets, include_attributes=False):
        if _matches(name):
            text = _string_value(value)
            if text:
                return text
    return ""


def _string_value(value: Any) -> str:
    value = unwrap(value)
    if isinstance(value, str):
        return value.strip()
    return ""
