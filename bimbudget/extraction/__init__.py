"""Extraction — property lookup, geometry fallbacks and model sources."""

from bimbudget.extraction.pipeline import ifc_to_metamodel, load_metamodel, metamodel_from_dict
from bimbudget.extraction.properties import find_property, normalize_key, to_number

__all__ = [
    "find_property",
    "ifc_to_metamodel",
    "load_metamodel",
    "metamodel_from_dict",
    "normalize_key",
    "to_number",
]
