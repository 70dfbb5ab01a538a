"""Quantities — units and per-element quantity derivation."""

from bimbudget.quantities.deriver import derive_quantity
from bimbudget.quantities.units import ResolvedQuantity, Unit, parse_unit

__all__ = ["ResolvedQuantity", "Unit", "derive_quantity", "parse_unit"]
