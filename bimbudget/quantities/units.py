"""Measurement units, resolved quantities and the synonym tables per unit family."""

from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from bimbudget.config import QUANTITY_DECIMALS


class Unit(str, Enum):
    """Physical unit family of a measured quantity, by its BC3 unit code."""

    AREA = "M2"
    VOLUME = "M3"
    LENGTH = "ML"
    MASS = "KG"
    COUNT = "UT"


# Order in which units are tried when the caller gives no preference
UNIT_PRIORITY = (Unit.AREA, Unit.VOLUME, Unit.LENGTH, Unit.MASS)

UNIT_LABELS = {
    Unit.AREA: "Area",
    Unit.VOLUME: "Volume",
    Unit.LENGTH: "Length",
    Unit.MASS: "Mass",
    Unit.COUNT: "Count",
}

# Property names per unit family, written as they appear in exports.
# They are normalized with ``normalize_key`` before matching.
AREA_NAMES = (
    "netSideArea", "grossSideArea", "netArea", "grossArea", "area",
    "footprintArea", "grossFootprintArea", "externalSurfaceArea",
    "surfaceArea", "glazedArea", "sideArea", "projectedArea",
)
VOLUME_NAMES = ("netVolume", "grossVolume", "volume", "volumen", "volum")
LENGTH_NAMES = ("length", "perimeter", "longitud", "perímetre", "perímetro")
MASS_NAMES = ("mass", "massa", "peso", "weight")

UNIT_SYNONYMS: dict[Unit, tuple[str, ...]] = {
    Unit.AREA: AREA_NAMES,
    Unit.VOLUME: VOLUME_NAMES,
    Unit.LENGTH: LENGTH_NAMES,
    Unit.MASS: MASS_NAMES,
}

_UNIT_ALIASES = {
    "m2": Unit.AREA, "m²": Unit.AREA, "area": Unit.AREA, "sqm": Unit.AREA,
    "m3": Unit.VOLUME, "m³": Unit.VOLUME, "volume": Unit.VOLUME,
    "ml": Unit.LENGTH, "m": Unit.LENGTH, "length": Unit.LENGTH,
    "kg": Unit.MASS, "mass": Unit.MASS,
    "ut": Unit.COUNT, "u": Unit.COUNT, "ud": Unit.COUNT, "un": Unit.COUNT,
    "count": Unit.COUNT, "each": Unit.COUNT,
}


def parse_unit(value: Unit | str | None) -> Unit | None:
    """Map a unit code or alias (``"M2"``, ``"m²"``, ``"area"`` ...) to a Unit."""
    if value is None:
        return None
    if isinstance(value, Unit):
        return value
    return _UNIT_ALIASES.get(str(value).strip().lower())


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def round_quantity(value: float, unit: Unit | str | None) -> float:
    """Round half up to an integer for count units, to three decimals otherwise."""
    if parse_unit(unit) is Unit.COUNT:
        return float(_round_half_up(value))
    return round(value, QUANTITY_DECIMALS)


def format_quantity(value: float, unit: Unit | str | None, decimals: int = QUANTITY_DECIMALS) -> str:
    """Render a quantity without trailing zeros (``12.5``, ``3``, ``0.125``)."""
    if parse_unit(unit) is Unit.COUNT:
        return str(_round_half_up(value))
    text = f"{round(value, decimals):.{decimals}f}".rstrip("0").rstrip(".")
    if text in ("", "-0"):
        return "0"
    return text


class ResolvedQuantity(BaseModel):
    """The quantity derived for one element.

    ``authoritative`` is False when the magnitude was estimated from the
    bounding box instead of read from an authored property.
    """

    unit: Unit
    magnitude: float = Field(ge=0.0)
    authoritative: bool = True

    @model_validator(mode="after")
    def _count_is_unitary(self) -> ResolvedQuantity:
        if self.unit is Unit.COUNT and (self.magnitude != 1.0 or not self.authoritative):
            raise ValueError("Count quantities are always 1 and authoritative")
        return self

    @classmethod
    def count(cls) -> ResolvedQuantity:
        return cls(unit=Unit.COUNT, magnitude=1.0, authoritative=True)
