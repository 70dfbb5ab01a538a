"""Tests for units, resolved quantities and quantity derivation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from bimbudget.extraction.geometry import estimate_area, max_face_area
from bimbudget.models.element import BoundingBox, MetaObject, Property, PropertySet
from bimbudget.quantities.deriver import authored_quantity, derive_quantity
from bimbudget.quantities.units import (
    ResolvedQuantity,
    Unit,
    format_quantity,
    parse_unit,
    round_quantity,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _element(props: dict | None = None, category: str = "IfcWall", element_id: str = "e1") -> MetaObject:
    psets = []
    if props:
        psets.append(PropertySet(
            id="q",
            name="BaseQuantities",
            properties=[Property(name=k, value=v) for k, v in props.items()],
        ))
    return MetaObject(id=element_id, category=category, property_sets=psets)


def _lookup(boxes: dict[str, list[float]]):
    def lookup(element_id: str) -> BoundingBox | None:
        aabb = boxes.get(element_id)
        return BoundingBox.from_aabb(aabb) if aabb is not None else None
    return lookup


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------


class TestUnits:
    @pytest.mark.parametrize("raw, unit", [
        ("M2", Unit.AREA),
        ("m²", Unit.AREA),
        (" area ", Unit.AREA),
        ("m3", Unit.VOLUME),
        ("ML", Unit.LENGTH),
        ("kg", Unit.MASS),
        ("Ud", Unit.COUNT),
        (Unit.COUNT, Unit.COUNT),
    ])
    def test_parse_unit(self, raw, unit):
        assert parse_unit(raw) is unit

    def test_parse_unknown(self):
        assert parse_unit("furlong") is None
        assert parse_unit(None) is None

    def test_round_quantity(self):
        assert round_quantity(2.34567, "M2") == pytest.approx(2.346)
        assert round_quantity(0.8, "UT") == 1.0
        assert round_quantity(2.4, Unit.COUNT) == 2.0
        assert round_quantity(2.5, "UT") == 3.0
        assert round_quantity(0.5, "UT") == 1.0

    def test_format_quantity(self):
        assert format_quantity(12.5, "M2") == "12.5"
        assert format_quantity(3.0, "M3") == "3"
        assert format_quantity(2.0, "UT") == "2"
        assert format_quantity(2.5, "UT") == "3"
        assert format_quantity(1.23456, "M2", 4) == "1.2346"
        assert format_quantity(0.0001, "M2") == "0"
        assert format_quantity(-0.0001, "M2") == "0"


class TestResolvedQuantity:
    def test_count_factory(self):
        q = ResolvedQuantity.count()
        assert q.unit is Unit.COUNT
        assert q.magnitude == 1.0
        assert q.authoritative is True

    def test_negative_magnitude_rejected(self):
        with pytest.raises(ValidationError):
            ResolvedQuantity(unit=Unit.AREA, magnitude=-1.0)

    def test_count_must_be_one(self):
        with pytest.raises(ValidationError):
            ResolvedQuantity(unit=Unit.COUNT, magnitude=2.0)

    def test_count_must_be_authoritative(self):
        with pytest.raises(ValidationError):
            ResolvedQuantity(unit=Unit.COUNT, magnitude=1.0, authoritative=False)


# ---------------------------------------------------------------------------
# Geometry fallback
# ---------------------------------------------------------------------------


class TestGeometryFallback:
    def test_max_face_area(self):
        bbox = BoundingBox.from_aabb([0, 0, 0, 4, 3, 2])
        assert max_face_area(bbox) == pytest.approx(12.0)

    def test_aabb_needs_six_values(self):
        with pytest.raises(ValueError):
            BoundingBox.from_aabb([0, 0, 0, 1])

    def test_inverted_box_clamped(self):
        bbox = BoundingBox.from_aabb([4, 3, 2, 0, 0, 0])
        assert bbox.dimensions() == (0.0, 0.0, 0.0)

    def test_estimate_area_without_lookup(self):
        assert estimate_area("e1", None) is None
        assert estimate_area("e1", _lookup({})) is None

    def test_flat_box_gives_no_estimate(self):
        assert estimate_area("e1", _lookup({"e1": [0, 0, 0, 4, 0, 0]})) is None


# ---------------------------------------------------------------------------
# derive_quantity
# ---------------------------------------------------------------------------


class TestDeriveQuantity:
    def test_bounding_box_area_fallback(self):
        el = _element()
        q = derive_quantity(el, Unit.AREA, _lookup({"e1": [0, 0, 0, 4, 3, 2]}))

        assert q.unit is Unit.AREA
        assert q.magnitude == pytest.approx(12.0)
        assert q.authoritative is False

    def test_fallback_without_preference(self):
        q = derive_quantity(_element(), geometry_lookup=_lookup({"e1": [0, 0, 0, 4, 3, 2]}))
        assert q.unit is Unit.AREA
        assert q.authoritative is False

    def test_authored_area_wins_over_geometry(self):
        el = _element({"NetSideArea": 12.5})
        q = derive_quantity(el, "M2", _lookup({"e1": [0, 0, 0, 4, 3, 2]}))

        assert q.magnitude == pytest.approx(12.5)
        assert q.authoritative is True

    def test_preferred_volume(self):
        q = derive_quantity(_element({"NetSideArea": 12.5, "NetVolume": "2,5"}), "M3")
        assert q.unit is Unit.VOLUME
        assert q.magnitude == pytest.approx(2.5)

    def test_preferred_unit_missing_degrades_to_count(self):
        q = derive_quantity(_element({"NetSideArea": 12.5}), Unit.MASS)
        assert q == ResolvedQuantity.count()

    def test_preferred_count_ignores_quantities(self):
        q = derive_quantity(_element({"NetSideArea": 12.5}), "UT")
        assert q == ResolvedQuantity.count()

    def test_area_before_volume(self):
        q = derive_quantity(_element({"NetVolume": 3.0, "GrossArea": 7.0}))
        assert q.unit is Unit.AREA
        assert q.magnitude == 7.0

    @pytest.mark.parametrize("props, unit, magnitude", [
        ({"Volumen": 3.0}, Unit.VOLUME, 3.0),
        ({"Longitud": "4,2"}, Unit.LENGTH, 4.2),
        ({"Perímetre": 9}, Unit.LENGTH, 9.0),
        ({"Peso": 120}, Unit.MASS, 120.0),
    ])
    def test_priority_picks_first_family_present(self, props, unit, magnitude):
        q = derive_quantity(_element(props))
        assert q.unit is unit
        assert q.magnitude == pytest.approx(magnitude)

    def test_nothing_measurable_is_counted(self):
        q = derive_quantity(_element({"FireRating": "EI60"}, category="IfcFurnishingElement"))
        assert q == ResolvedQuantity.count()

    def test_rejected_constant_falls_back_to_geometry(self):
        el = _element({"NetSideArea": 28.571428571428573})
        q = derive_quantity(el, Unit.AREA, _lookup({"e1": [0, 0, 0, 1, 2.1, 0.05]}))
        assert q.magnitude == pytest.approx(2.1)
        assert q.authoritative is False

    def test_unknown_unit_treated_as_no_preference(self):
        q = derive_quantity(_element({"NetVolume": 3.0}), "furlong")
        assert q.unit is Unit.VOLUME

    def test_authored_quantity_helper(self):
        el = _element({"Length": 5})
        assert authored_quantity(el, Unit.LENGTH) == 5.0
        assert authored_quantity(el, Unit.AREA) is None
        assert authored_quantity(el, Unit.COUNT) is None
