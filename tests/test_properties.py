"""Tests for property lookup: key normalization, numeric coercion, synonyms."""

from __future__ import annotations

import math

import pytest

from bimbudget.extraction.properties import (
    find_comment,
    find_property,
    find_quantity_value,
    find_text,
    fold_diacritics,
    iter_properties,
    normalize_key,
    normalize_text,
    synonym_set,
    to_number,
    unwrap,
)
from bimbudget.models.element import MetaObject, Property, PropertySet
from bimbudget.quantities.units import AREA_NAMES


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

AREA_KEYS = synonym_set(AREA_NAMES)


def _pset(name: str, props: dict, pset_id: str | None = None) -> PropertySet:
    return PropertySet(
        id=pset_id or name,
        name=name,
        properties=[Property(name=k, value=v) for k, v in props.items()],
    )


def _element(**kwargs) -> MetaObject:
    kwargs.setdefault("id", "e1")
    kwargs.setdefault("category", "IfcWall")
    return MetaObject(**kwargs)


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


class TestNormalization:
    def test_spellings_share_one_key(self):
        assert normalize_key("Net Side_Area") == "netsidearea"
        assert normalize_key("netsidearea") == "netsidearea"
        assert normalize_key("Nét-Side.Area") == "netsidearea"

    def test_diacritics_folded(self):
        assert fold_diacritics("Perímetre") == "Perimetre"
        assert normalize_key("Superfície") == "superficie"

    def test_non_string_keys(self):
        assert normalize_key(None) == ""
        assert normalize_key({"value": "Net Area"}) == "netarea"

    def test_normalize_text_unwraps_and_trims(self):
        assert normalize_text({"value": "  Basic Wall "}) == "Basic Wall"
        assert normalize_text(None) == ""
        assert normalize_text({"value": None}) == ""

    def test_unwrap_one_level(self):
        assert unwrap({"value": 3}) == 3
        assert unwrap({"Value": "x"}) == "x"
        assert unwrap({"other": 1}) == {"other": 1}
        assert unwrap(5) == 5

    def test_synonym_tables_are_prenormalized(self):
        assert "netsidearea" in AREA_KEYS
        assert "grossfootprintarea" in AREA_KEYS


# ---------------------------------------------------------------------------
# to_number
# ---------------------------------------------------------------------------


class TestToNumber:
    def test_native_numbers(self):
        assert to_number(12) == 12.0
        assert to_number(2.5) == 2.5

    def test_decimal_comma(self):
        assert to_number("12,5") == pytest.approx(12.5)

    def test_first_numeric_token(self):
        assert to_number("approx. 3.2 m2") == pytest.approx(3.2)

    def test_wrapper_objects(self):
        assert to_number({"value": "4"}) == 4.0
        assert to_number({"NominalValue": 7.25}) == 7.25

    @pytest.mark.parametrize("value", [None, True, False, "abc", "", {}, [], float("nan"), math.inf])
    def test_failures_return_none(self, value):
        assert to_number(value) is None


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


class TestFindProperty:
    def test_inline_property_set(self):
        el = _element(property_sets=[_pset("Qto_WallBaseQuantities", {"NetSideArea": 12.5})])
        assert find_property(el, AREA_KEYS) == 12.5

    def test_property_set_indirection(self):
        table = {"ps-1": _pset("BaseQuantities", {"Net Side Area": {"value": "12,5"}}, "ps-1")}
        el = _element(property_set_ids=["ps-1", "missing"])

        assert find_property(el, AREA_KEYS, table) == "12,5"
        assert find_quantity_value(el, AREA_KEYS, table) == pytest.approx(12.5)

    def test_indirection_ignored_without_table(self):
        el = _element(property_set_ids=["ps-1"])
        assert find_property(el, AREA_KEYS) is None

    def test_iteration_order(self):
        table = {"ps-1": _pset("Shared", {"B": 2}, "ps-1")}
        el = _element(
            property_sets=[_pset("Inline", {"A": 1})],
            property_set_ids=["ps-1"],
            attributes={"C": 3},
        )
        assert [name for name, _ in iter_properties(el, table)] == ["A", "B", "C"]
        assert [name for name, _ in iter_properties(el, table, include_attributes=False)] == ["A", "B"]

    def test_first_match_wins(self):
        el = _element(property_sets=[_pset("Q", {"NetArea": 3.0, "GrossArea": 4.0})])
        assert find_property(el, AREA_KEYS) == 3.0

    def test_missing_returns_none(self):
        assert find_property(_element(), AREA_KEYS) is None


class TestFindQuantityValue:
    def test_rejected_constant_is_skipped(self):
        el = _element(property_sets=[_pset("Q", {
            "NetSideArea": 28.571428571428573,
            "GrossSideArea": 10.0,
        })])
        assert find_quantity_value(el, AREA_KEYS) == 10.0

    def test_rejected_constant_alone_means_absent(self):
        el = _element(property_sets=[_pset("Q", {"NetSideArea": "28.5714285"})])
        assert find_quantity_value(el, AREA_KEYS) is None

    def test_non_positive_and_unparseable_skipped(self):
        el = _element(property_sets=[_pset("Q", {"NetArea": 0, "GrossArea": "n/a", "Area": "6,25"})])
        assert find_quantity_value(el, AREA_KEYS) == pytest.approx(6.25)


class TestFindText:
    def test_first_non_empty(self):
        keys = synonym_set(["chapter", "capítulo"])
        el = _element(property_sets=[_pset("Budget", {"Chapter": "  ", "Capítulo": "03"})])
        assert find_text(el, keys) == "03"

    def test_absent(self):
        assert find_text(_element(), synonym_set(["chapter"])) == ""


class TestFindComment:
    def test_attribute_comment_first(self):
        el = _element(
            attributes={"Comments": "North facade"},
            property_sets=[_pset("Data", {"Comentarios": "Planta baja"})],
        )
        assert find_comment(el) == "North facade"

    def test_property_set_comment_substring_match(self):
        el = _element(property_sets=[_pset("Data", {"Comentarios Obra": {"value": " Planta baja "}})])
        assert find_comment(el) == "Planta baja"

    def test_non_text_values_ignored(self):
        el = _element(attributes={"Mark": 12})
        assert find_comment(el) == ""
