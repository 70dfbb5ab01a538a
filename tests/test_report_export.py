"""Tests for ReportExporter — CSV, JSON and Markdown output."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from bimbudget.models.element import BoundingBox, MetaModel, MetaObject, Property, PropertySet
from bimbudget.report.aggregator import aggregate_model
from bimbudget.report.exporter import ReportExporter
from bimbudget.report.tree import ChapterGroup, MeasurementRow, ReportTree, SubchapterGroup


def _pset(name: str, props: dict) -> PropertySet:
    return PropertySet(id=name, name=name, properties=[Property(name=k, value=v) for k, v in props.items()])


@pytest.fixture()
def report() -> ReportTree:
    wall = MetaObject(
        id="w1",
        category="IfcWall",
        name="Basic Wall",
        property_sets=[_pset("Qto", {"NetSideArea": 12.5, "Chapter": "01"})],
    )
    door = MetaObject(
        id="d1",
        category="IfcDoor",
        name="Single Door",
        property_sets=[_pset("Budget", {"Chapter": "01"})],
    )
    chair = MetaObject(id="f1", category="IfcFurnishingElement", name="Chair")
    model = MetaModel(
        objects={o.id: o for o in (wall, door, chair)},
        bounding_boxes={"d1": BoundingBox.from_aabb([0, 0, 0, 1, 2.1, 0.05])},
    )
    return aggregate_model(model)


def _single_row_report(row: MeasurementRow, chapter: str = "01", subchapter: str = "01.1") -> ReportTree:
    group = SubchapterGroup(
        subchapter=subchapter,
        rows=[row],
        total_magnitude=row.total_magnitude,
        element_count=row.element_count,
    )
    return ReportTree(
        chapters=[ChapterGroup(
            chapter=chapter,
            subgroups=[group],
            total_magnitude=row.total_magnitude,
            element_count=row.element_count,
        )],
        total_magnitude=row.total_magnitude,
        element_count=row.element_count,
    )


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


class TestCsvExport:
    def test_header_and_rows(self, report: ReportTree):
        text = ReportExporter().export_csv(report)
        lines = text.split("\r\n")

        assert lines[0] == "Chapter;Subchapter;TypeName;Unit;Measure;Count;ApproxFlag"
        assert lines[1] == "01;—;Basic Wall;M2;12.5;1;no"
        assert lines[2] == "01;—;Single Door;M2;2.1;1;yes"
        assert lines[3] == "99;—;Chair;UT;1;1;no"
        assert lines[4] == ""

    def test_crlf_only(self, report: ReportTree):
        text = ReportExporter().export_csv(report)
        assert text.count("\n") == text.count("\r\n") == 4

    def test_quoting_and_newlines(self):
        row = MeasurementRow(type_name='Wall; "A"\nB', unit="M2", total_magnitude=1.23456, element_count=2)
        text = ReportExporter().export_csv(_single_row_report(row))

        assert text.split("\r\n")[1] == '01;01.1;"Wall; ""A"" B";M2;1.2346;2;no'

    def test_empty_report(self):
        text = ReportExporter().export_csv(ReportTree())
        assert text == "Chapter;Subchapter;TypeName;Unit;Measure;Count;ApproxFlag\r\n"

    def test_write_csv(self, report: ReportTree, tmp_path: Path):
        path = ReportExporter().write_csv(report, tmp_path / "out" / "measurements.csv")

        assert path.is_file()
        data = path.read_bytes()
        assert data.startswith(b"\xef\xbb\xbf")
        assert b"\r\n" in data
        assert "Single Door" in data.decode("utf-8-sig")


# ---------------------------------------------------------------------------
# JSON / Markdown
# ---------------------------------------------------------------------------


class TestOtherFormats:
    def test_json(self, report: ReportTree):
        data = json.loads(ReportExporter().export_json(report))

        assert data["element_count"] == 3
        assert data["chapters"][0]["chapter"] == "01"
        rows = data["chapters"][0]["subgroups"][0]["rows"]
        assert rows[1]["approximated_count"] == 1
        assert rows[0]["lines"][0]["element_id"] == "w1"

    def test_json_round_trip_through_model(self, report: ReportTree):
        restored = ReportTree.model_validate_json(ReportExporter().export_json(report))
        assert restored == report

    def test_markdown(self, report: ReportTree):
        text = ReportExporter().export_markdown(report)
        assert text.startswith("# Measurements")
        assert "**Elements:** 3" in text
        assert "| — | Basic Wall | M2 | 12.5 | 1 |  |" in text
