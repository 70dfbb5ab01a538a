"""Tests for the bimbudget command-line interface."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from bimbudget.cli import build_parser, main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for key in list(os.environ):
        if key.startswith("BIMBUDGET_"):
            monkeypatch.delenv(key)


@pytest.fixture()
def metadata(tmp_path: Path) -> Path:
    data = {
        "metaObjects": [
            {"id": "st", "name": "Planta 1", "type": "IfcBuildingStorey"},
            {
                "id": "w1",
                "name": "Muro",
                "type": "IfcWall",
                "parent": "st",
                "propertySetIds": ["ps1"],
                "ObjectType": "Basic Wall",
            },
            {"id": "d1", "name": "Puerta", "type": "IfcDoor", "parent": "st"},
        ],
        "propertySets": [
            {"id": "ps1", "name": "BaseQuantities", "properties": [{"name": "NetSideArea", "value": 8}]},
        ],
    }
    path = tmp_path / "model.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestParser:
    def test_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_measurement_defaults(self):
        args = build_parser().parse_args(["measurements", "model.json"])
        assert args.format == "csv"
        assert args.output is None


class TestMeasurementsCommand:
    def test_csv_file(self, metadata: Path, tmp_path: Path):
        out = tmp_path / "report.csv"
        code = main(["--project", str(tmp_path), "measurements", str(metadata), "--output", str(out)])

        assert code == 0
        text = out.read_text(encoding="utf-8-sig")
        assert text.startswith("Chapter;Subchapter;TypeName;Unit;Measure;Count;ApproxFlag\r\n")
        assert "01;—;Basic Wall;M2;8;1;no" in text
        assert "05;—;Puerta;UT;1;1;no" in text

    def test_markdown_to_stdout(self, metadata: Path, tmp_path: Path, capsys: pytest.CaptureFixture):
        main(["--project", str(tmp_path), "measurements", str(metadata), "--format", "markdown"])
        assert "## 01" in capsys.readouterr().out

    def test_json_file(self, metadata: Path, tmp_path: Path):
        out = tmp_path / "nested" / "report.json"
        main(["--project", str(tmp_path), "measurements", str(metadata), "--format", "json", "--output", str(out)])
        assert json.loads(out.read_text(encoding="utf-8"))["element_count"] == 2


class TestBc3Command:
    def test_budget_from_report(self, metadata: Path, tmp_path: Path, capsys: pytest.CaptureFixture):
        out_dir = tmp_path / "bc3"
        code = main([
            "--project", str(tmp_path), "bc3", str(metadata),
            "--name", "Casa Demo", "--output-dir", str(out_dir),
        ])

        assert code == 0
        path = out_dir / "Casa_Demo.bc3"
        assert path.is_file()
        assert str(path) in capsys.readouterr().out
        records = path.read_bytes().decode("latin-1").split("\r\n")
        assert records[0].startswith("~V|")
        assert "~C|PRES##||Casa Demo||" in records
        assert sum(1 for r in records if r.startswith("~M")) == 2

    def test_budget_from_configuration(self, metadata: Path, tmp_path: Path):
        budget = {
            "structure": {
                "name": "Configured",
                "chapters": [{
                    "code": "A", "name": "Cerramientos",
                    "subchapters": [{
                        "code": "1", "name": "Muros",
                        "subsubchapters": [{"code": "1", "name": "Fábrica"}],
                    }],
                }],
            },
            "items": [{
                "chapter_id": "A", "subchapter_id": "1", "subsubchapter_id": "1",
                "ifc_category": "IfcWall", "type_name": "Basic Wall", "preferred_unit": "M2",
                "description": "Muro de fábrica",
            }],
        }
        budget_path = tmp_path / "budget.json"
        budget_path.write_text(json.dumps(budget), encoding="utf-8")
        (tmp_path / ".bimbudget").mkdir()
        (tmp_path / ".bimbudget" / "config.json").write_text(json.dumps({"currency": "USD"}), encoding="utf-8")

        main([
            "--project", str(tmp_path), "bc3", str(metadata),
            "--budget", str(budget_path), "--output-dir", str(tmp_path / "bc3"),
        ])

        records = (tmp_path / "bc3" / "Configured.bc3").read_bytes().decode("latin-1").split("\r\n")
        assert "\\USD\\" in records[1]
        assert "~T|C010101001|Muro de fábrica|" in records
        measurement = next(r for r in records if r.startswith("~M"))
        assert measurement.split("|")[3] == "8"
        assert "Planta 1#w1" in measurement
