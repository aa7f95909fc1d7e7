"""
Tests for the reporting CLI.
"""

import json

import pytest

from core.errors import INSUFFICIENT_COMPS, MALFORMED_INPUT, VALIDATION_ERROR
from reporting.cli import main

from conftest import SUBJECT_VALUE


SUBJECT = {
    "address": "100 Main St, Springfield",
    "beds": 3,
    "baths": 2,
    "gla": 2000,
    "lotSize": 0.25,
    "yearBuilt": 2000,
}


@pytest.fixture
def csv_path(tmp_path, comps_csv):
    path = tmp_path / "comps.csv"
    path.write_text(comps_csv, encoding="utf-8")
    return path


@pytest.fixture
def subject_path(tmp_path):
    path = tmp_path / "subject.json"
    path.write_text(json.dumps(SUBJECT), encoding="utf-8")
    return path


def read_json(capsys):
    return json.loads(capsys.readouterr().out)


class TestParseCommand:
    """Tests for `parse`."""

    def test_parses_export(self, csv_path, capsys):
        assert main(["parse", str(csv_path)]) == 0

        output = read_json(capsys)
        assert output["success"] is True
        assert len(output["comps"]) == 8
        assert output["comps"][0]["salePrice"] == 445000

    def test_missing_file(self, tmp_path, capsys):
        assert main(["parse", str(tmp_path / "missing.csv")]) == 1

        assert "File not found" in capsys.readouterr().err

    def test_no_valid_rows(self, tmp_path, capsys):
        path = tmp_path / "bad.csv"
        path.write_text("Address,Sale Price\n1 Oak St,abc\n", encoding="utf-8")

        assert main(["parse", str(path)]) == 1

        output = read_json(capsys)
        assert output["success"] is False
        assert output["errors"]


class TestValueCommand:
    """Tests for `value`."""

    def test_values_subject(self, csv_path, subject_path, capsys):
        assert main(["value", str(csv_path), str(subject_path)]) == 0

        captured = capsys.readouterr()
        output = json.loads(captured.out)
        assert output["success"] is True
        report = output["report"]
        assert report["valuation"]["estimatedValue"] == pytest.approx(SUBJECT_VALUE, rel=1e-6)
        assert report["config"]["modelType"] == "linear"
        assert "100 Main St, Springfield: $491,000" in captured.err

    def test_ridge_without_adjustments(self, csv_path, subject_path, capsys):
        code = main([
            "value", str(csv_path), str(subject_path),
            "--model", "ridge", "--no-time", "--no-distance", "--regularization", "0.5",
        ])

        assert code == 0
        config = read_json(capsys)["report"]["config"]
        assert config["modelType"] == "ridge"
        assert config["includeTimeAdjustment"] is False
        assert config["includeDistanceAdjustment"] is False
        assert config["regularization"] == 0.5

    def test_min_comps_not_met(self, csv_path, subject_path, capsys):
        code = main(["value", str(csv_path), str(subject_path), "--min-comps", "10", "--max-comps", "12"])

        assert code == 1
        output = read_json(capsys)
        assert output["success"] is False
        assert output["error"]["code"] == INSUFFICIENT_COMPS

    def test_malformed_csv(self, tmp_path, subject_path, capsys):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")

        assert main(["value", str(path), str(subject_path)]) == 1

        output = read_json(capsys)
        assert output["error"]["code"] == MALFORMED_INPUT

    def test_invalid_subject(self, csv_path, tmp_path, capsys):
        path = tmp_path / "subject.json"
        path.write_text(json.dumps({**SUBJECT, "beds": -1}), encoding="utf-8")

        assert main(["value", str(csv_path), str(path)]) == 1

        output = read_json(capsys)
        assert output["error"]["code"] == VALIDATION_ERROR
        assert output["error"]["details"][0]["field"] == "beds"

    def test_invalid_json_subject(self, csv_path, tmp_path, capsys):
        path = tmp_path / "subject.json"
        path.write_text("{not json", encoding="utf-8")

        assert main(["value", str(csv_path), str(path)]) == 1
        assert "Invalid JSON" in capsys.readouterr().err

    def test_inconsistent_comp_bounds(self, csv_path, subject_path, capsys):
        code = main(["value", str(csv_path), str(subject_path), "--min-comps", "5", "--max-comps", "4"])

        assert code == 1
        assert "Invalid options" in capsys.readouterr().err
