"""Tests for tools.validate_nomenclature."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from tools import validate_nomenclature


def _write(tmp_path: Path, data: dict[str, Any], name: str = "nomenclature.json") -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return path


def _family(data: dict[str, Any], key: str) -> dict[str, Any]:
    return next(family for family in data["families"] if family["key"] == key)


def test_validator_accepts_bundled_files(capsys: pytest.CaptureFixture[str]) -> None:
    assert validate_nomenclature.main([]) == 0
    assert "14 families OK" in capsys.readouterr().out


def test_validator_accepts_valid(tmp_path: Path, nomenclature_data: dict[str, Any]) -> None:
    nomenclature_data["families"] = nomenclature_data["families"][:1]
    path = _write(tmp_path, nomenclature_data)

    registry = validate_nomenclature.validate(path)
    assert [family.key for family in registry] == ["DSC"]


def test_validator_rejects_width_mismatch(
    tmp_path: Path, nomenclature_data: dict[str, Any]
) -> None:
    _family(nomenclature_data, "GOODMAN_GS")["length"] = 11
    path = _write(tmp_path, nomenclature_data)

    with pytest.raises(SystemExit):
        validate_nomenclature.main([str(path)])


def test_validator_rejects_unroundtrippable_default(
    tmp_path: Path, nomenclature_data: dict[str, Any]
) -> None:
    """Two codes for one value without implied attributes cannot both decode back."""

    goodman = _family(nomenclature_data, "GOODMAN_GS")
    product = goodman["segments"][0]
    product["default"] = "GSX"
    product["codes"][0]["value"] = "StraightAC"
    path = _write(tmp_path, nomenclature_data)

    with pytest.raises(ValueError, match="round-trip"):
        validate_nomenclature.validate(path)


def test_validator_rejects_bad_scoring(
    tmp_path: Path, scoring_data: dict[str, Any]
) -> None:
    scoring_data["weights"]["voltage"] = 0
    path = _write(tmp_path, scoring_data, "scoring.json")

    with pytest.raises(SystemExit):
        validate_nomenclature.main(["--scoring", str(path)])


def test_validator_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        validate_nomenclature.main([str(tmp_path / "missing.json")])
