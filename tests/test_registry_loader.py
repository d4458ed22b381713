import json
import logging
import os
from pathlib import Path

import pytest

from hvac_crossref.decoder import decode
from hvac_crossref.exceptions import RegistryError, UnknownFamilyError
from hvac_crossref.models import Efficiency, SystemType
from hvac_crossref.registry import loader
from hvac_crossref.registry.loader import (
    _NOMENCLATURE_PATH,
    clear_cache,
    file_sha256,
    get_family,
    get_registry,
    get_scoring_config,
    load_registry,
    load_scoring_config,
)
from hvac_crossref.scoring import score


def test_bundled_registry_loads() -> None:
    """The bundled file provides the Daikin and third-party families."""

    registry = get_registry()
    assert {family.key for family in registry} == {
        "DSC",
        "DHC",
        "DSG",
        "DHG",
        "DSH",
        "DHH",
        "TRANE_TWR",
        "TRANE_4T",
        "CARRIER_38",
        "CARRIER_50",
        "YORK",
        "LENNOX",
        "RHEEM",
        "GOODMAN_GS",
    }
    assert len(registry) == 14
    assert registry.version == "2025.2"


def test_family_widths_sum_to_length() -> None:
    for family in get_registry():
        assert sum(segment.width for segment in family.segments) == family.length
        assert family.segments[0].start == 1
        for previous, current in zip(family.segments, family.segments[1:]):
            assert current.start == previous.end + 1


def test_segment_defaults_are_in_code_tables() -> None:
    for family in get_registry():
        for segment in family.segments:
            assert segment.default in segment.codes
            assert all(len(code) == segment.width for code in segment.codes)


def test_family_attributes_are_coerced() -> None:
    family = get_family("DSH")
    assert family.attributes["system_type"] is SystemType.HEAT_PUMP
    assert family.attributes["efficiency"] is Efficiency.STANDARD


def test_numeric_codes_are_scaled() -> None:
    capacity = get_family("DSC").segment("capacity")
    assert capacity.codes["060"].value == 60000
    assert isinstance(capacity.codes["060"].value, int)
    heat = get_family("DSC").segment("heat")
    assert heat.codes["XXX"].value == 0
    assert heat.codes["S15"].value == 15


@pytest.mark.parametrize("key", ["DSC", "dsc", " Dsc "])
def test_get_family_case_insensitive(key: str) -> None:
    assert get_family(key).key == "DSC"


def test_get_family_unknown() -> None:
    with pytest.raises(UnknownFamilyError) as err:
        get_family("XYZ")
    assert err.value.family == "XYZ"
    assert "Unsupported model family" in str(err.value)
    # also usable where a missing mapping key is expected
    assert isinstance(err.value, KeyError)


@pytest.mark.parametrize(
    ("model_number", "expected"),
    [
        ("DSC0603DXXXAAXXXXXXXXXXX", "DSC"),
        ("TWR036A1000AA", "TRANE_TWR"),
        ("TTR036A1000AA", "TRANE_TWR"),
        ("4TWR4048A1000AA", "TRANE_4T"),
        ("GSZ140361A", "GOODMAN_GS"),
        ("38HDR0483", "CARRIER_38"),
        ("50TCQA04A2A5", "CARRIER_50"),
        ("YMGF48S46S2", "YORK"),
        ("XC16024230", "LENNOX"),
        ("RA1324AJ1NA", "RHEEM"),
    ],
)
def test_infer_family(model_number: str, expected: str) -> None:
    assert get_registry().infer_family(model_number).key == expected


def test_infer_family_unknown() -> None:
    with pytest.raises(UnknownFamilyError):
        get_registry().infer_family("XYZ123")


def test_registry_is_cached() -> None:
    assert load_registry() is load_registry()


def test_cache_invalidation_on_content_change(tmp_path: Path) -> None:
    """Changing file contents should invalidate the cache."""

    tmp_json = tmp_path / "nomenclature.json"
    tmp_json.write_text(_NOMENCLATURE_PATH.read_text(), encoding="utf-8")

    clear_cache()
    first_hash = file_sha256(tmp_json)
    first = load_registry(tmp_json)
    assert first.version == "2025.2"

    data = json.loads(tmp_json.read_text())
    data["version"] = "changed"
    tmp_json.write_text(json.dumps(data), encoding="utf-8")
    stat = tmp_json.stat()
    os.utime(tmp_json, (stat.st_atime, stat.st_mtime + 5))

    second_hash = file_sha256(tmp_json)
    updated = load_registry(tmp_json)
    assert updated.version == "changed"
    assert first_hash != second_hash


def test_cache_invalidation_on_mtime_change(tmp_path: Path) -> None:
    """Touching file without content change should reload the registry."""

    tmp_json = tmp_path / "nomenclature.json"
    tmp_json.write_text(_NOMENCLATURE_PATH.read_text(), encoding="utf-8")

    first = load_registry(tmp_json)

    stat = tmp_json.stat()
    os.utime(tmp_json, (stat.st_atime, stat.st_mtime + 10))

    second = load_registry(tmp_json)
    assert first is not second
    assert second.version == first.version


def test_patched_default_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    data = json.loads(_NOMENCLATURE_PATH.read_text())
    data["families"] = [f for f in data["families"] if f["key"] == "GOODMAN_GS"]
    tmp_json = tmp_path / "nomenclature.json"
    tmp_json.write_text(json.dumps(data), encoding="utf-8")

    monkeypatch.setattr(loader, "_NOMENCLATURE_PATH", tmp_json)

    assert [family.key for family in get_registry()] == ["GOODMAN_GS"]


def test_default_registry_is_read_once(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Hot-path lookups reuse the registry without touching the data files."""

    tmp_json = tmp_path / "nomenclature.json"
    tmp_json.write_text(_NOMENCLATURE_PATH.read_text(), encoding="utf-8")
    monkeypatch.setattr(loader, "_NOMENCLATURE_PATH", tmp_json)

    first = get_registry()
    get_scoring_config()

    lookups: list[Path] = []
    original = loader._cache_key

    def counting_cache_key(path: Path) -> tuple[str, float]:
        lookups.append(path)
        return original(path)

    monkeypatch.setattr(loader, "_cache_key", counting_cache_key)
    target = decode("DSC0361DXXXAA" + "X" * 11)
    for _ in range(5):
        score(target, decode("DSH0481L030BH" + "X" * 11))
    assert lookups == []

    data = json.loads(tmp_json.read_text())
    data["version"] = "changed"
    tmp_json.write_text(json.dumps(data), encoding="utf-8")
    stat = tmp_json.stat()
    os.utime(tmp_json, (stat.st_atime, stat.st_mtime + 5))

    assert get_registry() is first
    assert get_registry().version == "2025.2"

    clear_cache()
    assert get_registry().version == "changed"


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(RegistryError, match="missing"):
        load_registry(tmp_path / "missing.json")


def test_invalid_json(tmp_path: Path) -> None:
    tmp_json = tmp_path / "nomenclature.json"
    tmp_json.write_text("{not json", encoding="utf-8")
    with pytest.raises(RegistryError, match="Failed to read"):
        load_registry(tmp_json)


def test_load_logs_family_count(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="hvac_crossref.registry.loader")
    load_registry()
    assert any(
        "Loaded 14 model families" in record.getMessage() for record in caplog.records
    )


def test_scoring_config_loads() -> None:
    config = load_scoring_config()
    assert config.max_score == 100
    assert config.seer_targets[Efficiency.HIGH] == 16
    assert frozenset({SystemType.HEAT_PUMP, SystemType.GAS_ELECTRIC}) in config.cross_match
    assert load_scoring_config() is config


@pytest.mark.parametrize(
    ("total", "rating"),
    [(100, "excellent"), (95, "excellent"), (90, "very good"), (75, "good"), (70, "acceptable"), (10, "limited")],
)
def test_rating_for(total: float, rating: str) -> None:
    assert load_scoring_config().rating_for(total) == rating
