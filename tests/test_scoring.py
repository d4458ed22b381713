"""Tests for compatibility scoring."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from hvac_crossref.catalog import generate_catalog
from hvac_crossref.decoder import decode
from hvac_crossref.exceptions import MalformedInputError
from hvac_crossref.models import Efficiency, Factor, SystemType, UnitSpecification
from hvac_crossref.registry.loader import build_scoring_config
from hvac_crossref.scoring import score

ORIGINAL = {
    "system_type": "Heat Pump",
    "capacity_btu": 36000,
    "voltage": "208/230V",
    "phases": 1,
}


def _candidate(**overrides: Any) -> dict[str, Any]:
    return {**ORIGINAL, "seer_rating": 16, **overrides}


def test_identical_unit_scores_full_marks() -> None:
    breakdown = score(ORIGINAL, _candidate(), "high")

    assert breakdown.score == 100
    assert breakdown.max_score == 100
    assert breakdown.rating == "excellent"
    assert all(item.matched for item in breakdown.factors)


def test_cross_system_type_partial_credit() -> None:
    breakdown = score(ORIGINAL, _candidate(system_type="GasElectric"), "high")

    assert breakdown[Factor.SYSTEM_TYPE].points == 15
    assert breakdown.score == 90
    assert breakdown.rating == "very good"


def test_unrelated_system_type_scores_nothing() -> None:
    breakdown = score(ORIGINAL, _candidate(system_type="StraightAC"), "high")

    assert breakdown[Factor.SYSTEM_TYPE].points == 0


@pytest.mark.parametrize(
    ("capacity", "points"),
    [(36000, 30), (42000, 25), (30000, 25), (48000, 20), (54000, 10), (60000, 0)],
)
def test_capacity_bands(capacity: int, points: float) -> None:
    breakdown = score(ORIGINAL, _candidate(capacity_btu=capacity))
    assert breakdown[Factor.CAPACITY].points == points


def test_half_ton_difference() -> None:
    original = {**ORIGINAL, "capacity_btu": 48000}
    breakdown = score(original, _candidate(capacity_btu=54000))
    assert breakdown["capacity"].points == 25


def test_voltage_mismatch() -> None:
    breakdown = score(ORIGINAL, _candidate(voltage="460", phases="3"), "high")

    assert breakdown[Factor.VOLTAGE].points == 0
    assert breakdown[Factor.PHASE].points == 0
    assert breakdown.score == 70


def test_phase_partial_credit_on_matching_voltage() -> None:
    breakdown = score(ORIGINAL, _candidate(phases="3"))
    assert breakdown[Factor.PHASE].points == 5


@pytest.mark.parametrize(
    ("seer", "efficiency", "points"),
    [(14, "standard", 15), (16, "standard", 11), (16.7, "standard", 9.6), (13, "high", 9), (25, "standard", 0)],
)
def test_efficiency_penalty(seer: float, efficiency: str, points: float) -> None:
    breakdown = score(ORIGINAL, _candidate(seer_rating=seer), efficiency)

    assert breakdown[Factor.EFFICIENCY].points == points
    assert breakdown[Factor.EFFICIENCY].original == (16 if efficiency == "high" else 14)


def test_missing_seer_scores_nothing() -> None:
    breakdown = score(ORIGINAL, ORIGINAL)

    assert breakdown[Factor.EFFICIENCY].points == 0
    assert breakdown[Factor.EFFICIENCY].candidate is None
    assert breakdown.score == 85


def test_missing_original_attributes() -> None:
    breakdown = score({}, _candidate())

    assert breakdown[Factor.SYSTEM_TYPE].points == 0
    assert breakdown[Factor.CAPACITY].points == 0
    assert breakdown[Factor.VOLTAGE].points == 0
    assert breakdown[Factor.PHASE].points == 0


def test_accepts_specifications() -> None:
    original = decode("DSH0363DXXXAC" + "X" * 11)
    candidate = decode("DHH0363DXXXCC" + "X" * 11)

    breakdown = score(original, candidate, Efficiency.HIGH)

    assert breakdown.requested_efficiency is Efficiency.HIGH
    assert breakdown[Factor.SYSTEM_TYPE].original is SystemType.HEAT_PUMP
    assert breakdown[Factor.EFFICIENCY].candidate == 16.4
    assert breakdown.score == pytest.approx(99.2)


def test_scores_stay_within_bounds() -> None:
    original = UnitSpecification.from_attributes(ORIGINAL)
    for candidate in generate_catalog():
        for efficiency in Efficiency:
            total = score(original, candidate, efficiency).score
            assert 0 <= total <= 100


def test_as_dict() -> None:
    report = score(ORIGINAL, _candidate(), "high").as_dict()

    assert report["score"] == 100
    assert report["requested_efficiency"] == "high"
    assert [f["factor"] for f in report["factors"]] == [f.value for f in Factor]
    assert report["factors"][0]["original"] == "HeatPump"


def test_custom_weights(scoring_data: dict[str, Any]) -> None:
    scoring_data["weights"] = {
        "system_type": 40,
        "capacity": 30,
        "voltage": 15,
        "phase": 10,
        "efficiency": 5,
    }
    config = build_scoring_config(scoring_data)

    breakdown = score(ORIGINAL, _candidate(seer_rating=15), config=config)

    assert breakdown[Factor.SYSTEM_TYPE].points == 40
    assert breakdown[Factor.EFFICIENCY].points == 3
    assert breakdown.score == 98


def test_rejects_invalid_input() -> None:
    with pytest.raises(MalformedInputError):
        score("DSC", ORIGINAL)  # type: ignore[arg-type]
    with pytest.raises(MalformedInputError):
        score(ORIGINAL, {"colour": "red"})
    with pytest.raises(MalformedInputError):
        score(ORIGINAL, ORIGINAL, "premium")


def test_score_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="hvac_crossref.scoring")
    score(ORIGINAL, _candidate())
    assert any(record.getMessage().startswith("Scored") for record in caplog.records)
