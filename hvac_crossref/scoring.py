"""Weighted compatibility scoring of a replacement against an original unit.

Every factor of :class:`~hvac_crossref.models.Factor` has a scorer below; the
weights, partial credits, capacity bands and SEER targets come from
``registry/scoring.json`` (or a :class:`ScoringConfig` built in code). The
result keeps the full per-factor breakdown so reports can explain the total
instead of recomputing it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .const import BTU_PER_TON, DEFAULT_REQUESTED_EFFICIENCY
from .exceptions import MalformedInputError
from .models import Efficiency, Factor, SystemType, UnitSpecification
from .registry.loader import ScoringConfig, get_scoring_config

_LOGGER = logging.getLogger(__name__)

# Tolerance when comparing a tonnage difference to a band limit
_BAND_EPSILON = 1e-9


@dataclass(slots=True, frozen=True)
class FactorScore:
    """Points earned by one factor."""

    factor: Factor
    weight: float
    original: Any
    candidate: Any
    points: float

    @property
    def matched(self) -> bool:
        return self.points >= self.weight


@dataclass(slots=True, frozen=True)
class CompatibilityBreakdown:
    """Per-factor scores of a candidate together with the aggregate."""

    factors: tuple[FactorScore, ...]
    rating: str
    requested_efficiency: Efficiency

    @property
    def score(self) -> float:
        """Sum of points earned across all factors."""
        return round(sum(item.points for item in self.factors), 2)

    @property
    def max_score(self) -> float:
        return sum(item.weight for item in self.factors)

    def __getitem__(self, factor: Factor | str) -> FactorScore:
        wanted = Factor(factor)
        for item in self.factors:
            if item.factor is wanted:
                return item
        raise KeyError(factor)

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON friendly representation for reporting layers."""
        return {
            "score": self.score,
            "max_score": self.max_score,
            "rating": self.rating,
            "requested_efficiency": self.requested_efficiency.value,
            "factors": [
                {
                    "factor": item.factor.value,
                    "weight": item.weight,
                    "original": _plain(item.original),
                    "candidate": _plain(item.candidate),
                    "points": item.points,
                }
                for item in self.factors
            ],
        }


def _plain(value: Any) -> Any:
    if isinstance(value, SystemType):
        return value.value
    return value


# ---------------------------------------------------------------------------
# Factor scorers
# ---------------------------------------------------------------------------

_Scorer = Callable[
    [UnitSpecification, UnitSpecification, float, ScoringConfig, Efficiency],
    tuple[Any, Any, float],
]


def _system_type(value: Any) -> SystemType | None:
    return None if value is None else SystemType.parse(value)


def _score_system_type(
    original: UnitSpecification,
    candidate: UnitSpecification,
    weight: float,
    config: ScoringConfig,
    efficiency: Efficiency,
) -> tuple[Any, Any, float]:
    ours = _system_type(original.system_type)
    theirs = _system_type(candidate.system_type)
    if ours is None or theirs is None:
        return ours, theirs, 0.0
    if ours is theirs:
        return ours, theirs, weight
    if frozenset((ours, theirs)) in config.cross_match:
        return ours, theirs, config.system_type_cross_match
    return ours, theirs, 0.0


def _score_capacity(
    original: UnitSpecification,
    candidate: UnitSpecification,
    weight: float,
    config: ScoringConfig,
    efficiency: Efficiency,
) -> tuple[Any, Any, float]:
    ours, theirs = original.capacity_btu, candidate.capacity_btu
    if ours is None or theirs is None:
        return ours, theirs, 0.0
    difference = abs(ours - theirs) / BTU_PER_TON
    for limit, points in config.capacity_bands:
        if difference <= limit + _BAND_EPSILON:
            return ours, theirs, points
    return ours, theirs, 0.0


def _score_voltage(
    original: UnitSpecification,
    candidate: UnitSpecification,
    weight: float,
    config: ScoringConfig,
    efficiency: Efficiency,
) -> tuple[Any, Any, float]:
    ours, theirs = original.voltage, candidate.voltage
    matched = ours is not None and ours == theirs
    return ours, theirs, weight if matched else 0.0


def _score_phase(
    original: UnitSpecification,
    candidate: UnitSpecification,
    weight: float,
    config: ScoringConfig,
    efficiency: Efficiency,
) -> tuple[Any, Any, float]:
    ours, theirs = original.phases, candidate.phases
    if ours is not None and ours == theirs:
        return ours, theirs, weight
    if original.voltage is not None and original.voltage == candidate.voltage:
        return ours, theirs, config.phase_voltage_match
    return ours, theirs, 0.0


def _score_efficiency(
    original: UnitSpecification,
    candidate: UnitSpecification,
    weight: float,
    config: ScoringConfig,
    efficiency: Efficiency,
) -> tuple[Any, Any, float]:
    target = config.seer_targets[efficiency]
    seer = candidate.seer_rating
    if seer is None:
        return target, None, 0.0
    penalty = abs(seer - target) * config.seer_penalty_per_point
    return target, seer, weight - min(weight, penalty)


_SCORERS: dict[Factor, _Scorer] = {
    Factor.SYSTEM_TYPE: _score_system_type,
    Factor.CAPACITY: _score_capacity,
    Factor.VOLTAGE: _score_voltage,
    Factor.PHASE: _score_phase,
    Factor.EFFICIENCY: _score_efficiency,
}

_unscored = set(Factor) - set(_SCORERS)
if _unscored:  # pragma: no cover - guards against an incomplete factor table
    raise RuntimeError(f"No scorer for factors {sorted(f.value for f in _unscored)}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _as_specification(value: Any, name: str) -> UnitSpecification:
    if isinstance(value, UnitSpecification):
        return value
    if isinstance(value, Mapping):
        return UnitSpecification.from_attributes(value)
    raise MalformedInputError(value, f"{name} must be a unit specification")


def score(
    original: UnitSpecification | Mapping[str, Any],
    candidate: UnitSpecification | Mapping[str, Any],
    requested_efficiency: Efficiency | str = DEFAULT_REQUESTED_EFFICIENCY,
    *,
    config: ScoringConfig | None = None,
) -> CompatibilityBreakdown:
    """Score ``candidate`` as a replacement for ``original``.

    The aggregate is the sum of the per-factor points and never exceeds the
    sum of the configured weights.
    """
    config = config if config is not None else get_scoring_config()
    first = _as_specification(original, "Original")
    second = _as_specification(candidate, "Candidate")
    efficiency = Efficiency.parse(requested_efficiency)

    factors = []
    for factor in Factor:
        weight = config.weights[factor]
        ours, theirs, points = _SCORERS[factor](first, second, weight, config, efficiency)
        points = round(max(0.0, min(float(points), weight)), 2)
        factors.append(FactorScore(factor, weight, ours, theirs, points))

    total = sum(item.points for item in factors)
    _LOGGER.debug(
        "Scored %s against %s: %.2f",
        second.model_number or "candidate",
        first.model_number or "original",
        total,
    )
    return CompatibilityBreakdown(
        factors=tuple(factors),
        rating=config.rating_for(total),
        requested_efficiency=efficiency,
    )
