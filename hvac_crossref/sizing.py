"""Capacity comparison helpers.

``classify`` compares two capacities in BTU/hr exactly (within ``tolerance``).
Callers comparing at tonnage granularity should use ``classify_nominal`` which
first snaps both values to the registry's nominal tonnage steps; the steps are
not uniform (7.5, 8.5, 10, 12.5 ...) so plain rounding would be wrong.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any

from .const import BTU_PER_TON, CAPACITY_ATTRIBUTE, DEFAULT_SIZE_TOLERANCE
from .exceptions import InvalidCodeError, MalformedInputError
from .models import SizeMatch
from .registry.loader import Family, NominalTonnage, Registry, Segment, get_registry


def _as_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise MalformedInputError(value, f"{name} must be numeric")
    number = float(value)
    if math.isnan(number):
        raise MalformedInputError(value, f"{name} must be numeric")
    return number


def classify(
    reference_btu: float,
    candidate_btu: float,
    tolerance: float = DEFAULT_SIZE_TOLERANCE,
) -> SizeMatch:
    """Return how ``candidate_btu`` relates to ``reference_btu``."""
    reference = _as_number(reference_btu, "Reference capacity")
    candidate = _as_number(candidate_btu, "Candidate capacity")
    slack = _as_number(tolerance, "Tolerance")
    if slack < 0:
        raise MalformedInputError(tolerance, "Tolerance must not be negative")

    if abs(candidate - reference) <= slack:
        return SizeMatch.DIRECT
    if candidate < reference:
        return SizeMatch.SMALLER
    return SizeMatch.LARGER


def _nearest_step(capacity_btu: float, registry: Registry | None) -> NominalTonnage:
    registry = registry if registry is not None else get_registry()
    capacity = _as_number(capacity_btu, "Capacity")
    best = registry.nominal_tonnages[0]
    for step in registry.nominal_tonnages[1:]:
        # strictly closer only, so ties stay on the smaller step
        if abs(step.capacity_btu - capacity) < abs(best.capacity_btu - capacity):
            best = step
    return best


def nominal_capacity(capacity_btu: float, *, registry: Registry | None = None) -> int:
    """Return the nominal BTU/hr step nearest to ``capacity_btu``."""
    return _nearest_step(capacity_btu, registry).capacity_btu


def nominal_tonnage(capacity_btu: float, *, registry: Registry | None = None) -> float:
    """Return the nominal tonnage nearest to ``capacity_btu``."""
    return _nearest_step(capacity_btu, registry).tonnage


def classify_nominal(
    reference_btu: float,
    candidate_btu: float,
    tolerance: float = DEFAULT_SIZE_TOLERANCE,
    *,
    registry: Registry | None = None,
) -> SizeMatch:
    """Classify after snapping both capacities to nominal tonnage steps."""
    return classify(
        nominal_capacity(reference_btu, registry=registry),
        nominal_capacity(candidate_btu, registry=registry),
        tolerance,
    )


def tonnage_difference(first_btu: float, second_btu: float) -> float:
    """Absolute difference in tons between two capacities."""
    first = _as_number(first_btu, "Capacity")
    second = _as_number(second_btu, "Capacity")
    return abs(first - second) / BTU_PER_TON


# ---------------------------------------------------------------------------
# Code tables
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class CapacityLadder:
    """Capacity codes of a family around a requested capacity."""

    smaller: str | None
    direct: str | None
    larger: str | None

    def get(self, match: SizeMatch) -> str | None:
        if match is SizeMatch.SMALLER:
            return self.smaller
        if match is SizeMatch.LARGER:
            return self.larger
        return self.direct


def capacity_ladder(family: Family, capacity_btu: float) -> CapacityLadder:
    """Return the next smaller, exact and next larger capacity codes."""
    segment = family.segment_for(CAPACITY_ATTRIBUTE)
    if segment is None or segment.kind != "numeric":
        raise InvalidCodeError(family.key, CAPACITY_ATTRIBUTE, capacity_btu)
    capacity = _as_number(capacity_btu, "Capacity")

    smaller = direct = larger = None
    for value, code in segment.numeric_codes():
        if math.isclose(value, capacity):
            direct = code
        elif value < capacity:
            smaller = code
        elif larger is None:
            larger = code
    return CapacityLadder(smaller=smaller, direct=direct, larger=larger)


def nearest_code(segment: Segment, value: Any) -> str:
    """Return the code of numeric ``segment`` closest to ``value``.

    Ties resolve to the smaller value.
    """
    if segment.kind != "numeric":
        raise MalformedInputError(segment.name, "Segment is not numeric")
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError as err:
            raise MalformedInputError(value, f"{segment.name} must be numeric") from err
    target = _as_number(value, segment.name)
    pairs = segment.numeric_codes()
    return min(pairs, key=lambda pair: (abs(pair[0] - target), pair[0]))[1]
