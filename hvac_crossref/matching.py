"""Rank catalog units as replacements for an original unit."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .catalog import replacement_catalog
from .const import DEFAULT_REQUESTED_EFFICIENCY, DEFAULT_SIZE_TOLERANCE, SIZE_MATCH_ORDER
from .decoder import decode
from .exceptions import MalformedInputError
from .models import Efficiency, SizeMatch, SystemType, UnitSpecification
from .registry.loader import Registry, ScoringConfig
from .scoring import CompatibilityBreakdown, score
from .sizing import classify, classify_nominal

_LOGGER = logging.getLogger(__name__)

_SIZE_RANK = {SizeMatch(name): rank for rank, name in enumerate(SIZE_MATCH_ORDER)}


@dataclass(slots=True, frozen=True)
class RankedCandidate:
    """A catalog unit annotated with its size match and compatibility."""

    specification: UnitSpecification
    size_match: SizeMatch
    breakdown: CompatibilityBreakdown

    @property
    def score(self) -> float:
        return self.breakdown.score

    @property
    def model_number(self) -> str | None:
        return self.specification.model_number


def rank_candidates(
    original: UnitSpecification,
    candidates: Iterable[UnitSpecification],
    requested_efficiency: Efficiency | str = DEFAULT_REQUESTED_EFFICIENCY,
    *,
    tolerance: float = DEFAULT_SIZE_TOLERANCE,
    nominal: bool = True,
    config: ScoringConfig | None = None,
    registry: Registry | None = None,
) -> list[RankedCandidate]:
    """Classify and score every candidate, best first.

    Direct size matches come first, then smaller and larger units; within a
    size group higher scores win and ties go to the closer capacity.
    """
    reference = original.capacity_btu
    if reference is None:
        raise MalformedInputError(original.model_number, "Original unit has no capacity")

    ranked: list[RankedCandidate] = []
    for candidate in candidates:
        if candidate.capacity_btu is None:
            _LOGGER.debug("Skipping %s without capacity", candidate.model_number)
            continue
        if nominal:
            size = classify_nominal(reference, candidate.capacity_btu, tolerance, registry=registry)
        else:
            size = classify(reference, candidate.capacity_btu, tolerance)
        breakdown = score(original, candidate, requested_efficiency, config=config)
        ranked.append(RankedCandidate(candidate, size, breakdown))

    ranked.sort(
        key=lambda item: (
            _SIZE_RANK[item.size_match],
            -item.score,
            abs((item.specification.capacity_btu or 0) - reference),
            item.model_number or "",
        )
    )
    return ranked


def find_replacements(
    original: str | UnitSpecification,
    *,
    requested_efficiency: Efficiency | str = DEFAULT_REQUESTED_EFFICIENCY,
    system_type: SystemType | str | None = None,
    size_matches: Iterable[SizeMatch | str] | None = None,
    limit: int | None = None,
    catalog: Iterable[UnitSpecification] | None = None,
    config: ScoringConfig | None = None,
    registry: Registry | None = None,
) -> list[RankedCandidate]:
    """Decode ``original`` if needed and rank the replacement catalog against it."""
    spec = decode(original, registry=registry) if isinstance(original, str) else original
    pool = list(catalog) if catalog is not None else list(replacement_catalog(registry))

    if system_type is not None:
        wanted = SystemType.parse(system_type)
        pool = [unit for unit in pool if unit.system_type is wanted]

    ranked = rank_candidates(spec, pool, requested_efficiency, config=config, registry=registry)

    if size_matches is not None:
        allowed = {SizeMatch(match) for match in size_matches}
        ranked = [item for item in ranked if item.size_match in allowed]
    if limit is not None:
        ranked = ranked[:limit]

    _LOGGER.info(
        "Found %d replacement candidates for %s", len(ranked), spec.model_number or "specification"
    )
    return ranked
