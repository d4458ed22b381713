"""HVAC model-number codec and replacement compatibility scoring."""

from __future__ import annotations

from .catalog import generate_catalog, replacement_catalog
from .decoder import decode, decode_segments
from .encoder import Adjustment, BuildResult, build_with_fallback, encode, resolve_codes
from .exceptions import (
    IncompatibleCodeError,
    InvalidCodeError,
    MalformedInputError,
    MissingAttributeError,
    NomenclatureError,
    RegistryError,
    UnknownFamilyError,
)
from .matching import RankedCandidate, find_replacements, rank_candidates
from .models import (
    Accessories,
    DecodedSegment,
    Dimensions,
    Efficiency,
    Factor,
    SizeMatch,
    SystemType,
    TemperatureRange,
    UnitSpecification,
)
from .registry import (
    get_family,
    get_registry,
    get_scoring_config,
    load_registry,
    load_scoring_config,
)
from .scoring import CompatibilityBreakdown, FactorScore, score
from .sizing import (
    CapacityLadder,
    capacity_ladder,
    classify,
    classify_nominal,
    nearest_code,
    nominal_capacity,
    nominal_tonnage,
)

__all__ = [
    "Accessories",
    "Adjustment",
    "BuildResult",
    "CapacityLadder",
    "CompatibilityBreakdown",
    "DecodedSegment",
    "Dimensions",
    "Efficiency",
    "Factor",
    "FactorScore",
    "IncompatibleCodeError",
    "InvalidCodeError",
    "MalformedInputError",
    "MissingAttributeError",
    "NomenclatureError",
    "RankedCandidate",
    "RegistryError",
    "SizeMatch",
    "SystemType",
    "TemperatureRange",
    "UnitSpecification",
    "UnknownFamilyError",
    "build_with_fallback",
    "capacity_ladder",
    "classify",
    "classify_nominal",
    "decode",
    "decode_segments",
    "encode",
    "find_replacements",
    "generate_catalog",
    "get_family",
    "get_registry",
    "get_scoring_config",
    "load_registry",
    "load_scoring_config",
    "nearest_code",
    "nominal_capacity",
    "nominal_tonnage",
    "rank_candidates",
    "replacement_catalog",
    "resolve_codes",
    "score",
]
