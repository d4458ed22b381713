"""Model-number nomenclature registry."""

from __future__ import annotations

from .loader import (
    CodeEntry,
    Constraint,
    Family,
    Registry,
    ScoringConfig,
    Segment,
    build_registry,
    build_scoring_config,
    clear_cache,
    get_family,
    get_registry,
    get_scoring_config,
    load_registry,
    load_scoring_config,
)

__all__ = [
    "CodeEntry",
    "Constraint",
    "Family",
    "Registry",
    "ScoringConfig",
    "Segment",
    "build_registry",
    "build_scoring_config",
    "clear_cache",
    "get_family",
    "get_registry",
    "get_scoring_config",
    "load_registry",
    "load_scoring_config",
]
