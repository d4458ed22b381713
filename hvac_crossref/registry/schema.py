"""Pydantic models describing the nomenclature and scoring data files.

The bundled ``nomenclature.json`` lists every product family together with the
fixed-width segments of its model numbers. The models below reject malformed
tables at load time so that decoding and encoding can rely on a few structural
guarantees:

* segments of a family start at position ``1``, are contiguous and their widths
  sum to the declared family length;
* codes inside one segment are unique and exactly ``width`` characters long;
* the default code of a segment is present in its code table;
* family keys and model-number prefixes are unique across the registry.

Segments shared by several families are declared once under
``segment_templates`` and referenced with ``{"template": ..., "only": [...]}``.
Templates are expanded before validation.
"""

from __future__ import annotations

import copy
import math
from typing import Any, Literal

import pydantic
from pydantic import ConfigDict, Field, field_validator, model_validator

from ..models import Efficiency, Factor, SystemType
from ..utils import _normalise_name

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _expand_segment(segment: Any, templates: dict[str, Any]) -> Any:
    """Return ``segment`` with any template reference resolved."""

    if not isinstance(segment, dict) or "template" not in segment:
        return segment

    name = segment["template"]
    if name not in templates:
        raise ValueError(f"unknown segment template {name!r}")

    expanded = copy.deepcopy(templates[name])
    only = segment.get("only")
    if only is not None:
        codes = [c for c in expanded.get("codes", []) if c.get("code") in only]
        missing = sorted(set(only) - {c["code"] for c in codes})
        if missing:
            raise ValueError(f"template {name!r} has no codes {missing}")
        expanded["codes"] = codes

    expanded.update({k: v for k, v in segment.items() if k not in ("template", "only")})
    return expanded


# ---------------------------------------------------------------------------
# Nomenclature
# ---------------------------------------------------------------------------


class CodeDefinition(pydantic.BaseModel):
    """A single code of a segment and the value it stands for."""

    model_config = ConfigDict(extra="forbid")

    code: str = Field(min_length=1)
    value: Any = None
    description: str = ""
    implies: dict[str, Any] = Field(default_factory=dict)


class SegmentDefinition(pydantic.BaseModel):
    """Fixed-width slice of a model number."""

    model_config = ConfigDict(extra="forbid")

    name: str
    start: int = Field(ge=1)
    width: int = Field(ge=1)
    description: str = Field(min_length=1)
    attribute: str | None = None
    kind: Literal["enum", "numeric"] = "enum"
    scale: float = Field(1, gt=0)
    default: str
    required: bool = True
    codes: list[CodeDefinition] = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return _normalise_name(value)

    @field_validator("attribute")
    @classmethod
    def _check_attribute(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return ".".join(_normalise_name(part) for part in value.split("."))

    @model_validator(mode="after")
    def _check_codes(self) -> SegmentDefinition:
        seen: set[str] = set()
        for entry in self.codes:
            if len(entry.code) != self.width:
                raise ValueError(
                    f"{self.name}: code {entry.code!r} length {len(entry.code)} != width {self.width}"
                )
            if entry.code in seen:
                raise ValueError(f"{self.name}: duplicate code {entry.code!r}")
            seen.add(entry.code)

            if self.kind == "numeric":
                if entry.value is None and not entry.code.isdigit():
                    raise ValueError(
                        f"{self.name}: numeric code {entry.code!r} needs an explicit value"
                    )
                if entry.value is not None and (
                    isinstance(entry.value, bool) or not isinstance(entry.value, int | float)
                ):
                    raise ValueError(f"{self.name}: value of {entry.code!r} must be numeric")
            elif self.attribute is not None and entry.value is None:
                raise ValueError(f"{self.name}: code {entry.code!r} has no value")

        if self.default not in seen:
            raise ValueError(f"{self.name}: default code {self.default!r} not in code table")
        return self


class ConstraintDefinition(pydantic.BaseModel):
    """Codes of ``forbid`` segments that are not built with the ``when`` codes."""

    model_config = ConfigDict(extra="forbid")

    when: dict[str, list[str]] = Field(min_length=1)
    forbid: dict[str, list[str]] = Field(min_length=1)
    reason: str = Field(min_length=1)


class RatingBand(pydantic.BaseModel):
    """Published ratings of a family up to ``max_tonnage`` inclusive."""

    model_config = ConfigDict(extra="forbid")

    max_tonnage: float | None = None
    seer: float | None = None
    eer: float | None = None
    hspf: float | None = None
    sound_level: float | None = None


class FamilyDefinition(pydantic.BaseModel):
    """Schema describing one product family."""

    model_config = ConfigDict(extra="forbid")

    key: str = Field(pattern=r"^[A-Z0-9_]+$")
    name: str = Field(min_length=1)
    manufacturer: str = Field(min_length=1)
    prefixes: list[str] = Field(min_length=1)
    length: int = Field(ge=1)
    attributes: dict[str, Any] = Field(default_factory=dict)
    ratings: list[RatingBand] = Field(default_factory=list)
    constraints: list[ConstraintDefinition] = Field(default_factory=list)
    estimate_physical: bool = False
    weight_factor: float = Field(1.0, gt=0)
    replacement_catalog: bool = False
    segments: list[SegmentDefinition] = Field(min_length=1)

    @field_validator("prefixes")
    @classmethod
    def _check_prefixes(cls, value: list[str]) -> list[str]:
        prefixes = [prefix.upper() for prefix in value]
        for prefix in prefixes:
            if not prefix.isalnum():
                raise ValueError(f"invalid prefix {prefix!r}")
        return prefixes

    @model_validator(mode="after")
    def _check_layout(self) -> FamilyDefinition:
        position = 1
        names: set[str] = set()
        for segment in self.segments:
            if segment.start != position:
                raise ValueError(
                    f"{self.key}: segment {segment.name} starts at {segment.start}, "
                    f"expected {position}"
                )
            if segment.name in names:
                raise ValueError(f"{self.key}: duplicate segment name {segment.name}")
            names.add(segment.name)
            position += segment.width

        total = position - 1
        if total != self.length:
            raise ValueError(f"{self.key}: segment widths sum to {total} != length {self.length}")

        for prefix in self.prefixes:
            if len(prefix) > self.length:
                raise ValueError(f"{self.key}: prefix {prefix!r} longer than model number")

        tables = {s.name: {c.code for c in s.codes} for s in self.segments}
        for constraint in self.constraints:
            for clause in (constraint.when, constraint.forbid):
                for segment_name, codes in clause.items():
                    if segment_name not in tables:
                        raise ValueError(
                            f"{self.key}: constraint references unknown segment {segment_name}"
                        )
                    unknown = sorted(set(codes) - tables[segment_name])
                    if unknown:
                        raise ValueError(
                            f"{self.key}: constraint references unknown codes "
                            f"{unknown} in {segment_name}"
                        )

        limits = [band.max_tonnage for band in self.ratings]
        bounded = [limit for limit in limits if limit is not None]
        if bounded != sorted(bounded) or None in limits[: len(bounded)]:
            raise ValueError(f"{self.key}: rating bands must ascend by max_tonnage")
        return self


class TonnageDefinition(pydantic.BaseModel):
    tonnage: float = Field(gt=0)
    capacity_btu: int = Field(gt=0)


class PhysicalBand(pydantic.BaseModel):
    """Cabinet size and base weight up to ``max_tonnage`` inclusive."""

    max_tonnage: float | None = None
    length: float = Field(gt=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    base_weight: int = Field(ge=0)


class PhysicalDefinition(pydantic.BaseModel):
    """Cabinet bands plus the per-ton weight used for estimates."""

    weight_per_ton: float = Field(gt=0)
    bands: list[PhysicalBand] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_bands(self) -> PhysicalDefinition:
        limits = [band.max_tonnage for band in self.bands]
        bounded = [limit for limit in limits if limit is not None]
        if bounded != sorted(bounded) or None in limits[: len(bounded)]:
            raise ValueError("physical bands must ascend by max_tonnage")
        return self


class ElectricalDefinition(pydantic.BaseModel):
    """Linear estimates of operating amperage and fuse size from tonnage."""

    amps_per_ton: float = Field(gt=0)
    amps_base: float = Field(ge=0)
    fuse_per_ton: float = Field(gt=0)
    fuse_base: float = Field(ge=0)


class RangeDefinition(pydantic.BaseModel):
    minimum: float
    maximum: float

    @model_validator(mode="after")
    def _check_order(self) -> RangeDefinition:
        if self.minimum > self.maximum:
            raise ValueError("range minimum exceeds maximum")
        return self


class OperatingRanges(pydantic.BaseModel):
    cooling: RangeDefinition
    heating: RangeDefinition


class RegistryDefinition(pydantic.BaseModel):
    """Top level layout of ``nomenclature.json``."""

    version: str = Field(min_length=1)
    segment_templates: dict[str, dict[str, Any]] = Field(default_factory=dict)
    nominal_tonnages: list[TonnageDefinition] = Field(min_length=1)
    physical: PhysicalDefinition | None = None
    electrical: ElectricalDefinition | None = None
    operating_ranges: OperatingRanges | None = None
    families: list[FamilyDefinition] = Field(min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _resolve_templates(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        templates = data.get("segment_templates") or {}
        families = []
        for family in data.get("families") or []:
            if isinstance(family, dict) and isinstance(family.get("segments"), list):
                family = {
                    **family,
                    "segments": [_expand_segment(s, templates) for s in family["segments"]],
                }
            families.append(family)
        return {**data, "families": families}

    @model_validator(mode="after")
    def _check_unique(self) -> RegistryDefinition:
        keys: set[str] = set()
        prefixes: dict[str, str] = {}
        for family in self.families:
            if family.key in keys:
                raise ValueError(f"duplicate family key {family.key}")
            keys.add(family.key)
            for prefix in family.prefixes:
                if prefix in prefixes:
                    raise ValueError(
                        f"prefix {prefix!r} used by both {prefixes[prefix]} and {family.key}"
                    )
                prefixes[prefix] = family.key

        steps = [t.capacity_btu for t in self.nominal_tonnages]
        if steps != sorted(set(steps)):
            raise ValueError("nominal_tonnages must strictly ascend")
        return self


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


class PartialCredit(pydantic.BaseModel):
    system_type_cross_match: float = Field(ge=0)
    phase_voltage_match: float = Field(ge=0)


class CapacityBand(pydantic.BaseModel):
    """Points awarded when the tonnage difference is at most ``max_difference``."""

    max_difference: float = Field(ge=0)
    points: float = Field(ge=0)


class RatingThreshold(pydantic.BaseModel):
    min_score: float = Field(ge=0, le=100)
    rating: str = Field(min_length=1)


class ScoringDefinition(pydantic.BaseModel):
    """Top level layout of ``scoring.json``."""

    model_config = ConfigDict(extra="forbid")

    weights: dict[Factor, float]
    partial_credit: PartialCredit
    cross_match: list[tuple[SystemType, SystemType]] = Field(default_factory=list)
    capacity_bands: list[CapacityBand] = Field(min_length=1)
    seer_targets: dict[Efficiency, float]
    seer_penalty_per_point: float = Field(ge=0)
    rating_thresholds: list[RatingThreshold] = Field(min_length=1)

    @field_validator("cross_match", mode="before")
    @classmethod
    def _parse_cross_match(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [[SystemType.parse(item) for item in pair] for pair in value]

    @model_validator(mode="after")
    def _check_weights(self) -> ScoringDefinition:
        missing = sorted(f.value for f in Factor if f not in self.weights)
        if missing:
            raise ValueError(f"missing weights for {missing}")
        if any(weight < 0 for weight in self.weights.values()):
            raise ValueError("weights must not be negative")
        total = sum(self.weights.values())
        if not math.isclose(total, 100):
            raise ValueError(f"weights sum to {total:g}, expected 100")

        if self.partial_credit.system_type_cross_match > self.weights[Factor.SYSTEM_TYPE]:
            raise ValueError("system type partial credit exceeds its weight")
        if self.partial_credit.phase_voltage_match > self.weights[Factor.PHASE]:
            raise ValueError("phase partial credit exceeds its weight")

        differences = [band.max_difference for band in self.capacity_bands]
        if differences != sorted(set(differences)):
            raise ValueError("capacity_bands must strictly ascend by max_difference")
        if any(band.points > self.weights[Factor.CAPACITY] for band in self.capacity_bands):
            raise ValueError("capacity band points exceed the capacity weight")

        missing_targets = sorted(e.value for e in Efficiency if e not in self.seer_targets)
        if missing_targets:
            raise ValueError(f"missing SEER targets for {missing_targets}")

        minimums = [t.min_score for t in self.rating_thresholds]
        if minimums != sorted(set(minimums), reverse=True):
            raise ValueError("rating_thresholds must strictly descend by min_score")
        return self
