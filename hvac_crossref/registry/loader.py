"""Loader for model-number nomenclature and scoring tables.

This module reads the bundled ``nomenclature.json`` and ``scoring.json`` files,
validates them with the pydantic models from :mod:`.schema` and converts them
into small immutable dataclasses used by the decoder, the encoder and the
scorer.  Parsed tables are cached by ``(sha256(content), mtime)`` so repeated
loads of an unchanged file are free while edits are picked up on the next call.
"""

from __future__ import annotations

import dataclasses
import hashlib
import importlib.resources as resources
import json
import logging
import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any

import pydantic

from ..exceptions import RegistryError, UnknownFamilyError
from ..models import Efficiency, Factor, SystemType, TemperatureRange, UnitSpecification
from ..utils import get_path, normalise_phases, normalise_voltage
from .schema import RegistryDefinition, ScoringDefinition

_LOGGER = logging.getLogger(__name__)

# Unit attributes the registry may populate; provenance fields are set by the decoder
_SPEC_FIELDS = frozenset(f.name for f in dataclasses.fields(UnitSpecification)) - {
    "model_number",
    "family",
    "manufacturer",
    "low_confidence",
    "segments",
}

# Paths to the bundled data files.  Tests patch these constants to supply
# temporary files, therefore they must be module level variables.
_NOMENCLATURE_PATH = Path(str(resources.files(__package__).joinpath("nomenclature.json")))
_SCORING_PATH = Path(str(resources.files(__package__).joinpath("scoring.json")))


def get_nomenclature_path() -> Path:
    """Return resolved path to the bundled nomenclature file."""
    return _NOMENCLATURE_PATH.resolve()


def get_scoring_path() -> Path:
    """Return resolved path to the bundled scoring file."""
    return _SCORING_PATH.resolve()


# File metadata keyed by path: ``(mtime, sha256)`` of the last seen state.
# Parsed tables are cached separately keyed by ``(sha256, mtime)``.
_cached_file_info: dict[str, tuple[float, str]] = {}
_registry_cache: dict[tuple[str, float], Registry] = {}
_scoring_cache: dict[tuple[str, float], ScoringConfig] = {}


def _compute_file_hash(path: Path, mtime: float) -> str:
    """Return SHA256 digest for ``path`` and update the cache."""

    digest = hashlib.sha256(path.read_bytes()).hexdigest()
    _cached_file_info[str(path)] = (mtime, digest)
    return digest


# ---------------------------------------------------------------------------
# Attribute coercion
# ---------------------------------------------------------------------------


def coerce_attribute(attribute: str, value: Any) -> Any:
    """Return ``value`` in the canonical form used for ``attribute``.

    Raises ``ValueError`` (usually :class:`MalformedInputError`) when the value
    cannot be interpreted.
    """
    name = attribute.rsplit(".", 1)[-1]
    if name == "system_type":
        return SystemType.parse(value)
    if name == "efficiency":
        return Efficiency.parse(value)
    if name == "voltage":
        return normalise_voltage(value)
    if name == "phases":
        return normalise_phases(value)
    return value


def same_value(left: Any, right: Any) -> bool:
    """Compare two attribute values, ignoring case and float noise."""
    if isinstance(left, bool) or isinstance(right, bool):
        return left is right
    if isinstance(left, int | float) and isinstance(right, int | float):
        return math.isclose(left, right)
    if isinstance(left, str) and isinstance(right, str):
        return left.casefold() == right.casefold()
    return bool(left == right)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class CodeEntry:
    """A code of a segment and the value it resolves to."""

    code: str
    value: Any
    description: str = ""
    implies: Mapping[str, Any] = field(default_factory=dict)

    def agrees_with(self, attributes: Mapping[str, Any]) -> bool:
        """Return ``True`` unless ``attributes`` contradict an implied value."""
        for name, expected in self.implies.items():
            provided = get_path(attributes, name)
            if provided is None:
                continue
            try:
                provided = coerce_attribute(name, provided)
            except ValueError:
                return False
            if not same_value(provided, expected):
                return False
        return True


@dataclass(slots=True, frozen=True)
class Segment:
    """Definition of a single fixed-width model-number segment."""

    name: str
    start: int
    width: int
    description: str
    attribute: str | None
    default: str
    codes: Mapping[str, CodeEntry]
    kind: str = "enum"
    scale: float = 1
    required: bool = True

    @property
    def end(self) -> int:
        """Last position (1-based, inclusive) covered by the segment."""
        return self.start + self.width - 1

    @property
    def is_fixed(self) -> bool:
        """Segment carries no choice: filler or a single allowed code."""
        return self.attribute is None or len(self.codes) == 1

    def slice(self, model_number: str) -> str:
        return model_number[self.start - 1 : self.end]

    # ------------------------------------------------------------------
    # Value helpers
    # ------------------------------------------------------------------
    def decode(self, raw: str) -> tuple[CodeEntry, bool]:
        """Return the entry for ``raw`` and whether the default was used."""
        entry = self.codes.get(raw) if len(raw) == self.width else None
        if entry is None:
            return self.codes[self.default], True
        return entry, False

    def encode(self, value: Any, attributes: Mapping[str, Any] | None = None) -> str:
        """Return the code representing ``value``.

        When several codes share ``value`` the one whose implied attributes
        agree with ``attributes`` wins, falling back to declaration order.
        """
        if self.attribute is None:
            return self.default

        if self.kind == "numeric":
            if isinstance(value, bool):
                raise ValueError(f"Invalid value {value!r} for {self.name}")
            try:
                wanted: Any = float(value)
            except (TypeError, ValueError) as err:
                raise ValueError(f"Invalid value {value!r} for {self.name}") from err
        else:
            wanted = coerce_attribute(self.attribute, value)

        matches = [entry for entry in self.codes.values() if same_value(entry.value, wanted)]
        if not matches:
            raise ValueError(f"Invalid value {value!r} for {self.name}")
        if attributes:
            agreeing = [entry for entry in matches if entry.agrees_with(attributes)]
            if not agreeing:
                raise ValueError(f"Value {value!r} for {self.name} conflicts with other attributes")
            matches = agreeing
        return matches[0].code

    def numeric_codes(self) -> list[tuple[float, str]]:
        """Return ``(value, code)`` pairs sorted by value for numeric segments."""
        pairs = [(float(entry.value), entry.code) for entry in self.codes.values()]
        return sorted(pairs, key=lambda pair: pair[0])


@dataclass(slots=True, frozen=True)
class Rating:
    """Published ratings that apply up to ``max_tonnage`` inclusive."""

    max_tonnage: float | None
    seer: float | None = None
    eer: float | None = None
    hspf: float | None = None
    sound_level: float | None = None


@dataclass(slots=True, frozen=True)
class Constraint:
    """Codes in ``forbid`` segments are not built together with ``when`` codes."""

    when: Mapping[str, frozenset[str]]
    forbid: Mapping[str, frozenset[str]]
    reason: str

    def violation(self, codes: Mapping[str, str]) -> str | None:
        """Return the name of the offending segment, if any."""
        if not all(codes.get(name) in allowed for name, allowed in self.when.items()):
            return None
        for name, forbidden in self.forbid.items():
            if codes.get(name) in forbidden:
                return name
        return None


@dataclass(slots=True, frozen=True)
class Family:
    """A product line with its own fixed model-number layout."""

    key: str
    name: str
    manufacturer: str
    prefixes: tuple[str, ...]
    length: int
    segments: tuple[Segment, ...]
    attributes: Mapping[str, Any] = field(default_factory=dict)
    ratings: tuple[Rating, ...] = ()
    constraints: tuple[Constraint, ...] = ()
    estimate_physical: bool = False
    weight_factor: float = 1.0
    replacement_catalog: bool = False

    def segment(self, name: str) -> Segment:
        for segment in self.segments:
            if segment.name == name:
                return segment
        raise KeyError(name)

    def segment_for(self, attribute: str) -> Segment | None:
        """Return the segment that encodes ``attribute``."""
        for segment in self.segments:
            if segment.attribute == attribute:
                return segment
        return None

    def rating_for(self, tonnage: float | None) -> Rating | None:
        if tonnage is None:
            return None
        for rating in self.ratings:
            if rating.max_tonnage is None or tonnage <= rating.max_tonnage:
                return rating
        return None

    def check_constraints(self, codes: Mapping[str, str]) -> tuple[str, Constraint] | None:
        """Return the first violated constraint with its offending segment."""
        for constraint in self.constraints:
            segment = constraint.violation(codes)
            if segment is not None:
                return segment, constraint
        return None


@dataclass(slots=True, frozen=True)
class PhysicalBand:
    max_tonnage: float | None
    length: float
    width: float
    height: float
    base_weight: int


@dataclass(slots=True, frozen=True)
class PhysicalEstimate:
    """Cabinet size and weight by tonnage."""

    weight_per_ton: float
    bands: tuple[PhysicalBand, ...]

    def band_for(self, tonnage: float) -> PhysicalBand:
        for band in self.bands:
            if band.max_tonnage is None or tonnage <= band.max_tonnage:
                return band
        return self.bands[-1]

    def weight(self, tonnage: float, factor: float = 1.0) -> int:
        band = self.band_for(tonnage)
        return round(tonnage * self.weight_per_ton * factor + band.base_weight)


@dataclass(slots=True, frozen=True)
class ElectricalEstimate:
    """Operating amperage and maximum fuse size by tonnage."""

    amps_per_ton: float
    amps_base: float
    fuse_per_ton: float
    fuse_base: float

    def operating_amperage(self, tonnage: float) -> int:
        return math.ceil(tonnage * self.amps_per_ton + self.amps_base)

    def max_fuse_size(self, tonnage: float) -> int:
        return math.ceil(tonnage * self.fuse_per_ton + self.fuse_base)


@dataclass(slots=True, frozen=True)
class NominalTonnage:
    tonnage: float
    capacity_btu: int


@dataclass(slots=True, frozen=True)
class Registry:
    """Immutable set of product families plus shared estimation tables."""

    version: str
    families: Mapping[str, Family]
    nominal_tonnages: tuple[NominalTonnage, ...]
    physical: PhysicalEstimate | None = None
    electrical: ElectricalEstimate | None = None
    operating_ranges: Mapping[str, TemperatureRange] = field(default_factory=dict)

    def __iter__(self) -> Iterator[Family]:
        return iter(self.families.values())

    def __len__(self) -> int:
        return len(self.families)

    def get_family(self, key: str) -> Family:
        """Return family ``key`` (case-insensitive)."""
        family = self.families.get(str(key).strip().upper())
        if family is None:
            raise UnknownFamilyError(str(key))
        return family

    def infer_family(self, model_number: str) -> Family:
        """Return the family with the longest prefix matching ``model_number``."""
        best: Family | None = None
        best_length = 0
        for family in self.families.values():
            for prefix in family.prefixes:
                if len(prefix) > best_length and model_number.startswith(prefix):
                    best, best_length = family, len(prefix)
        if best is None:
            raise UnknownFamilyError(model_number)
        return best


@dataclass(slots=True, frozen=True)
class ScoringConfig:
    """Weights and rules of the compatibility scorer."""

    weights: Mapping[Factor, float]
    system_type_cross_match: float
    phase_voltage_match: float
    cross_match: frozenset[frozenset[SystemType]]
    capacity_bands: tuple[tuple[float, float], ...]
    seer_targets: Mapping[Efficiency, float]
    seer_penalty_per_point: float
    rating_thresholds: tuple[tuple[float, str], ...]

    @property
    def max_score(self) -> float:
        return sum(self.weights.values())

    def rating_for(self, score: float) -> str:
        for minimum, rating in self.rating_thresholds:
            if score >= minimum:
                return rating
        return self.rating_thresholds[-1][1]


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------


def _freeze(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType({name: coerce_attribute(name, v) for name, v in mapping.items()})


def _build_segment(parsed: Any) -> Segment:
    codes: dict[str, CodeEntry] = {}
    for entry in parsed.codes:
        if parsed.kind == "numeric" and entry.value is None:
            value: Any = int(entry.code) * parsed.scale
            if float(value).is_integer():
                value = int(value)
        elif parsed.attribute is not None and entry.value is not None:
            value = coerce_attribute(parsed.attribute, entry.value)
        else:
            value = entry.value
        codes[entry.code] = CodeEntry(
            code=entry.code,
            value=value,
            description=entry.description,
            implies=_freeze(entry.implies),
        )
    return Segment(
        name=parsed.name,
        start=parsed.start,
        width=parsed.width,
        description=parsed.description,
        attribute=parsed.attribute,
        default=parsed.default,
        codes=MappingProxyType(codes),
        kind=parsed.kind,
        scale=parsed.scale,
        required=parsed.required,
    )


def _check_attribute_names(parsed: Any) -> None:
    names = [*parsed.attributes]
    for segment in parsed.segments:
        if segment.attribute is not None:
            names.append(segment.attribute)
        for entry in segment.codes:
            names.extend(entry.implies)
    for name in names:
        if name.split(".", 1)[0] not in _SPEC_FIELDS:
            raise ValueError(f"{parsed.key}: unknown unit attribute {name!r}")


def _build_family(parsed: Any) -> Family:
    _check_attribute_names(parsed)
    return Family(
        key=parsed.key,
        name=parsed.name,
        manufacturer=parsed.manufacturer,
        prefixes=tuple(parsed.prefixes),
        length=parsed.length,
        segments=tuple(_build_segment(s) for s in parsed.segments),
        attributes=_freeze(parsed.attributes),
        ratings=tuple(Rating(**band.model_dump()) for band in parsed.ratings),
        constraints=tuple(
            Constraint(
                when=MappingProxyType({k: frozenset(v) for k, v in c.when.items()}),
                forbid=MappingProxyType({k: frozenset(v) for k, v in c.forbid.items()}),
                reason=c.reason,
            )
            for c in parsed.constraints
        ),
        estimate_physical=parsed.estimate_physical,
        weight_factor=parsed.weight_factor,
        replacement_catalog=parsed.replacement_catalog,
    )


def build_registry(data: Mapping[str, Any]) -> Registry:
    """Validate ``data`` and return an immutable :class:`Registry`."""

    try:
        parsed = RegistryDefinition.model_validate(data)
    except pydantic.ValidationError as err:
        raise RegistryError(f"Invalid nomenclature data: {err}") from err

    ranges: dict[str, TemperatureRange] = {}
    if parsed.operating_ranges is not None:
        for mode in ("cooling", "heating"):
            rng = getattr(parsed.operating_ranges, mode)
            ranges[mode] = TemperatureRange(minimum=rng.minimum, maximum=rng.maximum)

    physical = None
    if parsed.physical is not None:
        physical = PhysicalEstimate(
            weight_per_ton=parsed.physical.weight_per_ton,
            bands=tuple(PhysicalBand(**band.model_dump()) for band in parsed.physical.bands),
        )

    electrical = None
    if parsed.electrical is not None:
        electrical = ElectricalEstimate(**parsed.electrical.model_dump())

    try:
        families = {f.key: _build_family(f) for f in parsed.families}
    except ValueError as err:
        raise RegistryError(f"Invalid attribute value in nomenclature data: {err}") from err

    return Registry(
        version=parsed.version,
        families=MappingProxyType(families),
        nominal_tonnages=tuple(
            NominalTonnage(tonnage=t.tonnage, capacity_btu=t.capacity_btu)
            for t in parsed.nominal_tonnages
        ),
        physical=physical,
        electrical=electrical,
        operating_ranges=MappingProxyType(ranges),
    )


def build_scoring_config(data: Mapping[str, Any]) -> ScoringConfig:
    """Validate ``data`` and return an immutable :class:`ScoringConfig`."""

    try:
        parsed = ScoringDefinition.model_validate(data)
    except pydantic.ValidationError as err:
        raise RegistryError(f"Invalid scoring data: {err}") from err

    return ScoringConfig(
        weights=MappingProxyType(dict(parsed.weights)),
        system_type_cross_match=parsed.partial_credit.system_type_cross_match,
        phase_voltage_match=parsed.partial_credit.phase_voltage_match,
        cross_match=frozenset(frozenset(pair) for pair in parsed.cross_match),
        capacity_bands=tuple((b.max_difference, b.points) for b in parsed.capacity_bands),
        seer_targets=MappingProxyType(dict(parsed.seer_targets)),
        seer_penalty_per_point=parsed.seer_penalty_per_point,
        rating_thresholds=tuple((t.min_score, t.rating) for t in parsed.rating_thresholds),
    )


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as err:
        raise RegistryError(f"Data file missing: {path}") from err
    except (OSError, json.JSONDecodeError) as err:
        raise RegistryError(f"Failed to read {path}: {err}") from err


# ---------------------------------------------------------------------------
# Cached loading
# ---------------------------------------------------------------------------


def file_sha256(json_path: Path | str) -> str:
    """Return the SHA256 hash of ``json_path``.

    The result is cached using the file's modification time so repeated calls
    for an unchanged file avoid re-reading from disk.
    """

    path = Path(json_path)
    try:
        mtime = path.stat().st_mtime
    except FileNotFoundError as err:
        raise RegistryError(f"Data file missing: {path}") from err
    cached = _cached_file_info.get(str(path))
    if cached and cached[0] == mtime:
        return cached[1]
    return _compute_file_hash(path, mtime)


def _cache_key(path: Path) -> tuple[str, float]:
    file_hash = file_sha256(path)
    return file_hash, _cached_file_info[str(path)][0]


def load_registry(json_path: Path | str | None = None) -> Registry:
    """Return the cached registry, reloading if the file changed.

    ``json_path`` may point at an alternate nomenclature file. When omitted,
    the bundled definitions are used.
    """

    path = Path(json_path) if json_path is not None else _NOMENCLATURE_PATH
    key = _cache_key(path)
    registry = _registry_cache.get(key)
    if registry is None:
        registry = build_registry(_read_json(path))
        _registry_cache[key] = registry
        _LOGGER.info(
            "Loaded %d model families from %s (version %s)",
            len(registry),
            path.name,
            registry.version,
        )
    return registry


def load_scoring_config(json_path: Path | str | None = None) -> ScoringConfig:
    """Return the cached scoring configuration, reloading if the file changed."""

    path = Path(json_path) if json_path is not None else _SCORING_PATH
    key = _cache_key(path)
    config = _scoring_cache.get(key)
    if config is None:
        config = build_scoring_config(_read_json(path))
        _scoring_cache[key] = config
        _LOGGER.debug("Loaded scoring weights from %s", path.name)
    return config


def clear_cache() -> None:
    """Clear cached registries and scoring tables.

    Exposed for tests and tooling that need to reload the data files.
    """
    _cached_file_info.clear()
    _registry_cache.clear()
    _scoring_cache.clear()
    get_registry.cache_clear()
    get_scoring_config.cache_clear()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_registry() -> Registry:
    """Return the process-wide registry built from the bundled file.

    The bundled file is read once. Later edits are picked up only after
    ``clear_cache()`` or through an explicit ``load_registry()`` call.
    """
    return load_registry()


@lru_cache(maxsize=1)
def get_scoring_config() -> ScoringConfig:
    """Return the process-wide scoring configuration, read once."""
    return load_scoring_config()


def get_family(key: str, registry: Registry | None = None) -> Family:
    """Return family ``key`` from ``registry`` or the bundled registry."""
    return (registry if registry is not None else get_registry()).get_family(key)
