"""Value types shared by the codec, the size classifier and the scorer."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .const import BTU_PER_TON
from .exceptions import MalformedInputError
from .utils import normalise_phases, normalise_voltage

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


def _token(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())


class SystemType(str, Enum):
    """Kind of packaged unit."""

    HEAT_PUMP = "HeatPump"
    GAS_ELECTRIC = "GasElectric"
    STRAIGHT_AC = "StraightAC"

    @property
    def label(self) -> str:
        return _SYSTEM_TYPE_LABELS[self]

    @classmethod
    def parse(cls, value: Any) -> SystemType:
        """Return the member matching ``value``.

        Accepts members, canonical values and the common spellings used on
        submittals (``"Heat Pump"``, ``"Gas/Electric"``, ``"Straight A/C"``).
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            member = _SYSTEM_TYPE_ALIASES.get(_token(value))
            if member is not None:
                return member
        raise MalformedInputError(value, "Unknown system type")


_SYSTEM_TYPE_LABELS = {
    SystemType.HEAT_PUMP: "Heat Pump",
    SystemType.GAS_ELECTRIC: "Gas/Electric",
    SystemType.STRAIGHT_AC: "Straight A/C",
}

_SYSTEM_TYPE_ALIASES = {
    "heatpump": SystemType.HEAT_PUMP,
    "hp": SystemType.HEAT_PUMP,
    "gaselectric": SystemType.GAS_ELECTRIC,
    "gaselec": SystemType.GAS_ELECTRIC,
    "straightac": SystemType.STRAIGHT_AC,
    "airconditioner": SystemType.STRAIGHT_AC,
    "ac": SystemType.STRAIGHT_AC,
}


class Efficiency(str, Enum):
    """Efficiency tier of a product line or of a replacement request."""

    STANDARD = "standard"
    HIGH = "high"

    @classmethod
    def parse(cls, value: Any) -> Efficiency:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(_token(value))
            except ValueError:
                pass
        raise MalformedInputError(value, "Unknown efficiency tier")


class SizeMatch(str, Enum):
    """Capacity of a candidate relative to a reference capacity."""

    SMALLER = "smaller"
    DIRECT = "direct"
    LARGER = "larger"


class Factor(str, Enum):
    """Factors contributing to a compatibility score."""

    SYSTEM_TYPE = "system_type"
    CAPACITY = "capacity"
    VOLTAGE = "voltage"
    PHASE = "phase"
    EFFICIENCY = "efficiency"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class Dimensions:
    """Cabinet dimensions in inches."""

    length: float
    width: float
    height: float


@dataclass(slots=True, frozen=True)
class TemperatureRange:
    """Outdoor operating range in degrees Fahrenheit."""

    minimum: float
    maximum: float


@dataclass(slots=True, frozen=True)
class DecodedSegment:
    """One segment of a decoded model number."""

    name: str
    start: int
    width: int
    raw: str
    code: str
    value: Any
    description: str
    low_confidence: bool = False


class Accessories(Mapping[str, str]):
    """Read-only accessory selections, keyed by accessory name."""

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(items or {})

    def __getitem__(self, key: str) -> str:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(frozenset(self._items.items()))

    def __repr__(self) -> str:
        return f"Accessories({self._items!r})"


# Fields that describe where a specification came from rather than the unit
_PROVENANCE_FIELDS = frozenset({"model_number", "family", "low_confidence", "segments"})


@dataclass(slots=True, frozen=True)
class UnitSpecification:
    """Canonical attribute record of a single unit."""

    model_number: str | None = None
    family: str | None = None
    manufacturer: str | None = None
    system_type: SystemType | None = None
    efficiency: Efficiency | None = None
    capacity_btu: int | None = None
    voltage: str | None = None
    phases: str | None = None
    seer_rating: float | None = None
    eer_rating: float | None = None
    hspf_rating: float | None = None
    refrigerant: str | None = None
    drive_type: str | None = None
    sound_level: float | None = None
    dimensions: Dimensions | None = None
    weight: int | None = None
    operating_amperage: int | None = None
    max_fuse_size: int | None = None
    cooling_range: TemperatureRange | None = None
    heating_range: TemperatureRange | None = None
    controls_type: str | None = None
    coil_type: str | None = None
    static_pressure: str | None = None
    heating_capacity_btu: int | None = None
    heat_kit_kw: float | None = None
    heat_kit_control: str | None = None
    compressor_staging: str | None = None
    low_ambient: bool | None = None
    hot_gas_reheat: bool | None = None
    heat_exchanger: str | None = None
    low_temp_operation: float | None = None
    accessories: Accessories = field(default_factory=Accessories)
    low_confidence: frozenset[str] = frozenset()
    segments: tuple[DecodedSegment, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.accessories, Accessories):
            if not isinstance(self.accessories, Mapping):
                raise MalformedInputError(self.accessories, "Accessories must be a mapping")
            object.__setattr__(self, "accessories", Accessories(self.accessories))
        if self.capacity_btu is not None and self.capacity_btu <= 0:
            raise MalformedInputError(self.capacity_btu, "Capacity must be positive")

    @property
    def tonnage(self) -> float | None:
        """Nominal tons derived from ``capacity_btu``."""
        if self.capacity_btu is None:
            return None
        return self.capacity_btu / BTU_PER_TON

    @property
    def is_low_confidence(self) -> bool:
        return bool(self.low_confidence)

    def as_attributes(self) -> dict[str, Any]:
        """Return the populated unit attributes as a plain mapping."""
        result: dict[str, Any] = {}
        for item in dataclasses.fields(self):
            if item.name in _PROVENANCE_FIELDS:
                continue
            value = getattr(self, item.name)
            if value is None or (item.name == "accessories" and not value):
                continue
            result[item.name] = dict(value) if item.name == "accessories" else value
        return result

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, Any]) -> UnitSpecification:
        """Build a normalised specification from loosely typed ``attributes``.

        ``tonnage`` is accepted in place of ``capacity_btu``. Unknown keys are
        rejected so that typos surface instead of being dropped.
        """
        known = {item.name for item in dataclasses.fields(cls)}
        data = dict(attributes)
        tonnage = data.pop("tonnage", None)
        if tonnage is not None and data.get("capacity_btu") is None:
            data["capacity_btu"] = tons_to_btu(tonnage)

        unknown = sorted(set(data) - known)
        if unknown:
            raise MalformedInputError(unknown, "Unknown specification attributes")

        if data.get("system_type") is not None:
            data["system_type"] = SystemType.parse(data["system_type"])
        if data.get("efficiency") is not None:
            data["efficiency"] = Efficiency.parse(data["efficiency"])
        if data.get("voltage") is not None:
            data["voltage"] = normalise_voltage(data["voltage"])
        if data.get("phases") is not None:
            data["phases"] = normalise_phases(data["phases"])
        if isinstance(data.get("dimensions"), Mapping):
            data["dimensions"] = Dimensions(**data["dimensions"])
        for key in ("cooling_range", "heating_range"):
            if isinstance(data.get(key), Mapping):
                data[key] = TemperatureRange(**data[key])
        if data.get("capacity_btu") is not None:
            data["capacity_btu"] = _as_int(data["capacity_btu"], "capacity_btu")
        return cls(**data)


def tons_to_btu(tonnage: Any) -> int:
    """Convert nominal tons to BTU/hr."""
    try:
        return int(round(float(tonnage) * BTU_PER_TON))
    except (TypeError, ValueError) as err:
        raise MalformedInputError(tonnage, "Tonnage must be numeric") from err


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise MalformedInputError(value, f"{name} must be an integer")
    try:
        number = float(value)
    except (TypeError, ValueError) as err:
        raise MalformedInputError(value, f"{name} must be an integer") from err
    if not number.is_integer():
        raise MalformedInputError(value, f"{name} must be a whole number")
    return int(number)
