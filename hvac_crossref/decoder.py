"""Decode manufacturer model numbers into unit specifications."""

from __future__ import annotations

import logging
from typing import Any

from .const import BTU_PER_TON, CAPACITY_ATTRIBUTE
from .models import DecodedSegment, Dimensions, SystemType, UnitSpecification
from .registry.loader import Family, Registry, get_registry
from .utils import normalise_model_number, set_path

_LOGGER = logging.getLogger(__name__)


def _resolve_family(model_number: str, family: str | Family | None, registry: Registry) -> Family:
    if family is None:
        return registry.infer_family(model_number)
    if isinstance(family, Family):
        return family
    return registry.get_family(family)


def _decode_segments(model_number: str, family: Family) -> tuple[DecodedSegment, ...]:
    decoded: list[DecodedSegment] = []
    for segment in family.segments:
        raw = segment.slice(model_number)
        entry, fallback = segment.decode(raw)
        if fallback:
            _LOGGER.debug(
                "%s: segment %s code %r not recognised, using default %r",
                family.key,
                segment.name,
                raw,
                entry.code,
            )
        decoded.append(
            DecodedSegment(
                name=segment.name,
                start=segment.start,
                width=segment.width,
                raw=raw,
                code=entry.code,
                value=entry.value,
                description=entry.description or segment.description,
                low_confidence=fallback,
            )
        )

    if len(model_number) > family.length:
        _LOGGER.debug(
            "%s: ignoring trailing characters %r", family.key, model_number[family.length :]
        )
    return tuple(decoded)


def _apply_ratings(attributes: dict[str, Any], family: Family, tonnage: float | None) -> None:
    rating = family.rating_for(tonnage)
    if rating is None:
        return
    for name, value in (
        ("seer_rating", rating.seer),
        ("eer_rating", rating.eer),
        ("hspf_rating", rating.hspf),
        ("sound_level", rating.sound_level),
    ):
        if value is not None and attributes.get(name) is None:
            attributes[name] = value


def _apply_estimates(
    attributes: dict[str, Any], family: Family, registry: Registry, tonnage: float | None
) -> None:
    cooling = registry.operating_ranges.get("cooling")
    if cooling is not None:
        attributes.setdefault("cooling_range", cooling)
    heating = registry.operating_ranges.get("heating")
    if heating is not None and attributes.get("system_type") is SystemType.HEAT_PUMP:
        attributes.setdefault("heating_range", heating)

    if not family.estimate_physical or tonnage is None:
        return
    if registry.physical is not None:
        band = registry.physical.band_for(tonnage)
        attributes.setdefault(
            "dimensions", Dimensions(length=band.length, width=band.width, height=band.height)
        )
        attributes.setdefault("weight", registry.physical.weight(tonnage, family.weight_factor))
    if registry.electrical is not None:
        attributes.setdefault("operating_amperage", registry.electrical.operating_amperage(tonnage))
        attributes.setdefault("max_fuse_size", registry.electrical.max_fuse_size(tonnage))


def decode_segments(
    model_number: str,
    family: str | Family | None = None,
    *,
    registry: Registry | None = None,
) -> tuple[DecodedSegment, ...]:
    """Return the per-segment breakdown of ``model_number``."""
    normalised = normalise_model_number(model_number)
    registry = registry if registry is not None else get_registry()
    return _decode_segments(normalised, _resolve_family(normalised, family, registry))


def decode(
    model_number: str,
    family: str | Family | None = None,
    *,
    registry: Registry | None = None,
) -> UnitSpecification:
    """Decode ``model_number`` into a :class:`UnitSpecification`.

    When ``family`` is omitted it is inferred from the longest matching
    prefix. Segments that are truncated or carry an unknown code resolve to
    the segment default and are listed in ``low_confidence`` on the result.

    Raises :class:`UnknownFamilyError` or :class:`MalformedInputError`; any
    other irregularity is reported through ``low_confidence``.
    """
    normalised = normalise_model_number(model_number)
    registry = registry if registry is not None else get_registry()
    resolved = _resolve_family(normalised, family, registry)
    segments = _decode_segments(normalised, resolved)

    attributes: dict[str, Any] = dict(resolved.attributes)
    for decoded, segment in zip(segments, resolved.segments):
        if segment.attribute is None:
            continue
        set_path(attributes, segment.attribute, decoded.value)
        for name, value in segment.codes[decoded.code].implies.items():
            set_path(attributes, name, value)

    capacity = attributes.get(CAPACITY_ATTRIBUTE)
    tonnage = capacity / BTU_PER_TON if capacity else None
    _apply_ratings(attributes, resolved, tonnage)
    _apply_estimates(attributes, resolved, registry, tonnage)

    low_confidence = frozenset(s.name for s in segments if s.low_confidence)
    if low_confidence:
        _LOGGER.debug("%s decoded with low confidence in %s", normalised, sorted(low_confidence))

    return UnitSpecification(
        model_number=normalised,
        family=resolved.key,
        manufacturer=resolved.manufacturer,
        low_confidence=low_confidence,
        segments=segments,
        **attributes,
    )
