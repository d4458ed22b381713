"""Assemble catalog model numbers from unit attributes."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .exceptions import (
    IncompatibleCodeError,
    InvalidCodeError,
    MalformedInputError,
    MissingAttributeError,
)
from .models import UnitSpecification, tons_to_btu
from .registry.loader import Family, Registry, Segment, get_registry
from .sizing import nearest_code
from .utils import get_path, set_path

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Adjustment:
    """A requested value replaced by the nearest value the catalog builds."""

    attribute: str
    requested: Any
    used: Any


@dataclass(slots=True, frozen=True)
class BuildResult:
    model_number: str
    adjustments: tuple[Adjustment, ...] = ()

    @property
    def fallback_applied(self) -> bool:
        return bool(self.adjustments)


def _family(family: str | Family, registry: Registry | None) -> Family:
    if isinstance(family, Family):
        return family
    return (registry if registry is not None else get_registry()).get_family(family)


def _prepare(attributes: Mapping[str, Any] | UnitSpecification) -> dict[str, Any]:
    if isinstance(attributes, UnitSpecification):
        data = attributes.as_attributes()
    elif isinstance(attributes, Mapping):
        data = dict(attributes)
    else:
        raise MalformedInputError(attributes, "Attributes must be a mapping")

    tonnage = data.pop("tonnage", None)
    if tonnage is not None and data.get("capacity_btu") is None:
        data["capacity_btu"] = tons_to_btu(tonnage)
    return data


def _default_code(family: Family, segment: Segment, data: Mapping[str, Any]) -> str:
    """Return the default code, or the first code agreeing with implied values."""
    if segment.codes[segment.default].agrees_with(data):
        return segment.default
    for entry in segment.codes.values():
        if entry.agrees_with(data):
            _LOGGER.debug(
                "%s: default %r of %s conflicts with given attributes, using %r",
                family.key,
                segment.default,
                segment.name,
                entry.code,
            )
            return entry.code
    implied = {name: get_path(data, name) for name in segment.codes[segment.default].implies}
    raise InvalidCodeError(family.key, segment.name, implied)


def resolve_codes(
    family: str | Family,
    attributes: Mapping[str, Any] | UnitSpecification,
    *,
    strict: bool = False,
    registry: Registry | None = None,
) -> dict[str, str]:
    """Return the code of every segment keyed by segment name.

    Raises :class:`InvalidCodeError` naming the first segment whose value has
    no code, :class:`IncompatibleCodeError` when the resolved codes are not
    built together and, in ``strict`` mode, :class:`MissingAttributeError`
    for absent required attributes.
    """
    resolved = _family(family, registry)
    data = _prepare(attributes)

    codes: dict[str, str] = {}
    for segment in resolved.segments:
        value = get_path(data, segment.attribute) if segment.attribute else None
        if value is None:
            if strict and segment.required and not segment.is_fixed:
                raise MissingAttributeError(resolved.key, segment.name, None)
            codes[segment.name] = _default_code(resolved, segment, data)
            continue
        try:
            codes[segment.name] = segment.encode(value, data)
        except ValueError as err:
            raise InvalidCodeError(resolved.key, segment.name, value) from err

    violation = resolved.check_constraints(codes)
    if violation is not None:
        name, constraint = violation
        attribute = resolved.segment(name).attribute
        attempted = get_path(data, attribute) if attribute else None
        raise IncompatibleCodeError(
            resolved.key,
            name,
            attempted if attempted is not None else codes[name],
            constraint.reason,
        )
    return codes


def encode(
    family: str | Family,
    attributes: Mapping[str, Any] | UnitSpecification,
    *,
    strict: bool = False,
    registry: Registry | None = None,
) -> str:
    """Return the model number of ``family`` describing ``attributes``.

    Attributes that are absent take the segment's default code unless
    ``strict`` is set. ``tonnage`` may be given instead of ``capacity_btu``.
    """
    resolved = _family(family, registry)
    codes = resolve_codes(resolved, attributes, strict=strict)
    model_number = "".join(codes[segment.name] for segment in resolved.segments)
    if len(model_number) != resolved.length:
        raise RuntimeError(
            f"{resolved.key}: encoded {model_number!r} is not {resolved.length} characters"
        )
    return model_number


def build_with_fallback(
    family: str | Family,
    attributes: Mapping[str, Any] | UnitSpecification,
    *,
    strict: bool = False,
    registry: Registry | None = None,
) -> BuildResult:
    """Encode ``attributes``, snapping unavailable numeric values to the nearest code.

    A request for 9 tons on a ladder of 8.5 and 10 tons builds the 8.5 ton
    unit; every substitution is reported in ``BuildResult.adjustments``.
    """
    resolved = _family(family, registry)
    data = _prepare(attributes)

    adjustments: list[Adjustment] = []
    for segment in resolved.segments:
        if segment.kind != "numeric" or segment.attribute is None:
            continue
        requested = get_path(data, segment.attribute)
        if requested is None:
            continue
        try:
            target = float(requested)
        except (TypeError, ValueError):
            continue
        if any(math.isclose(value, target) for value, _ in segment.numeric_codes()):
            continue
        code = nearest_code(segment, target)
        used = segment.codes[code].value
        set_path(data, segment.attribute, used)
        adjustments.append(Adjustment(segment.attribute, requested, used))
        _LOGGER.debug(
            "%s: %s %r not available, using %r", resolved.key, segment.attribute, requested, used
        )

    model_number = encode(resolved, data, strict=strict)
    return BuildResult(model_number=model_number, adjustments=tuple(adjustments))
