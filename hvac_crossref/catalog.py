"""Replacement catalog generated from the nomenclature registry."""

from __future__ import annotations

import logging

from .const import CAPACITY_ATTRIBUTE, VOLTAGE_ATTRIBUTE
from .decoder import decode
from .encoder import encode
from .exceptions import IncompatibleCodeError
from .models import UnitSpecification
from .registry.loader import Family, Registry, get_registry

_LOGGER = logging.getLogger(__name__)

# Catalogs keyed by ``id(registry)``; the registry is kept to detect reuse of ids
_catalog_cache: dict[int, tuple[Registry, tuple[UnitSpecification, ...]]] = {}


def _family_units(family: Family, registry: Registry) -> list[UnitSpecification]:
    capacity = family.segment_for(CAPACITY_ATTRIBUTE)
    voltage = family.segment_for(VOLTAGE_ATTRIBUTE)
    if capacity is None or voltage is None:
        _LOGGER.warning("%s has no capacity or voltage segment, skipping", family.key)
        return []

    units: list[UnitSpecification] = []
    for size in capacity.codes.values():
        for supply in voltage.codes.values():
            attributes = {
                CAPACITY_ATTRIBUTE: size.value,
                VOLTAGE_ATTRIBUTE: supply.value,
                **supply.implies,
            }
            try:
                model_number = encode(family, attributes, registry=registry)
            except IncompatibleCodeError as err:
                _LOGGER.debug(
                    "Skipping %s %s/%s: %s", family.key, size.code, supply.code, err.reason
                )
                continue
            units.append(decode(model_number, family, registry=registry))
    return units


def generate_catalog(registry: Registry | None = None) -> tuple[UnitSpecification, ...]:
    """Return one unit per buildable capacity and voltage of each catalog family.

    Segments other than capacity and voltage use their default codes.
    """
    registry = registry if registry is not None else get_registry()
    units: list[UnitSpecification] = []
    for family in registry:
        if family.replacement_catalog:
            units.extend(_family_units(family, registry))
    _LOGGER.debug("Generated %d catalog units", len(units))
    return tuple(units)


def replacement_catalog(registry: Registry | None = None) -> tuple[UnitSpecification, ...]:
    """Return the cached catalog for ``registry`` (default: bundled registry)."""
    registry = registry if registry is not None else get_registry()
    cached = _catalog_cache.get(id(registry))
    if cached is None or cached[0] is not registry:
        cached = (registry, generate_catalog(registry))
        _catalog_cache[id(registry)] = cached
    return cached[1]
