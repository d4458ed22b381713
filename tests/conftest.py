"""Test configuration for the HVAC model-number codec."""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

import pytest

from hvac_crossref import catalog
from hvac_crossref.registry import loader
from hvac_crossref.registry.loader import Registry, clear_cache, load_registry


@pytest.fixture(autouse=True)
def _fresh_cache() -> Iterator[None]:
    """Every test starts and ends without cached data files."""
    clear_cache()
    catalog._catalog_cache.clear()
    yield
    clear_cache()
    catalog._catalog_cache.clear()


@pytest.fixture
def registry() -> Registry:
    return load_registry()


@pytest.fixture
def nomenclature_data() -> dict[str, Any]:
    """Return a fresh copy of the bundled nomenclature file."""
    return json.loads(loader.get_nomenclature_path().read_text(encoding="utf-8"))


@pytest.fixture
def scoring_data() -> dict[str, Any]:
    """Return a fresh copy of the bundled scoring file."""
    return json.loads(loader.get_scoring_path().read_text(encoding="utf-8"))
