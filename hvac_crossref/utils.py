"""Normalisation helpers shared by the codec and the scorer."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from .exceptions import MalformedInputError

_PHASE_WORDS = {"single": "1", "one": "1", "three": "3", "poly": "3"}


def _to_snake_case(name: str) -> str:
    """Convert segment or attribute names to snake_case."""
    name = re.sub(r"[\s\-/]", "_", name.strip())
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    name = re.sub(r"__+", "_", name)
    return name.lower()


def _normalise_name(name: str) -> str:
    """Return ``name`` in snake_case, rejecting anything else."""
    snake = _to_snake_case(name)
    if not re.fullmatch(r"[a-z][a-z0-9_]*", snake):
        raise ValueError(f"invalid name: {name!r}")
    return snake


def normalise_model_number(value: Any) -> str:
    """Upper-case ``value`` and drop separators such as spaces and dashes."""
    if not isinstance(value, str):
        raise MalformedInputError(value, "Model number must be a string")
    cleaned = re.sub(r"[^A-Z0-9]", "", value.upper())
    if not cleaned:
        raise MalformedInputError(value, "Model number is empty")
    return cleaned


def normalise_voltage(value: Any) -> str:
    """Return the canonical voltage label, e.g. ``"208/230V"`` -> ``"208-230"``."""
    if isinstance(value, bool) or value is None:
        raise MalformedInputError(value, "Voltage must be a number or string")
    if isinstance(value, int | float):
        return str(int(value))
    if not isinstance(value, str):
        raise MalformedInputError(value, "Voltage must be a number or string")
    text = value.strip().upper()
    text = re.sub(r"\s*(VOLTS?|VAC|V)$", "", text)
    text = re.sub(r"V(?=\s*[/-])", "", text)
    return re.sub(r"\s*[/-]\s*", "-", text)


def normalise_phases(value: Any) -> str:
    """Return the phase count as a single digit string."""
    if isinstance(value, bool) or value is None:
        raise MalformedInputError(value, "Phase count must be a number or string")
    if isinstance(value, int):
        return str(value)
    text = str(value).strip().lower()
    for word, digit in _PHASE_WORDS.items():
        if text.startswith(word):
            return digit
    match = re.match(r"\d", text)
    if match is None:
        raise MalformedInputError(value, "Unrecognised phase count")
    return match.group(0)


def get_path(data: Mapping[str, Any], path: str) -> Any:
    """Return the value at dotted ``path`` or ``None`` when absent."""
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def set_path(data: dict[str, Any], path: str, value: Any) -> None:
    """Store ``value`` at dotted ``path``, creating nested dicts as needed."""
    *parents, leaf = path.split(".")
    target = data
    for part in parents:
        target = target.setdefault(part, {})
    target[leaf] = value
