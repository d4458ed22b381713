"""Exceptions raised by the HVAC model-number codec and scoring core."""

from __future__ import annotations

from typing import Any


class NomenclatureError(Exception):
    """Base class for all errors raised by this package."""


class RegistryError(NomenclatureError):
    """Nomenclature or scoring data failed validation while loading."""


class UnknownFamilyError(NomenclatureError, KeyError):
    """No product family matches the requested key or model number."""

    def __init__(self, family: str) -> None:
        super().__init__(family)
        self.family = family

    def __str__(self) -> str:
        return f"Unsupported model family: {self.family!r}"


class MalformedInputError(NomenclatureError, ValueError):
    """Input could not be interpreted before any segment parsing."""

    def __init__(self, value: Any, reason: str) -> None:
        super().__init__(f"{reason}: {value!r}")
        self.value = value
        self.reason = reason


class InvalidCodeError(NomenclatureError, ValueError):
    """An attribute value has no code in a segment's code table."""

    def __init__(self, family: str, segment: str, attempted_value: Any) -> None:
        super().__init__(self._message(family, segment, attempted_value))
        self.family = family
        self.segment = segment
        self.attempted_value = attempted_value

    @staticmethod
    def _message(family: str, segment: str, attempted_value: Any) -> str:
        return f"Invalid value {attempted_value!r} for segment {segment!r} of family {family}"


class MissingAttributeError(InvalidCodeError):
    """Strict encoding was requested and a required attribute is absent."""

    @staticmethod
    def _message(family: str, segment: str, attempted_value: Any) -> str:
        return f"Missing attribute for segment {segment!r} of family {family}"


class IncompatibleCodeError(InvalidCodeError):
    """A resolved code is not built together with the other selected codes."""

    def __init__(self, family: str, segment: str, attempted_value: Any, reason: str) -> None:
        super().__init__(family, segment, attempted_value)
        self.reason = reason
        self.args = (f"{self.args[0]}: {reason}",)
