import dataclasses

import pytest

from hvac_crossref.exceptions import MalformedInputError
from hvac_crossref.models import (
    Accessories,
    Dimensions,
    Efficiency,
    SystemType,
    UnitSpecification,
    tons_to_btu,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("HeatPump", SystemType.HEAT_PUMP),
        ("Heat Pump", SystemType.HEAT_PUMP),
        ("hp", SystemType.HEAT_PUMP),
        ("Gas/Electric", SystemType.GAS_ELECTRIC),
        ("Straight A/C", SystemType.STRAIGHT_AC),
        ("A/C", SystemType.STRAIGHT_AC),
        (SystemType.GAS_ELECTRIC, SystemType.GAS_ELECTRIC),
    ],
)
def test_system_type_parse(value: str, expected: SystemType) -> None:
    assert SystemType.parse(value) is expected


@pytest.mark.parametrize("value", ["Boiler", "", None, 3])
def test_system_type_parse_rejects(value: object) -> None:
    with pytest.raises(MalformedInputError):
        SystemType.parse(value)


def test_system_type_label() -> None:
    assert SystemType.GAS_ELECTRIC.label == "Gas/Electric"


def test_efficiency_parse() -> None:
    assert Efficiency.parse(" High ") is Efficiency.HIGH
    with pytest.raises(MalformedInputError):
        Efficiency.parse("premium")


def test_from_attributes_normalises() -> None:
    spec = UnitSpecification.from_attributes(
        {
            "tonnage": 2.5,
            "system_type": "heat pump",
            "voltage": "208/230V",
            "phases": "single phase",
            "dimensions": {"length": 1, "width": 2, "height": 3},
        }
    )

    assert spec.capacity_btu == 30000
    assert spec.tonnage == 2.5
    assert spec.system_type is SystemType.HEAT_PUMP
    assert spec.voltage == "208-230"
    assert spec.phases == "1"
    assert spec.dimensions == Dimensions(1, 2, 3)


def test_from_attributes_rejects_unknown_keys() -> None:
    with pytest.raises(MalformedInputError, match="Unknown specification attributes"):
        UnitSpecification.from_attributes({"capacity": 36000})


@pytest.mark.parametrize("capacity", [0, -12000])
def test_capacity_must_be_positive(capacity: int) -> None:
    with pytest.raises(MalformedInputError):
        UnitSpecification(capacity_btu=capacity)


def test_as_attributes_skips_provenance() -> None:
    spec = UnitSpecification(model_number="X", family="DSC", capacity_btu=36000)

    assert spec.as_attributes() == {"capacity_btu": 36000}


def test_tons_to_btu() -> None:
    assert tons_to_btu(7.5) == 90000
    assert tons_to_btu("8.5") == 102000
    with pytest.raises(MalformedInputError):
        tons_to_btu("big")


@pytest.mark.parametrize("capacity", [47999.9, "36000.5", True])
def test_from_attributes_rejects_fractional_capacity(capacity: object) -> None:
    with pytest.raises(MalformedInputError):
        UnitSpecification.from_attributes({"capacity_btu": capacity})


@pytest.mark.parametrize(("capacity", "expected"), [(48000.0, 48000), ("36000", 36000)])
def test_from_attributes_accepts_whole_capacity(capacity: object, expected: int) -> None:
    assert UnitSpecification.from_attributes({"capacity_btu": capacity}).capacity_btu == expected


def test_specification_is_hashable() -> None:
    left = UnitSpecification(capacity_btu=36000, accessories={"economizer": "enthalpy"})
    right = UnitSpecification(capacity_btu=36000, accessories={"economizer": "enthalpy"})

    assert isinstance(left.accessories, Accessories)
    assert hash(left) == hash(right)
    assert len({left, right}) == 1
    assert left.accessories == {"economizer": "enthalpy"}


def test_accessories_cannot_be_changed() -> None:
    source = {"economizer": "enthalpy"}
    spec = UnitSpecification(accessories=source)
    source["economizer"] = "none"

    assert spec.accessories["economizer"] == "enthalpy"
    with pytest.raises(TypeError):
        spec.accessories["economizer"] = "none"  # type: ignore[index]
    with pytest.raises(dataclasses.FrozenInstanceError):
        spec.accessories = Accessories()  # type: ignore[misc]


def test_accessories_round_trip_as_plain_mapping() -> None:
    spec = UnitSpecification.from_attributes({"accessories": {"sensors": "co2_sensor"}})

    attributes = spec.as_attributes()
    assert attributes == {"accessories": {"sensors": "co2_sensor"}}
    assert type(attributes["accessories"]) is dict
