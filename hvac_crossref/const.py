"""Constants for the HVAC model-number codec."""

from __future__ import annotations

BTU_PER_TON = 12000

# Attribute path of the segment carrying unit capacity
CAPACITY_ATTRIBUTE = "capacity_btu"

DEFAULT_SIZE_TOLERANCE = 0
DEFAULT_REQUESTED_EFFICIENCY = "standard"

# Ranking order of size relationships, best first
SIZE_MATCH_ORDER = ("direct", "smaller", "larger")

# Attribute path of the segment carrying supply voltage
VOLTAGE_ATTRIBUTE = "voltage"
