"""Traffic light description."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class TrafficLightState(Enum):
    GREEN = 0
    RED = 1
    UNKNOWN = 2
    AMBER = 3


@dataclass
class TrafficLight:
    """A traffic light controlling the points listed in ``control_points``."""

    control_points: list = field(default_factory=list)
    state: TrafficLightState = TrafficLightState.UNKNOWN
    id: int = 0