"""
Kinematic state for the simulated drones.

Each drone sweeps left and right across the normalized frame at a fixed
speed, bouncing off the edges, while its vertical position oscillates
around a fixed lane.
"""

import math
from dataclasses import dataclass, field
from typing import List

from .noise import NoiseModel, clamp


SPEED_PER_TICK = 0.008
OSCILLATION_STEP_RAD = 0.1
OSCILLATION_AMPLITUDE = 0.05
LANE_BASE_Y = 0.3
LANE_SPACING_Y = 0.4
MIN_Y = 0.1
MAX_Y = 0.9
DRONE_SIZE_RANGE = (0.08, 0.15)
BASE_CONFIDENCE_RANGE = (0.75, 0.95)


def lane_y(drone_idx: int) -> float:
    """Resting vertical position for a drone slot."""
    return LANE_BASE_Y + LANE_SPACING_Y * drone_idx


@dataclass
class DroneTrack:
    """Kinematic and confidence parameters for one drone slot."""
    index: int
    x: float
    y: float
    direction: int
    oscillation_phase: float
    size: float
    base_confidence: float

    def advance(self) -> None:
        """Move one tick: bounce horizontally, oscillate vertically."""
        self.x += self.direction * SPEED_PER_TICK
        if self.x >= 1.0:
            self.x = 1.0
            self.direction = -1
        elif self.x <= 0.0:
            self.x = 0.0
            self.direction = 1

        self.oscillation_phase += OSCILLATION_STEP_RAD
        self.y = clamp(
            lane_y(self.index) + OSCILLATION_AMPLITUDE * math.sin(self.oscillation_phase),
            MIN_Y,
            MAX_Y
        )


@dataclass
class SimulationState:
    """
    Mutable simulation state owned by the streaming loop.

    Not thread-safe; a single loop advances it once per tick.
    """
    drones: List[DroneTrack] = field(default_factory=list)
    frame_count: int = 0

    @classmethod
    def initialize(cls, num_drones: int, noise: NoiseModel) -> 'SimulationState':
        """
        Create the starting state for num_drones drone slots.

        All drones start at the left edge moving right, staggered into
        separate lanes with a quarter-period phase offset each. Size and
        base confidence are drawn once here and never change. Lanes past
        the frame band start clamped to it.

        Args:
            num_drones: Number of drone slots
            noise: Random source for the per-drone size and confidence

        Returns:
            Fresh SimulationState with frame_count 0
        """
        if num_drones <= 0:
            raise ValueError("Number of drones must be positive")

        drones = []
        for i in range(num_drones):
            drones.append(DroneTrack(
                index=i,
                x=0.0,
                y=clamp(lane_y(i), MIN_Y, MAX_Y),
                direction=1,
                oscillation_phase=i * math.pi / 2.0,
                size=noise.uniform(*DRONE_SIZE_RANGE),
                base_confidence=noise.uniform(*BASE_CONFIDENCE_RANGE)
            ))

        return cls(drones=drones, frame_count=0)

    @property
    def num_drones(self) -> int:
        return len(self.drones)

    def advance(self) -> None:
        """Advance every drone by one tick, in index order."""
        for drone in self.drones:
            drone.advance()
        self.frame_count += 1
