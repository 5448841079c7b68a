"""
Detection record generation for the detection mock stream.

Derives a noisy, frame-bounded detection for every drone slot in the
simulation state, and occasionally a stateless extra detection.
"""

import time
from typing import Callable, List, Optional

from .models import DetectionObject, DetectionRecord
from .noise import NoiseModel, clamp
from .state import SimulationState, DroneTrack


CONFIDENCE_NOISE = 0.02
POSITION_NOISE = 0.01
SIZE_NOISE = 0.01
CONFIDENCE_BOUNDS = (0.6, 0.95)
BBOX_SIZE_BOUNDS = (0.05, 0.15)

SECONDARY_PROBABILITY = 0.2
SECONDARY_CONFIDENCE_RANGE = (0.7, 0.95)
SECONDARY_CENTER_RANGE = (0.2, 0.8)
SECONDARY_SIZE_RANGE = (0.08, 0.15)


def current_time_ms() -> int:
    """Wall-clock time in integer milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class DetectionRecordBuilder:
    """
    Builds one DetectionRecord per tick from the simulation state.

    Every drone slot always yields a detection; the missed-detection
    behaviour of earlier detector models is disabled, so `detected` is
    always true.
    """

    def __init__(self, noise: NoiseModel, clock: Optional[Callable[[], int]] = None):
        """
        Initialize the builder.

        Args:
            noise: Random source shared with the simulation state
            clock: Millisecond clock, defaults to wall-clock time
        """
        self.noise = noise
        self.clock = clock or current_time_ms
        self.secondary_objects_generated = 0

    def sample(self, state: SimulationState) -> DetectionRecord:
        """
        Derive the detection record for the current state.

        Args:
            state: Simulation state, already advanced for this tick

        Returns:
            DetectionRecord with one object per drone, plus possibly one
            secondary object when exactly one primary object was produced
        """
        timestamp = self.clock()
        objects: List[DetectionObject] = []

        for drone in state.drones:
            objects.append(self._detect_drone(drone))

        if len(objects) == 1 and self.noise.chance(SECONDARY_PROBABILITY):
            objects.append(self._spawn_secondary())
            self.secondary_objects_generated += 1

        return DetectionRecord(timestamp=timestamp, detected=True, objects=tuple(objects))

    def _detect_drone(self, drone: DroneTrack) -> DetectionObject:
        confidence = self.noise.add_noise(drone.base_confidence, CONFIDENCE_NOISE)
        center_x = self.noise.add_noise(drone.x, POSITION_NOISE)
        center_y = self.noise.add_noise(drone.y, POSITION_NOISE)
        size = self.noise.add_noise(drone.size, SIZE_NOISE)
        return build_detection_object(confidence, center_x, center_y, size)

    def _spawn_secondary(self) -> DetectionObject:
        """Random detection not tied to any drone slot."""
        confidence = self.noise.add_noise(
            self.noise.uniform(*SECONDARY_CONFIDENCE_RANGE), CONFIDENCE_NOISE)
        center_x = self.noise.add_noise(
            self.noise.uniform(*SECONDARY_CENTER_RANGE), POSITION_NOISE)
        center_y = self.noise.add_noise(
            self.noise.uniform(*SECONDARY_CENTER_RANGE), POSITION_NOISE)
        size = self.noise.add_noise(
            self.noise.uniform(*SECONDARY_SIZE_RANGE), SIZE_NOISE)
        return build_detection_object(confidence, center_x, center_y, size)


def build_detection_object(confidence: float, center_x: float, center_y: float,
                           size: float) -> DetectionObject:
    """
    Clamp raw noisy values into a valid detection.

    The square bbox is centred on the clamped center, then pushed back
    inside the frame without resizing.

    Args:
        confidence: Raw confidence
        center_x: Raw normalized center x
        center_y: Raw normalized center y
        size: Raw bbox edge length

    Returns:
        DetectionObject satisfying all frame and range bounds
    """
    confidence = clamp(confidence, *CONFIDENCE_BOUNDS)
    center_x = clamp(center_x, 0.0, 1.0)
    center_y = clamp(center_y, 0.0, 1.0)
    size = clamp(size, *BBOX_SIZE_BOUNDS)

    bbox_x = max(0.0, center_x - size / 2.0)
    bbox_y = max(0.0, center_y - size / 2.0)
    if bbox_x + size > 1.0:
        bbox_x = 1.0 - size
    if bbox_y + size > 1.0:
        bbox_y = 1.0 - size

    return DetectionObject(
        confidence=confidence,
        center=(center_x, center_y),
        bbox=(bbox_x, bbox_y, size, size),
        area=size * size
    )
