"""
Immutable detection records produced once per tick.
"""

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class DetectionObject:
    """
    One detected object in normalized frame coordinates.

    bbox is (x, y, w, h) with its origin at the top-left corner.
    """
    confidence: float
    center: Tuple[float, float]
    bbox: Tuple[float, float, float, float]
    area: float

    @property
    def width(self) -> float:
        return self.bbox[2]

    @property
    def height(self) -> float:
        return self.bbox[3]


@dataclass(frozen=True)
class DetectionRecord:
    """All detections for a single tick."""
    timestamp: int  # milliseconds since epoch
    detected: bool
    objects: Tuple[DetectionObject, ...] = field(default_factory=tuple)

    @property
    def count(self) -> int:
        return len(self.objects)

    @classmethod
    def empty(cls, timestamp: int) -> 'DetectionRecord':
        """A record with no detection."""
        return cls(timestamp=timestamp, detected=False, objects=())
