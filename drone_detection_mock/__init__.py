"""
Drone Detection Mock Package

Generates a synthetic stream of drone detection messages, as a camera-based
detector would report them, and publishes them as JSON over MQTT.
"""

__version__ = "0.1.0"
__author__ = "Drone Detection Mock"

from .config import MockConfig
from .noise import NoiseModel
from .state import SimulationState, DroneTrack
from .models import DetectionObject, DetectionRecord
from .detection import DetectionRecordBuilder
from .message_builder import to_wire, from_wire
from .mqtt_publisher import MQTTPublisher
from .timing import TickController, TickLoop, TickInfo
from .simulator import DetectionStreamer
from .cli import main as cli_main

__all__ = [
    "MockConfig",
    "NoiseModel",
    "SimulationState",
    "DroneTrack",
    "DetectionObject",
    "DetectionRecord",
    "DetectionRecordBuilder",
    "to_wire",
    "from_wire",
    "MQTTPublisher",
    "TickController",
    "TickLoop",
    "TickInfo",
    "DetectionStreamer",
    "cli_main"
]
