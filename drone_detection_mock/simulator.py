"""
Streaming driver for the detection mock.

This module provides the DetectionStreamer class that owns the simulation
state, the record builder, the MQTT publisher and the stop token, and runs
the tick → derive → serialize → publish loop.
"""

import signal
import threading
import time
from collections import deque
from typing import Optional, Dict, Any, Deque

from .config import MockConfig
from .detection import DetectionRecordBuilder
from .error_handling import (
    SimulationError, SerializationError, MQTTError,
    logged_operation, summarize_errors, wrap_error
)
from .logging_config import MockLogger, log_exception
from .message_builder import to_wire
from .mqtt_publisher import MQTTPublisher
from .noise import NoiseModel
from .state import SimulationState
from .timing import TickLoop, TickInfo


logger = MockLogger.get_logger(__name__)

RECENT_ERRORS_KEPT = 20


class DetectionStreamer:
    """
    Publishes one synthetic detection message per tick.

    The state advances exactly once per tick whatever happens to the
    message afterwards. A failed publish is logged and the loop moves on;
    a failed serialization drops that tick's message, and too many in a
    row abort the run.
    """

    def __init__(self, config: MockConfig, publisher: Optional[MQTTPublisher] = None,
                 noise: Optional[NoiseModel] = None):
        """
        Initialize the streamer and its components.

        Args:
            config: Stream configuration
            publisher: Transport to publish through (created from config if omitted)
            noise: Random source (created from config.deterministic_seed if omitted)

        Raises:
            SimulationError: If a component cannot be created
        """
        config.validate()
        self.config = config
        self.stop_event = threading.Event()
        self.recent_errors: Deque[Exception] = deque(maxlen=RECENT_ERRORS_KEPT)

        if noise is None:
            noise = NoiseModel.from_seed(config.deterministic_seed)
            if config.deterministic_seed is not None:
                logger.info(f"Using deterministic seed: {config.deterministic_seed}")
        self.noise = noise

        try:
            self.state = SimulationState.initialize(config.num_drones, self.noise)
            self.builder = DetectionRecordBuilder(self.noise)
            self.publisher = publisher if publisher is not None else MQTTPublisher(config)
            self.loop = TickLoop(config, self.stop_event)
        except MQTTError:
            raise
        except Exception as e:
            log_exception(logger, e, "Failed to initialize detection streamer")
            raise wrap_error(e, SimulationError, "INIT_ERROR", "Streamer initialization failed")

        self.stats = self._empty_statistics()
        self._consecutive_serialization_failures = 0
        self._progress_every = max(1, int(2000 / config.interval_ms))

        logger.info(f"Detection streamer initialized with {config.num_drones} drones")

    @staticmethod
    def _empty_statistics() -> Dict[str, int]:
        return {
            'ticks': 0,
            'messages_published': 0,
            'publish_failures': 0,
            'serialization_failures': 0,
            'objects_generated': 0
        }

    def run(self) -> Dict[str, Any]:
        """
        Connect, stream until stopped or the message bound is reached, disconnect.

        SIGINT and SIGTERM request a graceful stop while running; previous
        handlers are restored afterwards.

        Returns:
            Final statistics

        Raises:
            MQTTError: If the broker connection cannot be established
            SimulationError: If serialization keeps failing
        """
        previous_handlers = self._install_signal_handlers()
        runtime_start = time.time()
        timing_stats: Dict[str, Any] = {}

        try:
            with self.publisher:
                logger.info("Starting drone simulation...")
                with logged_operation("Detection streaming", logger):
                    timing_stats = self.loop.run(self.process_tick)
        finally:
            self._restore_signal_handlers(previous_handlers)

        final_stats = self.get_final_statistics()
        final_stats['timing'] = timing_stats
        final_stats['runtime_s'] = time.time() - runtime_start

        logger.info(f"Simulation completed. Sent {self.stats['messages_published']} detections.")
        return final_stats

    def process_tick(self, tick_info: TickInfo) -> bool:
        """
        Advance, sample, serialize and publish one tick.

        Args:
            tick_info: Schedule information for this tick

        Returns:
            True if the message was published
        """
        self.state.advance()
        self.stats['ticks'] += 1

        record = self.builder.sample(self.state)
        self.stats['objects_generated'] += record.count

        try:
            payload = to_wire(record)
        except SerializationError as e:
            self._handle_serialization_failure(e, tick_info)
            return False
        self._consecutive_serialization_failures = 0

        published = self.publisher.publish(self.config.mqtt_topic, payload)
        if published:
            self.stats['messages_published'] += 1
            logger.debug(
                f"Sent detection #{self.stats['messages_published']}: "
                f"{'DRONE DETECTED' if record.detected else 'NO DETECTION'} ({record.count} objects)"
            )
        else:
            self.stats['publish_failures'] += 1
            logger.warning(f"Failed to publish message for tick {tick_info.tick_id}")

        if tick_info.tick_id % self._progress_every == 0:
            logger.info(
                f"Tick {tick_info.tick_id}: {self.stats['messages_published']} sent, "
                f"{self.stats['publish_failures']} failed, lag {tick_info.lag_ms:.1f}ms"
            )

        return published

    def _handle_serialization_failure(self, error: SerializationError, tick_info: TickInfo) -> None:
        self.stats['serialization_failures'] += 1
        self._consecutive_serialization_failures += 1
        self.recent_errors.append(error)
        logger.error(f"Dropping tick {tick_info.tick_id}: {error}")

        limit = self.config.max_consecutive_serialization_failures
        if self._consecutive_serialization_failures >= limit:
            raise SimulationError(
                f"Serialization failed {self._consecutive_serialization_failures} ticks in a row",
                error_code="SERIALIZATION_FAILURE",
                context={"last_error": str(error)}
            )

    def _install_signal_handlers(self) -> Dict[int, Any]:
        """Install stop handlers, returning the handlers they replaced."""
        def signal_handler(signum, frame):
            signal_names = {
                signal.SIGINT: "SIGINT (Ctrl+C)",
                signal.SIGTERM: "SIGTERM"
            }
            signal_name = signal_names.get(signum, f"signal {signum}")
            logger.info(f"Received {signal_name}, shutting down gracefully...")
            self.shutdown()

        previous = {}
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, signal handlers not installed")
            return previous

        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, signal_handler)
        return previous

    @staticmethod
    def _restore_signal_handlers(previous: Dict[int, Any]) -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    def shutdown(self) -> None:
        """Request a graceful stop; the current tick finishes first."""
        self.stop_event.set()
        self.publisher.request_shutdown()

    def get_final_statistics(self) -> Dict[str, Any]:
        """
        Get final stream statistics.

        Returns:
            Dictionary with stream, detection, publishing and configuration sections
        """
        attempts = self.stats['messages_published'] + self.stats['publish_failures']
        final_stats = {
            'stream': {
                'ticks': self.stats['ticks'],
                'frame_count': self.state.frame_count,
                'interval_ms': self.config.interval_ms,
                'max_messages': self.config.max_messages
            },
            'detections': {
                'objects_generated': self.stats['objects_generated'],
                'secondary_objects': self.builder.secondary_objects_generated,
                'avg_per_tick': self.stats['objects_generated'] / max(1, self.stats['ticks'])
            },
            'publishing': {
                'messages_published': self.stats['messages_published'],
                'publish_failures': self.stats['publish_failures'],
                'serialization_failures': self.stats['serialization_failures'],
                'success_rate': self.stats['messages_published'] / max(1, attempts),
                'offline_mode': self.config.offline_mode,
                'transport': self.publisher.get_statistics()
            },
            'configuration': {
                'num_drones': self.config.num_drones,
                'deterministic_seed': self.config.deterministic_seed,
                'mqtt_topic': self.config.mqtt_topic
            }
        }

        if self.recent_errors:
            final_stats['errors'] = summarize_errors(self.recent_errors)

        return final_stats
