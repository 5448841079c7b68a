"""
MQTT transport for the detection mock stream.
"""

import sys
import threading
import time
from typing import Dict, Optional
import paho.mqtt.client as mqtt

from .config import MockConfig
from .error_handling import MQTTError, backoff_delay, logged_operation
from .logging_config import MockLogger


logger = MockLogger.get_logger(__name__)


class MQTTPublisher:
    """
    MQTT publisher with connection management.

    Publishing never retries: a failed publish is reported to the caller
    and counted. In offline mode payloads are written to stdout and no
    client is created.
    """

    def __init__(self, config: MockConfig):
        """
        Initialize MQTT publisher.

        Args:
            config: Stream configuration containing MQTT settings

        Raises:
            MQTTError: If the paho client cannot be created
        """
        self.config = config
        self.client: Optional[mqtt.Client] = None
        self.connected = False
        self.shutdown_requested = False
        self.connection_lock = threading.Lock()
        self._shutdown_event = threading.Event()
        self._refusal = None

        self.stats = self._empty_statistics()

        if not config.offline_mode:
            try:
                self._setup_mqtt_client()
                logger.info(f"MQTT publisher initialized for {config.mqtt_host}:{config.mqtt_port}")
            except Exception as e:
                logger.error(f"Failed to initialize MQTT publisher: {e}")
                raise MQTTError(f"MQTT publisher initialization failed: {e}", error_code="CLIENT_SETUP_ERROR")

    @staticmethod
    def _empty_statistics() -> Dict[str, int]:
        return {
            'connection_attempts': 0,
            'successful_connections': 0,
            'connection_failures': 0,
            'publish_attempts': 0,
            'publish_successes': 0,
            'publish_failures': 0,
            'disconnections': 0
        }

    def _setup_mqtt_client(self) -> None:
        """Create the paho client and wire its callbacks."""
        client_id = self.config.client_id or f"drone_simulator_{int(time.time())}"

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            clean_session=self.config.clean_session
        )
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_publish = self._on_publish
        self.client.on_log = self._on_log

        logger.debug(f"MQTT client created with ID: {client_id}")

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback for when the client receives a CONNACK response from the server."""
        with self.connection_lock:
            if reason_code == 0:
                self.connected = True
                self.stats['successful_connections'] += 1
                logger.info(f"Connected to MQTT broker at {self.config.mqtt_host}:{self.config.mqtt_port}")
            else:
                self.connected = False
                self._refusal = reason_code
                self.stats['connection_failures'] += 1
                logger.error(f"MQTT broker refused connection: {reason_code}")

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code=0, properties=None):
        """Callback for when the client disconnects from the broker."""
        with self.connection_lock:
            self.connected = False
            self.stats['disconnections'] += 1

            if reason_code != 0 and not self.shutdown_requested:
                logger.warning(f"Unexpected disconnection from MQTT broker ({reason_code}), paho will reconnect")
            else:
                logger.info("Disconnected from MQTT broker")

    def _on_publish(self, client, userdata, mid, reason_code=None, properties=None):
        logger.debug(f"Message acknowledged by client loop, message ID: {mid}")

    def _on_log(self, client, userdata, level, buf):
        if level == mqtt.MQTT_LOG_ERR:
            logger.error(f"MQTT client error: {buf}")
        elif level == mqtt.MQTT_LOG_WARNING:
            logger.warning(f"MQTT client warning: {buf}")
        else:
            logger.debug(f"MQTT client: {buf}")

    def connect(self) -> bool:
        """
        Connect to the MQTT broker.

        Tries up to config.connect_attempts times with exponential backoff.

        Returns:
            True when connected (always True in offline mode), False if
            shutdown was requested while connecting

        Raises:
            MQTTError: If every connection attempt fails
        """
        if self.config.offline_mode:
            return True

        last_error: Optional[MQTTError] = None
        for attempt in range(self.config.connect_attempts):
            if self.shutdown_requested:
                logger.info("Connection aborted due to shutdown request")
                return False

            try:
                return self._connect_once()
            except MQTTError as e:
                last_error = e
                if attempt < self.config.connect_attempts - 1:
                    delay = backoff_delay(attempt)
                    logger.warning(
                        f"Connection attempt {attempt + 1}/{self.config.connect_attempts} failed: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )
                    self._shutdown_event.wait(delay)

        raise last_error

    def _connect_once(self) -> bool:
        with self.connection_lock:
            if self.connected:
                return True

        self.stats['connection_attempts'] += 1
        self._refusal = None
        host, port = self.config.mqtt_host, self.config.mqtt_port

        with logged_operation("MQTT broker connection", logger):
            logger.info(f"Attempting to connect to MQTT broker at {host}:{port}")

            try:
                self.client.connect(host, port, self.config.mqtt_keepalive)
            except (OSError, ValueError) as e:
                self.stats['connection_failures'] += 1
                raise MQTTError(
                    f"Cannot connect to MQTT broker at {host}:{port} - {e}",
                    error_code="CONNECTION_ERROR",
                    context={"host": host, "port": port}
                )

            self.client.loop_start()

            deadline = time.monotonic() + self.config.connect_timeout_s
            while not self.connected and self._refusal is None and time.monotonic() < deadline:
                if self._shutdown_event.wait(0.05):
                    logger.info("Connection aborted due to shutdown request")
                    return False

            if not self.connected:
                self.client.loop_stop()
                if self._refusal is not None:
                    raise MQTTError(
                        f"MQTT broker at {host}:{port} refused connection: {self._refusal}",
                        error_code="CONNECTION_REFUSED",
                        context={"host": host, "port": port}
                    )
                raise MQTTError(
                    f"Timed out waiting for CONNACK from {host}:{port}",
                    error_code="CONNECTION_TIMEOUT",
                    context={"host": host, "port": port}
                )

        return True

    def publish(self, topic: str, payload: bytes) -> bool:
        """
        Publish one payload.

        A shutdown request does not cancel the publish of the tick already
        in progress; the loop stops before the next tick.

        Args:
            topic: Topic to publish to
            payload: Encoded message

        Returns:
            True if the client accepted the message, False otherwise
        """
        self.stats['publish_attempts'] += 1

        if self.config.offline_mode:
            sys.stdout.write(payload.decode('utf-8') + "\n")
            sys.stdout.flush()
            self.stats['publish_successes'] += 1
            return True

        if not self.connected:
            logger.error("Cannot publish: not connected to MQTT broker")
            self.stats['publish_failures'] += 1
            return False

        try:
            result = self.client.publish(
                topic=topic,
                payload=payload,
                qos=self.config.mqtt_qos,
                retain=self.config.retain
            )
        except (ValueError, TypeError, OSError) as e:
            logger.error(f"MQTT error during publish to {topic}: {e}")
            self.stats['publish_failures'] += 1
            return False

        if result.rc == mqtt.MQTT_ERR_SUCCESS:
            self.stats['publish_successes'] += 1
            logger.debug(f"Published {len(payload)} bytes to {topic} (QoS: {self.config.mqtt_qos})")
            return True

        logger.error(f"Error publishing message: {mqtt.error_string(result.rc)}")
        self.stats['publish_failures'] += 1
        return False

    def request_shutdown(self) -> None:
        """Abort any pending connection wait or retry backoff."""
        self.shutdown_requested = True
        self._shutdown_event.set()

    def disconnect(self) -> None:
        """Disconnect from the MQTT broker and stop the network loop."""
        with logged_operation("MQTT disconnect", logger, reraise=False):
            self.request_shutdown()

            if self.client is None:
                return

            try:
                if self.connected:
                    logger.info("Disconnecting from MQTT broker...")
                    self.client.disconnect()
                self.client.loop_stop()
                logger.info("MQTT client disconnected")
            finally:
                self.connected = False

    def get_statistics(self) -> Dict[str, int]:
        """Copy of the connection and publish counters."""
        return self.stats.copy()

    def __enter__(self):
        # connect() only returns False when shutdown was requested mid-connect
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
        return False
