"""
Command-line interface for the detection mock stream.

This module provides the CLI with configuration file loading, parameter
overrides and the utility commands for checking a configuration.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, Any, Optional

from . import __version__
from .config import MockConfig
from .error_handling import ConfigurationError, MQTTError, SimulationError, wrap_error
from .logging_config import MockLogger
from .simulator import DetectionStreamer


def create_parser() -> argparse.ArgumentParser:
    """
    Create the command-line argument parser.

    -h is the broker host, so help is only available as --help.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Drone Detection Simulator - Stream synthetic drone detections over MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        epilog="""
Examples:
  # Stream to a local broker at 10 messages per second
  python -m drone_detection_mock

  # Stream to a remote broker on a custom topic
  python -m drone_detection_mock -h 192.168.1.103 -t sensors/cam01/detections

  # Send 50 messages at 5 per second, then exit
  python -m drone_detection_mock --interval 200 --count 50

  # Print JSON instead of publishing, reproducibly
  python -m drone_detection_mock --offline --seed 42 --count 10

  # Run with a configuration file
  python -m drone_detection_mock --config examples/local_broker.yaml
        """
    )

    mqtt_group = parser.add_argument_group("MQTT parameters")
    mqtt_group.add_argument(
        "-h", "--host",
        type=str,
        metavar="HOST",
        help="MQTT broker host (default: localhost)"
    )

    mqtt_group.add_argument(
        "-p", "--port",
        type=int,
        metavar="PORT",
        help="MQTT broker port (default: 1883)"
    )

    mqtt_group.add_argument(
        "-t", "--topic",
        type=str,
        metavar="TOPIC",
        help="MQTT topic (default: drone/detections)"
    )

    mqtt_group.add_argument(
        "--qos",
        type=int,
        choices=[0, 1, 2],
        help="MQTT Quality of Service level (default: 0)"
    )

    mqtt_group.add_argument(
        "--keepalive",
        type=int,
        metavar="SECONDS",
        help="MQTT keepalive interval (default: 60)"
    )

    mqtt_group.add_argument(
        "--client-id",
        type=str,
        metavar="ID",
        help="MQTT client identifier (default: drone_simulator)"
    )

    stream_group = parser.add_argument_group("stream parameters")
    stream_group.add_argument(
        "-i", "--interval",
        type=int,
        metavar="MS",
        help="Update interval in milliseconds (default: 100)"
    )

    stream_group.add_argument(
        "-c", "--count",
        type=int,
        metavar="NUM",
        help="Number of detections to send (default: unlimited)"
    )

    stream_group.add_argument(
        "-n", "--num-drones",
        type=int,
        metavar="COUNT",
        help="Number of drones to simulate (default: 2)"
    )

    parser.add_argument(
        "--config",
        type=str,
        metavar="FILE",
        help="Path to configuration file (YAML or JSON)"
    )

    test_group = parser.add_argument_group("testing and debugging options")
    test_group.add_argument(
        "--offline",
        action="store_true",
        help="Print JSON to stdout instead of publishing"
    )

    test_group.add_argument(
        "--seed",
        type=int,
        metavar="SEED",
        help="Random seed for reproducible output"
    )

    test_group.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    test_group.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress all output except errors"
    )

    test_group.add_argument(
        "--log-file",
        type=str,
        metavar="FILE",
        help="Path to log file for detailed logging"
    )

    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate configuration and exit"
    )

    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print effective configuration and exit"
    )

    parser.add_argument(
        "--help",
        action="help",
        help="Show this help message and exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def setup_logging(verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None) -> None:
    """Configure logging from the verbosity flags."""
    MockLogger.setup_logging(
        level=logging.INFO,
        log_file=Path(log_file) if log_file else None,
        console_output=True,
        verbose=verbose,
        quiet=quiet
    )


def build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Build configuration overrides from command-line arguments.

    Args:
        args: Parsed command-line arguments

    Returns:
        Dictionary of configuration overrides
    """
    overrides = {}

    if args.host is not None:
        overrides['mqtt_host'] = args.host
    if args.port is not None:
        overrides['mqtt_port'] = args.port
    if args.topic is not None:
        overrides['mqtt_topic'] = args.topic
    if args.qos is not None:
        overrides['mqtt_qos'] = args.qos
    if args.keepalive is not None:
        overrides['mqtt_keepalive'] = args.keepalive
    if args.client_id is not None:
        overrides['client_id'] = args.client_id

    if args.interval is not None:
        overrides['interval_ms'] = args.interval
    if args.count is not None:
        # The C tool treated any non-positive count as unlimited
        overrides['max_messages'] = args.count if args.count > 0 else None
    if args.num_drones is not None:
        overrides['num_drones'] = args.num_drones

    if args.offline:
        overrides['offline_mode'] = True
    if args.seed is not None:
        overrides['deterministic_seed'] = args.seed

    return overrides


def load_configuration(config_path: Optional[str], overrides: Dict[str, Any]) -> MockConfig:
    """
    Load configuration from file and apply overrides.

    Args:
        config_path: Path to configuration file (optional)
        overrides: Configuration parameter overrides

    Returns:
        Loaded and validated MockConfig

    Raises:
        ConfigurationError: If the file cannot be loaded or the result is invalid
    """
    source = config_path or "command line"
    try:
        config = MockConfig.from_file(config_path) if config_path else MockConfig()
        return config.with_overrides(overrides)
    except (OSError, ValueError, TypeError) as e:
        raise wrap_error(e, ConfigurationError, "CONFIG_ERROR",
                         f"Configuration error in {source}", source=source)


def print_configuration(config: MockConfig) -> None:
    """Print the effective configuration in a readable format."""
    print("Effective Configuration:")
    print("=" * 50)

    config_dict = config.to_dict()

    groups = {
        "MQTT Settings": [
            'mqtt_host', 'mqtt_port', 'mqtt_topic', 'mqtt_keepalive', 'mqtt_qos',
            'retain', 'clean_session', 'client_id', 'connect_timeout_s', 'connect_attempts'
        ],
        "Stream": [
            'interval_ms', 'max_messages', 'num_drones', 'max_consecutive_serialization_failures'
        ],
        "Testing Options": [
            'deterministic_seed', 'offline_mode'
        ]
    }

    for group_name, param_names in groups.items():
        print(f"\n{group_name}:")
        for param_name in param_names:
            value = config_dict[param_name]
            if value is None and param_name == 'max_messages':
                value = "unlimited"
            if value is not None:
                print(f"  {param_name}: {value}")


def main(argv: Optional[list] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.quiet, args.log_file)
    logger = MockLogger.get_logger(__name__)

    try:
        config = load_configuration(args.config, build_config_overrides(args))
    except ConfigurationError as e:
        if args.validate_config:
            print("Configuration validation: FAILED")
        logger.error(str(e))
        return 1

    if args.validate_config:
        print("Configuration validation: PASSED")
        return 0

    if args.print_config:
        print_configuration(config)
        return 0

    if args.verbose:
        MockLogger.log_configuration(config.to_dict())

    if config.offline_mode:
        logger.info("Running in offline mode (printing JSON)")
    else:
        logger.info(f"MQTT Broker: {config.mqtt_host}:{config.mqtt_port}, topic: {config.mqtt_topic}")
    logger.info(f"Update Interval: {config.interval_ms} ms, "
                f"Max Detections: {config.max_messages or 'Unlimited'}")

    try:
        streamer = DetectionStreamer(config)
        results = streamer.run()
    except MQTTError as e:
        logger.error(f"Failed to connect to MQTT broker: {e}")
        return 1
    except SimulationError as e:
        logger.error(f"Simulation failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Simulation interrupted by user")
        return 130

    if not args.quiet:
        MockLogger.log_statistics(results)

    logger.info("Drone simulator shutdown complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
