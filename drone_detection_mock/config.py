"""
Configuration management for the detection mock stream.
"""

from dataclasses import dataclass, fields
from typing import Optional, Dict, Any, Union
import yaml
import json
from pathlib import Path


@dataclass
class MockConfig:
    """Connection and run parameters for the detection mock stream."""

    # MQTT settings
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_topic: str = "drone/detections"
    mqtt_keepalive: int = 60
    mqtt_qos: int = 0
    retain: bool = False
    clean_session: bool = True
    client_id: str = "drone_simulator"
    connect_timeout_s: float = 10.0
    connect_attempts: int = 1

    # Stream cadence
    interval_ms: int = 100  # 10 FPS
    max_messages: Optional[int] = None  # None streams until interrupted

    # Simulation
    num_drones: int = 2
    max_consecutive_serialization_failures: int = 3

    # Testing options
    deterministic_seed: Optional[int] = None
    offline_mode: bool = False  # Print JSON instead of MQTT

    def __post_init__(self):
        """Validate configuration parameters after initialization."""
        self.validate()

    def validate(self) -> None:
        """
        Validate configuration parameters and raise clear errors for invalid values.

        Raises:
            ValueError: If configuration parameters are invalid
        """
        if not isinstance(self.mqtt_host, str) or not self.mqtt_host.strip():
            raise ValueError("MQTT host cannot be empty")

        if self.mqtt_port <= 0 or self.mqtt_port > 65535:
            raise ValueError("MQTT port must be between 1 and 65535")

        if not isinstance(self.mqtt_topic, str) or not self.mqtt_topic.strip():
            raise ValueError("MQTT topic cannot be empty")

        if any(wildcard in self.mqtt_topic for wildcard in ("+", "#")):
            raise ValueError("MQTT topic cannot contain wildcards when publishing")

        if self.mqtt_keepalive <= 0:
            raise ValueError("MQTT keepalive must be positive")

        if not (0 <= self.mqtt_qos <= 2):
            raise ValueError("MQTT QoS must be 0, 1, or 2")

        if self.connect_timeout_s <= 0:
            raise ValueError("Connect timeout must be positive")

        if self.connect_attempts < 1:
            raise ValueError("Connect attempts must be at least 1")

        if self.interval_ms <= 0:
            raise ValueError("Update interval must be positive")

        if self.max_messages is not None and self.max_messages <= 0:
            raise ValueError("Maximum message count must be positive when set")

        if self.num_drones <= 0:
            raise ValueError("Number of drones must be positive")

        if self.max_consecutive_serialization_failures < 1:
            raise ValueError("Serialization failure limit must be at least 1")

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'MockConfig':
        """
        Create MockConfig from dictionary with proper error handling.

        Args:
            config_dict: Dictionary containing configuration parameters

        Returns:
            MockConfig instance

        Raises:
            ValueError: If configuration is invalid
            TypeError: If parameter names or types are incorrect
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config_dict) - known)
        if unknown:
            raise TypeError(f"Unknown configuration parameters: {', '.join(unknown)}")

        try:
            return cls(**config_dict)
        except TypeError as e:
            raise TypeError(f"Invalid parameter type in configuration: {e}")
        except ValueError:
            raise
        except Exception as e:
            raise ValueError(f"Failed to create configuration: {e}")

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> 'MockConfig':
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            MockConfig instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ValueError: If the file cannot be parsed or the configuration is invalid
        """
        yaml_path = Path(yaml_path)

        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, 'r') as f:
                config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML file {yaml_path}: {e}")

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ValueError(f"Configuration file {yaml_path} must contain a mapping")

        return cls.from_dict(config_dict)

    @classmethod
    def from_json(cls, json_path: Union[str, Path]) -> 'MockConfig':
        """
        Load configuration from JSON file.

        Args:
            json_path: Path to JSON configuration file

        Returns:
            MockConfig instance

        Raises:
            FileNotFoundError: If JSON file doesn't exist
            ValueError: If the file cannot be parsed or the configuration is invalid
        """
        json_path = Path(json_path)

        if not json_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {json_path}")

        try:
            with open(json_path, 'r') as f:
                config_dict = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse JSON file {json_path}: {e}")

        if not isinstance(config_dict, dict):
            raise ValueError(f"Configuration file {json_path} must contain an object")

        return cls.from_dict(config_dict)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'MockConfig':
        """Load configuration from a .yaml, .yml or .json file."""
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix in ('.yaml', '.yml'):
            return cls.from_yaml(path)
        if suffix == '.json':
            return cls.from_json(path)
        raise ValueError(
            f"Unsupported configuration file format: {path.suffix} "
            "(supported: .yaml, .yml, .json)"
        )

    def with_overrides(self, overrides: Dict[str, Any]) -> 'MockConfig':
        """Return a new validated configuration with the given fields replaced."""
        if not overrides:
            return self
        config_dict = self.to_dict()
        config_dict.update(overrides)
        return MockConfig.from_dict(config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Returns:
            Dictionary representation of configuration
        """
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_yaml(self, yaml_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        yaml_path = Path(yaml_path)
        yaml_path.parent.mkdir(parents=True, exist_ok=True)

        with open(yaml_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, indent=2, sort_keys=False)

    def to_json(self, json_path: Union[str, Path]) -> None:
        """Save configuration to JSON file."""
        json_path = Path(json_path)
        json_path.parent.mkdir(parents=True, exist_ok=True)

        with open(json_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
