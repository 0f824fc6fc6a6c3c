"""
Configuration management with YAML and validation
"""

import yaml
import logging
from dataclasses import asdict
from typing import Dict, Any, Optional, Type, TypeVar
from pathlib import Path

from .exceptions import ConfigError
from .config_types import QueryConfig, ResolverConfig, LoggingConfig, OutputConfig

logger = logging.getLogger(__name__)

T = TypeVar('T')

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

class ConfigManager:
    """Configuration manager with validation and defaults"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self.raw_config = self._load_config()

        # Parse configuration sections
        self.query = self._parse_section('query', QueryConfig)
        self.resolver = self._parse_section('resolver', ResolverConfig)
        self.logging = self._parse_section('logging', LoggingConfig)
        self.output = self._parse_section('output', OutputConfig)

        self.validate()
        if self.config_path:
            logger.debug(f"Configuration loaded from {self.config_path}")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file"""
        if self.config_path is None:
            return {}
        if not self.config_path.exists():
            logger.warning(f"Config file {self.config_path} not found, using defaults")
            return {}

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {self.config_path} must contain a mapping")
        return data

    def _parse_section(self, name: str, section_type: Type[T]) -> T:
        """Build one config dataclass from its YAML section"""
        section = self.raw_config.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"Config section '{name}' must be a mapping")
        try:
            return section_type(**section)
        except TypeError as e:
            raise ConfigError(f"Invalid '{name}' config: {e}") from e

    def validate(self) -> None:
        """Validate configuration values"""
        if not isinstance(self.query.timeout, (int, float)) or self.query.timeout <= 0:
            raise ConfigError("Query timeout must be positive")
        if not isinstance(self.query.connect_timeout, (int, float)) or self.query.connect_timeout <= 0:
            raise ConfigError("Connect timeout must be positive")
        if not isinstance(self.query.protocol_version, int) or self.query.protocol_version < 0:
            raise ConfigError("Protocol version must be a non-negative integer")
        if not isinstance(self.query.max_packet_length, int) or self.query.max_packet_length <= 0:
            raise ConfigError("Max packet length must be positive")

        if not isinstance(self.resolver.dns_timeout, (int, float)) or self.resolver.dns_timeout <= 0:
            raise ConfigError("DNS timeout must be positive")
        if not isinstance(self.resolver.default_port, int) or not 1 <= self.resolver.default_port <= 65535:
            raise ConfigError(f"Invalid default port: {self.resolver.default_port}")

        if str(self.logging.level).upper() not in VALID_LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {self.logging.level}")

        flags = {
            'query.legacy_support': self.query.legacy_support,
            'resolver.srv_enabled': self.resolver.srv_enabled,
            'output.show_player_sample': self.output.show_player_sample,
            'output.show_mods': self.output.show_mods
        }
        for name, value in flags.items():
            if not isinstance(value, bool):
                raise ConfigError(f"'{name}' must be true or false, got {value!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'query': asdict(self.query),
            'resolver': asdict(self.resolver),
            'logging': asdict(self.logging),
            'output': asdict(self.output)
        }


def create_default_config(config_path: str) -> None:
    """Create default configuration file"""
    default_config = ConfigManager().to_dict()

    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(default_config, f, default_flow_style=False, indent=2)
    except OSError as e:
        raise ConfigError(f"Failed to write config: {e}") from e
