"""
Unified configuration management for Python SDK

Loads a JSON document of named environments and turns the selected
environment into a ``SignedURLConfig`` and a ``LoggingConfig``.

Example document::

    {
      "config_format_version": "1.0",
      "environments": {
        "production": {
          "signing": {"prefix": "X-Sig", "encoding": "Hex", "timezone": "UTC"},
          "policy": {"Statement": {"IpAddress": {"Type": "Any", "Value": []}}},
          "logging": {"level": "WARNING", "structured": false}
        }
      },
      "defaults": {"environment": "production"}
    }
"""

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..exceptions import ConfigurationError, InvalidConfigError, InvalidPolicyError
from ..signing.parameters import DEFAULT_PREFIX
from ..signing.signing_config import DEFAULT_SLOW_OPERATION_MS, SignedURLConfig
from ..signing.types import SignatureEncoding
from ..verification.policies import CustomPolicy

SUPPORTED_FORMAT_VERSIONS = ("1.0",)

DEFAULT_CONFIG_PATHS = [
    Path("config/sigurl-config.json"),
    Path("../config/sigurl-config.json"),
    Path.home() / ".sigurl" / "config.json",
]


class UnifiedConfigError(ConfigurationError):
    """Configuration loading and validation error"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message, code)
        self.code = self.error_code


@dataclass
class SigningSection:
    """Signed URL settings of one environment"""
    prefix: str = DEFAULT_PREFIX
    encoding: str = SignatureEncoding.HEX.value
    timezone: str = "UTC"
    slow_operation_ms: float = DEFAULT_SLOW_OPERATION_MS


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "WARNING"
    structured: bool = False


@dataclass
class EnvironmentConfig:
    """Environment-specific configuration"""
    signing: SigningSection = field(default_factory=SigningSection)
    policy: Optional[Dict[str, Any]] = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)


@dataclass
class DefaultConfig:
    """Default configuration values"""
    environment: str


@dataclass
class UnifiedConfig:
    """Unified configuration structure"""
    config_format_version: str
    environments: Dict[str, EnvironmentConfig]
    defaults: DefaultConfig


def resolve_timezone(name: str) -> tzinfo:
    """
    Resolve an IANA zone name.

    Raises:
        UnifiedConfigError: If the zone is unknown
    """
    if not isinstance(name, str):
        raise UnifiedConfigError(f"Time zone must be a name, got {name!r}", "INVALID_TIMEZONE")
    if name.upper() in ("UTC", "Z"):
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise UnifiedConfigError(f"Unknown time zone '{name}'", "INVALID_TIMEZONE") from e


class UnifiedConfigManager:
    """Unified configuration manager for Python SDK"""

    def __init__(self, config: UnifiedConfig, environment: Optional[str] = None):
        self.config = config
        self.current_environment = environment or config.defaults.environment
        self._validate()

    @classmethod
    def from_json(cls, json_string: str, environment: Optional[str] = None) -> 'UnifiedConfigManager':
        """Load unified configuration from JSON string"""
        try:
            data = json.loads(json_string)
            config = cls._parse_config_dict(data)
        except json.JSONDecodeError as e:
            raise UnifiedConfigError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR") from e
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise UnifiedConfigError(f"Invalid configuration format: {e}", "INVALID_FORMAT") from e
        return cls(config, environment)

    @classmethod
    def from_file(cls, file_path: Union[str, Path], environment: Optional[str] = None) -> 'UnifiedConfigManager':
        """Load unified configuration from file"""
        try:
            path = Path(file_path)
            with open(path, 'r', encoding='utf-8') as f:
                json_string = f.read()
        except OSError as e:
            raise UnifiedConfigError(f"Failed to read configuration file: {e}", "FILE_ERROR") from e
        return cls.from_json(json_string, environment)

    @classmethod
    def load_default(cls, environment: Optional[str] = None) -> 'UnifiedConfigManager':
        """Load configuration from the first default location that exists"""
        for path in DEFAULT_CONFIG_PATHS:
            if path.exists():
                return cls.from_file(path, environment)

        raise UnifiedConfigError("Default configuration file not found", "FILE_NOT_FOUND")

    def set_environment(self, environment: str) -> None:
        """Set current environment"""
        if environment not in self.config.environments:
            raise UnifiedConfigError(f"Environment '{environment}' not found", "ENVIRONMENT_NOT_FOUND")
        self.current_environment = environment

    def get_current_environment_config(self) -> EnvironmentConfig:
        """Get current environment configuration"""
        env_config = self.config.environments.get(self.current_environment)
        if not env_config:
            raise UnifiedConfigError(f"Environment '{self.current_environment}' not found", "ENVIRONMENT_NOT_FOUND")
        return env_config

    def to_signed_url_config(self, **overrides) -> SignedURLConfig:
        """
        Convert the current environment to a ``SignedURLConfig``.

        Keyword overrides replace the matching fields (e.g. ``extra_rules``).
        """
        config = self._build_for(self.get_current_environment_config())
        return replace(config, **overrides) if overrides else config

    def list_environments(self) -> List[str]:
        """List available environments"""
        return list(self.config.environments.keys())

    def get_current_environment(self) -> str:
        """Get current environment name"""
        return self.current_environment

    def get_config(self) -> UnifiedConfig:
        """Get the full unified configuration"""
        return self.config

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration for current environment"""
        return self.get_current_environment_config().logging

    def _validate(self) -> None:
        """Validate the configuration"""
        if self.config.config_format_version not in SUPPORTED_FORMAT_VERSIONS:
            raise UnifiedConfigError(
                f"Unsupported configuration format version '{self.config.config_format_version}'",
                "UNSUPPORTED_VERSION"
            )

        # Validate default environment exists
        if self.config.defaults.environment not in self.config.environments:
            raise UnifiedConfigError(
                f"Default environment '{self.config.defaults.environment}' not found",
                "INVALID_DEFAULT_ENVIRONMENT"
            )

        if self.current_environment not in self.config.environments:
            raise UnifiedConfigError(
                f"Environment '{self.current_environment}' not found",
                "ENVIRONMENT_NOT_FOUND"
            )

        # Validate each environment by building its SignedURLConfig
        for env_name, env_config in self.config.environments.items():
            try:
                self._build_for(env_config)
            except InvalidPolicyError as e:
                raise UnifiedConfigError(
                    f"Environment '{env_name}' has an invalid policy: {e.message}",
                    "INVALID_POLICY"
                ) from e
            except (InvalidConfigError, TypeError) as e:
                raise UnifiedConfigError(
                    f"Environment '{env_name}' has invalid signing settings: {e}",
                    "INVALID_SIGNING_CONFIG"
                ) from e

            if not isinstance(logging.getLevelName(str(env_config.logging.level).upper()), int):
                raise UnifiedConfigError(
                    f"Environment '{env_name}' has unknown log level '{env_config.logging.level}'",
                    "INVALID_LOGGING_CONFIG"
                )

    def _build_for(self, env_config: EnvironmentConfig) -> SignedURLConfig:
        signing = env_config.signing
        return SignedURLConfig(
            prefix=signing.prefix,
            encoding=signing.encoding,
            timezone=resolve_timezone(signing.timezone),
            custom_policy=(
                CustomPolicy.from_dict(env_config.policy)
                if env_config.policy is not None else CustomPolicy()
            ),
            slow_operation_ms=signing.slow_operation_ms,
        )

    @staticmethod
    def _parse_config_dict(data: Dict[str, Any]) -> UnifiedConfig:
        """Parse configuration dictionary into structured objects"""

        # Parse environments
        environments = {}
        for env_name, env_data in data['environments'].items():
            environments[env_name] = EnvironmentConfig(
                signing=SigningSection(**env_data.get('signing', {})),
                policy=env_data.get('policy'),
                logging=LoggingConfig(**env_data.get('logging', {}))
            )

        # Parse defaults
        defaults = DefaultConfig(**data['defaults'])

        return UnifiedConfig(
            config_format_version=data['config_format_version'],
            environments=environments,
            defaults=defaults
        )


def configure_logging(config: LoggingConfig, logger_name: str = "sigurl_sdk") -> logging.Logger:
    """
    Apply a ``LoggingConfig`` to the SDK's logger hierarchy.

    Structured output renders one ``key=value`` record per line.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(config.level.upper())

    if config.structured:
        fmt = 'time=%(asctime)s level=%(levelname)s logger=%(name)s message="%(message)s"'
    else:
        fmt = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))

    logger.handlers = [handler]
    logger.propagate = False
    return logger


def create_unified_config(config: UnifiedConfig, environment: Optional[str] = None) -> UnifiedConfigManager:
    """Create unified configuration manager from configuration object"""
    return UnifiedConfigManager(config, environment)


def load_unified_config_from_json(json_string: str, environment: Optional[str] = None) -> UnifiedConfigManager:
    """Load unified configuration from JSON string"""
    return UnifiedConfigManager.from_json(json_string, environment)


def load_unified_config_from_file(file_path: Union[str, Path], environment: Optional[str] = None) -> UnifiedConfigManager:
    """Load unified configuration from file"""
    return UnifiedConfigManager.from_file(file_path, environment)


def load_default_unified_config(environment: Optional[str] = None) -> UnifiedConfigManager:
    """Load default unified configuration"""
    return UnifiedConfigManager.load_default(environment)
