"""
Configuration management for SigURL Python SDK

This module loads environment-specific signed URL and logging settings
from the unified JSON configuration format.
"""

from .unified_config import (
    UnifiedConfig,
    UnifiedConfigManager,
    EnvironmentConfig,
    SigningSection,
    LoggingConfig,
    DefaultConfig,
    UnifiedConfigError,
    resolve_timezone,
    configure_logging,
    create_unified_config,
    load_unified_config_from_json,
    load_unified_config_from_file,
    load_default_unified_config,
)

__all__ = [
    'UnifiedConfig',
    'UnifiedConfigManager',
    'EnvironmentConfig',
    'SigningSection',
    'LoggingConfig',
    'DefaultConfig',
    'UnifiedConfigError',
    'resolve_timezone',
    'configure_logging',
    'create_unified_config',
    'load_unified_config_from_json',
    'load_unified_config_from_file',
    'load_default_unified_config',
]
