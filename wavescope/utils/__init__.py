"""
Utility modules for configuration, logging, and error handling.
"""

from wavescope.utils.errors import (
    VisualizerError,
    AudioInitError,
    DecodeError,
    InvalidTransition,
    ConfigurationError,
)
from wavescope.utils.logging import get_logger, setup_logging, JSONFormatter
from wavescope.utils.config import ConfigManager, load_config, get_default_config

__all__ = [
    "VisualizerError",
    "AudioInitError",
    "DecodeError",
    "InvalidTransition",
    "ConfigurationError",
    "get_logger",
    "setup_logging",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
    "get_default_config",
]
