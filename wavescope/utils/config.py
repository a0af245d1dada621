"""
Configuration management for the WaveScope audio visualizer.

Loads and validates configuration from YAML files with environment
variable interpolation support.
"""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from wavescope.utils.errors import ConfigurationError


CONFIG_ENV_VAR = "WAVESCOPE_CONFIG"


class ConfigManager:
    """
    Manages application configuration loaded from YAML files.

    Features:
    - YAML configuration loading
    - Environment variable interpolation (${VAR_NAME})
    - Nested key access with dot notation
    - Default value support
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration manager.

        Args:
            config_dict: Optional pre-loaded configuration dictionary
        """
        self._config: Dict[str, Any] = config_dict or {}
        self._env_pattern = re.compile(r'\$\{([^}]+)\}')

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Create ConfigManager from YAML file.

        Args:
            file_path: Path to YAML configuration file

        Returns:
            ConfigManager: Initialized with file contents

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        if not file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                config_key=str(file_path)
            )

        try:
            with open(file_path, 'r') as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML configuration: {e}",
                config_key=str(file_path)
            )

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                config_key=str(file_path)
            )

        manager = cls(config_dict)
        manager._interpolate_env_vars()
        return manager

    def _interpolate_env_vars(self) -> None:
        """Replace ${ENV_VAR} patterns with environment variable values."""
        self._config = self._interpolate(self._config)

    def _interpolate(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: self._interpolate(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._interpolate(v) for v in value]
        if isinstance(value, str):
            return self._interpolate_string(value)
        return value

    def _interpolate_string(self, s: str) -> str:
        """Replace ${ENV_VAR} with environment variable value."""
        def replace(match: re.Match) -> str:
            value = os.environ.get(match.group(1))
            if value is None:
                return match.group(0)  # Keep original if not found
            return value

        return self._env_pattern.sub(replace, s)

    def get(
        self,
        key: str,
        default: Any = None,
        required: bool = False
    ) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key (supports dot notation: "canvas.width")
            default: Default value if key not found
            required: If True, raise error when key not found

        Returns:
            Configuration value or default

        Raises:
            ConfigurationError: If required key is not found
        """
        value = self._config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                if required:
                    raise ConfigurationError(
                        f"Required configuration key not found: {key}",
                        config_key=key
                    )
                return default

        return value

    def get_section(self, key: str) -> Dict[str, Any]:
        """Get an entire configuration section (empty dict if not found)."""
        value = self.get(key, default={})
        if not isinstance(value, dict):
            return {}
        return value

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary."""
        return copy.deepcopy(self._config)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay ``override`` onto a copy of ``base``."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file merged over the defaults.

    Args:
        config_path: Optional path to config file. If None, the path in
                     $WAVESCOPE_CONFIG is used, then "config/config.yaml"
                     and "config.yaml".

    Returns:
        Dict[str, Any]: Validated configuration dictionary

    Raises:
        ConfigurationError: If an explicit path is missing or the result
                            fails validation
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR)

    if config_path is None:
        default_paths = [
            Path("config/config.yaml"),
            Path("config.yaml"),
            Path(__file__).parent.parent.parent / "config" / "config.yaml",
        ]
        for path in default_paths:
            if path.exists():
                config_path = str(path)
                break

    config = get_default_config()
    if config_path:
        manager = ConfigManager.from_file(Path(config_path))
        config = _merge(config, manager.to_dict())

    validate_config(config)
    return config


def _is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def validate_config(config: Dict[str, Any]) -> None:
    """
    Check types and ranges of the values the visualizer relies on.

    Raises:
        ConfigurationError: On the first invalid value
    """
    manager = ConfigManager(config)

    positive_ints = [
        "audio.sample_rate",
        "audio.channels",
        "audio.max_file_size",
        "canvas.width",
        "canvas.height",
    ]
    for key in positive_ints:
        value = manager.get(key, required=True)
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ConfigurationError(
                f"Invalid value for {key}: expected positive integer, got {value!r}",
                config_key=key
            )

    blocksize = manager.get("audio.blocksize", 0)
    if isinstance(blocksize, bool) or not isinstance(blocksize, int) or blocksize < 0:
        raise ConfigurationError(
            f"Invalid value for audio.blocksize: {blocksize!r}",
            config_key="audio.blocksize"
        )

    fft_size = manager.get("analyser.fft_size", required=True)
    if (
        isinstance(fft_size, bool)
        or not isinstance(fft_size, int)
        or not _is_power_of_two(fft_size)
        or not 32 <= fft_size <= 32768
    ):
        raise ConfigurationError(
            f"analyser.fft_size must be a power of two in [32, 32768], got {fft_size!r}",
            config_key="analyser.fft_size"
        )

    fps = manager.get("render.fps", required=True)
    if isinstance(fps, bool) or not isinstance(fps, (int, float)) or fps <= 0:
        raise ConfigurationError(
            f"render.fps must be positive, got {fps!r}",
            config_key="render.fps"
        )

    volume = manager.get("volume.initial", required=True)
    if isinstance(volume, bool) or not isinstance(volume, (int, float)) or not 0.0 <= volume <= 2.0:
        raise ConfigurationError(
            f"volume.initial must be within [0, 2], got {volume!r}",
            config_key="volume.initial"
        )


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "audio": {
            "sample_rate": 44100,
            "channels": 2,
            "blocksize": 0,  # let the device choose
            "latency": "low",
            "max_file_size": 524288000,  # 500 MB
        },
        "analyser": {
            "fft_size": 2048,
        },
        "canvas": {
            "width": 800,
            "height": 400,
            "background": "#000000",
            "line": "#add8e6",
            "line_width": 2,
        },
        "render": {
            "fps": 60,
        },
        "volume": {
            "initial": 1.0,
        },
        "logging": {
            "level": "INFO",
            "format": "text",
            "file": None,
        },
    }
