"""
Custom exceptions for the WaveScope audio visualizer.

This module defines a hierarchy of exceptions for the error conditions
raised by the audio platform, the decoder and the playback state machine.
"""

from typing import Optional, Any


class VisualizerError(Exception):
    """Base exception for all visualizer errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class AudioInitError(VisualizerError):
    """Raised when the audio output subsystem cannot be initialized."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error
        self.details = {
            "original_error": str(original_error) if original_error else None,
        }


class DecodeError(VisualizerError):
    """Raised when raw bytes are not valid or supported audio."""

    def __init__(self, message: str, name: Optional[str] = None):
        super().__init__(message, details={"name": name})
        self.name = name


class InvalidTransition(VisualizerError):
    """Raised when an action is not allowed in the current playback state."""

    def __init__(self, action: str, state: Any):
        state_name = getattr(state, "name", str(state))
        super().__init__(
            f"Cannot {action} while {state_name}",
            details={"action": action, "state": state_name},
        )
        self.action = action
        self.state = state


class ConfigurationError(VisualizerError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}
