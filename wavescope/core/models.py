"""
Core data models for the WaveScope audio visualizer.

Immutable decoded audio, the playback state enum and the audio graph handle.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from wavescope.audio.nodes import AnalyserNode, GainNode


class PlaybackState(Enum):
    """Playback state machine states."""

    IDLE = "idle"        # no decoded audio
    LOADED = "loaded"    # decoded audio present, no active source
    PLAYING = "playing"  # exactly one source connected and started


@dataclass(frozen=True, eq=False)
class DecodedAudio:
    """
    Immutable buffer of decoded sample frames.

    Produced once by the decoder and replaced wholesale on the next load.
    """

    name: str
    sample_rate: int
    samples: np.ndarray  # Shape: (frames, channels), float32, read-only

    def __post_init__(self) -> None:
        samples = np.asarray(self.samples, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples[:, None]
        if samples.ndim != 2:
            raise ValueError(f"expected (frames, channels) samples, got shape {samples.shape}")
        if self.sample_rate <= 0:
            raise ValueError("sample_rate must be positive")
        if not samples.flags.c_contiguous:
            samples = np.ascontiguousarray(samples)
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)

    @property
    def frames(self) -> int:
        return int(self.samples.shape[0])

    @property
    def channels(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.frames / float(self.sample_rate)

    @classmethod
    def silence(cls, duration: float, sample_rate: int = 44100, channels: int = 1,
                name: str = "silence") -> "DecodedAudio":
        """Build a silent buffer of the given duration."""
        frames = int(round(duration * sample_rate))
        return cls(
            name=name,
            sample_rate=sample_rate,
            samples=np.zeros((frames, channels), dtype=np.float32),
        )


@dataclass(frozen=True)
class AudioGraph:
    """
    The long-lived part of the routing graph.

    Analyser -> Gain -> destination. Sources are attached per play.
    """

    analyser: "AnalyserNode"
    gain: "GainNode"

    def disconnect(self) -> None:
        self.analyser.disconnect()
        self.gain.disconnect()
