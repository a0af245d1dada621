"""Visualization module for the live waveform."""

from wavescope.visualization.waveform import (
    CanvasSurface,
    DrawingSurface,
    WaveformRenderer,
    WaveformStyle,
    waveform_points,
)

__all__ = [
    "CanvasSurface",
    "DrawingSurface",
    "WaveformRenderer",
    "WaveformStyle",
    "waveform_points",
]
