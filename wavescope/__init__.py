"""
WaveScope Audio Visualizer

Load an audio file, play or stop it, adjust its volume, and watch a live
oscilloscope trace of the signal as it plays.
"""

__version__ = "1.0.0"
__author__ = "WaveScope Team"

# core first: audio.decoder depends on core.models
from wavescope.core import AudioVisualizer, DecodedAudio, PlaybackState  # noqa: E402

__all__ = ["AudioVisualizer", "DecodedAudio", "PlaybackState", "__version__"]
