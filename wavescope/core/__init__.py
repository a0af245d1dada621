"""
Core components: playback state machine, audio graph, render loop.
"""

from wavescope.core.models import AudioGraph, DecodedAudio, PlaybackState
from wavescope.core.graph import AudioGraphManager
from wavescope.core.playback import PlaybackController
from wavescope.core.render_loop import RenderLoop, Scheduler, TkScheduler
from wavescope.core.sampler import SampleReader
from wavescope.core.visualizer import AudioVisualizer

__all__ = [
    "AudioGraph",
    "DecodedAudio",
    "PlaybackState",
    "AudioGraphManager",
    "PlaybackController",
    "RenderLoop",
    "Scheduler",
    "TkScheduler",
    "SampleReader",
    "AudioVisualizer",
]
