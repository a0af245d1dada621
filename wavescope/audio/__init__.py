"""Audio output graph and decoding."""

from wavescope.audio.context import AudioContext
from wavescope.audio.decoder import AsyncAudioDecoder, AudioDecoder, create_audio_decoder
from wavescope.audio.nodes import (
    AnalyserNode,
    AudioNode,
    BufferSourceNode,
    GainNode,
    SourceState,
)

__all__ = [
    "AudioContext",
    "AudioDecoder",
    "AsyncAudioDecoder",
    "create_audio_decoder",
    "AudioNode",
    "AnalyserNode",
    "BufferSourceNode",
    "GainNode",
    "SourceState",
]
