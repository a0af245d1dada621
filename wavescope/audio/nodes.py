"""
Audio routing nodes.

Nodes form a pull graph: the context asks ``destination`` for a block of
frames, each node mixes the blocks pulled from its inputs and applies its own
processing. All graph state is guarded by the owning context's lock because
the device callback pulls on its own thread.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

import numpy as np

from wavescope.utils.errors import InvalidTransition

if TYPE_CHECKING:
    from wavescope.audio.context import AudioContext
    from wavescope.core.models import DecodedAudio


logger = logging.getLogger(__name__)

MIN_FFT_SIZE = 32
MAX_FFT_SIZE = 32768


def match_channels(block: np.ndarray, channels: int) -> np.ndarray:
    """Map a (frames, n) block onto ``channels`` output channels."""
    src = block.shape[1]
    if src == channels:
        return block
    if src == 1:
        return np.repeat(block, channels, axis=1)
    if channels == 1:
        return block.mean(axis=1, keepdims=True)
    if src > channels:
        return block[:, :channels]
    out = np.zeros((block.shape[0], channels), dtype=np.float32)
    out[:, :src] = block
    return out


class AudioNode:
    """Base node: mixes its inputs and passes the result through."""

    def __init__(self, context: "AudioContext"):
        self.context = context
        self._inputs: List[AudioNode] = []
        self._outputs: List[AudioNode] = []

    @property
    def outputs(self) -> List["AudioNode"]:
        return list(self._outputs)

    @property
    def inputs(self) -> List["AudioNode"]:
        return list(self._inputs)

    def connect(self, destination: "AudioNode") -> "AudioNode":
        """Connect this node's output to ``destination``; returns destination."""
        if destination.context is not self.context:
            raise ValueError("Cannot connect nodes from different contexts")
        with self.context.lock:
            if destination not in self._outputs:
                self._outputs.append(destination)
                destination._inputs.append(self)
        return destination

    def disconnect(self) -> None:
        """Remove every outgoing connection."""
        with self.context.lock:
            for destination in self._outputs:
                if self in destination._inputs:
                    destination._inputs.remove(self)
            self._outputs = []

    def pull(self, frames: int) -> np.ndarray:
        """Produce ``frames`` frames. Caller holds the context lock."""
        return self._process(self._mix_inputs(frames))

    def _mix_inputs(self, frames: int) -> np.ndarray:
        out = np.zeros((frames, self.context.channels), dtype=np.float32)
        for node in self._inputs:
            out += node.pull(frames)
        return out

    def _process(self, block: np.ndarray) -> np.ndarray:
        return block


class AudioDestinationNode(AudioNode):
    """Terminal node feeding the output device."""


class GainNode(AudioNode):
    """Multiplies its input by ``gain``."""

    def __init__(self, context: "AudioContext", gain: float = 1.0):
        super().__init__(context)
        self.gain = gain

    @property
    def gain(self) -> float:
        return self._gain

    @gain.setter
    def gain(self, value: float) -> None:
        value = float(value)
        if not np.isfinite(value):
            raise ValueError(f"gain must be finite, got {value}")
        # Single float store; the device thread picks it up on its next block.
        self._gain = value

    def _process(self, block: np.ndarray) -> np.ndarray:
        if self._gain != 1.0:
            block *= self._gain
        return block


class AnalyserNode(AudioNode):
    """
    Pass-through node that keeps the latest ``fft_size`` mono samples.

    Mirrors the time-domain half of a browser AnalyserNode: callers copy the
    window out as unsigned bytes where 128 is zero amplitude.
    """

    def __init__(self, context: "AudioContext", fft_size: int = 2048):
        super().__init__(context)
        self._window = np.zeros(0, dtype=np.float32)
        self.fft_size = fft_size

    @property
    def fft_size(self) -> int:
        return self._fft_size

    @fft_size.setter
    def fft_size(self, value: int) -> None:
        value = int(value)
        if value < MIN_FFT_SIZE or value > MAX_FFT_SIZE or value & (value - 1):
            raise ValueError(
                f"fft_size must be a power of two in [{MIN_FFT_SIZE}, {MAX_FFT_SIZE}], got {value}"
            )
        with self.context.lock:
            self._fft_size = value
            self._window = np.zeros(value, dtype=np.float32)

    @property
    def frequency_bin_count(self) -> int:
        return self._fft_size // 2

    def _process(self, block: np.ndarray) -> np.ndarray:
        mono = block.mean(axis=1) if block.shape[1] > 1 else block[:, 0]
        n = mono.shape[0]
        size = self._fft_size
        if n >= size:
            self._window[:] = mono[-size:]
        elif n > 0:
            self._window[:-n] = self._window[n:]
            self._window[-n:] = mono
        return block

    def get_float_time_domain_data(self, out: np.ndarray) -> None:
        """Copy the current window into ``out`` as float samples."""
        with self.context.lock:
            n = min(out.shape[0], self._fft_size)
            out[:n] = self._window[:n]

    def get_byte_time_domain_data(self, out: np.ndarray) -> None:
        """Copy the current window into ``out`` as bytes centered at 128."""
        with self.context.lock:
            n = min(out.shape[0], self._fft_size)
            window = self._window[:n].copy()
        out[:n] = np.clip(np.floor(128.0 * (1.0 + window)), 0, 255).astype(np.uint8)


class SourceState(Enum):
    UNSTARTED = "unstarted"
    PLAYING = "playing"
    FINISHED = "finished"


class BufferSourceNode(AudioNode):
    """
    Single-use node that plays a DecodedAudio buffer once.

    After it finishes, by exhaustion or by ``stop()``, the node is dead:
    ``stop()`` becomes a no-op and ``start()`` raises. ``on_ended`` is
    delivered exactly once through the context's ``post``, never while
    the context lock is held.
    """

    def __init__(self, context: "AudioContext"):
        super().__init__(context)
        self._buffer: Optional["DecodedAudio"] = None
        self._state = SourceState.UNSTARTED
        self._position = 0
        self._ended_posted = False
        self.on_ended: Optional[Callable[["BufferSourceNode"], None]] = None

    @property
    def buffer(self) -> Optional["DecodedAudio"]:
        return self._buffer

    @buffer.setter
    def buffer(self, value: "DecodedAudio") -> None:
        if self._state is not SourceState.UNSTARTED:
            raise InvalidTransition("replace buffer", self._state)
        self._buffer = value

    @property
    def state(self) -> SourceState:
        return self._state

    @property
    def position(self) -> int:
        """Frames already rendered."""
        return self._position

    @property
    def active(self) -> bool:
        return self._state is SourceState.PLAYING

    def start(self) -> None:
        """Begin playback immediately. Valid only once per node."""
        with self.context.lock:
            if self._state is not SourceState.UNSTARTED:
                raise InvalidTransition("start source", self._state)
            if self._buffer is None:
                raise ValueError("BufferSourceNode has no buffer")
            self._position = 0
            self._state = SourceState.PLAYING
            if self._buffer.frames == 0:
                self._finish()
        self.context.flush_ended()

    def stop(self) -> bool:
        """
        Halt playback.

        Returns:
            True if the node was playing, False if the call was a no-op
        """
        with self.context.lock:
            if self._state is not SourceState.PLAYING:
                return False
            self._finish()
        self.context.flush_ended()
        return True

    def _finish(self) -> None:
        # Caller holds context.lock; the event is posted once it is released
        self._state = SourceState.FINISHED
        if not self._ended_posted:
            self._ended_posted = True
            self.context.queue_ended(self)

    def _dispatch_ended(self) -> None:
        callback = self.on_ended
        if callback is not None:
            callback(self)

    def pull(self, frames: int) -> np.ndarray:
        channels = self.context.channels
        out = np.zeros((frames, channels), dtype=np.float32)
        if self._state is not SourceState.PLAYING:
            return out

        samples = self._buffer.samples
        chunk = samples[self._position:self._position + frames]
        n = chunk.shape[0]
        if n:
            out[:n] = match_channels(chunk, channels)
        self._position += n
        if self._position >= samples.shape[0]:
            self._finish()
        return out
