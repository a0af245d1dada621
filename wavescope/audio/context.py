"""
Audio output context.

Owns the sounddevice output stream and creates the nodes of the routing
graph. The stream callback pulls each block through the nodes connected to
``destination``.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional

import numpy as np

try:
    import sounddevice as sd
except Exception:  # pragma: no cover - PortAudio missing
    sd = None  # type: ignore

from wavescope.audio.nodes import (
    AnalyserNode,
    AudioDestinationNode,
    BufferSourceNode,
    GainNode,
)
from wavescope.utils.errors import AudioInitError


logger = logging.getLogger(__name__)

StreamFactory = Callable[..., Any]


def _sounddevice_stream(**kwargs: Any) -> Any:
    if sd is None:
        raise AudioInitError("sounddevice is not available (is PortAudio installed?)")
    return sd.OutputStream(**kwargs)


class AudioContext:
    """
    Output stream plus node factory.

    ``post`` delivers node events (source ended) back to the UI thread. It
    must be safe to call from the device thread and is never called while
    ``lock`` is held, so a poster that waits on the UI thread cannot
    deadlock against a tick reading the analyser.
    """

    def __init__(
        self,
        sample_rate: int = 44100,
        channels: int = 2,
        blocksize: int = 0,
        latency: Any = "low",
        post: Optional[Callable[[Callable[[], None]], Any]] = None,
        stream_factory: Optional[StreamFactory] = None,
    ):
        if sample_rate <= 0 or channels <= 0:
            raise ValueError("sample_rate/channels must be positive")

        self.sample_rate = int(sample_rate)
        self.channels = int(channels)
        self.blocksize = int(blocksize)
        self.latency = latency
        self.lock = threading.RLock()
        self.destination = AudioDestinationNode(self)

        self._post = post
        self._stream_factory = stream_factory or _sounddevice_stream
        self._stream: Optional[Any] = None
        self._ended: List[BufferSourceNode] = []
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> None:
        """
        Create and start the output stream. No-op when already open.

        Raises:
            AudioInitError: If the device cannot be opened or started
        """
        if self._closed:
            raise AudioInitError("AudioContext is closed")
        if self._stream is not None:
            return

        stream = None
        try:
            stream = self._stream_factory(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                blocksize=self.blocksize,
                latency=self.latency,
                callback=self._callback,
            )
            stream.start()
        except AudioInitError:
            raise
        except Exception as e:
            logger.error(f"Could not open audio output: {e}")
            if stream is not None:
                self._discard_stream(stream)
            raise AudioInitError(f"Could not open audio output: {e}", original_error=e) from e

        self._stream = stream
        logger.info(
            f"Audio output open: {self.sample_rate} Hz, {self.channels} ch"
        )

    def post(self, fn: Callable[[], None]) -> None:
        """Deliver ``fn`` to the UI thread (or run it inline without a poster)."""
        if self._post is None:
            fn()
        else:
            self._post(fn)

    def queue_ended(self, source: BufferSourceNode) -> None:
        """Record a finished source. Caller holds ``lock``."""
        self._ended.append(source)

    def flush_ended(self) -> None:
        """Post ended events queued under the lock. Call after releasing it."""
        with self.lock:
            ended, self._ended = self._ended, []
        for source in ended:
            self.post(source._dispatch_ended)

    def render(self, frames: int) -> np.ndarray:
        """Pull ``frames`` frames through the graph."""
        with self.lock:
            block = self.destination.pull(frames)
        np.clip(block, -1.0, 1.0, out=block)
        self.flush_ended()
        return block

    def _callback(self, outdata, frames, time_info, status) -> None:  # sounddevice callback
        if status:
            logger.debug(f"Output stream status: {status}")
        try:
            outdata[:] = self.render(frames)
        except Exception:
            # Never raise into PortAudio; emit silence for this block
            logger.exception("Audio render failed")
            outdata.fill(0)

    def create_buffer_source(self) -> BufferSourceNode:
        return BufferSourceNode(self)

    def create_analyser(self, fft_size: int = 2048) -> AnalyserNode:
        return AnalyserNode(self, fft_size=fft_size)

    def create_gain(self, gain: float = 1.0) -> GainNode:
        return GainNode(self, gain=gain)

    @staticmethod
    def _discard_stream(stream: Any) -> None:
        try:
            stream.close()
        except Exception as e:
            logger.warning(f"Error while discarding audio output: {e}")

    def close(self) -> None:
        """Stop and close the stream. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        stream = self._stream
        self._stream = None
        if stream is None:
            return

        try:
            stream.stop()
            stream.close()
        except Exception as e:
            logger.warning(f"Error while closing audio output: {e}")
        else:
            logger.info("Audio output closed")

    def __enter__(self) -> "AudioContext":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
