"""Shared fixtures for audio graph, playback and rendering tests."""

import io
import threading
from concurrent.futures import Executor, Future

import numpy as np
import pytest
import soundfile as sf

from wavescope.audio.context import AudioContext
from wavescope.audio.decoder import AsyncAudioDecoder, AudioDecoder
from wavescope.core.models import DecodedAudio
from wavescope.core.render_loop import Scheduler
from wavescope.core.visualizer import AudioVisualizer
from wavescope.utils.config import get_default_config
from wavescope.visualization.waveform import DrawingSurface

SAMPLE_RATE = 44100


# ---------------------------------------------------------------------------
# Fake output device
# ---------------------------------------------------------------------------


class FakeStream:
    """Stands in for sounddevice.OutputStream; never touches hardware."""

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.callback = kwargs.get("callback")
        self.started = False
        self.closed = False

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True


class FakeStreamFactory:
    """Records every stream it creates."""

    def __init__(self):
        self.streams = []

    def __call__(self, **kwargs):
        stream = FakeStream(**kwargs)
        self.streams.append(stream)
        return stream


def failing_stream_factory(**kwargs):
    raise OSError("no default output device")


# ---------------------------------------------------------------------------
# Deterministic event queue
# ---------------------------------------------------------------------------


class _Call:
    def __init__(self, due, seq, fn):
        self.due = due
        self.seq = seq
        self.fn = fn
        self.cancelled = False


class ManualScheduler(Scheduler):
    """Virtual-time scheduler; callbacks run only when the test advances it."""

    def __init__(self):
        self.now = 0
        self._seq = 0
        self._calls = []
        self._lock = threading.Lock()

    def call_later(self, delay_ms, fn):
        with self._lock:
            self._seq += 1
            call = _Call(self.now + max(0, int(delay_ms)), self._seq, fn)
            self._calls.append(call)
        return call

    def call_soon(self, fn):
        return self.call_later(0, fn)

    def cancel(self, handle):
        handle.cancelled = True

    @property
    def pending(self):
        return sum(1 for c in self._calls if not c.cancelled)

    def run_due(self):
        """Run every call due at the current time, in order."""
        ran = 0
        while True:
            with self._lock:
                due = [c for c in self._calls if not c.cancelled and c.due <= self.now]
                if not due:
                    return ran
                call = min(due, key=lambda c: (c.due, c.seq))
                self._calls.remove(call)
            call.fn()
            ran += 1

    def advance(self, ms):
        """Move virtual time forward by ``ms``, running calls as they come due."""
        target = self.now + ms
        while True:
            with self._lock:
                upcoming = [
                    c.due for c in self._calls if not c.cancelled and c.due <= target
                ]
            if not upcoming:
                break
            self.now = max(self.now, min(upcoming))
            self.run_due()
        self.now = target


# ---------------------------------------------------------------------------
# Drawing surface and executor stubs
# ---------------------------------------------------------------------------


class RecordingSurface(DrawingSurface):
    """Keeps every drawing call instead of painting."""

    def __init__(self, width=800, height=400):
        self._width = width
        self._height = height
        self.calls = []
        self.polylines = []
        self.visible = True

    @property
    def width(self):
        return self._width

    @property
    def height(self):
        return self._height

    def clear(self, color):
        self.calls.append(("clear", color))

    def polyline(self, points, color, width):
        self.calls.append(("polyline", color, width))
        self.polylines.append(list(points))

    def is_visible(self):
        return self.visible


class ImmediateExecutor(Executor):
    """Runs submitted work inline so decode results are deterministic."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


# ---------------------------------------------------------------------------
# Audio helpers
# ---------------------------------------------------------------------------


def sine(duration=0.5, freq=440.0, amplitude=0.5, sample_rate=SAMPLE_RATE, channels=1):
    t = np.arange(int(duration * sample_rate)) / sample_rate
    wave = (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)
    return np.repeat(wave[:, None], channels, axis=1)


def wav_bytes(samples, sample_rate=SAMPLE_RATE):
    buf = io.BytesIO()
    sf.write(buf, samples, sample_rate, format="WAV", subtype="FLOAT")
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def stream_factory():
    return FakeStreamFactory()


@pytest.fixture
def context(scheduler, stream_factory):
    """Open AudioContext on a fake stream, events delivered via the scheduler."""
    ctx = AudioContext(
        sample_rate=SAMPLE_RATE,
        channels=2,
        post=scheduler.call_soon,
        stream_factory=stream_factory,
    )
    ctx.open()
    yield ctx
    ctx.close()


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def silent_audio():
    """Two seconds of mono silence."""
    return DecodedAudio.silence(2.0, sample_rate=SAMPLE_RATE, channels=1, name="silent.wav")


@pytest.fixture
def tone_audio():
    return DecodedAudio(name="tone.wav", sample_rate=SAMPLE_RATE, samples=sine(0.5))


@pytest.fixture
def visualizer(scheduler, stream_factory, surface):
    """AudioVisualizer with fake audio output and inline decoding."""
    config = get_default_config()
    viz = AudioVisualizer(
        surface=surface,
        scheduler=scheduler,
        config=config,
        context_factory=lambda: AudioContext(
            sample_rate=SAMPLE_RATE,
            channels=2,
            post=scheduler.call_soon,
            stream_factory=stream_factory,
        ),
        decoder=AsyncAudioDecoder(AudioDecoder(target_sr=SAMPLE_RATE), executor=ImmediateExecutor()),
    )
    yield viz
    viz.close()
