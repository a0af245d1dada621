"""
Visualizer session.

Composes the audio graph manager, playback controller, sample reader,
waveform renderer and render loop behind the handful of operations the UI
needs. All UI callbacks go through this object, which always reads the
current controller state rather than values captured at bind time.
"""

import logging
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import numpy as np

from wavescope.audio.context import AudioContext
from wavescope.audio.decoder import AsyncAudioDecoder, create_audio_decoder
from wavescope.core.graph import AudioGraphManager
from wavescope.core.models import DecodedAudio, PlaybackState
from wavescope.core.playback import PlaybackController
from wavescope.core.render_loop import RenderLoop, Scheduler
from wavescope.core.sampler import SampleReader
from wavescope.utils.config import get_default_config
from wavescope.utils.errors import AudioInitError, DecodeError, VisualizerError
from wavescope.visualization.waveform import DrawingSurface, WaveformRenderer, WaveformStyle

ErrorCallback = Callable[[VisualizerError], None]

logger = logging.getLogger(__name__)


class AudioVisualizer:
    """
    One loaded track, its playback and its live waveform.

    Decoding runs on a worker thread; its result is delivered back on the
    scheduler so every state change happens on the UI thread.
    """

    def __init__(
        self,
        surface: DrawingSurface,
        scheduler: Scheduler,
        config: Optional[Dict[str, Any]] = None,
        context_factory: Optional[Callable[[], AudioContext]] = None,
        decoder: Optional[AsyncAudioDecoder] = None,
        renderer: Optional[WaveformRenderer] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        """
        Args:
            surface: Where the waveform is drawn
            scheduler: UI event queue
            config: Application configuration (defaults if None)
            context_factory: Creates the AudioContext (sounddevice if None)
            decoder: Async decoder (built from config if None)
            renderer: Waveform renderer (styled from config if None)
            on_error: Receives DecodeError and AudioInitError for display
        """
        self.config = config or get_default_config()
        audio_config = self.config["audio"]

        self._surface = surface
        self._scheduler = scheduler
        self.on_error = on_error

        if context_factory is None:
            def context_factory() -> AudioContext:
                return AudioContext(
                    sample_rate=audio_config["sample_rate"],
                    channels=audio_config["channels"],
                    blocksize=audio_config.get("blocksize", 0),
                    latency=audio_config.get("latency", "low"),
                    post=scheduler.call_soon,
                )

        self.controller = PlaybackController(volume=self.config["volume"]["initial"])
        self.graph_manager = AudioGraphManager(
            context_factory,
            fft_size=self.config["analyser"]["fft_size"],
            volume_provider=lambda: self.controller.volume,
        )
        self.decoder = decoder or AsyncAudioDecoder(create_audio_decoder(audio_config))
        self.renderer = renderer or WaveformRenderer(
            WaveformStyle.from_config(self.config["canvas"])
        )
        self.reader = SampleReader()
        self.render_loop = RenderLoop(scheduler, fps=self.config["render"]["fps"])

        self._frame: Optional[np.ndarray] = None
        self._pending: Optional[Future] = None
        self._closed = False

    @property
    def state(self) -> PlaybackState:
        return self.controller.state

    @property
    def decoded(self) -> Optional[DecodedAudio]:
        return self.controller.decoded

    @property
    def frame(self) -> Optional[np.ndarray]:
        """The SampleFrame refreshed by every tick."""
        return self._frame

    @property
    def loading(self) -> bool:
        return self._pending is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def open_file(self, file_path: Path) -> Optional[Future]:
        """
        Decode ``file_path`` in the background and load it when done.

        A newer call supersedes a decode that is still pending.
        """
        if self._closed:
            return None
        logger.info(f"Decoding {Path(file_path).name}")
        future = self.decoder.decode_file(file_path)
        self._pending = future
        future.add_done_callback(
            lambda f: self._scheduler.call_soon(lambda: self._on_decoded(f))
        )
        return future

    def _on_decoded(self, future: Future) -> None:
        if self._closed or future is not self._pending:
            return
        self._pending = None

        try:
            decoded = future.result()
        except DecodeError as e:
            # Keep whatever is loaded or playing
            logger.warning(f"Rejected file: {e}")
            self._report(e)
            return
        except Exception as e:
            logger.exception("Decode worker failed")
            self._report(DecodeError(f"Decode failed: {e}"))
            return

        try:
            self.load(decoded)
        except AudioInitError as e:
            logger.error(f"Audio output unavailable: {e}")
            self._report(e)

    def _report(self, error: VisualizerError) -> None:
        if self.on_error is not None:
            self.on_error(error)

    def load(self, decoded: DecodedAudio) -> None:
        """
        Make ``decoded`` the active track and start drawing.

        Raises:
            AudioInitError: If the audio output cannot be initialized
            ValueError: If ``decoded`` is not at the output sample rate
        """
        context = self.graph_manager.context
        if context is not None and decoded.sample_rate != context.sample_rate:
            raise ValueError(
                f"{decoded.name} is {decoded.sample_rate} Hz, "
                f"output runs at {context.sample_rate} Hz"
            )

        if self.controller.state is PlaybackState.PLAYING:
            self.controller.stop()

        graph = self.graph_manager.build_graph()
        self.controller.load(decoded, graph)
        self._frame = self.reader.allocate(graph.analyser)
        self.render_loop.start(self.tick)

    def toggle_playback(self) -> None:
        """Play/Stop button handler."""
        if self._closed:
            return
        self.controller.toggle()

    def set_volume(self, volume: float) -> None:
        """Volume slider handler."""
        self.controller.set_volume(volume)

    def tick(self) -> None:
        """Read the analyser and redraw; one call per frame."""
        graph = self.controller.graph
        frame = self._frame
        if graph is None or frame is None:
            return
        if not self._surface.is_visible():
            return
        self.reader.read_into(graph.analyser, frame)
        self.renderer.render(frame, self._surface)

    def close(self) -> None:
        """Stop drawing, release the source and close the audio output."""
        if self._closed:
            return
        self._closed = True

        self.render_loop.stop()
        self.controller.teardown()
        self.graph_manager.teardown()

        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self.decoder.shutdown()
        self._frame = None
        logger.info("Visualizer closed")
