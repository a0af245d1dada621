"""
Audio graph manager.

Builds the long-lived Analyser -> Gain -> destination chain once per loaded
track. Sources are created per play by the playback controller.
"""

import logging
from typing import Callable, Optional

from wavescope.audio.context import AudioContext
from wavescope.core.models import AudioGraph
from wavescope.utils.errors import AudioInitError

DEFAULT_FFT_SIZE = 2048

logger = logging.getLogger(__name__)


class AudioGraphManager:
    """
    Owns the audio context and the current AudioGraph.

    The context is created and opened lazily by the first ``build_graph``
    call; an AudioInitError from it is fatal for the session.
    """

    def __init__(
        self,
        context_factory: Callable[[], AudioContext],
        fft_size: int = DEFAULT_FFT_SIZE,
        volume_provider: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            context_factory: Creates the AudioContext on first use
            fft_size: Analyser window size
            volume_provider: Returns the current volume for the new Gain node
        """
        self._context_factory = context_factory
        self._fft_size = fft_size
        self._volume_provider = volume_provider or (lambda: 1.0)
        self._context: Optional[AudioContext] = None
        self._graph: Optional[AudioGraph] = None

    @property
    def context(self) -> Optional[AudioContext]:
        return self._context

    @property
    def graph(self) -> Optional[AudioGraph]:
        return self._graph

    def _ensure_context(self) -> AudioContext:
        if self._context is None:
            try:
                context = self._context_factory()
            except AudioInitError:
                raise
            except Exception as e:
                raise AudioInitError(f"Could not create audio context: {e}", original_error=e) from e
            context.open()
            self._context = context
        return self._context

    def build_graph(self) -> AudioGraph:
        """
        Create a fresh Analyser and Gain wired to the output sink.

        Any previous graph is disconnected first.

        Returns:
            AudioGraph: The new graph

        Raises:
            AudioInitError: If the audio output cannot be initialized
        """
        context = self._ensure_context()

        if self._graph is not None:
            self._graph.disconnect()
            self._graph = None

        analyser = context.create_analyser(fft_size=self._fft_size)
        gain = context.create_gain(gain=self._volume_provider())
        analyser.connect(gain)
        gain.connect(context.destination)

        self._graph = AudioGraph(analyser=analyser, gain=gain)
        logger.debug(
            f"Audio graph built: fft_size={analyser.fft_size}, gain={gain.gain:.2f}"
        )
        return self._graph

    def teardown(self) -> None:
        """Disconnect the graph and close the audio context."""
        if self._graph is not None:
            self._graph.disconnect()
            self._graph = None
        if self._context is not None:
            self._context.close()
            self._context = None
