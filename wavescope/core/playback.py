"""
Playback controller.

State machine over IDLE, LOADED and PLAYING. Every transition reads the
controller's own fields; nothing is captured in callbacks except the source
node itself, which is compared against the current one on completion.
"""

import logging
from typing import Callable, List, Optional

from wavescope.audio.nodes import BufferSourceNode
from wavescope.core.models import AudioGraph, DecodedAudio, PlaybackState
from wavescope.utils.errors import InvalidTransition

MIN_VOLUME = 0.0
MAX_VOLUME = 2.0

StateListener = Callable[[PlaybackState, PlaybackState], None]

logger = logging.getLogger(__name__)


class PlaybackController:
    """
    Plays one DecodedAudio through an AudioGraph.

    Invariant: at most one source is started and not yet stopped or ended.
    """

    def __init__(self, volume: float = 1.0):
        self._state = PlaybackState.IDLE
        self._decoded: Optional[DecodedAudio] = None
        self._graph: Optional[AudioGraph] = None
        self._source: Optional[BufferSourceNode] = None
        self._volume = self._check_volume(volume)
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def decoded(self) -> Optional[DecodedAudio]:
        return self._decoded

    @property
    def graph(self) -> Optional[AudioGraph]:
        return self._graph

    @property
    def source(self) -> Optional[BufferSourceNode]:
        """The active source while PLAYING, else None."""
        return self._source

    @property
    def volume(self) -> float:
        return self._volume

    def add_state_listener(self, listener: StateListener) -> None:
        """Register ``listener(old, new)`` for every state change."""
        self._listeners.append(listener)

    def _set_state(self, new_state: PlaybackState) -> None:
        old_state = self._state
        if old_state is new_state:
            return
        self._state = new_state
        logger.debug(f"Playback state: {old_state.name} -> {new_state.name}")
        for listener in list(self._listeners):
            listener(old_state, new_state)

    def load(self, decoded: DecodedAudio, graph: AudioGraph) -> None:
        """
        Replace the loaded track. Stops the current source first if playing.

        Args:
            decoded: Newly decoded audio
            graph: Graph to play through

        Raises:
            ValueError: If the audio is not at the graph's sample rate
        """
        rate = graph.analyser.context.sample_rate
        if decoded.sample_rate != rate:
            raise ValueError(
                f"{decoded.name} is {decoded.sample_rate} Hz, output runs at {rate} Hz"
            )

        if self._state is PlaybackState.PLAYING:
            self.stop()

        self._decoded = decoded
        self._graph = graph
        graph.gain.gain = self._volume
        self._set_state(PlaybackState.LOADED)
        logger.info(f"Loaded {decoded.name} ({decoded.duration:.2f}s)")

    def play(self) -> BufferSourceNode:
        """
        Start a fresh source bound to the loaded audio.

        Returns:
            BufferSourceNode: The started source

        Raises:
            InvalidTransition: Unless the state is LOADED
        """
        if self._state is not PlaybackState.LOADED:
            raise InvalidTransition("play", self._state)

        source = self._graph.analyser.context.create_buffer_source()
        source.buffer = self._decoded
        source.on_ended = self._on_source_ended
        source.connect(self._graph.analyser)
        self._source = source
        self._set_state(PlaybackState.PLAYING)
        source.start()
        logger.info(f"Playing {self._decoded.name}")
        return source

    def stop(self) -> bool:
        """
        Halt the active source.

        Returns:
            True if playback was stopped, False when nothing was playing
        """
        if self._state is not PlaybackState.PLAYING:
            logger.debug(f"Ignoring stop while {self._state.name}")
            return False

        source = self._source
        self._release_source()
        source.stop()
        logger.info("Playback stopped")
        return True

    def toggle(self) -> None:
        """Play when LOADED, stop when PLAYING, ignore when IDLE."""
        if self._state is PlaybackState.PLAYING:
            self.stop()
        elif self._state is PlaybackState.LOADED:
            self.play()
        else:
            logger.debug("Ignoring play/stop request: nothing loaded")

    def set_volume(self, volume: float) -> None:
        """
        Set the volume level, applied immediately in any state.

        Raises:
            ValueError: If volume is outside [0, 2]
        """
        self._volume = self._check_volume(volume)
        if self._graph is not None:
            self._graph.gain.gain = self._volume

    def teardown(self) -> None:
        """Release the active source and forget the loaded track."""
        if self._state is PlaybackState.PLAYING:
            self.stop()
        self._decoded = None
        self._graph = None
        self._set_state(PlaybackState.IDLE)

    def _on_source_ended(self, source: BufferSourceNode) -> None:
        # Late completions (after stop, or from a replaced source) are stale.
        if source is not self._source:
            return
        logger.info("Playback finished")
        self._release_source()

    def _release_source(self) -> None:
        source = self._source
        self._source = None
        if source is not None:
            source.on_ended = None
            source.disconnect()
        self._set_state(PlaybackState.LOADED)

    @staticmethod
    def _check_volume(volume: float) -> float:
        volume = float(volume)
        if not MIN_VOLUME <= volume <= MAX_VOLUME:
            raise ValueError(
                f"volume must be within [{MIN_VOLUME}, {MAX_VOLUME}], got {volume}"
            )
        return volume
