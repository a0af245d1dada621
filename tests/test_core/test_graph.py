"""Tests for AudioGraphManager."""

import pytest

from wavescope.audio.context import AudioContext
from wavescope.core.graph import AudioGraphManager
from wavescope.utils.errors import AudioInitError

from conftest import FakeStreamFactory, failing_stream_factory


def _manager(factory=None, volume=1.0, fft_size=2048):
    factory = factory or FakeStreamFactory()
    return AudioGraphManager(
        lambda: AudioContext(stream_factory=factory),
        fft_size=fft_size,
        volume_provider=lambda: volume,
    )


class TestBuildGraph:
    def test_wires_analyser_gain_destination(self):
        manager = _manager()
        graph = manager.build_graph()

        assert graph.analyser.outputs == [graph.gain]
        assert graph.gain.outputs == [manager.context.destination]
        assert graph.analyser.inputs == []  # no source until play

    def test_opens_context_once(self):
        factory = FakeStreamFactory()
        manager = _manager(factory)
        manager.build_graph()
        manager.build_graph()
        assert len(factory.streams) == 1
        assert factory.streams[0].started

    def test_analyser_window_from_config(self):
        graph = _manager(fft_size=512).build_graph()
        assert graph.analyser.fft_size == 512
        assert graph.analyser.frequency_bin_count == 256

    def test_initial_gain_is_current_volume(self):
        graph = _manager(volume=0.35).build_graph()
        assert graph.gain.gain == pytest.approx(0.35)

    def test_rebuild_disconnects_previous_graph(self):
        manager = _manager()
        first = manager.build_graph()
        second = manager.build_graph()

        destination = manager.context.destination
        assert first.gain not in destination.inputs
        assert second.gain in destination.inputs
        assert first.analyser.outputs == []
        assert manager.graph is second

    def test_audio_init_failure(self):
        manager = _manager(failing_stream_factory)
        with pytest.raises(AudioInitError):
            manager.build_graph()
        assert manager.graph is None
        assert manager.context is None

    def test_context_factory_failure_is_wrapped(self):
        def broken():
            raise RuntimeError("no backend")

        manager = AudioGraphManager(broken)
        with pytest.raises(AudioInitError):
            manager.build_graph()


class TestTeardown:
    def test_teardown_closes_context(self):
        factory = FakeStreamFactory()
        manager = _manager(factory)
        graph = manager.build_graph()
        manager.teardown()

        assert factory.streams[0].closed
        assert manager.graph is None
        assert manager.context is None
        assert graph.gain.outputs == []

    def test_teardown_without_graph(self):
        _manager().teardown()
