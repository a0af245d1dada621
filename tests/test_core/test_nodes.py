"""Tests for the audio routing nodes."""

import numpy as np
import pytest

from wavescope.audio.nodes import SourceState, match_channels
from wavescope.core.models import DecodedAudio
from wavescope.utils.errors import InvalidTransition

from conftest import SAMPLE_RATE, sine


def _buffer(samples, name="buf"):
    return DecodedAudio(name=name, sample_rate=SAMPLE_RATE, samples=samples)


class TestMatchChannels:
    def test_mono_is_duplicated(self):
        block = np.array([[0.1], [0.2]], dtype=np.float32)
        out = match_channels(block, 2)
        assert out.shape == (2, 2)
        assert np.allclose(out[:, 0], out[:, 1])

    def test_stereo_to_mono_is_averaged(self):
        block = np.array([[1.0, 0.0]], dtype=np.float32)
        assert match_channels(block, 1)[0, 0] == pytest.approx(0.5)

    def test_extra_channels_truncated(self):
        block = np.ones((4, 6), dtype=np.float32)
        assert match_channels(block, 2).shape == (4, 2)


class TestGainNode:
    def test_scales_input(self, context):
        source = context.create_buffer_source()
        source.buffer = _buffer(np.full((8, 1), 0.25, dtype=np.float32))
        gain = context.create_gain(gain=2.0)
        source.connect(gain)
        gain.connect(context.destination)
        source.start()

        out = context.render(8)
        assert np.allclose(out, 0.5)

    def test_rejects_non_finite(self, context):
        gain = context.create_gain()
        with pytest.raises(ValueError):
            gain.gain = float("nan")


class TestAnalyserNode:
    def test_default_sizes(self, context):
        analyser = context.create_analyser()
        assert analyser.fft_size == 2048
        assert analyser.frequency_bin_count == 1024

    @pytest.mark.parametrize("size", [0, 16, 1000, 65536])
    def test_invalid_fft_size(self, context, size):
        with pytest.raises(ValueError):
            context.create_analyser(fft_size=size)

    def test_silence_reads_as_128(self, context):
        analyser = context.create_analyser(fft_size=64)
        analyser.connect(context.destination)
        context.render(128)

        out = np.zeros(32, dtype=np.uint8)
        analyser.get_byte_time_domain_data(out)
        assert np.all(out == 128)

    def test_byte_conversion(self, context):
        samples = np.array([[0.0], [0.5], [-1.0], [1.0]] * 8, dtype=np.float32)
        source = context.create_buffer_source()
        source.buffer = _buffer(samples)
        analyser = context.create_analyser(fft_size=32)
        source.connect(analyser)
        analyser.connect(context.destination)
        source.start()
        context.render(32)

        out = np.zeros(4, dtype=np.uint8)
        analyser.get_byte_time_domain_data(out)
        assert out.tolist() == [128, 192, 0, 255]

    def test_window_keeps_latest_samples(self, context):
        analyser = context.create_analyser(fft_size=32)
        source = context.create_buffer_source()
        samples = np.concatenate([
            np.full((32, 1), 0.5, dtype=np.float32),
            np.zeros((16, 1), dtype=np.float32),
        ])
        source.buffer = _buffer(samples)
        source.connect(analyser)
        analyser.connect(context.destination)
        source.start()
        context.render(32)
        context.render(16)

        out = np.zeros(32, dtype=np.float32)
        analyser.get_float_time_domain_data(out)
        assert np.allclose(out[:16], 0.5)
        assert np.allclose(out[16:], 0.0)

    def test_passes_audio_through(self, context):
        analyser = context.create_analyser(fft_size=32)
        source = context.create_buffer_source()
        source.buffer = _buffer(sine(0.01, amplitude=0.3))
        source.connect(analyser)
        analyser.connect(context.destination)
        source.start()
        out = context.render(64)
        assert np.max(np.abs(out)) > 0.1


class TestBufferSourceNode:
    def test_start_twice_raises(self, context, tone_audio):
        source = context.create_buffer_source()
        source.buffer = tone_audio
        source.start()
        with pytest.raises(InvalidTransition):
            source.start()

    def test_restart_after_finish_raises(self, context, tone_audio):
        source = context.create_buffer_source()
        source.buffer = tone_audio
        source.start()
        source.stop()
        with pytest.raises(InvalidTransition):
            source.start()

    def test_start_without_buffer(self, context):
        with pytest.raises(ValueError):
            context.create_buffer_source().start()

    def test_stop_is_checked_noop(self, context, tone_audio):
        source = context.create_buffer_source()
        source.buffer = tone_audio
        assert source.stop() is False
        source.start()
        assert source.stop() is True
        assert source.stop() is False
        assert source.state is SourceState.FINISHED

    def test_buffer_locked_after_start(self, context, tone_audio):
        source = context.create_buffer_source()
        source.buffer = tone_audio
        source.start()
        with pytest.raises(InvalidTransition):
            source.buffer = tone_audio

    def test_natural_end_dispatches_once(self, context, scheduler):
        ended = []
        source = context.create_buffer_source()
        source.buffer = _buffer(np.zeros((100, 1), dtype=np.float32))
        source.on_ended = ended.append
        source.connect(context.destination)
        source.start()

        context.render(64)
        scheduler.run_due()
        assert ended == []

        context.render(64)
        context.render(64)
        assert source.state is SourceState.FINISHED
        scheduler.run_due()
        assert ended == [source]

        source.stop()
        scheduler.run_due()
        assert ended == [source]

    def test_stop_dispatches_on_ended(self, context, scheduler, tone_audio):
        ended = []
        source = context.create_buffer_source()
        source.buffer = tone_audio
        source.on_ended = ended.append
        source.start()
        source.stop()
        assert ended == []  # delivered asynchronously
        scheduler.run_due()
        assert ended == [source]

    def test_finished_source_renders_silence(self, context, tone_audio):
        source = context.create_buffer_source()
        source.buffer = tone_audio
        source.connect(context.destination)
        source.start()
        source.stop()
        assert np.all(context.render(128) == 0)

    def test_disconnect(self, context, tone_audio):
        source = context.create_buffer_source()
        analyser = context.create_analyser()
        source.connect(analyser)
        assert source in analyser.inputs
        source.disconnect()
        assert source not in analyser.inputs
        assert source.outputs == []
