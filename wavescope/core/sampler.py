"""Per-frame time-domain sample reading."""

import numpy as np

from wavescope.audio.nodes import AnalyserNode

SILENCE = 128


class SampleReader:
    """Copies the analyser's current window into a reusable SampleFrame."""

    @staticmethod
    def allocate(analyser: AnalyserNode) -> np.ndarray:
        """Return a SampleFrame sized to the analyser, filled with silence."""
        return np.full(analyser.frequency_bin_count, SILENCE, dtype=np.uint8)

    @staticmethod
    def read_into(analyser: AnalyserNode, buffer: np.ndarray) -> None:
        """Fill ``buffer`` in place with byte magnitudes (128 = zero)."""
        if buffer.dtype != np.uint8:
            raise TypeError(f"SampleFrame must be uint8, got {buffer.dtype}")
        analyser.get_byte_time_domain_data(buffer)
