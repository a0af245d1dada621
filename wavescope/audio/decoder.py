"""
Audio decoder for the WaveScope audio visualizer.

Turns raw file bytes into DecodedAudio at the output sample rate.
"""

import io
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Optional

import librosa
import numpy as np
import soundfile as sf

from wavescope.core.models import DecodedAudio
from wavescope.utils.errors import DecodeError


# Constants
SUPPORTED_SUFFIXES = (".wav", ".aif", ".aiff", ".flac", ".ogg", ".mp3")
TARGET_SAMPLE_RATE: int = 44100  # Hz
MAX_FILE_SIZE: int = 524288000  # 500 MB

logger = logging.getLogger(__name__)


class AudioDecoder:
    """
    Decodes raw audio bytes into DecodedAudio.

    Stateless apart from its configuration, so one instance can serve the
    worker thread and the UI thread.
    """

    def __init__(
        self,
        target_sr: int = TARGET_SAMPLE_RATE,
        max_file_size: int = MAX_FILE_SIZE,
    ):
        """
        Initialize decoder with configuration.

        Args:
            target_sr: Output sample rate; decoded audio is resampled to it
            max_file_size: Maximum accepted input size in bytes
        """
        self.target_sr = target_sr
        self.max_file_size = max_file_size

    def decode(self, data: bytes, name: str = "<bytes>") -> DecodedAudio:
        """
        Decode raw bytes.

        Args:
            data: Encoded audio file contents
            name: Display name for the track

        Returns:
            DecodedAudio: float32 frames at ``target_sr``

        Raises:
            DecodeError: Input is empty, too large, or not readable audio
        """
        if not data:
            raise DecodeError("Audio data is empty", name=name)

        if len(data) > self.max_file_size:
            raise DecodeError(
                f"File too large: {len(data) / 1024 / 1024:.1f} MB. "
                f"Maximum: {self.max_file_size / 1024 / 1024:.1f} MB",
                name=name
            )

        try:
            samples, sample_rate = sf.read(
                io.BytesIO(data), dtype="float32", always_2d=True
            )
        except Exception as e:
            logger.warning(f"Failed to decode {name}: {e}")
            raise DecodeError(f"Unsupported or corrupt audio: {e}", name=name) from e

        if samples.size == 0:
            raise DecodeError(f"Audio contains no frames: {name}", name=name)

        if not np.all(np.isfinite(samples)):
            logger.warning(f"Non-finite samples replaced with silence: {name}")
            samples = np.nan_to_num(samples, nan=0.0, posinf=0.0, neginf=0.0)

        try:
            if sample_rate != self.target_sr:
                samples = self._resample(samples, sample_rate)
            decoded = DecodedAudio(name=name, sample_rate=self.target_sr, samples=samples)
        except Exception as e:
            logger.warning(f"Failed to convert {name}: {e}")
            raise DecodeError(f"Cannot convert audio: {e}", name=name) from e

        logger.info(
            f"Decoded {name}: {decoded.duration:.2f}s, {decoded.channels} ch, "
            f"{sample_rate} Hz -> {self.target_sr} Hz"
        )
        return decoded

    def decode_file(self, file_path: Path) -> DecodedAudio:
        """
        Read a file from disk and decode it.

        Raises:
            DecodeError: File cannot be read or decoded
        """
        file_path = Path(file_path)
        try:
            size = file_path.stat().st_size
            if size > self.max_file_size:
                raise DecodeError(
                    f"File too large: {size / 1024 / 1024:.1f} MB",
                    name=file_path.name
                )
            data = file_path.read_bytes()
        except OSError as e:
            raise DecodeError(f"Cannot read {file_path}: {e}", name=file_path.name) from e

        return self.decode(data, name=file_path.name)

    def _resample(self, samples: np.ndarray, orig_sr: int) -> np.ndarray:
        """Resample (frames, channels) audio to ``target_sr``."""
        # librosa works on (..., samples)
        resampled = librosa.resample(
            np.ascontiguousarray(samples.T), orig_sr=orig_sr, target_sr=self.target_sr
        )
        return np.ascontiguousarray(resampled.T, dtype=np.float32)


class AsyncAudioDecoder:
    """Runs AudioDecoder off the UI thread."""

    def __init__(
        self,
        decoder: Optional[AudioDecoder] = None,
        executor: Optional[ThreadPoolExecutor] = None
    ):
        """
        Initialize async decoder.

        Args:
            decoder: AudioDecoder instance (creates default if None)
            executor: ThreadPoolExecutor (creates a single worker if None)
        """
        self.decoder = decoder or AudioDecoder()
        self.executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="decode"
        )

    def decode_file(self, file_path: Path) -> "Future[DecodedAudio]":
        """Decode a file in the worker; the future carries a DecodeError on failure."""
        return self.executor.submit(self.decoder.decode_file, Path(file_path))

    def shutdown(self) -> None:
        """Shutdown the executor without waiting for a pending decode."""
        self.executor.shutdown(wait=False)


def create_audio_decoder(config: Optional[Dict[str, Any]] = None) -> AudioDecoder:
    """
    Factory function to create AudioDecoder from the ``audio`` config section.

    Args:
        config: Optional configuration dict (the ``audio`` section)

    Returns:
        AudioDecoder: Configured decoder instance
    """
    if config is None:
        config = {}

    return AudioDecoder(
        target_sr=config.get("sample_rate", TARGET_SAMPLE_RATE),
        max_file_size=config.get("max_file_size", MAX_FILE_SIZE),
    )
