"""Tests for GUI module constants that don't need a display."""

import pytest

pytest.importorskip("tkinter")

import gui  # noqa: E402
from wavescope.audio.decoder import SUPPORTED_SUFFIXES  # noqa: E402


class TestFileTypes:
    def test_audio_filter_lists_every_supported_suffix(self):
        label, patterns = gui.AUDIO_FILETYPES[0]
        assert label == "Audio files"
        assert patterns.split() == [f"*{suffix}" for suffix in SUPPORTED_SUFFIXES]

    def test_all_files_fallback(self):
        assert gui.AUDIO_FILETYPES[-1] == ("All files", "*.*")
