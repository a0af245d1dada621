"""
WaveScope GUI - Live Audio Waveform Visualizer

A minimal dark window: open an audio file, play/stop it, set the volume,
and watch the live waveform.
"""

import logging
import sys
import tkinter as tk
from pathlib import Path
from tkinter import filedialog, messagebox
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from wavescope.audio.decoder import SUPPORTED_SUFFIXES
from wavescope.core.models import PlaybackState
from wavescope.core.render_loop import TkScheduler
from wavescope.core.visualizer import AudioVisualizer
from wavescope.utils.config import load_config
from wavescope.utils.errors import AudioInitError, ConfigurationError, VisualizerError
from wavescope.utils.logging import setup_logging_from_config
from wavescope.visualization.waveform import CanvasSurface

logger = logging.getLogger("gui")


class DarkStyle:
    """Black background with light-blue accents."""

    BG_DARK = "#000000"
    BG_MEDIUM = "#1a1a1a"
    BG_BUTTON = "#3b82f6"
    BG_BUTTON_HOVER = "#2563eb"
    BORDER = "#d1d5db"

    TEXT_PRIMARY = "#93c5fd"
    TEXT_BUTTON = "#ffffff"
    TEXT_DIM = "#999999"
    TEXT_ERROR = "#e53935"

    FONT_TITLE = ("Helvetica", 20, "normal")
    FONT_BODY = ("Helvetica", 11, "normal")
    FONT_SMALL = ("Helvetica", 9, "normal")


AUDIO_FILETYPES = [
    ("Audio files", " ".join(f"*{suffix}" for suffix in SUPPORTED_SUFFIXES)),
    ("All files", "*.*"),
]


class WaveScopeGUI:
    """Main window wiring tkinter widgets to an AudioVisualizer."""

    def __init__(self, root: tk.Tk, config: dict):
        self.root = root
        self.config = config
        canvas_config = config["canvas"]

        self.root.title("Audio Visualizer")
        self.root.configure(bg=DarkStyle.BG_DARK)
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

        frame = tk.Frame(root, bg=DarkStyle.BG_DARK, padx=16, pady=16)
        frame.pack(fill=tk.BOTH, expand=True)

        tk.Label(
            frame, text="Audio Visualizer",
            bg=DarkStyle.BG_DARK, fg=DarkStyle.TEXT_PRIMARY, font=DarkStyle.FONT_TITLE,
        ).pack(pady=(0, 12))

        button_style = {
            "bg": DarkStyle.BG_BUTTON,
            "fg": DarkStyle.TEXT_BUTTON,
            "activebackground": DarkStyle.BG_BUTTON_HOVER,
            "activeforeground": DarkStyle.TEXT_BUTTON,
            "font": DarkStyle.FONT_BODY,
            "relief": tk.FLAT,
            "bd": 0,
            "padx": 16,
            "pady": 6,
            "cursor": "hand2",
        }

        self.open_button = tk.Button(
            frame, text="Open Audio File…", command=self._open_file, **button_style
        )
        self.open_button.pack(pady=4)

        self.play_button = tk.Button(
            frame, text="Play", command=self._toggle_playback, state=tk.DISABLED,
            **button_style
        )
        self.play_button.pack(pady=4)

        self.volume_var = tk.DoubleVar(value=config["volume"]["initial"])
        self.volume_scale = tk.Scale(
            frame,
            from_=0.0,
            to=2.0,
            resolution=0.01,
            orient=tk.HORIZONTAL,
            label="Volume",
            variable=self.volume_var,
            command=self._on_volume_change,
            bg=DarkStyle.BG_DARK,
            fg=DarkStyle.TEXT_PRIMARY,
            troughcolor=DarkStyle.BG_MEDIUM,
            highlightthickness=0,
            length=canvas_config["width"],
        )
        self.volume_scale.pack(fill=tk.X, pady=8)

        self.canvas = tk.Canvas(
            frame,
            width=canvas_config["width"],
            height=canvas_config["height"],
            bg=canvas_config["background"],
            highlightthickness=1,
            highlightbackground=DarkStyle.BORDER,
        )
        self.canvas.pack()

        self.status_label = tk.Label(
            frame, text="No audio loaded",
            bg=DarkStyle.BG_DARK, fg=DarkStyle.TEXT_DIM, font=DarkStyle.FONT_SMALL,
        )
        self.status_label.pack(anchor=tk.W, pady=(8, 0))

        surface = CanvasSurface(
            self.canvas, width=canvas_config["width"], height=canvas_config["height"]
        )
        self.visualizer = AudioVisualizer(
            surface=surface,
            scheduler=TkScheduler(root),
            config=config,
            on_error=self._on_error,
        )
        self.visualizer.controller.add_state_listener(self._on_state_change)

    def _open_file(self) -> None:
        """Handle the file picker."""
        path = filedialog.askopenfilename(
            title="Select an audio file", filetypes=AUDIO_FILETYPES
        )
        if not path:
            return
        self._set_status(f"Decoding {Path(path).name}…")
        self.visualizer.open_file(Path(path))

    def _toggle_playback(self) -> None:
        self.visualizer.toggle_playback()

    def _on_volume_change(self, value: str) -> None:
        self.visualizer.set_volume(float(value))

    def _on_state_change(self, old: PlaybackState, new: PlaybackState) -> None:
        """Keep the toggle label and status line in step with playback."""
        if new is PlaybackState.IDLE:
            self.play_button.config(text="Play", state=tk.DISABLED)
            self._set_status("No audio loaded")
            return

        self.play_button.config(
            text="Stop" if new is PlaybackState.PLAYING else "Play",
            state=tk.NORMAL,
        )
        decoded = self.visualizer.decoded
        if decoded is not None:
            verb = "Playing" if new is PlaybackState.PLAYING else "Loaded"
            self._set_status(
                f"{verb}: {decoded.name} | {decoded.duration:.2f}s | "
                f"{decoded.channels} ch | {decoded.sample_rate} Hz"
            )

    def _on_error(self, error: VisualizerError) -> None:
        if isinstance(error, AudioInitError):
            messagebox.showerror("Audio Unavailable", str(error))
            self.open_button.config(state=tk.DISABLED)
            self.play_button.config(state=tk.DISABLED)
            self._set_status("Audio output unavailable", error=True)
        else:
            self._set_status(f"Could not load file: {error.message}", error=True)

    def _set_status(self, text: str, error: bool = False) -> None:
        self.status_label.config(
            text=text, fg=DarkStyle.TEXT_ERROR if error else DarkStyle.TEXT_DIM
        )

    def _on_close(self) -> None:
        self.visualizer.close()
        self.root.destroy()


def main(config_path: Optional[str] = None) -> int:
    """Main entry point for GUI."""
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging_from_config(config)

    root = tk.Tk()
    root.resizable(False, False)
    WaveScopeGUI(root, config)
    root.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
