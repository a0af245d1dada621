"""
Live waveform rendering.

This module maps a SampleFrame onto a drawing surface:
- DrawingSurface: Abstract 2D surface (clear + polyline)
- CanvasSurface: Concrete tkinter Canvas surface
- WaveformRenderer: Turns byte samples into a polyline and paints it
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

Point = Tuple[float, float]

DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 400


# =============================================================================
# Surface Abstraction
# =============================================================================

class DrawingSurface(ABC):
    """
    Abstract 2D rasterizing surface.

    The renderer depends on this interface only, so tests can record the
    drawing calls instead of painting pixels.
    """

    @property
    @abstractmethod
    def width(self) -> int:
        """Surface width in pixels."""

    @property
    @abstractmethod
    def height(self) -> int:
        """Surface height in pixels."""

    @abstractmethod
    def clear(self, color: str) -> None:
        """Fill the whole surface with a solid color."""

    @abstractmethod
    def polyline(self, points: Sequence[Point], color: str, width: float) -> None:
        """Stroke one connected line through ``points``."""

    def is_visible(self) -> bool:
        """Whether drawing would currently be seen."""
        return True


class CanvasSurface(DrawingSurface):
    """
    DrawingSurface backed by a fixed-size tkinter Canvas.

    Reuses one background rectangle and one line item across frames instead
    of recreating canvas items every tick.
    """

    def __init__(self, canvas, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT):
        """
        Args:
            canvas: tkinter.Canvas widget to draw on
            width: Logical drawing width
            height: Logical drawing height
        """
        self._canvas = canvas
        self._width = int(width)
        self._height = int(height)
        self._background_item: Optional[int] = None
        self._line_item: Optional[int] = None

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def clear(self, color: str) -> None:
        if self._background_item is None:
            self._background_item = self._canvas.create_rectangle(
                0, 0, self._width, self._height, fill=color, outline=""
            )
        else:
            self._canvas.itemconfigure(self._background_item, fill=color)
        if self._line_item is not None:
            self._canvas.itemconfigure(self._line_item, state="hidden")

    def polyline(self, points: Sequence[Point], color: str, width: float) -> None:
        flat = [coord for point in points for coord in point]
        if len(flat) < 4:
            return
        if self._line_item is None:
            self._line_item = self._canvas.create_line(*flat, fill=color, width=width)
        else:
            self._canvas.coords(self._line_item, *flat)
            self._canvas.itemconfigure(
                self._line_item, fill=color, width=width, state="normal"
            )

    def is_visible(self) -> bool:
        return bool(self._canvas.winfo_viewable())


# =============================================================================
# Renderer
# =============================================================================

@dataclass
class WaveformStyle:
    """Colors and stroke width of the trace."""

    background: str = "#000000"
    line: str = "#add8e6"  # rgb(173, 216, 230)
    line_width: float = 2.0

    @classmethod
    def from_config(cls, canvas_config: Dict[str, Any]) -> "WaveformStyle":
        return cls(
            background=canvas_config.get("background", cls.background),
            line=canvas_config.get("line", cls.line),
            line_width=float(canvas_config.get("line_width", cls.line_width)),
        )


def waveform_points(buffer: np.ndarray, width: float, height: float) -> List[Point]:
    """
    Map N byte samples to N + 1 polyline points.

    Sample ``i`` lands at x = i * width / N and value ``v`` at
    y = v / 128 * height / 2; the last point is pinned to the center of
    the right edge.
    """
    n = len(buffer)
    if n == 0:
        return [(float(width), height / 2.0)]
    slice_width = width / n
    xs = np.arange(n, dtype=np.float64) * slice_width
    ys = (np.asarray(buffer, dtype=np.float64) / 128.0) * (height / 2.0)
    points = list(zip(xs.tolist(), ys.tolist()))
    points.append((float(width), height / 2.0))
    return points


class WaveformRenderer:
    """Paints a SampleFrame as a single oscilloscope trace."""

    def __init__(self, style: Optional[WaveformStyle] = None):
        self.style = style or WaveformStyle()

    def render(self, buffer: np.ndarray, surface: DrawingSurface) -> List[Point]:
        """
        Clear ``surface`` and stroke the trace for ``buffer``.

        Args:
            buffer: SampleFrame of uint8 magnitudes
            surface: Surface to draw on

        Returns:
            The N + 1 points that were stroked
        """
        points = waveform_points(buffer, surface.width, surface.height)
        surface.clear(self.style.background)
        surface.polyline(points, self.style.line, self.style.line_width)
        return points
