"""
Render loop driver.

A self-rescheduling per-frame loop on the UI event queue. Each ``start``
issues a fresh cancellation token; a queued frame whose token is no longer
current does nothing, so ``stop`` is final even if a callback is already
pending in the toolkit's queue.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

DEFAULT_FPS = 60

logger = logging.getLogger(__name__)


class Scheduler(ABC):
    """Single-threaded event queue the loop runs on."""

    @abstractmethod
    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> Any:
        """Run ``fn`` after ``delay_ms``; returns a handle for ``cancel``."""

    @abstractmethod
    def call_soon(self, fn: Callable[[], None]) -> Any:
        """Run ``fn`` on the next turn of the queue."""

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a pending call (no-op if it already ran)."""


class TkScheduler(Scheduler):
    """Scheduler backed by a tkinter widget's ``after`` queue."""

    def __init__(self, widget):
        self._widget = widget

    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> Any:
        return self._widget.after(max(0, int(delay_ms)), fn)

    def call_soon(self, fn: Callable[[], None]) -> Any:
        return self._widget.after(0, fn)

    def cancel(self, handle: Any) -> None:
        try:
            self._widget.after_cancel(handle)
        except Exception as e:
            # Widget already destroyed
            logger.debug(f"after_cancel failed: {e}")


class _Token:
    __slots__ = ()


class RenderLoop:
    """
    Runs ``tick`` once per frame until stopped.

    Only one loop is active per instance.
    """

    def __init__(self, scheduler: Scheduler, fps: float = DEFAULT_FPS):
        if fps <= 0:
            raise ValueError("fps must be positive")
        self._scheduler = scheduler
        self._interval_ms = max(1, int(round(1000.0 / fps)))
        self._token: Optional[_Token] = None
        self._handle: Any = None
        self._tick: Optional[Callable[[], None]] = None
        self.frames = 0

    @property
    def running(self) -> bool:
        return self._token is not None

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    def start(self, tick: Callable[[], None]) -> bool:
        """
        Begin the loop; the first tick runs on the next queue turn.

        Returns:
            False if a loop is already running on this instance
        """
        if self._token is not None:
            return False
        token = _Token()
        self._token = token
        self._tick = tick
        self._handle = self._scheduler.call_soon(lambda: self._run(token))
        logger.debug(f"Render loop started ({self._interval_ms} ms/frame)")
        return True

    def stop(self) -> None:
        """Cancel the loop; no further tick runs after this returns."""
        if self._token is None:
            return
        self._token = None
        self._tick = None
        handle, self._handle = self._handle, None
        if handle is not None:
            self._scheduler.cancel(handle)
        logger.debug(f"Render loop stopped after {self.frames} frames")

    def _run(self, token: _Token) -> None:
        if token is not self._token:
            return
        try:
            self._tick()
        finally:
            # The tick itself may have stopped the loop.
            if token is self._token:
                self.frames += 1
                self._handle = self._scheduler.call_later(
                    self._interval_ms, lambda: self._run(token)
                )
