"""
Run Loop
========

Fixed-cadence driver that steps a session from a background thread.

- One tick per interval; ticks never overlap (the session lock serializes
  them against each other and against structural edits).
- ``stop()`` takes effect at the next tick boundary and leaves the network
  exactly as of the last completed tick.
- A tick reporting the terminal condition stops the loop automatically and
  fires the ``on_terminal`` callback.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import logging
import threading
import time
from typing import Callable, Optional

from .core import TickResult
from .session import SimulationSession

logger = logging.getLogger(__name__)

END_OF_SIMULATION = "End of simulation. Click on reset!"


class RunLoop:
    """Start/stop toggle around ``SimulationSession.step_once``."""

    def __init__(
        self,
        session: SimulationSession,
        interval_ms: Optional[float] = None,
        on_terminal: Optional[Callable[[TickResult], None]] = None,
        max_ticks: Optional[int] = None,
    ):
        self.session = session
        self.interval_ms = (
            interval_ms if interval_ms is not None else session.config.interval_ms
        )
        if self.interval_ms <= 0:
            raise ValueError(f"Run interval must be positive: {self.interval_ms}ms")
        if max_ticks is not None and max_ticks < 0:
            raise ValueError(f"Tick limit cannot be negative: {max_ticks}")

        self.on_terminal = on_terminal
        self.max_ticks = max_ticks
        self.ticks_run = 0
        self.last_result: Optional[TickResult] = None
        self.last_error: Optional[Exception] = None

        self._thread: Optional[threading.Thread] = None
        self._stop_requested = threading.Event()
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> bool:
        """
        Start stepping in the background.

        Returns:
            False if the loop was already running
        """
        with self._lock:
            if self.is_running:
                return False
            self._stop_requested.clear()
            self.last_error = None
            self._thread = threading.Thread(
                target=self._run, name="flow-run-loop", daemon=True
            )
            self._thread.start()

        logger.info(f"Run loop started (interval={self.interval_ms:g}ms)")
        return True

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Request a stop and wait for the current tick to finish."""
        self._stop_requested.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Run loop did not stop within timeout")

    def toggle(self) -> bool:
        """Start if stopped, stop if running. Returns the new running state."""
        if self.is_running:
            self.stop()
            return False
        return self.start()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the loop ends on its own. Returns True if it ended."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def _run(self):
        interval = self.interval_ms / 1000.0

        try:
            while not self._stop_requested.is_set():
                tick_start = time.monotonic()

                try:
                    result = self.session.step_once()
                except Exception as e:
                    self.last_error = e
                    logger.error(f"Simulation step failed: {type(e).__name__}: {e}")
                    break

                self.last_result = result
                self.ticks_run += 1

                if result.terminal:
                    logger.info(f"{END_OF_SIMULATION} (tick {result.tick})")
                    self._stop_requested.set()
                    if self.on_terminal is not None:
                        self.on_terminal(result)
                    break

                if self.max_ticks is not None and self.ticks_run >= self.max_ticks:
                    break

                elapsed = time.monotonic() - tick_start
                self._stop_requested.wait(max(0.0, interval - elapsed))
        finally:
            logger.info(f"Run loop stopped after {self.ticks_run} ticks")
