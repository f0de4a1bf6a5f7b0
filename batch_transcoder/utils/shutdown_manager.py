"""
Graceful shutdown handling for long batch runs.

The first Ctrl+C during a batch does not kill the running encoder: it only
records a shutdown request, which the encode loop checks before starting the
next file. That keeps every output file either complete or never started.
A second Ctrl+C restores the default behavior and interrupts immediately.

Usage:
    manager = ShutdownManager()
    with manager.handle_signals():
        for job in jobs:
            if manager.shutdown_requested():
                break
            ...
"""

import signal
import threading
from contextlib import contextmanager
from typing import Iterator

from loguru import logger


class ShutdownManager:
    """Tracks whether the user asked the current run to stop."""

    def __init__(self):
        self._shutdown_requested = False
        self._lock = threading.Lock()

    def shutdown_requested(self) -> bool:
        with self._lock:
            return self._shutdown_requested

    def request_shutdown(self):
        """Request a stop before the next subprocess (also used by tests)."""
        with self._lock:
            if not self._shutdown_requested:
                self._shutdown_requested = True
                logger.warning(
                    "Shutdown requested. The current file will finish; no new file will be started. "
                    "Press Ctrl+C again to abort immediately."
                )

    def _handle_sigint(self, signum, frame):
        if self.shutdown_requested():
            # Second Ctrl+C: fall back to the default immediate interrupt.
            signal.signal(signal.SIGINT, signal.default_int_handler)
            raise KeyboardInterrupt
        self.request_shutdown()

    @contextmanager
    def handle_signals(self) -> Iterator["ShutdownManager"]:
        """
        Installs the graceful SIGINT handler for the duration of the block.

        Signal handlers can only be installed from the main thread; elsewhere
        the block runs with the default handler.
        """
        if threading.current_thread() is not threading.main_thread():
            yield self
            return

        previous_handler = signal.getsignal(signal.SIGINT)
        signal.signal(signal.SIGINT, self._handle_sigint)
        try:
            yield self
        finally:
            signal.signal(signal.SIGINT, previous_handler)
