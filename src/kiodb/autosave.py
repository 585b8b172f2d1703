"""Background timer that periodically saves a database."""

from __future__ import annotations

import threading
from collections.abc import Callable

from kiodb.errors import KiodbError
from kiodb.logging_config import get_logger

logger = get_logger(__name__)


class Autosaver:
    """Calls a save function every ``interval`` seconds on a daemon thread.

    The save function is expected to take the same lock as the database's
    public operations, so a save never overlaps a mutation.
    """

    def __init__(self, save: Callable[[], None], interval: float, name: str = "kiodb-autosave") -> None:
        if interval <= 0:
            raise ValueError(f"Autosave interval must be positive, got {interval}")
        self._save = save
        self.interval = interval
        self.name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the timer thread. Starting a running timer does nothing."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.debug("autosave_started", interval=self.interval)

    def stop(self, timeout: float | None = None) -> None:
        """Stop the timer and wait for an in-flight save to finish."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.debug("autosave_stopped")

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self._save()
            except KiodbError as error:
                # Keep the timer alive; the next tick retries.
                logger.error("autosave_failed", error=str(error))

    def __enter__(self) -> Autosaver:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()
