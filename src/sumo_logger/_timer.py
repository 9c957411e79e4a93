"""Recurring flush trigger running on a daemon thread."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger("sumo_logger.timer")

TickHandler = Callable[[], object]


class FlushTimer:
    """Calls ``on_tick`` every ``interval_ms`` until disarmed.

    Each arm() starts a fresh thread with its own stop event, so a thread
    from a previous arming can never keep ticking after re-arm or disarm.
    """

    def __init__(self, on_tick: TickHandler) -> None:
        self._on_tick = on_tick
        self._lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

    def arm(self, interval_ms: int) -> None:
        """Cancel any active trigger and, if ``interval_ms`` > 0, start a new one."""
        with self._lock:
            self._cancel()
            if interval_ms <= 0:
                return
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event, interval_ms / 1000.0),
                name="sumo-logger-timer",
                daemon=True,
            )
            self._stop_event = stop_event
            self._thread = thread
            thread.start()
        logger.debug("Flush timer armed every %d ms", interval_ms)

    def disarm(self) -> None:
        """Cancel the active trigger. No-op when none is armed."""
        with self._lock:
            self._cancel()

    def _cancel(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        self._stop_event = None
        self._thread = None

    def _run(self, stop_event: threading.Event, interval_s: float) -> None:
        while not stop_event.wait(timeout=interval_s):
            try:
                self._on_tick()
            except Exception:  # noqa: BLE001
                logger.exception("Flush timer tick failed")

    @property
    def is_armed(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
