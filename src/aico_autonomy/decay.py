# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Background thread that runs the periodic trust decay tick.

Trust erodes slowly without reinforcement. The scheduler only owns the
timing; what a tick does (decay, calibration refresh, expiry sweep) is the
callable it was given. A failing tick is logged and the loop carries on.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from aico_autonomy.errors import ConfigurationError

logger = logging.getLogger("aico.autonomy.decay")


class DecayScheduler:
    """
    Daemon thread that calls *task* every *interval_seconds*.

    The first tick happens one full interval after :meth:`start`. The
    thread stops promptly on :meth:`stop`; it never outlives the process.

    Example::

        scheduler = DecayScheduler(controller.apply_decay, interval_seconds=3600)
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(self, task: Callable[[], object], interval_seconds: float = 3600.0) -> None:
        if interval_seconds <= 0:
            raise ConfigurationError(
                f"Decay interval must be positive; got {interval_seconds}."
            )
        self.task = task
        self.interval_seconds = interval_seconds

        self._thread: threading.Thread | None = None
        # Each run gets its own event so a restarted loop never revives a
        # thread that was told to stop.
        self._stop_event: threading.Event | None = None
        self._ticks = 0

    @property
    def ticks(self) -> int:
        """Number of ticks run since construction, including failed ones."""
        return self._ticks

    def start(self, timeout: float = 5.0) -> None:
        """
        Start the background thread. A second call while running is ignored.

        A thread left over from ``stop(wait=False)`` is joined first, for at
        most *timeout* seconds.
        """
        if self.is_running():
            logger.warning("Decay scheduler already running")
            return

        previous = self._thread
        if previous is not None and previous.is_alive():
            previous.join(timeout=timeout)
            if previous.is_alive():
                logger.warning("Previous decay thread still running at restart")

        stop_event = threading.Event()
        self._stop_event = stop_event
        self._thread = threading.Thread(
            target=self._loop,
            args=(stop_event,),
            name="aico-autonomy-decay",
            daemon=True,
        )
        self._thread.start()
        logger.info("Decay scheduler started", extra={"interval_seconds": self.interval_seconds})

    def stop(self, wait: bool = True, timeout: float = 5.0) -> None:
        """
        Stop the background thread.

        Args:
            wait: Join the thread before returning.
            timeout: Maximum seconds to wait for the join.
        """
        thread, stop_event = self._thread, self._stop_event
        if thread is None or stop_event is None or not self.is_running():
            return

        stop_event.set()

        if wait:
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Decay thread did not stop within timeout")

        logger.info("Decay scheduler stopped")

    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._stop_event is not None
            and not self._stop_event.is_set()
        )

    def tick(self) -> None:
        """Run the task once now. Exceptions are logged, never raised."""
        self._ticks += 1
        try:
            self.task()
        except Exception:
            logger.exception("Decay tick failed", extra={"tick": self._ticks})
        else:
            logger.debug("Decay tick completed", extra={"tick": self._ticks})

    def _loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(timeout=self.interval_seconds):
            self.tick()
