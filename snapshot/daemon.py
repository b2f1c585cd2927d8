"""Daemon loop driving snapshot cycles on a fixed interval."""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SnapshotDaemon:
    """Runs orchestrator cycles until a stop event is set.

    One cycle runs right away, then one per interval. Cycles never overlap:
    a cycle that overruns its interval is followed by exactly one late cycle
    and the schedule restarts from there. Stop requests are checked only
    while waiting, so a cycle in progress always runs to completion.
    """

    def __init__(self, orchestrator, interval_seconds: float,
                 clock: Callable[[], float] = time.monotonic,
                 logger: Optional[logging.Logger] = None):
        if interval_seconds <= 0:
            raise ValueError(f"interval must be positive: {interval_seconds}")
        self.orchestrator = orchestrator
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self.stop_event = threading.Event()
        self.cycles_run = 0
        self.cycles_failed = 0

    def request_stop(self) -> None:
        self.stop_event.set()

    def run(self, stop_event: Optional[threading.Event] = None) -> int:
        """Block until stopped.

        Args:
            stop_event: Cancellation signal; defaults to the daemon's own event

        Returns:
            Number of cycles that were run
        """
        if stop_event is not None:
            self.stop_event = stop_event
        stop = self.stop_event

        self.logger.info(f"Starting snapshot daemon (interval: {self.interval_seconds}s)")

        next_due = self.clock()
        self._run_cycle(initial=True)

        while True:
            next_due += self.interval_seconds
            wait = next_due - self.clock()
            if wait < 0:
                self.logger.warning(
                    f"Snapshot cycle overran the interval by {-wait:.1f}s, starting next cycle now"
                )
                next_due = self.clock()
                wait = 0

            if stop.wait(wait):
                break
            self._run_cycle()

        self.logger.info(
            f"Daemon stopped by cancellation after {self.cycles_run} cycle(s) "
            f"({self.cycles_failed} failed)"
        )
        return self.cycles_run

    def _run_cycle(self, initial: bool = False) -> None:
        self.cycles_run += 1
        try:
            self.orchestrator.run_cycle()
        except Exception as e:
            self.cycles_failed += 1
            kind = "Initial" if initial else "Periodic"
            self.logger.error(f"{kind} snapshot failed: {e}", exc_info=self.logger.isEnabledFor(logging.DEBUG))
