"""
Wall-Clock Tick Scheduler

Explicit, stoppable scheduling loop that invokes a single tick entry
point once per period on a background daemon thread. The callback owns
all simulation state; the scheduler only decides *when* to call it.

Loop contract:
-------------
- The callback returns True to keep ticking, False to end the loop. A
  `start()` that lands while the loop is still active re-arms it, so a
  False returned just before that `start()` does not end the loop.
- An exception from the callback is logged, ends the loop, and is
  reported through the optional `on_error` hook.
- `stop()` signals the loop and joins the thread, so once it returns no
  further callback invocation can start (unless called from the loop
  thread itself, where joining is impossible).

Deadlines advance by a fixed period from a monotonic origin so ticks do
not drift; if the host falls behind by more than a period the schedule
is re-anchored instead of bursting to catch up.
"""

import logging
import threading
import time
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class TickScheduler:
    """
    Periodic tick driver on a daemon thread.

    Usage:
    ------
    >>> scheduler = TickScheduler(clock_tick, period=0.1)
    >>> scheduler.start()
    >>> ...
    >>> scheduler.stop()   # blocks until the loop thread has exited
    """

    def __init__(
        self,
        callback: Callable[[], bool],
        period: float,
        on_error: Optional[Callable[[BaseException], None]] = None,
        name: str = "tick-scheduler",
    ):
        if period <= 0.0:
            raise ValueError(f"Tick period must be positive, got {period}")

        self.callback = callback
        self.period = period
        self.on_error = on_error
        self.name = name

        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        # Set by start() on an active loop: survive one False from the callback
        self._rearmed = False

    @property
    def is_active(self) -> bool:
        """True while a loop thread is running and has not been told to stop."""
        with self._lock:
            return (
                self._thread is not None
                and self._thread.is_alive()
                and not self._stop_event.is_set()
            )

    def start(self) -> None:
        """Start the loop thread; no effect if one is already active."""
        with self._lock:
            if (
                self._thread is not None
                and self._thread.is_alive()
                and not self._stop_event.is_set()
            ):
                self._rearmed = True
                return

            # Fresh event per thread: a winding-down thread keeps its own
            self._rearmed = False
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name=self.name,
                daemon=True,
            )
            self._stop_event = stop_event
            self._thread = thread
            thread.start()

        logger.debug("%s started (period %.4f s)", self.name, self.period)

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the loop and wait for its thread to exit.

        Safe to call when not started, repeatedly, or from the loop thread.
        """
        with self._lock:
            thread = self._thread
            stop_event = self._stop_event
            self._thread = None
            self._stop_event = None
            self._rearmed = False

        if stop_event is not None:
            stop_event.set()

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            logger.debug("%s stopped", self.name)

    def _run(self, stop_event: threading.Event) -> None:
        next_deadline = time.monotonic() + self.period

        try:
            while not stop_event.wait(max(0.0, next_deadline - time.monotonic())):
                if self.callback():
                    with self._lock:
                        self._rearmed = False
                else:
                    # Exit decision and start() are serialized on the lock
                    with self._lock:
                        if not self._rearmed:
                            stop_event.set()
                            break
                        self._rearmed = False

                next_deadline += self.period
                now = time.monotonic()
                if now - next_deadline > self.period:
                    next_deadline = now + self.period
        except Exception as e:
            logger.exception("%s: tick callback failed, stopping", self.name)
            # Mark stopped before on_error so a concurrent start() spawns a fresh loop
            stop_event.set()
            if self.on_error is not None:
                self.on_error(e)
        finally:
            stop_event.set()
