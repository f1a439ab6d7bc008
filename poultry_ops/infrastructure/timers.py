"""
Registry of one-shot timers owned by a component.
"""
import logging
import threading
from typing import Callable, Dict

logger = logging.getLogger(__name__)


class TimerRegistry:
    """
    Tracks pending threading.Timer objects so they can be released together.

    Every timer is removed from the registry when it fires or is cancelled.
    After shutdown() no new timer can be scheduled.
    """

    def __init__(self, name: str = "timers"):
        self.name = name
        self._timers: Dict[int, threading.Timer] = {}
        self._callbacks: Dict[int, Callable[[], None]] = {}
        self._lock = threading.Lock()
        self._next_id = 0
        self._closed = False

    def schedule(self, delay: float, callback: Callable[[], None]) -> int:
        """
        Run callback once after delay seconds.

        Args:
            delay: Seconds to wait
            callback: Function without arguments

        Returns:
            int: Timer id usable with cancel()
        """
        with self._lock:
            if self._closed:
                raise RuntimeError(f"Timer registry '{self.name}' is shut down")

            timer_id = self._next_id
            self._next_id += 1

            timer = threading.Timer(max(0.0, delay), self._fire, args=(timer_id,))
            timer.daemon = True
            self._timers[timer_id] = timer
            self._callbacks[timer_id] = callback

        timer.start()
        logger.debug(f"[{self.name}] timer {timer_id} scheduled in {delay:.1f}s")
        return timer_id

    def _fire(self, timer_id: int) -> None:
        with self._lock:
            self._timers.pop(timer_id, None)
            callback = self._callbacks.pop(timer_id, None)

        if callback is None:
            return

        try:
            callback()
        except Exception as e:
            logger.error(f"[{self.name}] timer {timer_id} callback failed: {str(e)}", exc_info=True)

    def cancel(self, timer_id: int) -> bool:
        """Cancel a pending timer. Returns False when it already ran."""
        with self._lock:
            timer = self._timers.pop(timer_id, None)
            self._callbacks.pop(timer_id, None)

        if timer is None:
            return False

        timer.cancel()
        return True

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._timers)

    def shutdown(self, run_pending: bool = False) -> int:
        """
        Cancel every pending timer.

        Args:
            run_pending: Run the cancelled callbacks synchronously

        Returns:
            int: Number of timers cancelled
        """
        with self._lock:
            self._closed = True
            timers = list(self._timers.items())
            callbacks = dict(self._callbacks)
            self._timers.clear()
            self._callbacks.clear()

        for timer_id, timer in timers:
            timer.cancel()
            if run_pending:
                try:
                    callbacks[timer_id]()
                except Exception as e:
                    logger.error(f"[{self.name}] flushing timer {timer_id} failed: {str(e)}", exc_info=True)

        if timers:
            logger.info(f"[{self.name}] cancelled {len(timers)} pending timer(s)")
        return len(timers)
