"""
Single-owner debounced task.

Repeated schedule() calls within the delay window collapse into one call with
the most recent arguments. Each schedule bumps a generation counter; a timer
that fires for an older generation does nothing, so superseded work is
cancelled deterministically even if its timer thread already woke up.
"""
import logging
import threading
from typing import Any, Callable, Optional, Tuple

logger = logging.getLogger(__name__)


class DebouncedTask:

    def __init__(
        self,
        func: Callable[..., Any],
        delay_ms: int,
        name: str = "",
        on_timer_exit: Optional[Callable[[], Any]] = None,
    ):
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self._func = func
        self._delay = delay_ms / 1000.0
        self._name = name or getattr(func, "__name__", "debounced")
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._pending: Optional[Tuple[tuple, dict]] = None
        # Runs after a timer-thread call only, never after flush().
        self._on_timer_exit = on_timer_exit

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def schedule(self, *args, **kwargs) -> int:
        """Replace any queued call with this one and restart the delay."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            self._pending = (args, kwargs)
            self._timer = threading.Timer(self._delay, self._fire, args=(generation,))
            self._timer.daemon = True
            self._timer.start()
        return generation

    def cancel(self) -> bool:
        """Drop the queued call, if any. Returns True if something was dropped."""
        with self._lock:
            dropped = self._pending is not None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1
            self._pending = None
        return dropped

    def flush(self) -> bool:
        """Run the queued call now, on the calling thread."""
        call = self._take(None)
        if call is None:
            return False
        self._invoke(call)
        return True

    def _take(self, generation: Optional[int]):
        with self._lock:
            if generation is not None and generation != self._generation:
                return None
            if self._pending is None:
                return None
            if self._timer is not None and generation is None:
                self._timer.cancel()
            self._timer = None
            call, self._pending = self._pending, None
            return call

    def _fire(self, generation: int) -> None:
        call = self._take(generation)
        if call is None:
            logger.debug(f"[{self._name}] generation {generation} superseded, skipping")
            return
        try:
            self._invoke(call)
        finally:
            if self._on_timer_exit is not None:
                self._on_timer_exit()

    def _invoke(self, call) -> None:
        args, kwargs = call
        try:
            self._func(*args, **kwargs)
        except Exception as e:
            # Timer threads have nobody to propagate to.
            logger.error(f"[{self._name}] debounced call failed: {e}", exc_info=True)
