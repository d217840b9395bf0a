from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Set

from ..core.constants import DEFAULT_DEBOUNCE_SECONDS
from ..core.enums import ChangeKind

logger = logging.getLogger(__name__)

Subscriber = Callable[[ChangeKind], None]


class ChangeNotificationCoordinator:
    """Debounce "data changed" signals.

    ``schedule`` collects kinds into a pending set and restarts a single
    timer; when it expires every pending kind is emitted once. ``emit_now``
    is the uncoalesced path for definite, isolated events (explicit save,
    course add/delete, semester switch).
    """

    def __init__(self, *, delay: float = DEFAULT_DEBOUNCE_SECONDS, timer_factory=threading.Timer):
        self._delay = float(delay)
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._pending: Set[ChangeKind] = set()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._subscribers: List[Subscriber] = []

    @property
    def pending(self) -> Set[ChangeKind]:
        with self._lock:
            return set(self._pending)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def schedule(self, kind: ChangeKind) -> None:
        with self._lock:
            self._pending.add(ChangeKind(kind))
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            timer = self._timer_factory(self._delay, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
        timer.start()

    def emit_now(self, *kinds: ChangeKind) -> None:
        for kind in kinds:
            self._emit(ChangeKind(kind))

    def flush(self) -> None:
        """Emit whatever is pending right away."""
        with self._lock:
            generation = self._generation
        self._fire(generation)

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._generation += 1
            self._pending.clear()

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A cancelled timer that fired anyway belongs to an older window.
            if generation != self._generation:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._generation += 1
            kinds = [k for k in ChangeKind if k in self._pending]
            self._pending.clear()

        for kind in kinds:
            self._emit(kind)

    def _emit(self, kind: ChangeKind) -> None:
        logger.debug("Emitting %s", kind.value)
        for callback in list(self._subscribers):
            try:
                callback(kind)
            except Exception:
                logger.exception("Change subscriber failed for %s", kind.value)
