"""
Signal filtering utilities for GPIO edge processing.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional


@dataclass
class EdgeDebouncer:
    """
    Time-window debouncer for edge notifications.

    An edge is accepted when at least debounce_ms has elapsed since the
    previously accepted edge (or the last mark()). The first edge with
    no earlier reference is always accepted. Rejected edges do not move
    the window.
    """
    debounce_ms: float = 50.0
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    _last_accepted: Optional[float] = None

    def accept(self, now: Optional[float] = None) -> bool:
        """
        Decide whether an edge arriving now is a real transition.

        Args:
            now: Event time in seconds (read from clock if None)

        Returns:
            True if the edge is accepted, False if it is a bounce
        """
        if now is None:
            now = self.clock()

        if self._last_accepted is not None:
            # Microsecond resolution; a gap of exactly one window must not round below it
            elapsed_ms = round((now - self._last_accepted) * 1000.0, 3)
            if elapsed_ms < self.debounce_ms:
                return False

        self._last_accepted = now
        return True

    def mark(self, now: Optional[float] = None) -> None:
        """Open a debounce window at now without an edge, e.g. on start-up."""
        self._last_accepted = self.clock() if now is None else now

    def reset(self) -> None:
        """Forget the last accepted edge."""
        self._last_accepted = None

    @property
    def last_accepted(self) -> Optional[float]:
        """Time of the last accepted edge, in clock seconds."""
        return self._last_accepted
