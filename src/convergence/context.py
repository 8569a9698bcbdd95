"""Runtime execution context for reconciliation calls."""

from __future__ import annotations

import threading
import time


class Context:
    """Per-run state passed through every controller and remote call.

    Carries the dry-run flag, an optional deadline and a cancellation signal
    that remote clients and retry loops consult.
    """

    def __init__(
        self,
        *,
        dry_run: bool = False,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        self.dry_run = dry_run
        self.deadline = time.monotonic() + timeout if timeout is not None else None
        self._cancel = cancel if cancel is not None else threading.Event()

    def cancel(self) -> None:
        """Signal all pending work under this context to stop."""
        self._cancel.set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def canceled(self) -> bool:
        return self._cancel.is_set() or self.expired

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def sleep(self, seconds: float) -> bool:
        """Wait up to `seconds`; return False if canceled before or during the wait."""
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        if seconds > 0:
            self._cancel.wait(seconds)
        return not self.canceled
