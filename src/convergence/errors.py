"""Error taxonomy for remote calls and reconciliation outcomes."""

from __future__ import annotations


class ReconcileError(Exception):
    """Base class for all reconciliation errors.

    Messages read as ``<kind> (<identifier>): <action>: <cause>`` when the
    resource context is known.
    """

    def __init__(
        self,
        cause: object = "",
        *,
        kind: str | None = None,
        identifier: str | None = None,
        action: str | None = None,
    ) -> None:
        self.cause = cause
        self.kind = kind
        self.identifier = identifier
        self.action = action
        super().__init__(self._format())

    def _format(self) -> str:
        parts: list[str] = []
        if self.kind:
            parts.append(f"{self.kind} ({self.identifier})" if self.identifier else self.kind)
        if self.action:
            parts.append(self.action)
        if self.cause != "":
            parts.append(str(self.cause))
        return ": ".join(parts)


class NotFoundError(ReconcileError):
    """The remote resource (or the parent it lives on) does not exist."""


class RetryableError(ReconcileError):
    """A transient condition; the call may succeed if repeated."""


class NotReadyError(RetryableError):
    """A dependency exists but is not yet in a state that accepts the call."""


class ThrottledError(RetryableError):
    """The remote API rejected the call due to rate limiting."""


class RetryExhaustedError(ReconcileError):
    """Retryable errors persisted past the configured wait budget."""


class MalformedResponseError(ReconcileError):
    """A remote response is missing required fields."""


class FatalError(ReconcileError):
    """The remote API rejected the request."""


class CanceledError(ReconcileError):
    """The caller canceled the operation or its deadline passed."""
