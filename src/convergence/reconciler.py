"""Reconciler — drive one resource instance toward its desired state."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from .client import ErrorClass, RemoteClient, classify
from .context import Context
from .errors import CanceledError, NotFoundError, ReconcileError, RetryExhaustedError
from .mapper import RemoteState, StateMapper
from .retry import RetryPolicy
from .spec import ResourceSpec

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=ResourceSpec)


class Outcome(Enum):
    CONVERGED = "converged"
    RETRYABLE = "retryable"
    FATAL = "fatal"
    GONE = "gone"
    CANCELED = "canceled"


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one reconciliation call, including any retries."""

    outcome: Outcome
    reason: str = ""
    error: BaseException | None = None
    attempts: int = 0
    identifier: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.CONVERGED

    def raise_for_outcome(self) -> None:
        """Raise the error behind a FATAL, RETRYABLE or CANCELED outcome.

        CONVERGED and GONE return normally; callers decide what GONE means.
        """
        if self.outcome is Outcome.FATAL:
            if self.error is not None:
                raise self.error
            raise ReconcileError(self.reason, identifier=self.identifier)
        if self.outcome is Outcome.RETRYABLE:
            raise RetryExhaustedError(self.reason, identifier=self.identifier) from self.error
        if self.outcome is Outcome.CANCELED:
            raise CanceledError(self.reason, identifier=self.identifier) from self.error


class Reconciler(Generic[S]):
    """Issue remote calls for one resource kind, retrying transient failures.

    Retryable errors (not ready, throttled, connection trouble, timeouts) are absorbed
    by an explicit backoff loop bounded by the RetryPolicy; every other error
    is reported as a FATAL result carrying the original exception.
    """

    def __init__(
        self,
        client: RemoteClient,
        mapper: StateMapper[S],
        *,
        retry: RetryPolicy | None = None,
    ) -> None:
        self.client = client
        self.mapper = mapper
        self.retry = retry if retry is not None else RetryPolicy()

    @property
    def kind(self) -> str:
        return self.mapper.kind

    def _call(
        self,
        action: str,
        identifier: str | None,
        ctx: Context,
        func: Callable[[], Any],
        *,
        retry_not_found: bool = False,
    ) -> tuple[ReconcileResult, Any]:
        delays = self.retry.delays()
        attempts = 0
        last_error: BaseException | None = None

        while True:
            if ctx.canceled:
                logger.info(
                    "%s %s (%s) canceled after %d attempt(s)", action, self.kind, identifier, attempts
                )
                return ReconcileResult(
                    Outcome.CANCELED, f"{action} canceled", last_error, attempts, identifier
                ), None

            attempts += 1
            try:
                value = func()
            except Exception as exc:
                error_class = classify(exc)
                if error_class is ErrorClass.NOT_FOUND and not retry_not_found:
                    return ReconcileResult(Outcome.GONE, str(exc), exc, attempts, identifier), None
                if error_class is ErrorClass.CANCELED:
                    return ReconcileResult(Outcome.CANCELED, str(exc), exc, attempts, identifier), None
                if error_class is ErrorClass.FATAL:
                    logger.error("%s %s (%s) failed: %s", action, self.kind, identifier, exc)
                    return ReconcileResult(Outcome.FATAL, str(exc), exc, attempts, identifier), None

                last_error = exc
                delay = next(delays, None)
                if delay is None:
                    logger.error(
                        "%s %s (%s) still failing after %d attempt(s): %s",
                        action,
                        self.kind,
                        identifier,
                        attempts,
                        exc,
                    )
                    if error_class is ErrorClass.NOT_FOUND:
                        return ReconcileResult(Outcome.GONE, str(exc), exc, attempts, identifier), None
                    reason = f"{action}: retry budget exhausted: {exc}"
                    return ReconcileResult(Outcome.RETRYABLE, reason, exc, attempts, identifier), None
                logger.warning(
                    "%s %s (%s) attempt %d: %s; retrying in %.1fs",
                    action,
                    self.kind,
                    identifier,
                    attempts,
                    exc,
                    delay,
                )
                ctx.sleep(delay)
            else:
                return ReconcileResult(Outcome.CONVERGED, attempts=attempts, identifier=identifier), value

    def create(self, spec: S, ctx: Context) -> tuple[str | None, ReconcileResult]:
        """Create the remote resource; a missing parent is fatal."""
        request = self.mapper.to_request(spec)
        logger.info("Creating %s (%s)", self.kind, spec.identifier)
        result, identifier = self._call(
            "create", spec.identifier, ctx, lambda: self.client.create(request, ctx)
        )
        if result.outcome is Outcome.GONE:
            error = NotFoundError(
                "parent resource not found",
                kind=self.kind,
                identifier=spec.identifier,
                action="creating",
            )
            return None, ReconcileResult(
                Outcome.FATAL, str(error), error, result.attempts, spec.identifier
            )
        if not result.ok:
            return None, result
        return identifier, ReconcileResult(
            Outcome.CONVERGED, attempts=result.attempts, identifier=identifier
        )

    def read(self, identifier: str, ctx: Context, *, new: bool = False) -> RemoteState | None:
        """Describe the remote resource; None means it is confirmed absent.

        With `new`, absence is retried for a freshly created resource that the
        API has not caught up with yet.
        """
        result, response = self._call(
            "read",
            identifier,
            ctx,
            lambda: self._describe(identifier, ctx),
            retry_not_found=new,
        )
        if result.outcome is Outcome.GONE:
            logger.debug("%s (%s) not found", self.kind, identifier)
            return None
        result.raise_for_outcome()
        return self.mapper.from_response(response)

    def _describe(self, identifier: str, ctx: Context) -> Any:
        response = self.client.describe(identifier, ctx)
        if self.mapper.is_absent(response):
            raise NotFoundError("not enabled", kind=self.kind, identifier=identifier, action="reading")
        return response

    def update(
        self,
        identifier: str,
        spec: S,
        ctx: Context,
        current: RemoteState | None = None,
        previous: Mapping[str, Any] | None = None,
    ) -> ReconcileResult:
        """Modify the remote resource only if it differs from `spec`.

        `previous` holds the attributes last applied, so fields dropped from
        `spec` since then are cleared remotely.
        """
        if current is None:
            current = self.read(identifier, ctx)
        if current is None:
            return ReconcileResult(Outcome.GONE, "not found", identifier=identifier)

        changes = spec.diff(current.attributes, previous)
        if not changes:
            logger.debug("%s (%s) already up to date", self.kind, identifier)
            return ReconcileResult(Outcome.CONVERGED, identifier=identifier)

        logger.info("Updating %s (%s): %s", self.kind, identifier, ", ".join(sorted(changes)))
        request = self.mapper.to_request(spec)
        result, _ = self._call(
            "update", identifier, ctx, lambda: self.client.modify(identifier, request, ctx)
        )
        return result

    def delete(self, identifier: str, ctx: Context) -> ReconcileResult:
        """Delete the remote resource; an absent resource counts as deleted."""
        if self.read(identifier, ctx) is None:
            logger.debug("%s (%s) already absent", self.kind, identifier)
            return ReconcileResult(Outcome.CONVERGED, "already absent", identifier=identifier)

        logger.info("Deleting %s (%s)", self.kind, identifier)
        result, _ = self._call("delete", identifier, ctx, lambda: self.client.delete(identifier, ctx))
        if result.outcome is Outcome.GONE:
            return ReconcileResult(
                Outcome.CONVERGED, "already absent", attempts=result.attempts, identifier=identifier
            )
        return result
