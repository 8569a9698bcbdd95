"""RemoteClient protocol — the four calls a resource kind needs from its API."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, Protocol

from .context import Context
from .errors import CanceledError, NotFoundError, RetryableError


class RemoteClient(Protocol):
    """Control-plane operations for one resource kind.

    Implementations signal absence with NotFoundError, transient conditions
    with NotReadyError or ThrottledError, and may consult `ctx` for the
    remaining deadline. Any other exception is treated as fatal.
    """

    def create(self, request: Mapping[str, Any], ctx: Context) -> str: ...

    def describe(self, identifier: str, ctx: Context) -> Mapping[str, Any]: ...

    def modify(self, identifier: str, request: Mapping[str, Any], ctx: Context) -> None: ...

    def delete(self, identifier: str, ctx: Context) -> None: ...


class ErrorClass(Enum):
    NOT_FOUND = "not_found"
    RETRYABLE = "retryable"
    CANCELED = "canceled"
    FATAL = "fatal"


def classify(exc: BaseException) -> ErrorClass:
    """Sort an exception raised by a RemoteClient into an ErrorClass."""
    if isinstance(exc, NotFoundError):
        return ErrorClass.NOT_FOUND
    if isinstance(exc, RetryableError | ConnectionError | TimeoutError):
        return ErrorClass.RETRYABLE
    if isinstance(exc, CanceledError):
        return ErrorClass.CANCELED
    return ErrorClass.FATAL
