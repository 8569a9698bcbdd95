"""LifecycleController — plan, apply, destroy and import for one resource kind."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from .client import RemoteClient
from .context import Context
from .drift import DriftDetector, DriftReport, DriftStatus
from .errors import NotFoundError, ReconcileError
from .mapper import RemoteState, StateMapper
from .reconciler import Outcome, Reconciler
from .retry import RetryPolicy
from .spec import ResourceSpec
from .state import StateStore, TrackedInstance

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=ResourceSpec)


class Action(Enum):
    NOOP = "noop"
    CREATE = "create"
    UPDATE = "update"
    RECREATE = "recreate"
    REPLACE = "replace"


@dataclass(frozen=True)
class Plan:
    """The next action needed to converge one instance."""

    action: Action
    diff: dict[str, tuple[Any, Any]] = field(default_factory=dict)
    state: RemoteState | None = None

    @property
    def empty(self) -> bool:
        return self.action is Action.NOOP


class LifecycleController(Generic[S]):
    """Orchestrate the lifecycle of instances of one resource kind.

    The remote client and the state store are injected; the controller owns
    every TrackedInstance it writes. Calls for the same identifier are
    serialized, calls for different identifiers may run concurrently.
    """

    def __init__(
        self,
        client: RemoteClient,
        spec_type: type[S],
        store: StateStore,
        *,
        retry: RetryPolicy | None = None,
    ) -> None:
        self.spec_type = spec_type
        self.store = store
        self.mapper = StateMapper(spec_type)
        self.reconciler = Reconciler(client, self.mapper, retry=retry)
        self.detector = DriftDetector(self.reconciler)
        # identifier -> (lock, number of callers holding or waiting on it)
        self._locks: dict[str, tuple[threading.Lock, int]] = {}
        self._locks_guard = threading.Lock()

    @property
    def kind(self) -> str:
        return self.spec_type.kind

    @contextmanager
    def _locked(self, *identifiers: str) -> Iterator[None]:
        """Hold the locks for `identifiers`, always taken in sorted order."""
        keys = sorted(set(identifiers))
        with self._locks_guard:
            locks = []
            for key in keys:
                lock, users = self._locks.get(key, (threading.Lock(), 0))
                self._locks[key] = (lock, users + 1)
                locks.append(lock)
        try:
            with ExitStack() as stack:
                for lock in locks:
                    stack.enter_context(lock)
                yield
        finally:
            with self._locks_guard:
                for key in keys:
                    lock, users = self._locks[key]
                    if users == 1:
                        del self._locks[key]
                    else:
                        self._locks[key] = (lock, users - 1)

    def _address(self, spec: S, existing: TrackedInstance | None, address: str | None) -> str:
        if existing is not None:
            return existing.address
        return address or f"{self.kind}.{spec.identifier}"

    def _as_instance(self, target: TrackedInstance | str) -> TrackedInstance:
        if isinstance(target, TrackedInstance):
            return target
        return TrackedInstance(address=f"{self.kind}.{target}", kind=self.kind, identifier=target)

    def plan(self, spec: S, existing: TrackedInstance | None, ctx: Context | None = None) -> Plan:
        """Decide the action that converges `existing` onto `spec`."""
        ctx = ctx if ctx is not None else Context()
        if existing is None:
            return Plan(Action.CREATE)
        if existing.identifier != spec.identifier:
            return Plan(Action.REPLACE, {spec.identifier_field: (spec.identifier, existing.identifier)})

        report = self.detector.check(existing, ctx, desired=spec)
        if report.status is DriftStatus.GONE:
            return Plan(Action.RECREATE)
        if report.status is DriftStatus.DRIFTED:
            return Plan(Action.UPDATE, report.diff, report.state)
        return Plan(Action.NOOP, state=report.state)

    def apply(
        self,
        spec: S,
        existing: TrackedInstance | None = None,
        *,
        address: str | None = None,
        ctx: Context | None = None,
    ) -> TrackedInstance:
        """Converge the remote resource onto `spec` and record the result.

        A tracked instance that has disappeared remotely is created again.
        """
        ctx = ctx if ctx is not None else Context()
        address = self._address(spec, existing, address)

        identifiers = [spec.identifier]
        if existing is not None:
            identifiers.append(existing.identifier)

        with self._locked(*identifiers):
            plan = self.plan(spec, existing, ctx)
            logger.debug("Plan for '%s': %s", address, plan.action.value)

            if plan.action is Action.NOOP:
                state = plan.state
            elif plan.action is Action.UPDATE:
                assert existing is not None
                state = self._update(spec, existing, plan, ctx)
            else:
                if plan.action is Action.REPLACE:
                    assert existing is not None
                    self._delete(existing.identifier, ctx)
                elif plan.action is Action.RECREATE:
                    logger.info("%s (%s) disappeared; recreating", self.kind, spec.identifier)
                state = self._create(spec, ctx)

            assert state is not None
            instance = TrackedInstance.track(address, spec, state, existing)
            self.store.put(instance)
        return instance

    def _create(self, spec: S, ctx: Context) -> RemoteState:
        identifier, result = self.reconciler.create(spec, ctx)
        result.raise_for_outcome()
        assert identifier is not None
        state = self.reconciler.read(identifier, ctx, new=True)
        if state is None:
            raise ReconcileError(
                "not found after create", kind=self.kind, identifier=identifier, action="creating"
            )
        return state

    def _update(self, spec: S, existing: TrackedInstance, plan: Plan, ctx: Context) -> RemoteState:
        result = self.reconciler.update(
            spec.identifier, spec, ctx, current=plan.state, previous=existing.attributes
        )
        if result.outcome is Outcome.GONE:
            logger.info("%s (%s) disappeared during update; recreating", self.kind, spec.identifier)
            return self._create(spec, ctx)
        result.raise_for_outcome()
        state = self.reconciler.read(spec.identifier, ctx)
        if state is None:
            raise ReconcileError(
                "not found after update", kind=self.kind, identifier=spec.identifier, action="updating"
            )
        return state

    def _delete(self, identifier: str, ctx: Context) -> None:
        self.reconciler.delete(identifier, ctx).raise_for_outcome()

    def destroy(self, target: TrackedInstance | str, *, ctx: Context | None = None) -> None:
        """Delete the remote resource and forget its record.

        Succeeds when the resource is already gone.
        """
        ctx = ctx if ctx is not None else Context()
        instance = self._as_instance(target)
        with self._locked(instance.identifier):
            self._delete(instance.identifier, ctx)
            self.store.delete(instance.address)

    def refresh(self, instance: TrackedInstance, *, ctx: Context | None = None) -> DriftReport:
        """Check an instance against its recorded spec."""
        ctx = ctx if ctx is not None else Context()
        return self.detector.check(instance, ctx)

    def exists(self, target: TrackedInstance | str, *, ctx: Context | None = None) -> bool:
        """True unless the remote API confirms the instance is gone."""
        ctx = ctx if ctx is not None else Context()
        instance = self._as_instance(target)
        return not self.detector.is_gone(instance.identifier, ctx)

    def import_instance(
        self,
        identifier: str,
        *,
        address: str | None = None,
        ctx: Context | None = None,
    ) -> TrackedInstance:
        """Start tracking an existing remote resource by its identifier."""
        ctx = ctx if ctx is not None else Context()
        state = self.reconciler.read(identifier, ctx)
        if state is None:
            raise NotFoundError(
                "cannot import non-existent remote object",
                kind=self.kind,
                identifier=identifier,
                action="importing",
            )
        spec = self.mapper.to_spec(state)
        instance = TrackedInstance.track(address or f"{self.kind}.{identifier}", spec, state)
        self.store.put(instance)
        logger.info("Imported %s (%s)", self.kind, identifier)
        return instance
