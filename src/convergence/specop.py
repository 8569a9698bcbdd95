"""SpecOp strategies — decide whether a declared resource needs work."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from .context import Context
from .lifecycle import LifecycleController
from .spec import ResourceSpec
from .state import TrackedInstance

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=ResourceSpec)


class SpecOp(ABC, Generic[S]):
    """Wraps a declared ResourceSpec with conditional execution logic."""

    def __init__(self, spec: S, address: str | None = None) -> None:
        self.spec = spec
        self.address = address or f"{spec.kind}.{spec.identifier}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address!r})"

    @abstractmethod
    def __call__(
        self, controller: LifecycleController[S], ctx: Context
    ) -> TrackedInstance | None: ...


class Present(SpecOp[S]):
    """Create only if the resource doesn't exist; never update it."""

    def __call__(self, controller: LifecycleController[S], ctx: Context) -> TrackedInstance | None:
        existing = controller.store.get(self.address)
        target = existing if existing is not None else self.spec.identifier
        if controller.exists(target, ctx=ctx):
            logger.debug("Skipping %s; already exists", self.address)
            return existing
        if ctx.dry_run:
            logger.info("[DRY RUN] Would create %s", self.address)
            return existing
        logger.info("Creating %s", self.address)
        return controller.apply(self.spec, existing, address=self.address, ctx=ctx)


class Ensure(SpecOp[S]):
    """Create, update or recreate until remote state matches."""

    def __call__(self, controller: LifecycleController[S], ctx: Context) -> TrackedInstance | None:
        existing = controller.store.get(self.address)
        plan = controller.plan(self.spec, existing, ctx)
        if plan.empty:
            logger.debug("Skipping %s; up to date", self.address)
            return existing
        if ctx.dry_run:
            logger.info("[DRY RUN] Would %s %s", plan.action.value, self.address)
            return existing
        logger.info("Applying %s (%s)", self.address, plan.action.value)
        return controller.apply(self.spec, existing, address=self.address, ctx=ctx)


class Absent(SpecOp[S]):
    """Destroy if the resource exists."""

    def __call__(self, controller: LifecycleController[S], ctx: Context) -> TrackedInstance | None:
        existing = controller.store.get(self.address)
        target = existing if existing is not None else self.spec.identifier
        if not controller.exists(target, ctx=ctx):
            logger.debug("Skipping removal of %s; not present", self.address)
            if existing is not None and not ctx.dry_run:
                controller.store.delete(self.address)
            return None
        if ctx.dry_run:
            logger.info("[DRY RUN] Would destroy %s", self.address)
            return existing
        logger.info("Destroying %s", self.address)
        controller.destroy(target, ctx=ctx)
        return None
