"""DriftDetector — compare tracked desired state with live remote state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .context import Context
from .mapper import RemoteState
from .reconciler import Reconciler
from .spec import ResourceSpec
from .state import TrackedInstance

logger = logging.getLogger(__name__)


class DriftStatus(Enum):
    IN_SYNC = "in_sync"
    DRIFTED = "drifted"
    GONE = "gone"


@dataclass(frozen=True)
class DriftReport:
    status: DriftStatus
    diff: dict[str, tuple[Any, Any]] = field(default_factory=dict)
    state: RemoteState | None = None


class DriftDetector:
    """Re-read a tracked instance and report whether it still matches."""

    def __init__(self, reconciler: Reconciler) -> None:
        self.reconciler = reconciler

    def is_gone(self, identifier: str, ctx: Context) -> bool:
        """True only when the remote API confirms the instance is absent."""
        return self.reconciler.read(identifier, ctx) is None

    def check(
        self,
        instance: TrackedInstance,
        ctx: Context,
        desired: ResourceSpec | None = None,
    ) -> DriftReport:
        """Report IN_SYNC, DRIFTED (with a field diff) or GONE.

        `desired` overrides the instance's recorded spec, which is how a
        changed configuration shows up as drift. Read failures propagate.
        """
        state = self.reconciler.read(instance.identifier, ctx)
        if state is None:
            logger.info("%s (%s) is gone", instance.kind, instance.identifier)
            return DriftReport(DriftStatus.GONE)

        spec = desired if desired is not None else instance.desired()
        diff = spec.diff(state.attributes, instance.attributes)
        if diff:
            fields = ", ".join(sorted(diff))
            logger.info("%s (%s) drifted: %s", instance.kind, instance.identifier, fields)
            return DriftReport(DriftStatus.DRIFTED, diff, state)

        logger.debug("%s (%s) in sync", instance.kind, instance.identifier)
        return DriftReport(DriftStatus.IN_SYNC, state=state)
