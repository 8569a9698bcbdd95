"""convergence - A declarative resource reconciliation engine for infrastructure-as-code providers."""

from .client import RemoteClient as RemoteClient
from .cluster_logging import ClusterLogging as ClusterLogging
from .cluster_logging import LogDestinationType as LogDestinationType
from .cluster_logging import LogExport as LogExport
from .context import Context as Context
from .drift import DriftDetector as DriftDetector
from .drift import DriftReport as DriftReport
from .drift import DriftStatus as DriftStatus
from .lifecycle import Action as Action
from .lifecycle import LifecycleController as LifecycleController
from .lifecycle import Plan as Plan
from .mapper import RemoteState as RemoteState
from .mapper import StateMapper as StateMapper
from .reconciler import Outcome as Outcome
from .reconciler import Reconciler as Reconciler
from .reconciler import ReconcileResult as ReconcileResult
from .retry import RetryPolicy as RetryPolicy
from .spec import ResourceSpec as ResourceSpec
from .spec import resource as resource
from .specop import Absent as Absent
from .specop import Ensure as Ensure
from .specop import Present as Present
from .specop import SpecOp as SpecOp
from .state import FileStore as FileStore
from .state import MemoryStore as MemoryStore
from .state import StateStore as StateStore
from .state import TrackedInstance as TrackedInstance
from .workspace import Workspace as Workspace
