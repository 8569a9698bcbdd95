"""Shared fixtures: an in-memory warehouse control plane and its logging client."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from convergence.cluster_logging import ClusterLogging
from convergence.context import Context
from convergence.errors import NotFoundError, NotReadyError
from convergence.lifecycle import LifecycleController
from convergence.retry import RetryPolicy
from convergence.state import MemoryStore


class FakeWarehouse:
    """Clusters and their logging settings, mutable out of band."""

    def __init__(self) -> None:
        self.clusters: dict[str, int] = {}
        self.logging: dict[str, dict[str, Any]] = {}

    def add_cluster(self, identifier: str, *, not_ready_for: int = 0) -> None:
        self.clusters[identifier] = not_ready_for

    def delete_cluster(self, identifier: str) -> None:
        self.clusters.pop(identifier, None)
        self.logging.pop(identifier, None)

    def disable_logging(self, identifier: str) -> None:
        self.logging.pop(identifier, None)


class FakeLoggingClient:
    """RemoteClient for cluster logging backed by a FakeWarehouse."""

    def __init__(self, warehouse: FakeWarehouse) -> None:
        self.warehouse = warehouse
        self.calls: list[tuple[str, str]] = []

    def count(self, action: str) -> int:
        return sum(1 for name, _ in self.calls if name == action)

    def _cluster(self, identifier: str) -> None:
        if identifier not in self.warehouse.clusters:
            raise NotFoundError("ClusterNotFound", kind="cluster", identifier=identifier)

    def _ready(self, identifier: str) -> None:
        self._cluster(identifier)
        if self.warehouse.clusters[identifier] > 0:
            self.warehouse.clusters[identifier] -= 1
            raise NotReadyError("InvalidClusterState", kind="cluster", identifier=identifier)

    def create(self, request: Mapping[str, Any], ctx: Context) -> str:
        identifier = request["ClusterIdentifier"]
        self.calls.append(("create", identifier))
        self._ready(identifier)
        self.warehouse.logging[identifier] = dict(request)
        return identifier

    def describe(self, identifier: str, ctx: Context) -> Mapping[str, Any]:
        self.calls.append(("describe", identifier))
        self._cluster(identifier)
        entry = self.warehouse.logging.get(identifier)
        if entry is None:
            return {"ClusterIdentifier": identifier, "LoggingEnabled": False}
        return {
            **entry,
            "LoggingEnabled": True,
            "LastSuccessfulDeliveryTime": "2024-01-01T00:00:00Z",
        }

    def modify(self, identifier: str, request: Mapping[str, Any], ctx: Context) -> None:
        self.calls.append(("modify", identifier))
        self._ready(identifier)
        if identifier not in self.warehouse.logging:
            raise NotFoundError("logging not enabled", identifier=identifier)
        self.warehouse.logging[identifier] = dict(request)

    def delete(self, identifier: str, ctx: Context) -> None:
        self.calls.append(("delete", identifier))
        self._cluster(identifier)
        if self.warehouse.logging.pop(identifier, None) is None:
            raise NotFoundError("logging not enabled", identifier=identifier)


FAST_RETRY = RetryPolicy(initial_delay=0.001, max_delay=0.001, jitter=0, budget=1.0)


@pytest.fixture
def warehouse() -> FakeWarehouse:
    wh = FakeWarehouse()
    wh.add_cluster("c1")
    return wh


@pytest.fixture
def client(warehouse) -> FakeLoggingClient:
    return FakeLoggingClient(warehouse)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def controller(client, store) -> LifecycleController[ClusterLogging]:
    return LifecycleController(client, ClusterLogging, store, retry=FAST_RETRY)
