"""Tracked instances and the stores that persist them."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, Field, TypeAdapter

from .mapper import RemoteState
from .spec import ResourceSpec, resource_type

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


class TrackedInstance(BaseModel):
    """Persisted binding of a desired spec to its remote identifier."""

    address: str
    kind: str
    identifier: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    computed: dict[str, Any] = Field(default_factory=dict)
    serial: int = 0
    updated_at: datetime = Field(default_factory=_now)

    @classmethod
    def track(
        cls,
        address: str,
        spec: ResourceSpec,
        state: RemoteState,
        previous: TrackedInstance | None = None,
    ) -> TrackedInstance:
        return cls(
            address=address,
            kind=spec.kind,
            identifier=state.identifier,
            attributes=spec.attributes(),
            computed=state.computed,
            serial=previous.serial + 1 if previous is not None else 1,
        )

    def desired(self) -> ResourceSpec:
        """Rebuild the recorded spec using the registered resource type."""
        return resource_type(self.kind).model_validate(self.attributes)


class StateStore(Protocol):
    """Keyed storage for TrackedInstance records."""

    def get(self, address: str) -> TrackedInstance | None: ...

    def put(self, instance: TrackedInstance) -> None: ...

    def delete(self, address: str) -> None: ...

    def __iter__(self) -> Iterator[TrackedInstance]: ...


class MemoryStore:
    """Process-local store."""

    def __init__(self) -> None:
        self._instances: dict[str, TrackedInstance] = {}
        self._lock = threading.Lock()

    def get(self, address: str) -> TrackedInstance | None:
        with self._lock:
            return self._instances.get(address)

    def put(self, instance: TrackedInstance) -> None:
        with self._lock:
            self._instances[instance.address] = instance

    def delete(self, address: str) -> None:
        with self._lock:
            self._instances.pop(address, None)

    def __iter__(self) -> Iterator[TrackedInstance]:
        with self._lock:
            return iter(list(self._instances.values()))

    def __len__(self) -> int:
        return len(self._instances)


_instances_adapter = TypeAdapter(dict[str, TrackedInstance])


class FileStore(MemoryStore):
    """JSON file store; every mutation rewrites the file atomically."""

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._instances = _instances_adapter.validate_json(self.path.read_bytes())
            logger.debug("Loaded %d instance(s) from %s", len(self._instances), self.path)

    def put(self, instance: TrackedInstance) -> None:
        with self._lock:
            self._instances[instance.address] = instance
            self._flush()

    def delete(self, address: str) -> None:
        with self._lock:
            if self._instances.pop(address, None) is not None:
                self._flush()

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = _instances_adapter.dump_json(self._instances, indent=2)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise
        logger.debug("Wrote %d instance(s) to %s", len(self._instances), self.path)
