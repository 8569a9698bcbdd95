"""Workspace — the declared resources and engine settings of a configuration."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from .context import Context
from .lifecycle import LifecycleController
from .resolve import Resolver
from .retry import RetryPolicy
from .spec import resource_type
from .specop import Absent, Ensure, Present, SpecOp
from .state import TrackedInstance

logger = logging.getLogger(__name__)

_STRATEGY_MAP: dict[str, type[SpecOp]] = {
    "present": Present,
    "ensure": Ensure,
    "absent": Absent,
}


@dataclass
class Declaration:
    """One declared resource block — strategy, kind, local name and attributes."""

    strategy: str
    kind: str
    name: str
    attrs: dict[str, Any]
    source: str | None = None

    @property
    def address(self) -> str:
        return f"{self.kind}.{self.name}"

    def resolve(self, resolver: Resolver) -> SpecOp:
        spec_cls = resource_type(self.kind)
        attrs = resolver.resolve(self.attrs, address=self.address)
        try:
            spec = spec_cls(**attrs)
        except ValidationError as exc:
            where = f"{self.source}: " if self.source else ""
            raise ValueError(f"{where}{self.address}: {exc}") from exc
        return _STRATEGY_MAP[self.strategy](spec, self.address)


class Workspace(Mapping[str, SpecOp]):
    """Accumulates parsed configuration and resolves declarations on access."""

    def __init__(self, variables: dict[str, Any] | None = None) -> None:
        self._resolver = Resolver(variables)
        self._declarations: dict[str, Declaration] = {}
        self._retry: dict[str, Any] | None = None

    @property
    def retry(self) -> RetryPolicy:
        """Retry policy from the `retry` block, or the default policy."""
        try:
            return RetryPolicy(**(self._retry or {}))
        except ValidationError as exc:
            raise ValueError(f"retry: {exc}") from exc

    @property
    def kinds(self) -> set[str]:
        return {decl.kind for decl in self._declarations.values()}

    def load(self, data: dict[str, Any], *, source: str | None = None) -> None:
        """Extract declarations and settings from a parsed data dict.

        HCL2 structure for declaration blocks:
            {"ensure": [{"cluster_logging": {"test": {attrs}}}], ...}

        Raises ValueError on a duplicate address or a second retry block.
        """
        for strategy in _STRATEGY_MAP:
            for block in data.get(strategy, []):
                for kind, named in block.items():
                    for name, attrs in named.items():
                        decl = Declaration(strategy, kind, name, dict(attrs), source)
                        if decl.address in self._declarations:
                            raise ValueError(f"Duplicate resource: '{decl.address}'")
                        logger.debug("Found %s '%s'", strategy, decl.address)
                        self._declarations[decl.address] = decl

        for block in data.get("retry", []):
            if self._retry is not None:
                raise ValueError("Duplicate retry block")
            self._retry = dict(block)

    def __getitem__(self, address: str) -> SpecOp:
        return self._declarations[address].resolve(self._resolver)

    def __contains__(self, address: object) -> bool:
        return address in self._declarations

    def __iter__(self) -> Iterator[str]:
        return iter(self._declarations)

    def __len__(self) -> int:
        return len(self._declarations)

    def apply(
        self,
        controllers: Mapping[str, LifecycleController],
        ctx: Context | None = None,
    ) -> dict[str, TrackedInstance | None]:
        """Run every declared operation with the controller for its kind.

        Declarations run in the order they were loaded.
        """
        ctx = ctx if ctx is not None else Context()
        missing = self.kinds - set(controllers)
        if missing:
            raise ValueError(f"No controller for resource type(s): {', '.join(sorted(missing))}")

        ops = [self[address] for address in self._declarations]
        logger.info("Applying %d resource(s)", len(ops))
        results: dict[str, TrackedInstance | None] = {}
        for op in ops:
            results[op.address] = op(controllers[op.spec.kind], ctx)
        return results

    def __repr__(self) -> str:
        return f"Workspace(resources={len(self._declarations)})"
