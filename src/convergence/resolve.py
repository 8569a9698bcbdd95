"""Resolver — expand ${...} references in declared resource attributes."""

from __future__ import annotations

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_INTERP_PATTERN = re.compile(r"\$\$\{|(\$\{([^{}]+)\})")
_FULL_PATTERN = re.compile(r"\$\{([^{}]+)\}")


class Resolver:
    """Resolve ${...} references against caller-supplied variables.

    References are dotted paths (``cluster.id``) looked up by key, then by
    attribute. Owning resources are not part of the graph, so a reference to
    another resource's identifier must be supplied as a variable.
    """

    def __init__(self, variables: dict[str, Any] | None = None) -> None:
        self.variables = variables or {}

    def lookup(self, ref: str) -> Any:
        current: Any = self.variables
        for part in ref.split("."):
            try:
                current = current[part]
            except (KeyError, TypeError):
                try:
                    current = getattr(current, part)
                except AttributeError:
                    raise ValueError(f"undefined reference '{ref}'") from None

        if callable(current) and not isinstance(current, type):
            current = current()
        return current

    def resolve_value(self, value: str) -> Any:
        """Resolve references in one string.

        A string that is exactly one reference keeps the referenced value's
        type; embedded references are stringified. ``$${`` escapes a literal.
        """
        if "${" not in value:
            return value

        match = _FULL_PATTERN.fullmatch(value)
        if match:
            return self.lookup(match.group(1).strip())

        def _replace(m: re.Match) -> str:  # type: ignore[type-arg]
            if m.group(0) == "$${":
                return "${"
            return str(self.lookup(m.group(2).strip()))

        return _INTERP_PATTERN.sub(_replace, value)

    def resolve(self, attrs: dict[str, Any], *, address: str | None = None) -> dict[str, Any]:
        """Return a copy of `attrs` with every reference resolved."""
        try:
            return self._walk(attrs)
        except ValueError as exc:
            if address is None:
                raise
            raise ValueError(f"{address}: {exc}") from exc

    def _walk(self, obj: Any) -> Any:
        if isinstance(obj, dict):
            return {k: self._walk(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [self._walk(item) for item in obj]
        if isinstance(obj, str):
            return self.resolve_value(obj)
        return obj
