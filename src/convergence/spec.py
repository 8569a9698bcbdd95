"""ResourceSpec base model and resource-kind registration."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

_resource_registry: dict[str, type[ResourceSpec]] = {}


def resource(kind: str):
    """Register a ResourceSpec class as the decoder for a resource kind."""

    def decorator(cls):
        cls.kind = kind
        _resource_registry[kind] = cls
        return cls

    return decorator


def resource_type(kind: str) -> type[ResourceSpec]:
    """Return the ResourceSpec class registered for `kind`."""
    if kind not in _resource_registry:
        raise ValueError(f"Unknown resource type: '{kind}'")
    return _resource_registry[kind]


class ResourceSpec(BaseModel):
    """Desired configuration for one remote resource instance.

    Subclasses declare their attributes as pydantic fields (field aliases give
    the remote API's key names) and point `identifier_field` at the field that
    identifies the instance remotely. Specs are frozen: the identifier of an
    instance never changes, a different identifier means a different instance.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    kind: ClassVar[str] = ""
    identifier_field: ClassVar[str]
    parent_field: ClassVar[str | None] = None

    # response key whose falsy value marks the resource as absent
    presence_key: ClassVar[str | None] = None

    @property
    def identifier(self) -> str:
        return str(getattr(self, self.identifier_field))

    @property
    def parent_identifier(self) -> str | None:
        if self.parent_field is None:
            return None
        return getattr(self, self.parent_field)

    def attributes(self) -> dict[str, Any]:
        """Set attributes keyed by field name, in JSON-compatible form."""
        return self.model_dump(mode="json", exclude_none=True)

    def diff(
        self,
        remote: Mapping[str, Any],
        previous: Mapping[str, Any] | None = None,
    ) -> dict[str, tuple[Any, Any]]:
        """Compare set attributes against remote attributes.

        Returns a mapping of field name to (desired, actual) for each field
        that differs. Unset (None) fields are left to the remote default,
        except those set in `previous` (the attributes last applied): a field
        dropped from the configuration differs while the remote still has it.
        """
        desired = self.attributes()
        changes = {
            name: (value, remote.get(name))
            for name, value in desired.items()
            if remote.get(name) != value
        }
        for name in previous or {}:
            if name not in desired and remote.get(name) is not None:
                changes[name] = (None, remote[name])
        return changes
