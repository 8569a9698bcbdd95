"""StateMapper — convert between ResourceSpec values and remote API shapes."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import MalformedResponseError
from .spec import ResourceSpec

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=ResourceSpec)


class RemoteState(BaseModel):
    """Snapshot of a resource as last reported by the remote API."""

    model_config = ConfigDict(frozen=True)

    kind: str
    identifier: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    computed: dict[str, Any] = Field(default_factory=dict)


class StateMapper(Generic[S]):
    """Map a ResourceSpec type onto request and response dictionaries.

    Request keys are the ResourceSpec field aliases. Response keys that match an
    alias populate `RemoteState.attributes`; any other key is server-computed
    and lands in `RemoteState.computed`, where drift detection never looks.
    """

    def __init__(self, spec_type: type[S]) -> None:
        self.spec_type = spec_type
        self._keys = {field.alias or name for name, field in spec_type.model_fields.items()}

    @property
    def kind(self) -> str:
        return self.spec_type.kind

    def to_request(self, spec: S) -> dict[str, Any]:
        return spec.model_dump(mode="json", by_alias=True, exclude_none=True)

    def is_absent(self, response: Mapping[str, Any]) -> bool:
        """True when the response reports the resource as disabled."""
        key = self.spec_type.presence_key
        return key is not None and not response.get(key, False)

    def from_response(self, response: Mapping[str, Any]) -> RemoteState:
        known = {k: v for k, v in response.items() if k in self._keys}
        try:
            parsed = self.spec_type.model_validate(known)
        except ValidationError as exc:
            raise MalformedResponseError(
                exc, kind=self.kind, action="reading response"
            ) from exc
        computed = {k: v for k, v in response.items() if k not in self._keys}
        logger.debug("Mapped %s response for '%s'", self.kind, parsed.identifier)
        return RemoteState(
            kind=self.kind,
            identifier=parsed.identifier,
            attributes=parsed.attributes(),
            computed=computed,
        )

    def to_spec(self, state: RemoteState) -> S:
        """Rebuild a desired spec from observed state (used on import)."""
        return self.spec_type.model_validate(state.attributes)
