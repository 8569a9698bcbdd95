"""Cluster logging — audit log delivery settings for a data-warehouse cluster."""

from __future__ import annotations

from enum import StrEnum
from typing import ClassVar

from pydantic import ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_pascal

from .spec import ResourceSpec, resource


class LogDestinationType(StrEnum):
    CLOUDWATCH = "cloudwatch"
    S3 = "s3"


class LogExport(StrEnum):
    CONNECTION_LOG = "connectionlog"
    USER_ACTIVITY_LOG = "useractivitylog"
    USER_LOG = "userlog"


@resource("cluster_logging")
class ClusterLogging(ResourceSpec):
    """Logging configuration attached to a cluster.

    The configuration has no existence of its own: it is identified by the
    owning cluster and disappears along with it.
    """

    model_config = ConfigDict(alias_generator=to_pascal)

    identifier_field: ClassVar[str] = "cluster_identifier"
    parent_field: ClassVar[str | None] = "cluster_identifier"
    presence_key: ClassVar[str | None] = "LoggingEnabled"

    cluster_identifier: str
    log_destination_type: LogDestinationType | None = None
    bucket_name: str | None = None
    s3_key_prefix: str | None = None
    log_exports: list[LogExport] | None = None

    @field_validator("cluster_identifier")
    @classmethod
    def _require_identifier(cls, value: str) -> str:
        if not value:
            raise ValueError("cluster_identifier must not be empty")
        return value

    @field_validator("log_exports")
    @classmethod
    def _normalize_exports(cls, value: list[LogExport] | None) -> list[LogExport] | None:
        if value is None:
            return None
        return sorted(set(value))

    @model_validator(mode="after")
    def _check_destination(self) -> ClusterLogging:
        if self.log_destination_type == LogDestinationType.S3 and not self.bucket_name:
            raise ValueError("bucket_name is required when log_destination_type is 's3'")
        return self
