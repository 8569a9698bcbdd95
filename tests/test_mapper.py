"""Tests for convergence.mapper."""

from __future__ import annotations

import pytest

from convergence.cluster_logging import ClusterLogging, LogDestinationType, LogExport
from convergence.errors import MalformedResponseError
from convergence.mapper import StateMapper


@pytest.fixture
def mapper() -> StateMapper[ClusterLogging]:
    return StateMapper(ClusterLogging)


def _echo(request: dict) -> dict:
    """What the remote API reports back after accepting `request`."""
    return {**request, "LoggingEnabled": True, "LastFailureMessage": None}


class TestToRequest:
    def test_uses_remote_key_names(self, mapper):
        spec = ClusterLogging(
            cluster_identifier="c1",
            log_destination_type="s3",
            bucket_name="logs",
            s3_key_prefix="audit/",
        )
        assert mapper.to_request(spec) == {
            "ClusterIdentifier": "c1",
            "LogDestinationType": "s3",
            "BucketName": "logs",
            "S3KeyPrefix": "audit/",
        }

    def test_omits_unset_fields(self, mapper):
        spec = ClusterLogging(cluster_identifier="c1")
        assert mapper.to_request(spec) == {"ClusterIdentifier": "c1"}


class TestFromResponse:
    def test_splits_computed_fields(self, mapper):
        state = mapper.from_response(
            {
                "ClusterIdentifier": "c1",
                "LogDestinationType": "cloudwatch",
                "LoggingEnabled": True,
                "LastSuccessfulDeliveryTime": "2024-01-01T00:00:00Z",
            }
        )
        assert state.identifier == "c1"
        assert state.kind == "cluster_logging"
        assert state.attributes == {"cluster_identifier": "c1", "log_destination_type": "cloudwatch"}
        assert state.computed == {
            "LoggingEnabled": True,
            "LastSuccessfulDeliveryTime": "2024-01-01T00:00:00Z",
        }

    def test_missing_required_field_raises(self, mapper):
        with pytest.raises(MalformedResponseError, match="cluster_logging"):
            mapper.from_response({"LoggingEnabled": True})

    def test_unknown_enum_value_raises(self, mapper):
        with pytest.raises(MalformedResponseError):
            mapper.from_response({"ClusterIdentifier": "c1", "LogDestinationType": "kinesis"})


class TestIsAbsent:
    def test_disabled_is_absent(self, mapper):
        assert mapper.is_absent({"ClusterIdentifier": "c1", "LoggingEnabled": False})

    def test_missing_flag_is_absent(self, mapper):
        assert mapper.is_absent({"ClusterIdentifier": "c1"})

    def test_enabled_is_present(self, mapper):
        assert not mapper.is_absent({"ClusterIdentifier": "c1", "LoggingEnabled": True})


class TestRoundTrip:
    @pytest.mark.parametrize(
        "spec",
        [
            ClusterLogging(cluster_identifier="c1"),
            ClusterLogging(cluster_identifier="c1", log_destination_type=LogDestinationType.CLOUDWATCH),
            ClusterLogging(
                cluster_identifier="c2",
                log_destination_type=LogDestinationType.CLOUDWATCH,
                log_exports=[LogExport.USER_LOG, LogExport.CONNECTION_LOG],
            ),
            ClusterLogging(
                cluster_identifier="c3",
                log_destination_type=LogDestinationType.S3,
                bucket_name="audit-logs",
                s3_key_prefix="prod/",
            ),
        ],
    )
    def test_echo_reproduces_spec(self, mapper, spec):
        state = mapper.from_response(_echo(mapper.to_request(spec)))
        assert mapper.to_spec(state) == spec
        assert spec.diff(state.attributes) == {}
