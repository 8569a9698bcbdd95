"""Tests for convergence.specop."""

from __future__ import annotations

import logging

from convergence.cluster_logging import ClusterLogging
from convergence.context import Context
from convergence.specop import Absent, Ensure, Present

CLOUDWATCH = ClusterLogging(cluster_identifier="c1", log_destination_type="cloudwatch")
S3 = ClusterLogging(cluster_identifier="c1", log_destination_type="s3", bucket_name="audit")
ADDRESS = "cluster_logging.test"


class TestPresent:
    def test_creates_when_missing(self, controller, client):
        instance = Present(CLOUDWATCH, ADDRESS)(controller, Context())
        assert instance.address == ADDRESS
        assert client.count("create") == 1

    def test_skips_when_exists(self, controller, client):
        controller.apply(CLOUDWATCH, address=ADDRESS)
        Present(S3, ADDRESS)(controller, Context())
        assert client.count("create") == 1
        assert client.count("modify") == 0

    def test_skips_untracked_remote(self, controller, client, store, warehouse):
        client.create({"ClusterIdentifier": "c1", "LogDestinationType": "cloudwatch"}, Context())
        assert Present(S3, ADDRESS)(controller, Context()) is None
        assert client.count("create") == 1
        assert warehouse.logging["c1"]["LogDestinationType"] == "cloudwatch"
        assert len(store) == 0

    def test_recreates_when_gone(self, controller, client, warehouse):
        controller.apply(CLOUDWATCH, address=ADDRESS)
        warehouse.disable_logging("c1")
        Present(CLOUDWATCH, ADDRESS)(controller, Context())
        assert client.count("create") == 2

    def test_dry_run_skips_create(self, controller, client, store):
        assert Present(CLOUDWATCH, ADDRESS)(controller, Context(dry_run=True)) is None
        assert client.count("create") == 0
        assert len(store) == 0


class TestEnsure:
    def test_creates_when_missing(self, controller, client):
        Ensure(CLOUDWATCH, ADDRESS)(controller, Context())
        assert client.count("create") == 1

    def test_updates_when_different(self, controller, client, warehouse):
        controller.apply(CLOUDWATCH, address=ADDRESS)
        instance = Ensure(S3, ADDRESS)(controller, Context())
        assert client.count("modify") == 1
        assert instance.attributes["log_destination_type"] == "s3"
        assert warehouse.logging["c1"]["BucketName"] == "audit"

    def test_skips_when_up_to_date(self, controller, client):
        applied = controller.apply(CLOUDWATCH, address=ADDRESS)
        assert Ensure(CLOUDWATCH, ADDRESS)(controller, Context()) is applied
        assert client.count("modify") == 0
        assert client.count("create") == 1

    def test_dry_run_skips_update(self, controller, client, warehouse):
        controller.apply(CLOUDWATCH, address=ADDRESS)
        Ensure(S3, ADDRESS)(controller, Context(dry_run=True))
        assert client.count("modify") == 0
        assert warehouse.logging["c1"]["LogDestinationType"] == "cloudwatch"

    def test_default_address(self):
        assert Ensure(CLOUDWATCH).address == "cluster_logging.c1"


class TestAbsent:
    def test_destroys_when_exists(self, controller, store, warehouse):
        controller.apply(CLOUDWATCH, address=ADDRESS)
        assert Absent(CLOUDWATCH, ADDRESS)(controller, Context()) is None
        assert "c1" not in warehouse.logging
        assert store.get(ADDRESS) is None

    def test_destroys_untracked(self, controller, client, warehouse):
        client.create({"ClusterIdentifier": "c1"}, Context())
        Absent(CLOUDWATCH, ADDRESS)(controller, Context())
        assert "c1" not in warehouse.logging

    def test_skips_when_missing(self, controller, client):
        Absent(CLOUDWATCH, ADDRESS)(controller, Context())
        assert client.count("delete") == 0

    def test_forgets_stale_record(self, controller, store, warehouse):
        controller.apply(CLOUDWATCH, address=ADDRESS)
        warehouse.delete_cluster("c1")
        Absent(CLOUDWATCH, ADDRESS)(controller, Context())
        assert store.get(ADDRESS) is None

    def test_dry_run_skips_destroy(self, controller, warehouse, store):
        controller.apply(CLOUDWATCH, address=ADDRESS)
        Absent(CLOUDWATCH, ADDRESS)(controller, Context(dry_run=True))
        assert "c1" in warehouse.logging
        assert store.get(ADDRESS) is not None


class TestSpecOpLogging:
    def test_present_logs_skip(self, controller, caplog):
        controller.apply(CLOUDWATCH, address=ADDRESS)
        with caplog.at_level(logging.DEBUG, logger="convergence.specop"):
            Present(CLOUDWATCH, ADDRESS)(controller, Context())
        assert "already exists" in caplog.text

    def test_ensure_logs_skip(self, controller, caplog):
        controller.apply(CLOUDWATCH, address=ADDRESS)
        with caplog.at_level(logging.DEBUG, logger="convergence.specop"):
            Ensure(CLOUDWATCH, ADDRESS)(controller, Context())
        assert "up to date" in caplog.text

    def test_absent_logs_skip(self, controller, caplog):
        with caplog.at_level(logging.DEBUG, logger="convergence.specop"):
            Absent(CLOUDWATCH, ADDRESS)(controller, Context())
        assert "not present" in caplog.text

    def test_ensure_logs_dry_run(self, controller, caplog):
        with caplog.at_level(logging.INFO, logger="convergence.specop"):
            Ensure(CLOUDWATCH, ADDRESS)(controller, Context(dry_run=True))
        assert "[DRY RUN] Would create cluster_logging.test" in caplog.text

    def test_absent_logs_dry_run(self, controller, caplog):
        controller.apply(CLOUDWATCH, address=ADDRESS)
        with caplog.at_level(logging.INFO, logger="convergence.specop"):
            Absent(CLOUDWATCH, ADDRESS)(controller, Context(dry_run=True))
        assert "DRY RUN" in caplog.text
