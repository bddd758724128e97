"""End-to-end retention runs: real strategies, orchestrator and audit tables.

The fixed clock puts "now" at 2026-03-15 12:00 UTC.
"""

import pytest
from sqlalchemy import Column, DateTime, Integer, MetaData, Table, func, inspect, select, text

from conftest import NOW, days_ago
from models import CleanupRun, OutboxEvent, RetentionPolicy
from retention.orchestrator import CleanupOrchestrator
from retention.schemas import PolicyOutcomeStatus
from retention.strategies import (
    BlobExpireStrategy,
    DateColumnTarget,
    DateDeleteStrategy,
    PartitionDropStrategy,
    PartitionedTables,
)

BUCKET = "gtfs-archive"


@pytest.fixture
def order_rows(engine):
    table = Table(
        "order_rows", MetaData(),
        Column("id", Integer, primary_key=True),
        Column("created_at", DateTime(timezone=True), nullable=False),
    )
    table.create(engine)
    with engine.begin() as conn:
        conn.execute(
            table.insert(),
            [{"id": i, "created_at": days_ago(40)} for i in range(1, 11)]
            + [{"id": i, "created_at": days_ago(5)} for i in range(11, 16)],
        )
    return table


@pytest.fixture
def archive_partitions(engine):
    current = f"order_archive_{NOW.year:04d}_{NOW.month:02d}"
    with engine.begin() as conn:
        for name in ("order_archive_2023_01", current):
            conn.execute(text(f'CREATE TABLE "{name}" (id INTEGER PRIMARY KEY)'))
    return "order_archive_2023_01", current


@pytest.fixture
def strategies(engine, blob_storage, fixed_clock):
    return {
        "date_delete": DateDeleteStrategy(
            engine,
            table_configs={"orders": (DateColumnTarget(table="order_rows", date_column="created_at"),)},
            clock=fixed_clock,
        ),
        "partition_drop": PartitionDropStrategy(
            engine,
            partitioned_tables={"archive": PartitionedTables(schema=None, parent_tables=("order_archive",))},
            clock=fixed_clock,
        ),
        "blob_expire": BlobExpireStrategy(blob_storage, container=BUCKET, clock=fixed_clock),
    }


@pytest.fixture
def orchestrator(session_factory, strategies, fixed_clock):
    return CleanupOrchestrator(session_factory, strategies, clock=fixed_clock)


def _row_count(engine, table):
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(table)).scalar_one()


class TestDateDeleteScenario:

    def test_live_run_deletes_exactly_the_old_rows(self, engine, order_rows, make_policy, orchestrator, db_session):
        make_policy("orders", "date_delete", retention_days=31)

        summary = orchestrator.execute_all(dry_run=False)

        assert summary.outcomes[0].records_deleted == 10
        assert _row_count(engine, order_rows) == 5
        assert db_session.query(CleanupRun).one().records_deleted == 10

    def test_dry_run_reports_without_deleting(self, engine, order_rows, make_policy, orchestrator, db_session):
        make_policy("orders", "date_delete", retention_days=31)

        summary = orchestrator.execute_all(dry_run=True)

        assert summary.outcomes[0].records_deleted == 10
        assert _row_count(engine, order_rows) == 15
        event = db_session.query(OutboxEvent).one()
        assert event.payload["records_deleted"] == 10
        assert event.payload["dry_run"] is True


class TestPartitionDropScenario:

    def test_old_partition_dropped_current_kept(self, engine, archive_partitions, make_policy, orchestrator, db_session):
        old, current = archive_partitions
        make_policy("archive", "partition_drop", retention_days=31)

        summary = orchestrator.execute_all(dry_run=False)

        assert summary.outcomes[0].partitions_dropped == [old]
        assert summary.outcomes[0].records_deleted == 0
        tables = set(inspect(engine).get_table_names())
        assert old not in tables
        assert current in tables
        assert db_session.query(CleanupRun).one().partitions_dropped == [old]


class TestBlobExpireScenario:

    def test_only_old_object_deleted(self, blob_storage, make_policy, orchestrator):
        blob_storage.put(BUCKET, "gtfs-2025-12-15.zip", days_ago(90))
        blob_storage.put(BUCKET, "gtfs-2026-03-10.zip", days_ago(5))
        make_policy("gcs_gtfs_archive", "blob_expire", retention_days=31)

        summary = orchestrator.execute_all(dry_run=False)

        assert summary.outcomes[0].blobs_deleted == 1
        assert [b.name for b in blob_storage.list_objects(BUCKET)] == ["gtfs-2026-03-10.zip"]


class TestMixedRun:

    def test_failing_policy_is_isolated(self, engine, order_rows, archive_partitions, blob_storage,
                                        make_policy, orchestrator, db_session):
        blob_storage.put(BUCKET, "old.zip", days_ago(90))
        make_policy("archive", "partition_drop")
        make_policy("gcs_gtfs_archive", "blob_expire")
        make_policy("orders", "date_delete")
        failing = make_policy("unmapped_domain", "date_delete")

        summary = orchestrator.execute_all(dry_run=False)

        assert [o.target_schema for o in summary.outcomes] == [
            "archive", "gcs_gtfs_archive", "orders", "unmapped_domain",
        ]
        assert summary.succeeded == 3
        assert summary.failed == 1
        assert summary.total_records_deleted == 10

        db_session.expire_all()
        failed_run = db_session.query(CleanupRun).filter_by(policy_id=failing.id).one()
        assert failed_run.status == "failed"
        assert "no table configuration found for schema: unmapped_domain" in failed_run.error_message
        assert db_session.get(RetentionPolicy, failing.id).last_cleanup_at is None
        assert db_session.query(OutboxEvent).filter_by(aggregate_id=failing.id).count() == 0
        assert db_session.query(OutboxEvent).count() == 3

    def test_second_live_run_is_a_no_op(self, engine, order_rows, archive_partitions, make_policy, orchestrator):
        make_policy("orders", "date_delete")
        make_policy("archive", "partition_drop")

        orchestrator.execute_all(dry_run=False)
        summary = orchestrator.execute_all(dry_run=False)

        assert summary.succeeded == 2
        assert summary.total_records_deleted == 0
        assert all(o.partitions_dropped == [] for o in summary.outcomes)
