"""Unit tests for cutoff calculation and the strategy table."""

import pytest
from datetime import datetime, timezone

from models import CleanupMechanism
from retention.strategies import (
    BlobExpireStrategy,
    DateDeleteStrategy,
    PartitionDropStrategy,
    build_strategy_table,
    compute_cutoff,
)


class TestComputeCutoff:

    def test_subtracts_whole_days(self):
        now = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)

        assert compute_cutoff(31, now) == datetime(2026, 2, 12, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("days", [0, -1])
    def test_rejects_non_positive_retention(self, days):
        with pytest.raises(ValueError):
            compute_cutoff(days, datetime.now(timezone.utc))


class TestBuildStrategyTable:

    def test_without_blob_storage_omits_blob_expire(self, engine):
        table = build_strategy_table(engine)

        assert set(table) == {"partition_drop", "date_delete"}
        assert isinstance(table["partition_drop"], PartitionDropStrategy)
        assert isinstance(table["date_delete"], DateDeleteStrategy)

    def test_with_blob_storage_registers_all_mechanisms(self, engine, blob_storage):
        table = build_strategy_table(engine, blob_storage=blob_storage, blob_container="bucket")

        assert set(table) == {m.value for m in CleanupMechanism}
        assert isinstance(table["blob_expire"], BlobExpireStrategy)
        assert table["blob_expire"].container == "bucket"

    def test_table_is_read_only(self, engine):
        table = build_strategy_table(engine)

        with pytest.raises(TypeError):
            table["blob_expire"] = object()

    def test_strategy_names_are_stable(self, engine, blob_storage):
        table = build_strategy_table(engine, blob_storage=blob_storage)

        assert {s.name for s in table.values()} == {
            "PartitionDropStrategy", "DateDeleteStrategy", "BlobExpireStrategy",
        }
