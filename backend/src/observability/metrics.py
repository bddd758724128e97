"""Prometheus metrics for the retention service.

Defines operational metrics for monitoring and alerting on cleanup runs.
Exposed by GET /metrics in the Prometheus text format.
"""

from prometheus_client import Counter, Histogram, Gauge

# Run outcomes
cleanup_runs_total = Counter(
    "retention_cleanup_runs_total",
    "Total policy executions by strategy and outcome",
    ["strategy", "status"]  # status: success|failed
)

skipped_policies_total = Counter(
    "retention_skipped_policies_total",
    "Enabled policies skipped without an audit record",
    ["reason"]  # reason: unregistered_strategy
)

cleanup_duration_seconds = Histogram(
    "retention_cleanup_duration_seconds",
    "Time spent inside a strategy execution in seconds",
    ["strategy"],
    buckets=[0.1, 0.5, 1.0, 5.0, 15.0, 60.0, 300.0, 900.0, 3600.0]
)

# Removed volume (live runs only)
records_deleted_total = Counter(
    "retention_records_deleted_total",
    "Rows deleted by date-based cleanup",
    ["target"]
)

partitions_dropped_total = Counter(
    "retention_partitions_dropped_total",
    "Partitions dropped by partition cleanup",
    ["target"]
)

blobs_deleted_total = Counter(
    "retention_blobs_deleted_total",
    "Objects deleted by blob expiry",
    ["target"]
)

last_success_timestamp_seconds = Gauge(
    "retention_last_success_timestamp_seconds",
    "Unix time of the last successful cleanup per target",
    ["target"]
)
