"""Observability module for the retention service.

Provides structured logging, metrics, correlation IDs and health checks.
"""

from .logging_config import configure_logging, get_logger
from .metrics import (
    cleanup_runs_total,
    skipped_policies_total,
    cleanup_duration_seconds,
    records_deleted_total,
    partitions_dropped_total,
    blobs_deleted_total,
    last_success_timestamp_seconds,
)
from .correlation import (
    correlation_id_var,
    bind_correlation_id,
    generate_correlation_id,
    get_correlation_id,
)
from .health import HealthStatus, ComponentHealth

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "cleanup_runs_total",
    "skipped_policies_total",
    "cleanup_duration_seconds",
    "records_deleted_total",
    "partitions_dropped_total",
    "blobs_deleted_total",
    "last_success_timestamp_seconds",
    # Correlation
    "correlation_id_var",
    "bind_correlation_id",
    "generate_correlation_id",
    "get_correlation_id",
    # Health
    "HealthStatus",
    "ComponentHealth",
]
