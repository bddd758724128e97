"""Exceptions raised by retention strategies and bookkeeping."""


class RetentionError(Exception):
    """Base exception for the retention service."""
    pass


class UnknownDomainError(RetentionError):
    """A strategy has no storage mapping for the policy's target domain."""

    def __init__(self, strategy_name: str, target_schema: str):
        self.strategy_name = strategy_name
        self.target_schema = target_schema
        super().__init__(
            f"{strategy_name}: no table configuration found for schema: {target_schema}"
        )


class MalformedPartitionError(RetentionError):
    """A partition name follows the naming pattern but encodes an impossible date."""

    def __init__(self, partition_name: str):
        self.partition_name = partition_name
        super().__init__(f"Malformed partition name: {partition_name}")


class CleanupRunStateError(RetentionError):
    """Illegal transition of a cleanup run (missing, re-completed or re-opened)."""
    pass
