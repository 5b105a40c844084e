"""
Transaction status.

The five states an executed operation can be in. PENDING is the only
non-terminal state; a record leaves it exactly once.
"""

from enum import Enum


class TransactionStatus(str, Enum):
    """Status of a transaction record."""
    PENDING = "pending"           # Created, submitted or awaiting confirmation
    CONFIRMED = "confirmed"       # Included with enough confirmations, execution succeeded
    FAILED = "failed"             # Could not be submitted or tracked
    TIMEOUT = "timeout"           # No confirmation within the configured bound
    REVERTED = "reverted"         # Included, but execution failed

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING

    @property
    def is_success(self) -> bool:
        return self is TransactionStatus.CONFIRMED

    @property
    def message(self) -> str:
        """Default operator-facing description."""
        return STATUS_MESSAGES[self]


STATUS_MESSAGES = {
    TransactionStatus.PENDING: "Transaction pending",
    TransactionStatus.CONFIRMED: "Transaction confirmed",
    TransactionStatus.FAILED: "Transaction failed",
    TransactionStatus.TIMEOUT: "Transaction confirmation timed out",
    TransactionStatus.REVERTED: "Transaction reverted",
}
