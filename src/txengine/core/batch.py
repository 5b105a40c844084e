"""
Batch result model.

Aggregates the records of one ordered batch execution.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from txengine.core.record import TransactionRecord
from txengine.core.status import TransactionStatus


class ProgressStatus(str, Enum):
    """Phase reported to progress observers."""
    PROCESSING = "processing"
    INTERRUPTED = "interrupted"
    COMPLETED = "completed"


@dataclass
class BatchProgress:
    """Notification sent to progress observers."""
    current: int
    total: int
    percentage: int
    status: ProgressStatus
    message: str

    @classmethod
    def at(cls, current: int, total: int, status: ProgressStatus, message: str) -> "BatchProgress":
        percentage = (current * 100) // total if total else 100
        return cls(
            current=current,
            total=total,
            percentage=percentage,
            status=status,
            message=message,
        )

    def to_dict(self) -> dict:
        return {
            "current": self.current,
            "total": self.total,
            "percentage": self.percentage,
            "status": self.status.value,
            "message": self.message,
        }


@dataclass
class BatchResult:
    """
    Outcome of a batch execution.

    Attributes:
        records: One record per attempted request, in submission order
        total: Number of requests handed to the batch
        interrupted: True if the batch halted before attempting every request
    """
    total: int
    records: List[TransactionRecord] = field(default_factory=list)
    interrupted: bool = False

    @property
    def attempted(self) -> int:
        return len(self.records)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.records if r.succeeded)

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    @property
    def skipped(self) -> int:
        return self.total - self.attempted

    @property
    def all_succeeded(self) -> bool:
        return self.succeeded == self.total

    def status_counts(self) -> Dict[TransactionStatus, int]:
        counts = {status: 0 for status in TransactionStatus}
        for record in self.records:
            counts[record.status] += 1
        return counts

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "total": self.total,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "interrupted": self.interrupted,
            "records": [r.to_dict() for r in self.records],
        }

    def __repr__(self) -> str:
        return (
            f"BatchResult(succeeded={self.succeeded}, attempted={self.attempted}, "
            f"total={self.total})"
        )
