"""
Transaction Record model.

The result of executing one OperationRequest. A record is created PENDING,
moves to exactly one terminal status and is never reused.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from txengine.core.errors import ErrorInfo, RecordStateError
from txengine.core.request import OperationRequest
from txengine.core.status import TransactionStatus
from txengine.engine.extractor import DomainEvent
from txengine.node.interface import Receipt


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StatusUpdate:
    """Notification sent to status observers."""
    status: TransactionStatus
    message: str
    tx_hash: Optional[str] = None
    receipt: Optional[Receipt] = None
    error: Optional[ErrorInfo] = None
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "message": self.message,
            "tx_hash": self.tx_hash,
            "receipt": self.receipt.to_dict() if self.receipt else None,
            "error": self.error.to_dict() if self.error else None,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class TransactionRecord:
    """
    Result of executing one operation.

    Attributes:
        request: The request this record belongs to
        status: Current status
        tx_hash: Identifier assigned at submission, None if submission failed
        receipt: Ledger receipt, once one was produced
        events: Decoded domain events, in log order
        error: Normalized error for FAILED, TIMEOUT and REVERTED records
        message: Human readable summary of the current status
    """

    request: OperationRequest
    record_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: TransactionStatus = TransactionStatus.PENDING
    message: str = TransactionStatus.PENDING.message

    tx_hash: Optional[str] = None
    receipt: Optional[Receipt] = None
    events: List[DomainEvent] = field(default_factory=list)
    error: Optional[ErrorInfo] = None

    # Timestamps
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def succeeded(self) -> bool:
        return self.status.is_success

    @property
    def block_number(self) -> Optional[int]:
        return self.receipt.block_number if self.receipt else None

    @property
    def gas_used(self) -> Optional[int]:
        return self.receipt.gas_used if self.receipt else None

    def _ensure_pending(self) -> None:
        if self.is_terminal:
            raise RecordStateError(
                f"Record {self.record_id} is already {self.status.value}"
            )

    def mark_submitted(self, tx_hash: str) -> None:
        """Record the identifier assigned at submission."""
        self._ensure_pending()
        if self.tx_hash is not None:
            raise RecordStateError(f"Record {self.record_id} was already submitted as {self.tx_hash}")
        self.tx_hash = tx_hash
        self.message = "Transaction submitted, awaiting confirmation"
        self.submitted_at = _now()
        self.updated_at = self.submitted_at

    def mark_receipt(self, receipt: Receipt) -> None:
        """Attach the ledger receipt."""
        self._ensure_pending()
        self.receipt = receipt
        self.updated_at = _now()

    def complete(
        self,
        status: TransactionStatus,
        message: Optional[str] = None,
        events: Optional[List[DomainEvent]] = None,
        error: Optional[ErrorInfo] = None,
    ) -> None:
        """
        Move the record to its terminal status.

        Raises:
            RecordStateError: If the record is already terminal or status is PENDING
        """
        self._ensure_pending()
        if not status.is_terminal:
            raise RecordStateError("A record can only complete with a terminal status")

        self.status = status
        self.message = message or status.message
        self.events = list(events or [])
        self.error = error
        self.completed_at = _now()
        self.updated_at = self.completed_at

    def status_update(self, message: Optional[str] = None) -> StatusUpdate:
        """Snapshot of this record for status observers."""
        return StatusUpdate(
            status=self.status,
            message=message or self.message,
            tx_hash=self.tx_hash,
            receipt=self.receipt,
            error=self.error,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "record_id": self.record_id,
            "request": self.request.to_dict(),
            "status": self.status.value,
            "message": self.message,
            "tx_hash": self.tx_hash,
            "block_number": self.block_number,
            "gas_used": self.gas_used,
            "receipt": self.receipt.to_dict() if self.receipt else None,
            "events": [e.to_dict() for e in self.events],
            "error": self.error.to_dict() if self.error else None,
            "created_at": self.created_at.isoformat(),
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    def __repr__(self) -> str:
        return (
            f"TransactionRecord(id={self.record_id[:8]}..., "
            f"status={self.status.value}, tx_hash={self.tx_hash})"
        )
