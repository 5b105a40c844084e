"""
Core models.

Requests, records, statuses, batch results and the error hierarchy.
"""

from txengine.core.status import TransactionStatus
from txengine.core.errors import (
    ConfirmationError,
    EngineError,
    ErrorInfo,
    ErrorKind,
    RevertError,
    SubmissionError,
    TransactionTimeoutError,
    UnknownError,
)
from txengine.core.request import ContractEndpoint, OperationOptions, OperationRequest
from txengine.core.record import StatusUpdate, TransactionRecord
from txengine.core.batch import BatchProgress, BatchResult, ProgressStatus

__all__ = [
    "TransactionStatus",
    "ConfirmationError",
    "EngineError",
    "ErrorInfo",
    "ErrorKind",
    "RevertError",
    "SubmissionError",
    "TransactionTimeoutError",
    "UnknownError",
    "ContractEndpoint",
    "OperationOptions",
    "OperationRequest",
    "StatusUpdate",
    "TransactionRecord",
    "BatchProgress",
    "BatchResult",
    "ProgressStatus",
]
