"""
Error taxonomy for transaction execution.

Every failure the engine can observe is mapped onto one of five kinds and
normalized into an ErrorInfo value before it reaches a TransactionRecord.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from txengine.node.interface import LedgerConnectionError, LedgerRPCError


class ErrorKind(str, Enum):
    """Failure categories."""
    SUBMISSION = "submission"       # Rejected before a handle existed
    CONFIRMATION = "confirmation"   # Network/RPC failure while waiting
    TIMEOUT = "timeout"             # Wait exceeded the configured bound
    REVERT = "revert"               # Included, but execution failed
    UNKNOWN = "unknown"


# Operator-facing messages for well-known codes
FRIENDLY_MESSAGES = {
    "EXECUTION_REVERTED": "Contract execution reverted",
    "INSUFFICIENT_FUNDS": "Account balance is too low to cover value and fees",
    "NONCE_EXPIRED": "Nonce already used, resubmit to get a fresh nonce",
    "REPLACEMENT_UNDERPRICED": "Replacement transaction fee is too low",
    "NETWORK_ERROR": "Could not reach the ledger node, check the network connection",
}


class EngineError(Exception):
    """Base class for transaction engine errors."""

    kind = ErrorKind.UNKNOWN
    default_code = "ENGINE_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}


class SubmissionError(EngineError):
    """Raised when the network rejects an operation synchronously."""
    kind = ErrorKind.SUBMISSION
    default_code = "SUBMISSION_ERROR"


class ConfirmationError(EngineError):
    """Raised when the network fails while waiting for confirmations."""
    kind = ErrorKind.CONFIRMATION
    default_code = "CONFIRMATION_ERROR"


class TransactionTimeoutError(EngineError):
    """Raised when confirmations do not arrive within the configured bound."""

    kind = ErrorKind.TIMEOUT
    default_code = "CONFIRMATION_TIMEOUT"

    def __init__(self, tx_hash: str, timeout_ms: int):
        super().__init__(
            f"Transaction confirmation timed out after {timeout_ms}ms: {tx_hash}",
            details={"tx_hash": tx_hash, "timeout_ms": timeout_ms},
        )
        self.tx_hash = tx_hash
        self.timeout_ms = timeout_ms


class RevertError(EngineError):
    """The ledger executed the operation but execution failed."""

    kind = ErrorKind.REVERT
    default_code = "TRANSACTION_REVERTED"

    def __init__(self, tx_hash: str, reason: Optional[str] = None):
        message = f"Transaction reverted: {tx_hash}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, details={"tx_hash": tx_hash, "reason": reason})
        self.tx_hash = tx_hash
        self.reason = reason


class UnknownError(EngineError):
    """Residual category for failures matching nothing else."""
    kind = ErrorKind.UNKNOWN
    default_code = "UNKNOWN_ERROR"


class RecordStateError(Exception):
    """Raised on an illegal TransactionRecord transition."""
    pass


@dataclass
class ErrorInfo:
    """Normalized error description stored on a TransactionRecord."""

    kind: ErrorKind
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    original: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "original": self.original,
        }


def is_revert_error(error: BaseException) -> bool:
    """
    Check whether an error means the ledger reverted execution.

    Structured information (error type, reason code) is consulted first.
    The substring match on the message is only a fallback for collaborators
    that report reverts as plain text.
    """
    if isinstance(error, RevertError):
        return True
    if getattr(error, "code", None) == "EXECUTION_REVERTED":
        return True
    if getattr(error, "reason", None) == "EXECUTION_REVERTED":
        return True
    return "revert" in str(error).lower()


def normalize_error(
    error: BaseException,
    context: Optional[Dict[str, Any]] = None,
) -> ErrorInfo:
    """
    Convert any exception into an ErrorInfo.

    Args:
        error: The exception to normalize
        context: Extra details merged into the result (method, tx hash, ...)

    Returns:
        Normalized error description
    """
    context = dict(context or {})

    if isinstance(error, EngineError):
        kind = error.kind
        code = error.code
        details = {**error.details, **context}
    elif isinstance(error, LedgerRPCError):
        kind = ErrorKind.UNKNOWN
        code = error.reason
        details = {"rpc_code": error.rpc_code, "data": error.data, **context}
    elif isinstance(error, LedgerConnectionError):
        kind = ErrorKind.UNKNOWN
        code = "NETWORK_ERROR"
        details = context
    else:
        kind = ErrorKind.UNKNOWN
        code = "UNKNOWN_ERROR"
        details = {"error_type": type(error).__name__, **context}

    # Keep the kind in line with how the classifier reports the outcome
    if not isinstance(error, TransactionTimeoutError) and is_revert_error(error):
        kind = ErrorKind.REVERT

    original = str(error) or type(error).__name__
    message = original
    friendly = FRIENDLY_MESSAGES.get(code)
    if friendly:
        reason = details.get("reason")
        message = f"{friendly}: {reason}" if reason else friendly

    return ErrorInfo(
        kind=kind,
        code=code,
        message=message,
        details=details,
        original=original,
    )
