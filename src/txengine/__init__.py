"""
Transaction Execution Engine

Submits state-changing contract operations to a ledger node, waits for a
configurable number of confirmations under a time bound, classifies the
outcome and extracts the domain events emitted by confirmed operations.
"""

__version__ = "0.1.0"

from txengine.abi.interface import ContractInterface
from txengine.core.batch import BatchProgress, BatchResult, ProgressStatus
from txengine.core.engine import TransactionEngine
from txengine.core.executor import TransactionExecutor
from txengine.core.orchestrator import BatchOrchestrator
from txengine.core.record import StatusUpdate, TransactionRecord
from txengine.core.request import ContractEndpoint, OperationOptions, OperationRequest
from txengine.core.status import TransactionStatus

__all__ = [
    "ContractInterface",
    "BatchProgress",
    "BatchResult",
    "ProgressStatus",
    "TransactionEngine",
    "TransactionExecutor",
    "BatchOrchestrator",
    "StatusUpdate",
    "TransactionRecord",
    "ContractEndpoint",
    "OperationOptions",
    "OperationRequest",
    "TransactionStatus",
]
