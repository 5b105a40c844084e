"""
Abstract interface for ledger node integration.

Defines the contract for ledger access that all node clients must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from txengine.abi.interface import (
    ERROR_STRING_SELECTOR,
    PANIC_SELECTOR,
    decode_revert_reason,
)

if TYPE_CHECKING:
    from txengine.core.request import ContractEndpoint, OperationOptions


def _quantity(value: Any) -> Optional[int]:
    """Parse a JSON-RPC quantity (hex string or int)."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(value, 16)


@dataclass
class LogEntry:
    """A raw log emitted during execution."""
    address: str
    topics: List[str]
    data: str
    block_number: Optional[int] = None
    block_hash: Optional[str] = None
    transaction_hash: Optional[str] = None
    transaction_index: Optional[int] = None
    log_index: Optional[int] = None
    removed: bool = False

    @classmethod
    def from_rpc(cls, data: dict) -> "LogEntry":
        return cls(
            address=data.get("address", ""),
            topics=list(data.get("topics", [])),
            data=data.get("data", "0x"),
            block_number=_quantity(data.get("blockNumber")),
            block_hash=data.get("blockHash"),
            transaction_hash=data.get("transactionHash"),
            transaction_index=_quantity(data.get("transactionIndex")),
            log_index=_quantity(data.get("logIndex")),
            removed=bool(data.get("removed", False)),
        )

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "topics": self.topics,
            "data": self.data,
            "block_number": self.block_number,
            "block_hash": self.block_hash,
            "transaction_hash": self.transaction_hash,
            "transaction_index": self.transaction_index,
            "log_index": self.log_index,
        }


@dataclass
class Receipt:
    """The ledger's record of an included operation."""
    transaction_hash: str
    block_number: int
    status: int                              # 1 = success, 0 = execution failed
    gas_used: int = 0
    block_hash: Optional[str] = None
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    contract_address: Optional[str] = None
    effective_gas_price: Optional[int] = None
    logs: List[LogEntry] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == 1

    @classmethod
    def from_rpc(cls, data: dict) -> "Receipt":
        """Parse an eth_getTransactionReceipt result."""
        return cls(
            transaction_hash=data["transactionHash"],
            block_number=_quantity(data["blockNumber"]),
            status=_quantity(data.get("status", "0x1")),
            gas_used=_quantity(data.get("gasUsed")) or 0,
            block_hash=data.get("blockHash"),
            from_address=data.get("from"),
            to_address=data.get("to"),
            contract_address=data.get("contractAddress"),
            effective_gas_price=_quantity(data.get("effectiveGasPrice")),
            logs=[LogEntry.from_rpc(log) for log in data.get("logs", [])],
        )

    def to_dict(self) -> dict:
        return {
            "transaction_hash": self.transaction_hash,
            "block_number": self.block_number,
            "block_hash": self.block_hash,
            "status": self.status,
            "gas_used": self.gas_used,
            "effective_gas_price": self.effective_gas_price,
            "from": self.from_address,
            "to": self.to_address,
            "contract_address": self.contract_address,
            "logs": [log.to_dict() for log in self.logs],
        }


@dataclass
class PendingHandle:
    """A broadcast operation that the ledger has accepted for inclusion."""
    tx_hash: str
    to_address: str
    method: str
    from_address: Optional[str] = None
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class LedgerClient(ABC):
    """
    Abstract interface for ledger node access.

    This interface defines all ledger operations needed by the engine:
    - Operation submission
    - Receipt lookup
    - Confirmation waiting
    - Chain tip queries

    Implementations must be safe for concurrent use by independent executions.
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection to the node.

        Raises:
            LedgerConnectionError: If connection cannot be established
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the node."""
        pass

    @abstractmethod
    async def submit(
        self,
        endpoint: "ContractEndpoint",
        method: str,
        args: Sequence[Any],
        options: "OperationOptions",
    ) -> PendingHandle:
        """
        Broadcast a contract method invocation.

        Args:
            endpoint: Target contract (address and interface)
            method: Method name or signature
            args: Positional arguments
            options: Operation options (value, gas limit)

        Returns:
            Handle for the pending operation

        Raises:
            LedgerRPCError: If the node rejects the operation
            LedgerConnectionError: If the node cannot be reached
        """
        pass

    @abstractmethod
    async def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        """
        Get the receipt of an operation.

        Returns:
            The receipt if the operation has been included, None otherwise
        """
        pass

    @abstractmethod
    async def wait_for_confirmations(
        self,
        handle: PendingHandle,
        confirmations: int = 1,
    ) -> Receipt:
        """
        Wait until an operation is included with enough confirmations.

        May suspend indefinitely; callers bound the wait themselves.

        Returns:
            The receipt of the included operation
        """
        pass

    @abstractmethod
    async def get_block_number(self) -> int:
        """Get the current chain tip height."""
        pass

    async def __aenter__(self) -> "LedgerClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.disconnect()


class LedgerConnectionError(Exception):
    """Raised when the node cannot be reached."""
    pass


class LedgerRPCError(Exception):
    """Raised when the node answers a request with a JSON-RPC error."""

    def __init__(self, message: str, rpc_code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.message = message
        self.rpc_code = rpc_code
        self.data = data

    @property
    def revert_reason(self) -> Optional[str]:
        return decode_revert_reason(self.data) if isinstance(self.data, str) else None

    @property
    def reason(self) -> str:
        """Structured reason code for this error."""
        if self.rpc_code == 3:
            return "EXECUTION_REVERTED"
        if isinstance(self.data, str) and self.data[:10] in (ERROR_STRING_SELECTOR, PANIC_SELECTOR):
            return "EXECUTION_REVERTED"

        # Nodes report most rejections under one generic code, so fall back to the text
        text = self.message.lower()
        if "execution reverted" in text:
            return "EXECUTION_REVERTED"
        if "insufficient funds" in text:
            return "INSUFFICIENT_FUNDS"
        if "nonce too low" in text or "nonce has already been used" in text:
            return "NONCE_EXPIRED"
        if "replacement transaction underpriced" in text:
            return "REPLACEMENT_UNDERPRICED"
        return f"RPC_{self.rpc_code}" if self.rpc_code is not None else "RPC_ERROR"
