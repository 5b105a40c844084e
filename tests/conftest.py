"""
Pytest configuration and shared fixtures for the test suite.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import pytest
import pytest_asyncio
from eth_abi import encode
from eth_utils import encode_hex, keccak

from txengine.abi.interface import ContractInterface
from txengine.config import EngineConfig
from txengine.core.executor import TransactionExecutor
from txengine.core.orchestrator import BatchOrchestrator
from txengine.core.request import ContractEndpoint, OperationOptions, OperationRequest
from txengine.engine.extractor import EventExtractor
from txengine.node.interface import LedgerClient, LogEntry, PendingHandle, Receipt
from txengine.tx.submitter import Submitter
from txengine.tx.tracker import ConfirmationTracker


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> EngineConfig:
    """Create a test configuration."""
    return EngineConfig(
        rpc_url="http://localhost:8545",
        sender_address=SENDER,
        default_confirmations=1,
        default_timeout_ms=5_000,
        receipt_poll_interval_seconds=0.01,
        log_level="DEBUG",
    )


# ============================================================================
# Test Data Generators
# ============================================================================

TOKEN_ADDRESS = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
OTHER_ADDRESS = "0xe7f1725e7734ce288f8367e1bb143e90bb3f0512"
SENDER = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
RECIPIENT = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"

TOKEN_ABI: List[Dict[str, Any]] = [
    {
        "type": "function",
        "name": "transfer",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "mint",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "amount", "type": "uint256"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "mint",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "Approval",
        "anonymous": False,
        "inputs": [
            {"name": "owner", "type": "address", "indexed": True},
            {"name": "spender", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "Memo",
        "anonymous": False,
        "inputs": [
            {"name": "tag", "type": "string", "indexed": True},
            {"name": "note", "type": "string", "indexed": False},
        ],
    },
]


def generate_test_tx_hash(index: int = 0) -> str:
    """Generate a deterministic test transaction hash."""
    return "0x" + "ab" * 30 + f"{index:04x}"


def address_topic(address: str) -> str:
    """Left-pad an address into a 32-byte topic."""
    return "0x" + "0" * 24 + address[2:].lower()


def make_log(
    signature: str,
    indexed: Sequence[str] = (),
    data_types: Sequence[str] = (),
    data_values: Sequence[Any] = (),
    address: str = TOKEN_ADDRESS,
    log_index: int = 0,
) -> LogEntry:
    """Build a raw log for an event signature."""
    topics = [encode_hex(keccak(text=signature)), *indexed]
    data = encode_hex(encode(list(data_types), list(data_values))) if data_types else "0x"
    return LogEntry(address=address, topics=topics, data=data, log_index=log_index)


def transfer_log(
    sender: str = SENDER,
    recipient: str = RECIPIENT,
    amount: int = 100,
    address: str = TOKEN_ADDRESS,
    log_index: int = 0,
) -> LogEntry:
    """Build a Transfer(address,address,uint256) log."""
    return make_log(
        "Transfer(address,address,uint256)",
        indexed=[address_topic(sender), address_topic(recipient)],
        data_types=["uint256"],
        data_values=[amount],
        address=address,
        log_index=log_index,
    )


def approval_log(
    owner: str = SENDER,
    spender: str = RECIPIENT,
    amount: int = 50,
    address: str = TOKEN_ADDRESS,
    log_index: int = 0,
) -> LogEntry:
    """Build an Approval(address,address,uint256) log."""
    return make_log(
        "Approval(address,address,uint256)",
        indexed=[address_topic(owner), address_topic(spender)],
        data_types=["uint256"],
        data_values=[amount],
        address=address,
        log_index=log_index,
    )


def make_receipt(
    tx_hash: str = None,
    success: bool = True,
    logs: Optional[List[LogEntry]] = None,
    block_number: int = 100,
) -> Receipt:
    """Build a receipt."""
    return Receipt(
        transaction_hash=tx_hash or generate_test_tx_hash(1),
        block_number=block_number,
        status=1 if success else 0,
        gas_used=21_000,
        block_hash="0x" + "cd" * 32,
        from_address=SENDER,
        to_address=TOKEN_ADDRESS,
        logs=list(logs or []),
    )


# ============================================================================
# Contract Fixtures
# ============================================================================

@pytest.fixture
def token_interface() -> ContractInterface:
    """Interface of an ERC-20 style token."""
    return ContractInterface(TOKEN_ABI, name="Token")


@pytest.fixture
def token_endpoint(token_interface) -> ContractEndpoint:
    """Deployed token endpoint."""
    return ContractEndpoint(address=TOKEN_ADDRESS, interface=token_interface, name="Token")


@pytest.fixture
def make_request(token_endpoint):
    """Factory for transfer requests."""
    def _make(
        method: str = "transfer",
        args: Sequence[Any] = (RECIPIENT, 100),
        **options: Any,
    ) -> OperationRequest:
        return OperationRequest(
            endpoint=token_endpoint,
            method=method,
            args=tuple(args),
            options=OperationOptions(**options),
        )
    return _make


# ============================================================================
# Mock Ledger Client
# ============================================================================

@dataclass
class StubOutcome:
    """Scripted behavior for one submission."""
    success: bool = True
    delay: float = 0.0
    logs: List[LogEntry] = field(default_factory=list)
    submit_error: Optional[Exception] = None
    confirm_error: Optional[Exception] = None
    never_confirm: bool = False


@dataclass
class SubmittedCall:
    """A call the stub ledger received."""
    index: int
    address: str
    method: str
    args: tuple
    options: Any


class StubLedgerClient(LedgerClient):
    """
    Mock ledger client for testing.

    Submissions are numbered from 1; ``outcomes`` maps a submission number
    to its scripted behavior, anything unscripted confirms immediately.
    """

    def __init__(self, outcomes: Optional[Dict[int, StubOutcome]] = None):
        self.outcomes = dict(outcomes or {})
        self.submissions: List[SubmittedCall] = []
        self.receipts: Dict[str, Receipt] = {}
        self.timeline: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.block_number = 100
        self._pending: Dict[str, StubOutcome] = {}
        self._indexes: Dict[str, int] = {}
        self.connected = False

    @property
    def submit_count(self) -> int:
        return len(self.submissions)

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def submit(self, endpoint, method, args, options) -> PendingHandle:
        index = len(self.submissions) + 1
        self.submissions.append(
            SubmittedCall(index, endpoint.address, method, tuple(args), options)
        )
        self.timeline.append(("submit", index))

        outcome = self.outcomes.get(index, StubOutcome())
        if outcome.submit_error is not None:
            raise outcome.submit_error

        tx_hash = generate_test_tx_hash(index)
        self._pending[tx_hash] = outcome
        self._indexes[tx_hash] = index
        return PendingHandle(tx_hash=tx_hash, to_address=endpoint.address, method=method)

    async def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        return self.receipts.get(tx_hash)

    async def wait_for_confirmations(self, handle: PendingHandle, confirmations: int = 1) -> Receipt:
        outcome = self._pending[handle.tx_hash]
        index = self._indexes[handle.tx_hash]

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if outcome.never_confirm:
                await asyncio.Event().wait()
            await asyncio.sleep(outcome.delay)
            if outcome.confirm_error is not None:
                raise outcome.confirm_error

            self.block_number += 1
            receipt = make_receipt(
                tx_hash=handle.tx_hash,
                success=outcome.success,
                logs=outcome.logs,
                block_number=self.block_number,
            )
            self.receipts[handle.tx_hash] = receipt
            self.timeline.append(("confirmed", index))
            return receipt
        finally:
            self.in_flight -= 1

    async def get_block_number(self) -> int:
        return self.block_number


@pytest.fixture
def stub_ledger() -> StubLedgerClient:
    """Stub ledger where every submission confirms immediately."""
    return StubLedgerClient()


@pytest_asyncio.fixture
async def tracker(stub_ledger):
    """Confirmation tracker over the stub ledger."""
    tracker = ConfirmationTracker(stub_ledger)
    yield tracker
    await tracker.aclose()


@pytest.fixture
def executor(stub_ledger, tracker) -> TransactionExecutor:
    """Executor wired to the stub ledger."""
    return TransactionExecutor(Submitter(stub_ledger), tracker, EventExtractor())


@pytest.fixture
def orchestrator(executor) -> BatchOrchestrator:
    """Batch orchestrator wired to the stub ledger."""
    return BatchOrchestrator(executor)
