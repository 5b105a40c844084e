"""
Transaction Engine.

Wires the ledger client, submitter, tracker, extractor, executor and
orchestrator together behind one entry point.
"""

from typing import Any, Iterable, Optional

import structlog

from txengine.config import EngineConfig, RpcTransport, get_config
from txengine.core.batch import BatchResult
from txengine.core.executor import StatusCallback, TransactionExecutor
from txengine.core.orchestrator import BatchOrchestrator, ProgressCallback
from txengine.core.record import TransactionRecord
from txengine.core.request import ContractEndpoint, OperationOptions, OperationRequest
from txengine.core.status import TransactionStatus
from txengine.engine.classifier import classify_outcome
from txengine.engine.extractor import EventExtractor
from txengine.node.httprpc import HttpLedgerClient
from txengine.node.interface import LedgerClient
from txengine.node.wsrpc import WebSocketLedgerClient
from txengine.tx.submitter import Submitter
from txengine.tx.tracker import ConfirmationTracker

logger = structlog.get_logger(__name__)


class TransactionEngine:
    """
    Main entry point for executing contract operations.

    Usage:
        ```python
        async with TransactionEngine() as engine:
            request = engine.request(endpoint, "transfer", recipient, 100, confirmations=2)
            record = await engine.execute(request)
        ```
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        ledger: Optional[LedgerClient] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Engine configuration
            ledger: Custom ledger client (auto-created based on config if not provided)
        """
        self.config = config or get_config()

        if ledger:
            self.ledger = ledger
        elif self.config.rpc_transport == RpcTransport.WEBSOCKET:
            self.ledger = WebSocketLedgerClient(self.config)
        else:
            self.ledger = HttpLedgerClient(self.config)

        self.submitter = Submitter(self.ledger)
        self.tracker = ConfirmationTracker(self.ledger)
        self.extractor = EventExtractor()
        self.executor = TransactionExecutor(self.submitter, self.tracker, self.extractor)
        self.orchestrator = BatchOrchestrator(self.executor)

        self._initialized = False

    async def initialize(self) -> None:
        """Connect to the ledger node."""
        if self._initialized:
            return

        await self.ledger.connect()
        self._initialized = True
        logger.info(
            "engine_initialized",
            transport=self.config.rpc_transport.value,
            endpoint=self.config.endpoint_url,
        )

    async def shutdown(self) -> None:
        """Cancel detached confirmation waits and disconnect."""
        await self.tracker.aclose()
        await self.ledger.disconnect()
        self._initialized = False
        logger.info("engine_shutdown")

    async def __aenter__(self) -> "TransactionEngine":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()

    def request(
        self,
        endpoint: ContractEndpoint,
        method: str,
        *args: Any,
        **options: Any,
    ) -> OperationRequest:
        """
        Build a request using configured defaults for unspecified options.

        Args:
            endpoint: Target contract
            method: Method name or full signature
            *args: Method arguments
            **options: OperationOptions overrides

        Returns:
            The new request
        """
        return OperationRequest(
            endpoint=endpoint,
            method=method,
            args=args,
            options=OperationOptions.from_config(self.config, **options),
        )

    async def execute(
        self,
        request: OperationRequest,
        on_status: Optional[StatusCallback] = None,
    ) -> TransactionRecord:
        """Execute one operation. See TransactionExecutor.execute."""
        return await self.executor.execute(request, on_status=on_status)

    async def execute_batch(
        self,
        requests: Iterable[OperationRequest],
        stop_on_failure: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> BatchResult:
        """Execute operations in order. See BatchOrchestrator.execute_batch."""
        return await self.orchestrator.execute_batch(
            requests,
            stop_on_failure=stop_on_failure,
            on_progress=on_progress,
            on_status=on_status,
        )

    async def get_status(self, tx_hash: str) -> TransactionStatus:
        """
        Look up the status of a previously submitted operation.

        Args:
            tx_hash: Identifier returned at submission

        Returns:
            PENDING if no receipt exists yet, otherwise CONFIRMED or REVERTED
        """
        receipt = await self.ledger.get_receipt(tx_hash)
        if receipt is None:
            return TransactionStatus.PENDING
        return classify_outcome(receipt)
