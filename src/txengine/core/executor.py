"""
Transaction Executor.

Drives one operation through submission, confirmation, classification and
event extraction. Every failure ends up in the returned record; execute()
does not raise.
"""

import asyncio
from typing import Callable, Optional, Set

import structlog

from txengine.core.errors import RevertError, normalize_error
from txengine.core.observer import ObserverChannel
from txengine.core.record import StatusUpdate, TransactionRecord
from txengine.core.request import OperationRequest, format_args
from txengine.core.status import TransactionStatus
from txengine.engine.classifier import classify_outcome
from txengine.engine.extractor import EventExtractor
from txengine.node.interface import Receipt
from txengine.tx.submitter import Submitter
from txengine.tx.tracker import ConfirmationTracker

logger = structlog.get_logger(__name__)

StatusCallback = Callable[[StatusUpdate], None]


class TransactionExecutor:
    """
    Executes a single operation and reports its progress.

    Status observers are notified when submission starts, once the
    operation is submitted, and once it reaches a terminal status.
    """

    def __init__(
        self,
        submitter: Submitter,
        tracker: ConfirmationTracker,
        extractor: Optional[EventExtractor] = None,
    ):
        """
        Initialize the executor.

        Args:
            submitter: Submitter used to broadcast operations
            tracker: Tracker used to wait for confirmations
            extractor: Event extractor (a default one is created if not provided)
        """
        self.submitter = submitter
        self.tracker = tracker
        self.extractor = extractor or EventExtractor()
        self._observer_tasks: Set[asyncio.Future] = set()

    async def execute(
        self,
        request: OperationRequest,
        on_status: Optional[StatusCallback] = None,
    ) -> TransactionRecord:
        """
        Execute an operation.

        Args:
            request: Operation to execute
            on_status: Optional observer for status updates

        Returns:
            Terminal record of the execution
        """
        observer = ObserverChannel(on_status, name="on_status", tasks=self._observer_tasks)
        record = TransactionRecord(request=request)

        logger.debug(
            "transaction_started",
            contract=request.endpoint.label,
            method=request.method,
            args=format_args(request.args),
            confirmations=request.options.confirmations,
            timeout_ms=request.options.timeout_ms,
        )
        observer.emit(record.status_update("Submitting transaction"))

        try:
            handle = await self.submitter.submit(request)
            record.mark_submitted(handle.tx_hash)
            observer.emit(record.status_update())

            receipt = await self.tracker.await_confirmation(
                handle,
                confirmations=request.options.confirmations,
                timeout_ms=request.options.timeout_ms,
            )
            record.mark_receipt(receipt)
            self._complete_with_receipt(record, receipt)

        except Exception as e:
            if not record.is_terminal:
                self._complete_with_error(record, e)

        observer.emit(record.status_update())
        self._log_outcome(record)
        return record

    def _context(self, record: TransactionRecord) -> dict:
        return {
            "contract": record.request.endpoint.label,
            "method": record.request.method,
            "args": format_args(record.request.args),
            "tx_hash": record.tx_hash,
        }

    def _complete_with_receipt(self, record: TransactionRecord, receipt: Receipt) -> None:
        status = classify_outcome(receipt)

        if status == TransactionStatus.CONFIRMED:
            try:
                events = self.extractor.extract(
                    receipt,
                    record.request.endpoint.interface,
                    address=record.request.endpoint.address,
                )
            except Exception as e:
                logger.warning("event_extraction_failed", tx_hash=record.tx_hash, error=str(e))
                events = []
            record.complete(status, events=events)
        else:
            error = normalize_error(RevertError(receipt.transaction_hash), self._context(record))
            record.complete(status, message=error.message, error=error)

    def _complete_with_error(self, record: TransactionRecord, error: Exception) -> None:
        status = classify_outcome(None, error)
        info = normalize_error(error, self._context(record))
        record.complete(status, message=info.message, error=info)

    def _log_outcome(self, record: TransactionRecord) -> None:
        if record.succeeded:
            logger.info(
                "transaction_confirmed",
                contract=record.request.endpoint.label,
                method=record.request.method,
                tx_hash=record.tx_hash,
                block_number=record.block_number,
                gas_used=record.gas_used,
                events=len(record.events),
            )
        else:
            logger.error(
                "transaction_failed",
                contract=record.request.endpoint.label,
                method=record.request.method,
                status=record.status.value,
                tx_hash=record.tx_hash,
                code=record.error.code if record.error else None,
                error=record.message,
            )
