"""
Confirmation Tracker - races a confirmation wait against a timeout.

A wait that loses the race is detached rather than cancelled: it keeps
running until the ledger answers, its outcome is only logged, and the
tracker drops its reference once it finishes.
"""

import asyncio
from functools import partial
from typing import Set

import structlog

from txengine.core.errors import ConfirmationError, TransactionTimeoutError
from txengine.core.request import DEFAULT_TIMEOUT_MS
from txengine.node.interface import (
    LedgerClient,
    LedgerConnectionError,
    LedgerRPCError,
    PendingHandle,
    Receipt,
)

logger = structlog.get_logger(__name__)


class ConfirmationTracker:
    """
    Waits for pending operations to reach the required confirmations.

    Usage:
        ```python
        tracker = ConfirmationTracker(ledger)
        receipt = await tracker.await_confirmation(handle, confirmations=2, timeout_ms=60_000)
        ...
        await tracker.aclose()
        ```
    """

    def __init__(self, ledger: LedgerClient):
        """
        Initialize the tracker.

        Args:
            ledger: Ledger client used to wait for confirmations
        """
        self.ledger = ledger
        self._detached: Set[asyncio.Task] = set()

    @property
    def detached_count(self) -> int:
        """Number of timed-out waits still running in the background."""
        return len(self._detached)

    async def await_confirmation(
        self,
        handle: PendingHandle,
        confirmations: int = 1,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> Receipt:
        """
        Wait for confirmations or give up after a timeout.

        Args:
            handle: Pending operation to track
            confirmations: Confirmations required
            timeout_ms: Time bound in milliseconds

        Returns:
            Receipt of the included operation

        Raises:
            TransactionTimeoutError: If the timeout elapsed first
            ConfirmationError: If the network failed while waiting
        """
        wait_task = asyncio.create_task(self._wait(handle, confirmations))

        try:
            done, _ = await asyncio.wait({wait_task}, timeout=timeout_ms / 1000.0)
        except asyncio.CancelledError:
            wait_task.cancel()
            raise

        if wait_task in done:
            receipt = wait_task.result()
            logger.debug(
                "confirmation_received",
                tx_hash=handle.tx_hash,
                block_number=receipt.block_number,
            )
            return receipt

        self._detach(wait_task, handle)
        logger.warning(
            "confirmation_timeout",
            tx_hash=handle.tx_hash,
            timeout_ms=timeout_ms,
        )
        raise TransactionTimeoutError(handle.tx_hash, timeout_ms)

    async def _wait(self, handle: PendingHandle, confirmations: int) -> Receipt:
        try:
            return await self.ledger.wait_for_confirmations(handle, confirmations)
        except (LedgerRPCError, LedgerConnectionError) as e:
            code = e.reason if isinstance(e, LedgerRPCError) else "NETWORK_ERROR"
            raise ConfirmationError(
                f"Failed while waiting for {handle.tx_hash}: {e}",
                code=code,
                details={"tx_hash": handle.tx_hash, "confirmations": confirmations},
            ) from e

    def _detach(self, task: asyncio.Task, handle: PendingHandle) -> None:
        self._detached.add(task)
        task.add_done_callback(partial(self._on_detached_done, handle))

    def _on_detached_done(self, handle: PendingHandle, task: asyncio.Task) -> None:
        self._detached.discard(task)

        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            logger.warning("late_confirmation_failed", tx_hash=handle.tx_hash, error=str(error))
            return

        receipt = task.result()
        logger.info(
            "late_confirmation",
            tx_hash=handle.tx_hash,
            block_number=receipt.block_number,
            success=receipt.success,
        )

    async def aclose(self) -> None:
        """Cancel detached waits that are still running."""
        tasks = list(self._detached)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("detached_waits_cancelled", count=len(tasks))
