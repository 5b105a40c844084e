"""
Batch Orchestrator.

Executes an ordered list of operations one at a time. Operations from one
sender are sequenced by the ledger, so requests are never reordered or
submitted concurrently: request i+1 is only submitted once request i has
a terminal record.
"""

import asyncio
from typing import Callable, Iterable, Optional, Set

import structlog

from txengine.core.batch import BatchProgress, BatchResult, ProgressStatus
from txengine.core.executor import StatusCallback, TransactionExecutor
from txengine.core.observer import ObserverChannel
from txengine.core.request import OperationRequest

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[BatchProgress], None]


class BatchOrchestrator:
    """
    Runs batches of operations with an optional stop-on-failure policy.

    Usage:
        ```python
        orchestrator = BatchOrchestrator(executor)
        result = await orchestrator.execute_batch(requests, stop_on_failure=True)
        print(f"{result.succeeded}/{result.total} confirmed")
        ```
    """

    def __init__(self, executor: TransactionExecutor):
        """
        Initialize the orchestrator.

        Args:
            executor: Executor used for each operation
        """
        self.executor = executor
        self._observer_tasks: Set[asyncio.Future] = set()

    async def execute_batch(
        self,
        requests: Iterable[OperationRequest],
        stop_on_failure: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> BatchResult:
        """
        Execute operations in order.

        Args:
            requests: Operations to execute, in submission order
            stop_on_failure: Halt at the first operation that does not confirm
            on_progress: Optional observer for batch progress
            on_status: Optional observer for per-operation status updates

        Returns:
            Records of the attempted operations and aggregate counts
        """
        requests = list(requests)
        total = len(requests)
        progress = ObserverChannel(on_progress, name="on_progress", tasks=self._observer_tasks)
        result = BatchResult(total=total)

        logger.info("batch_started", total=total, stop_on_failure=stop_on_failure)

        for index, request in enumerate(requests, start=1):
            record = await self.executor.execute(request, on_status=on_status)
            result.records.append(record)

            progress.emit(
                BatchProgress.at(
                    index,
                    total,
                    ProgressStatus.PROCESSING,
                    f"Processed operation {index}/{total}: "
                    f"{request.description} {record.status.value}",
                )
            )

            if record.succeeded:
                continue

            if stop_on_failure or request.options.stop_on_failure:
                result.interrupted = True
                logger.warning(
                    "batch_interrupted",
                    index=index,
                    total=total,
                    status=record.status.value,
                    error=record.message,
                )
                progress.emit(
                    BatchProgress.at(
                        index,
                        total,
                        ProgressStatus.INTERRUPTED,
                        f"Execution interrupted: {record.message}",
                    )
                )
                break

        progress.emit(
            BatchProgress.at(
                result.attempted,
                total,
                ProgressStatus.COMPLETED,
                f"Batch completed: {result.succeeded}/{result.attempted} succeeded",
            )
        )

        logger.info(
            "batch_completed",
            total=total,
            attempted=result.attempted,
            succeeded=result.succeeded,
            failed=result.failed,
        )
        return result
