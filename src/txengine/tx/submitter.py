"""
Submitter - resolves and broadcasts one operation.

Each call broadcasts at most once; there is no internal retry. A request
that fails here never produced a pending handle.
"""

from typing import Optional

import structlog

from txengine.abi.interface import InterfaceError
from txengine.core.errors import SubmissionError
from txengine.core.request import OperationRequest, format_args
from txengine.node.interface import (
    LedgerClient,
    LedgerConnectionError,
    LedgerRPCError,
    PendingHandle,
)

logger = structlog.get_logger(__name__)


class Submitter:
    """
    Builds and dispatches contract calls.

    The target method must resolve against the endpoint's interface and the
    argument count must match; argument values are passed through as given.
    Gas estimation runs inside the ledger's submit, so a call that reverts
    during estimation is rejected here like any other broadcast failure.
    """

    def __init__(self, ledger: LedgerClient):
        """
        Initialize the submitter.

        Args:
            ledger: Ledger client used to broadcast operations
        """
        self.ledger = ledger

    async def submit(self, request: OperationRequest) -> PendingHandle:
        """
        Submit an operation to the ledger.

        Args:
            request: Operation to submit

        Returns:
            Handle for the pending operation

        Raises:
            SubmissionError: If the request cannot be resolved or the network rejects it
        """
        endpoint = request.endpoint
        context = {
            "contract": endpoint.label,
            "address": endpoint.address,
            "method": request.method,
        }

        try:
            fragment = endpoint.interface.get_function(request.method)
        except InterfaceError as e:
            raise SubmissionError(str(e), code=e.code, details=context)

        if len(fragment.input_types) != len(request.args):
            raise SubmissionError(
                f"Argument count mismatch for {fragment.signature}: "
                f"expected {len(fragment.input_types)}, got {len(request.args)}",
                code="ARGUMENT_COUNT_MISMATCH",
                details=context,
            )

        logger.debug(
            "submitting_transaction",
            contract=endpoint.label,
            method=fragment.signature,
            args=format_args(request.args),
        )

        try:
            handle = await self.ledger.submit(
                endpoint,
                fragment.signature,
                request.args,
                request.options,
            )
        except InterfaceError as e:
            raise SubmissionError(str(e), code=e.code, details=context)
        except LedgerRPCError as e:
            raise SubmissionError(
                f"Transaction rejected: {e.message}",
                code=e.reason,
                details={
                    **context,
                    "rpc_code": e.rpc_code,
                    "reason": e.revert_reason,
                },
            ) from e
        except LedgerConnectionError as e:
            raise SubmissionError(str(e), code="NETWORK_ERROR", details=context) from e

        logger.info(
            "transaction_submitted",
            contract=endpoint.label,
            method=fragment.signature,
            tx_hash=handle.tx_hash,
        )
        return handle
