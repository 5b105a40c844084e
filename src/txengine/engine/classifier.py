"""
Status Classifier - maps a terminal outcome onto a TransactionStatus.
"""

from typing import Optional

from txengine.core.errors import TransactionTimeoutError, is_revert_error
from txengine.core.status import TransactionStatus
from txengine.node.interface import Receipt


def classify_outcome(
    receipt: Optional[Receipt],
    error: Optional[BaseException] = None,
) -> TransactionStatus:
    """
    Classify the outcome of an operation.

    Args:
        receipt: Receipt produced by the ledger, if any
        error: Failure raised while submitting or waiting, if any

    Returns:
        CONFIRMED or REVERTED when a receipt exists (by its success flag),
        otherwise TIMEOUT, REVERTED or FAILED depending on the error

    Raises:
        ValueError: If neither a receipt nor an error is given
    """
    if receipt is not None:
        return TransactionStatus.CONFIRMED if receipt.success else TransactionStatus.REVERTED

    if error is None:
        raise ValueError("An outcome needs a receipt or an error")

    if isinstance(error, TransactionTimeoutError):
        return TransactionStatus.TIMEOUT
    if is_revert_error(error):
        return TransactionStatus.REVERTED
    return TransactionStatus.FAILED
