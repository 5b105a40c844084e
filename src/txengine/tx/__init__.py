"""
Transaction submission and confirmation tracking.
"""

from txengine.tx.submitter import Submitter
from txengine.tx.tracker import ConfirmationTracker

__all__ = [
    "Submitter",
    "ConfirmationTracker",
]
