"""
Outcome interpretation.

Status classification and receipt event extraction.
"""

from txengine.engine.classifier import classify_outcome
from txengine.engine.extractor import DomainEvent, EventExtractor

__all__ = [
    "classify_outcome",
    "DomainEvent",
    "EventExtractor",
]
