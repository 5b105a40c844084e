"""
Event Extractor - decodes receipt logs into domain events.

Logs that match no known event shape are skipped; one undecodable log
never affects the decoding of the logs after it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from txengine.abi.interface import ContractInterface, InterfaceError
from txengine.node.interface import Receipt

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DomainEvent:
    """A named fact emitted by an executed operation."""
    name: str
    signature: str
    topic: str
    address: str
    params: Dict[str, Any] = field(default_factory=dict)
    block_number: Optional[int] = None
    block_hash: Optional[str] = None
    transaction_hash: Optional[str] = None
    transaction_index: Optional[int] = None
    log_index: Optional[int] = None
    sender: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "signature": self.signature,
            "topic": self.topic,
            "address": self.address,
            "params": self.params,
            "block_number": self.block_number,
            "block_hash": self.block_hash,
            "transaction_hash": self.transaction_hash,
            "transaction_index": self.transaction_index,
            "log_index": self.log_index,
            "sender": self.sender,
        }


class EventExtractor:
    """
    Decodes the raw logs of a receipt against an interface description.

    Extraction is a pure function of its inputs: the same receipt and
    interface always yield the same events in the same order.
    """

    def extract(
        self,
        receipt: Optional[Receipt],
        interface: ContractInterface,
        address: Optional[str] = None,
    ) -> List[DomainEvent]:
        """
        Extract domain events from a receipt.

        Args:
            receipt: Ledger receipt, or None if the operation produced none
            interface: Interface description used to decode logs
            address: If given, only logs emitted by this address are decoded

        Returns:
            Decoded events in log order
        """
        if receipt is None:
            return []

        events = []
        for log in receipt.logs:
            if log.removed:
                continue
            if address and log.address.lower() != address.lower():
                continue

            try:
                decoded = interface.parse_log(log.topics, log.data)
            except InterfaceError as e:
                logger.warning(
                    "log_decode_failed",
                    tx_hash=receipt.transaction_hash,
                    log_index=log.log_index,
                    error=str(e),
                )
                continue

            if decoded is None:
                continue

            events.append(
                DomainEvent(
                    name=decoded.name,
                    signature=decoded.signature,
                    topic=decoded.topic,
                    address=log.address,
                    params=decoded.params,
                    block_number=log.block_number if log.block_number is not None else receipt.block_number,
                    block_hash=log.block_hash or receipt.block_hash,
                    transaction_hash=log.transaction_hash or receipt.transaction_hash,
                    transaction_index=log.transaction_index,
                    log_index=log.log_index,
                    sender=receipt.from_address,
                )
            )

        logger.debug(
            "events_extracted",
            tx_hash=receipt.transaction_hash,
            logs=len(receipt.logs),
            events=len(events),
        )
        return events
