"""
JSON-RPC ledger client base.

Implements the LedgerClient operations in terms of the standard Ethereum
JSON-RPC methods. Subclasses only provide the transport.
"""

import asyncio
import itertools
from abc import abstractmethod
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple

import structlog

from txengine.config import EngineConfig, get_config
from txengine.node.interface import (
    LedgerClient,
    PendingHandle,
    Receipt,
    _quantity,
)

if TYPE_CHECKING:
    from txengine.core.request import ContractEndpoint, OperationOptions

logger = structlog.get_logger(__name__)


def _scale(amount: int, multiplier: float) -> int:
    """Scale an integer amount, keeping two decimals of the multiplier."""
    return amount * round(multiplier * 100) // 100


class JsonRpcLedgerClient(LedgerClient):
    """
    Ledger client speaking Ethereum JSON-RPC.

    Submission uses ``eth_sendTransaction``, so the node must manage the
    sender account (development nodes, or a signing proxy in front of one).
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the client.

        Args:
            config: Engine configuration. Uses global config if not provided.
        """
        self.config = config or get_config()
        self.sender_address = self.config.sender_address
        self.poll_interval = self.config.receipt_poll_interval_seconds
        self._ids = itertools.count(1)

    def _next_payload(self, method: str, params: List[Any]) -> dict:
        return {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

    @abstractmethod
    async def _call(self, method: str, params: List[Any]) -> Any:
        """
        Perform one JSON-RPC call.

        Returns:
            The ``result`` member of the response

        Raises:
            LedgerRPCError: If the response carries an ``error`` member
            LedgerConnectionError: If the transport fails
        """
        pass

    async def get_chain_id(self) -> int:
        return _quantity(await self._call("eth_chainId", []))

    async def get_block_number(self) -> int:
        return _quantity(await self._call("eth_blockNumber", []))

    async def estimate_gas(self, tx: dict) -> int:
        return _quantity(await self._call("eth_estimateGas", [tx]))

    async def suggest_fees(self) -> Optional[Tuple[int, int]]:
        """
        Suggest EIP-1559 fees from the latest block.

        Returns:
            ``(max_fee_per_gas, max_priority_fee_per_gas)``, or None when the
            chain reports no base fee
        """
        block = await self._call("eth_getBlockByNumber", ["latest", False])
        base_fee = _quantity((block or {}).get("baseFeePerGas"))
        if base_fee is None:
            return None

        priority_fee = _quantity(await self._call("eth_maxPriorityFeePerGas", []))
        return 2 * base_fee + priority_fee, priority_fee

    async def build_transaction(
        self,
        endpoint: "ContractEndpoint",
        method: str,
        args: Sequence[Any],
        options: "OperationOptions",
    ) -> dict:
        """
        Build the transaction object for a contract call.

        An explicit gas limit wins over estimation. Estimates are padded by
        ``gas_limit_buffer``; suggested fees are scaled by the configured
        fee multipliers.
        """
        tx = {
            "to": endpoint.address,
            "data": endpoint.interface.encode_call(method, args),
        }
        if self.sender_address:
            tx["from"] = self.sender_address
        if options.value:
            tx["value"] = hex(options.value)

        if options.gas_limit:
            tx["gas"] = hex(options.gas_limit)
        elif self.config.auto_gas_estimation:
            estimate = await self.estimate_gas(tx)
            tx["gas"] = hex(_scale(estimate, self.config.gas_limit_buffer))

        if self.config.use_eip1559:
            fees = await self.suggest_fees()
            if fees is not None:
                max_fee, priority_fee = fees
                priority_fee = _scale(priority_fee, self.config.max_priority_fee_per_gas_multiplier)
                max_fee = max(_scale(max_fee, self.config.max_fee_per_gas_multiplier), priority_fee)
                tx["type"] = "0x2"
                tx["maxFeePerGas"] = hex(max_fee)
                tx["maxPriorityFeePerGas"] = hex(priority_fee)

        logger.debug(
            "transaction_built",
            to=endpoint.address,
            method=method,
            gas=tx.get("gas"),
            max_fee_per_gas=tx.get("maxFeePerGas"),
            max_priority_fee_per_gas=tx.get("maxPriorityFeePerGas"),
        )
        return tx

    async def submit(
        self,
        endpoint: "ContractEndpoint",
        method: str,
        args: Sequence[Any],
        options: "OperationOptions",
    ) -> PendingHandle:
        """Build a contract call and broadcast it with eth_sendTransaction."""
        tx = await self.build_transaction(endpoint, method, args, options)
        tx_hash = await self._call("eth_sendTransaction", [tx])
        logger.debug("transaction_broadcast", tx_hash=tx_hash, to=endpoint.address, method=method)

        return PendingHandle(
            tx_hash=tx_hash,
            to_address=endpoint.address,
            method=method,
            from_address=self.sender_address,
        )

    async def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        data = await self._call("eth_getTransactionReceipt", [tx_hash])
        if not data:
            return None
        return Receipt.from_rpc(data)

    async def wait_for_confirmations(
        self,
        handle: PendingHandle,
        confirmations: int = 1,
    ) -> Receipt:
        """Poll until the receipt exists and the tip is deep enough."""
        while True:
            receipt = await self.get_receipt(handle.tx_hash)

            if receipt is not None:
                tip = await self.get_block_number()
                depth = tip - receipt.block_number + 1

                if depth >= confirmations:
                    logger.debug(
                        "transaction_confirmed_on_chain",
                        tx_hash=handle.tx_hash,
                        confirmations=depth,
                    )
                    return receipt

            await asyncio.sleep(self.poll_interval)
