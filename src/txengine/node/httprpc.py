"""
HTTP JSON-RPC client for node integration.

Provides ledger access via a node's HTTP JSON-RPC endpoint.
"""

from typing import Any, List, Optional

import httpx
import structlog

from txengine.config import EngineConfig
from txengine.node.interface import LedgerConnectionError, LedgerRPCError
from txengine.node.jsonrpc import JsonRpcLedgerClient

logger = structlog.get_logger(__name__)


class HttpLedgerClient(JsonRpcLedgerClient):
    """
    HTTP JSON-RPC client.

    Implements the LedgerClient over plain HTTP POST requests.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the HTTP client.

        Args:
            config: Engine configuration. Uses global config if not provided.
            transport: Optional custom httpx transport
        """
        super().__init__(config)
        self.url = self.config.rpc_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Create the HTTP client and check the node answers."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            timeout=self.config.rpc_request_timeout_seconds,
            transport=self._transport,
        )

        try:
            chain_id = await self.get_chain_id()
        except (LedgerConnectionError, LedgerRPCError) as e:
            await self.disconnect()
            raise LedgerConnectionError(f"Node health check failed: {e}")

        logger.info("http_rpc_connected", url=self.url, chain_id=chain_id)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("http_rpc_disconnected")

    async def _call(self, method: str, params: List[Any]) -> Any:
        """Make a JSON-RPC request."""
        if not self._client:
            await self.connect()

        payload = self._next_payload(method, params)

        try:
            response = await self._client.post(self.url, json=payload)
        except httpx.RequestError as e:
            logger.error("rpc_request_error", method=method, error=str(e))
            raise LedgerConnectionError(f"JSON-RPC request failed: {e}")

        if response.status_code != 200:
            logger.error(
                "rpc_request_failed",
                method=method,
                status=response.status_code,
                error=response.text,
            )
            raise LedgerConnectionError(f"JSON-RPC HTTP error {response.status_code}: {response.text}")

        try:
            body = response.json()
        except ValueError:
            raise LedgerConnectionError(f"Invalid JSON-RPC response: {response.text[:200]}")

        if body.get("error"):
            error = body["error"]
            raise LedgerRPCError(
                error.get("message", "Unknown error"),
                rpc_code=error.get("code"),
                data=error.get("data"),
            )
        return body.get("result")
