"""
WebSocket JSON-RPC client for node integration.

Provides ledger access via a node's WebSocket JSON-RPC endpoint.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

import structlog
from websockets.asyncio.client import ClientConnection
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from txengine.config import EngineConfig
from txengine.node.interface import LedgerConnectionError, LedgerRPCError
from txengine.node.jsonrpc import JsonRpcLedgerClient

logger = structlog.get_logger(__name__)


class WebSocketLedgerClient(JsonRpcLedgerClient):
    """
    WebSocket JSON-RPC client.

    Multiplexes concurrent calls over one connection, matching responses
    to requests by id.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the WebSocket client.

        Args:
            config: Engine configuration. Uses global config if not provided.
        """
        super().__init__(config)
        self.url = self.config.ws_url
        self._ws: Optional[ClientConnection] = None
        self._pending_requests: Dict[int, asyncio.Future] = {}
        self._receive_task: Optional[asyncio.Task] = None

    async def connect(self) -> None:
        """Establish WebSocket connection to the node."""
        if self._ws is not None:
            return

        try:
            self._ws = await ws_connect(
                self.url,
                ping_interval=30,
                ping_timeout=10,
            )
        except (OSError, WebSocketException) as e:
            raise LedgerConnectionError(f"Failed to connect to {self.url}: {e}")

        # Start receive loop
        self._receive_task = asyncio.create_task(self._receive_loop())

        try:
            chain_id = await self.get_chain_id()
        except (LedgerConnectionError, LedgerRPCError) as e:
            await self.disconnect()
            raise LedgerConnectionError(f"Node health check failed: {e}")

        logger.info("ws_rpc_connected", url=self.url, chain_id=chain_id)

    async def disconnect(self) -> None:
        """Close WebSocket connection."""
        if self._receive_task:
            self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass
            self._receive_task = None

        if self._ws:
            await self._ws.close()
            self._ws = None
            logger.info("ws_rpc_disconnected")

        self._fail_pending(LedgerConnectionError("Connection closed"))

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending_requests.values():
            if not future.done():
                future.set_exception(error)
        self._pending_requests.clear()

    async def _receive_loop(self) -> None:
        """
        Background task to receive WebSocket messages.

        Ends when the connection closes, cleanly or not. Pending calls are
        failed and the connection is dropped so the next call reconnects.
        """
        try:
            async for message in self._ws:
                try:
                    data = json.loads(message)
                except ValueError:
                    logger.warning("ws_invalid_message", message=str(message)[:200])
                    continue

                # Match response to request
                future = self._pending_requests.pop(data.get("id"), None)
                if future is None or future.done():
                    continue

                if data.get("error"):
                    error = data["error"]
                    future.set_exception(
                        LedgerRPCError(
                            error.get("message", "Unknown error"),
                            rpc_code=error.get("code"),
                            data=error.get("data"),
                        )
                    )
                else:
                    future.set_result(data.get("result"))

        except ConnectionClosed as e:
            reason = str(e)
        else:
            # A clean close ends iteration without raising
            reason = "closed by node"

        logger.warning("ws_connection_closed", error=reason)
        self._ws = None
        self._fail_pending(LedgerConnectionError(f"Connection closed: {reason}"))

    async def _call(self, method: str, params: List[Any]) -> Any:
        """Send a JSON-RPC request and wait for its response."""
        if not self._ws:
            await self.connect()

        payload = self._next_payload(method, params)
        future = asyncio.get_running_loop().create_future()
        self._pending_requests[payload["id"]] = future

        try:
            await self._ws.send(json.dumps(payload))
            return await asyncio.wait_for(
                future,
                timeout=self.config.rpc_request_timeout_seconds,
            )
        except ConnectionClosed as e:
            raise LedgerConnectionError(f"Connection closed: {e}")
        except asyncio.TimeoutError:
            raise LedgerConnectionError(f"JSON-RPC request timed out: {method}")
        finally:
            self._pending_requests.pop(payload["id"], None)
