"""
Node Integration Layer.

Provides abstracted access to the ledger: operation submission, receipts
and confirmation tracking. Supports HTTP and WebSocket JSON-RPC transports.
"""

from txengine.node.interface import (
    LedgerClient,
    LedgerConnectionError,
    LedgerRPCError,
    LogEntry,
    PendingHandle,
    Receipt,
)
from txengine.node.httprpc import HttpLedgerClient
from txengine.node.wsrpc import WebSocketLedgerClient

__all__ = [
    "LedgerClient",
    "LedgerConnectionError",
    "LedgerRPCError",
    "LogEntry",
    "PendingHandle",
    "Receipt",
    "HttpLedgerClient",
    "WebSocketLedgerClient",
]
