"""
Configuration management for the transaction engine.

Supports configuration via environment variables and .env files.
"""

from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RpcTransport(str, Enum):
    """Transports supported for talking to the ledger node."""
    HTTP = "http"
    WEBSOCKET = "websocket"


class EngineConfig(BaseSettings):
    """
    Configuration settings for the transaction engine.

    All settings can be configured via environment variables with the TXENGINE_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="TXENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Node connection settings
    rpc_transport: RpcTransport = Field(
        default=RpcTransport.HTTP,
        description="Transport used for JSON-RPC calls"
    )
    rpc_url: str = Field(
        default="http://127.0.0.1:8545",
        description="HTTP JSON-RPC endpoint of the ledger node"
    )
    ws_url: str = Field(
        default="ws://127.0.0.1:8546",
        description="WebSocket JSON-RPC endpoint of the ledger node"
    )
    rpc_request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single JSON-RPC request"
    )

    # Sender settings
    sender_address: Optional[str] = Field(
        default=None,
        description="Account that submitted operations are sent from"
    )

    # Gas settings
    auto_gas_estimation: bool = Field(
        default=True,
        description="Estimate a gas limit when the operation does not set one"
    )
    gas_limit_buffer: float = Field(
        default=1.1,
        ge=1.0,
        description="Multiplier applied to the estimated gas limit"
    )
    use_eip1559: bool = Field(
        default=True,
        description="Set EIP-1559 fee fields when the chain reports a base fee"
    )
    max_fee_per_gas_multiplier: float = Field(
        default=1.5,
        gt=0,
        description="Multiplier applied to the suggested max fee per gas"
    )
    max_priority_fee_per_gas_multiplier: float = Field(
        default=1.2,
        gt=0,
        description="Multiplier applied to the suggested priority fee per gas"
    )

    # Confirmation defaults
    default_confirmations: int = Field(
        default=1,
        ge=1,
        description="Confirmations required before an operation counts as final"
    )
    default_timeout_ms: int = Field(
        default=300_000,
        ge=1,
        description="Maximum time to wait for confirmations, in milliseconds"
    )
    receipt_poll_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Delay between receipt polls while waiting for confirmations"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @property
    def endpoint_url(self) -> str:
        """Get the node URL for the configured transport."""
        if self.rpc_transport == RpcTransport.WEBSOCKET:
            return self.ws_url
        return self.rpc_url


# Global config instance
_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = EngineConfig()
    return _config


def set_config(config: EngineConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
